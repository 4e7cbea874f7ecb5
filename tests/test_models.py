"""Tests for data models."""

import pytest

from core.models import (
    Allowlist,
    AuditTarget,
    EvaluatedFinding,
    ImageIdentity,
    ImageReport,
    ImageScanResult,
    ScanStatus,
    SeverityLevel,
    Verdict,
)
from conftest import make_finding


class TestSeverityLevel:
    """Tests for severity ordering."""

    def test_total_order(self):
        """Test INFORMATIONAL < LOW < MEDIUM < HIGH < CRITICAL."""
        levels = SeverityLevel.ordered_levels()
        assert levels == [
            SeverityLevel.INFORMATIONAL,
            SeverityLevel.LOW,
            SeverityLevel.MEDIUM,
            SeverityLevel.HIGH,
            SeverityLevel.CRITICAL,
        ]
        for lower, higher in zip(levels, levels[1:]):
            assert lower < higher
            assert higher > lower
            assert lower <= higher
            assert not higher <= lower

    def test_order_is_by_rank_not_string(self):
        """Test ordering does not follow alphabetical order of the names."""
        assert SeverityLevel.CRITICAL > SeverityLevel.HIGH
        assert SeverityLevel.LOW < SeverityLevel.MEDIUM
        assert sorted([SeverityLevel.HIGH, SeverityLevel.CRITICAL, SeverityLevel.LOW]) == [
            SeverityLevel.LOW,
            SeverityLevel.HIGH,
            SeverityLevel.CRITICAL,
        ]

    def test_comparison_is_reflexive(self):
        """Test every level is >= and <= itself."""
        for level in SeverityLevel.ordered_levels():
            assert level >= level
            assert level <= level

    @pytest.mark.parametrize("raw,expected", [
        ("HIGH", SeverityLevel.HIGH),
        ("high", SeverityLevel.HIGH),
        (" Critical ", SeverityLevel.CRITICAL),
        ("INFORMATIONAL", SeverityLevel.INFORMATIONAL),
    ])
    def test_parse_known(self, raw, expected):
        """Test parsing recognized severities case-insensitively."""
        assert SeverityLevel.parse(raw) == expected

    @pytest.mark.parametrize("raw", ["UNDEFINED", "", None, "SEVERE"])
    def test_parse_unknown(self, raw):
        """Test unrecognized severities parse to None."""
        assert SeverityLevel.parse(raw) is None

    def test_str_is_value(self):
        """Test string form is the scanner spelling."""
        assert str(SeverityLevel.MEDIUM) == "MEDIUM"


class TestFinding:
    """Tests for Finding."""

    def test_severity_level(self):
        """Test severity_level parses the raw severity."""
        assert make_finding(severity="low").severity_level == SeverityLevel.LOW

    def test_undefined_severity_level(self):
        """Test an unknown severity has no level."""
        assert make_finding(severity="UNDEFINED").severity_level is None


class TestAllowlist:
    """Tests for Allowlist."""

    def test_empty(self):
        """Test default allowlist is empty."""
        assert Allowlist().is_empty()

    def test_component_only_is_not_empty(self):
        """Test a component section makes the allowlist non-empty."""
        assert not Allowlist(component_patterns={"nexus": ("openssl",)}).is_empty()


class TestImageIdentity:
    """Tests for ImageIdentity."""

    def test_str(self):
        """Test repo:tag form."""
        assert str(ImageIdentity("acme/nexus", "2.15.0")) == "acme/nexus:2.15.0"

    def test_target_identity_uses_override_tag(self):
        """Test a resolved tag replaces the target's configured tag."""
        target = AuditTarget("nexus", "acme/nexus", tag=None, registry_id="123")
        identity = target.identity("2.15.0")
        assert identity == ImageIdentity("acme/nexus", "2.15.0", "123")


class TestImageScanResult:
    """Tests for ImageScanResult."""

    def test_failed_result(self):
        """Test synthetic failed result carries only a message."""
        result = ImageScanResult.failed("nexus", None, "Repository not found")
        assert result.status == ScanStatus.FAILED
        assert not result.succeeded
        assert result.findings == ()
        assert result.message == "Repository not found"


class TestImageReport:
    """Tests for ImageReport."""

    def test_passed_when_no_failures_or_errors(self):
        """Test a clean report passes."""
        report = ImageReport(image_name="nexus", cutoff=SeverityLevel.MEDIUM, total_findings=3)
        assert report.passed
        assert not report.scan_failed

    def test_failures_fail(self):
        """Test a report with failures does not pass."""
        report = ImageReport(image_name="nexus", cutoff=SeverityLevel.MEDIUM, failure_count=1)
        assert not report.passed

    def test_errors_fail(self):
        """Test a report with unevaluable findings does not pass."""
        report = ImageReport(image_name="nexus", cutoff=SeverityLevel.MEDIUM, error_count=1)
        assert not report.passed

    def test_scan_failure(self):
        """Test a failed scan neither passes nor counts findings."""
        report = ImageReport(
            image_name="nexus",
            cutoff=SeverityLevel.MEDIUM,
            scan_status=ScanStatus.FAILED,
            scan_message="timed out",
        )
        assert report.scan_failed
        assert not report.passed
        assert report.total_findings == 0

    def test_allowlisted_count_and_dict(self):
        """Test allowlisted count and serialization."""
        evaluated = (
            EvaluatedFinding(make_finding(), Verdict.PASSED, "ok", matched_pattern="openssl"),
            EvaluatedFinding(make_finding(name="CVE-2"), Verdict.FAILED, "bad"),
        )
        report = ImageReport(
            image_name="nexus",
            cutoff=SeverityLevel.MEDIUM,
            tag="2.15.0",
            total_findings=2,
            failure_count=1,
            evaluated_findings=evaluated,
        )
        assert report.allowlisted_count == 1

        data = report.to_dict()
        assert data["image"] == "nexus"
        assert data["tag"] == "2.15.0"
        assert data["cutoff"] == "MEDIUM"
        assert data["allowlisted"] == 1
        assert data["passed"] is False
