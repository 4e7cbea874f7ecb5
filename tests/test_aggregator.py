"""Tests for scan result aggregation."""

import time

import pytest

from core.aggregator import TIMED_OUT_MESSAGE, ScanResultAggregator, run_parallel
from core.error_classification import ErrorCategory
from core.exceptions import RegistryConnectionException, RegistryException
from core.models import ImageIdentity, ScanFindings, ScanStatus
from conftest import FakeRegistry, complete_scan, make_finding


class TestGetFindings:
    """Tests for fetching findings for one image."""

    def test_complete_scan(self):
        """Test a completed scan yields a successful result."""
        image = ImageIdentity("acme/nexus", "2.15.0")
        registry = FakeRegistry(scans={str(image): complete_scan(make_finding())})
        result = ScanResultAggregator(registry).get_findings(image, "nexus")

        assert result.succeeded
        assert result.component == "nexus"
        assert result.image == image
        assert len(result.findings) == 1
        assert result.severity_counts == {"HIGH": 1}

    def test_component_defaults_to_repository(self):
        """Test the repository name is the default report key."""
        image = ImageIdentity("acme/nexus", "1")
        registry = FakeRegistry(scans={str(image): complete_scan()})
        assert ScanResultAggregator(registry).get_findings(image).component == "acme/nexus"

    def test_incomplete_scan_is_failed(self):
        """Test a scan that is not COMPLETE yields a failed result."""
        image = ImageIdentity("acme/nexus", "1")
        registry = FakeRegistry(scans={
            str(image): ScanFindings(status="FAILED", status_description="UnsupportedImageError"),
        })
        result = ScanResultAggregator(registry).get_findings(image, "nexus")
        assert result.status == ScanStatus.FAILED
        assert "not complete" in result.message
        assert "UnsupportedImageError" in result.message

    def test_registry_error_propagates(self):
        """Test get_findings raises registry errors."""
        with pytest.raises(RegistryException):
            ScanResultAggregator(FakeRegistry()).get_findings(ImageIdentity("acme/nexus", "1"))

    def test_isolated_records_error(self):
        """Test get_findings_isolated turns registry errors into data."""
        result = ScanResultAggregator(FakeRegistry()).get_findings_isolated(
            "nexus", ImageIdentity("acme/nexus", "1")
        )
        assert result.status == ScanStatus.FAILED
        assert "scan_not_found" in result.message


class TestGetFindingsBatch:
    """Tests for batch retrieval."""

    def test_failure_is_isolated(self):
        """Test one failing image does not affect the others."""
        images = {
            "nexus": ImageIdentity("acme/nexus", "1"),
            "portal": ImageIdentity("acme/portal", "2"),
            "gateway": ImageIdentity("acme/gateway", "3"),
        }
        registry = FakeRegistry(scans={
            "acme/nexus:1": complete_scan(make_finding()),
            "acme/portal:2": RegistryException(
                "DescribeImageScanFindings",
                ErrorCategory.REPOSITORY_NOT_FOUND,
                "Repository acme/portal not found",
            ),
            "acme/gateway:3": complete_scan(),
        })

        results = ScanResultAggregator(registry, max_workers=3).get_findings_batch(images)

        assert set(results) == {"nexus", "portal", "gateway"}
        assert results["nexus"].succeeded
        assert len(results["nexus"].findings) == 1
        assert results["gateway"].succeeded
        assert results["portal"].status == ScanStatus.FAILED
        assert "not found" in results["portal"].message

    def test_empty_batch(self):
        """Test an empty batch returns an empty mapping."""
        assert ScanResultAggregator(FakeRegistry()).get_findings_batch({}) == {}

    def test_connection_error_aborts(self):
        """Test an unreachable registry aborts the batch."""
        registry = FakeRegistry(scans={
            "acme/nexus:1": RegistryConnectionException("Unable to locate credentials"),
        })
        with pytest.raises(RegistryConnectionException):
            ScanResultAggregator(registry).get_findings_batch(
                {"nexus": ImageIdentity("acme/nexus", "1")}
            )

    def test_unexpected_error_is_isolated(self):
        """Test a non-registry error for one image is recorded and the rest survive."""
        images = {
            "a": ImageIdentity("acme/a", "1"),
            "b": ImageIdentity("acme/b", "1"),
            "c": ImageIdentity("acme/c", "1"),
        }
        registry = FakeRegistry(scans={
            "acme/a:1": complete_scan(),
            "acme/b:1": ValueError("bad page"),
            "acme/c:1": complete_scan(make_finding()),
        })

        results = ScanResultAggregator(registry, max_workers=3).get_findings_batch(images)

        assert list(results) == ["a", "b", "c"]
        assert results["a"].succeeded
        assert results["c"].succeeded
        assert results["b"].status == ScanStatus.FAILED
        assert "bad page" in results["b"].message

    def test_timeout_marks_unfinished_images(self):
        """Test images still fetching at the deadline are recorded as timed out."""
        registry = FakeRegistry(scans={
            "acme/a:1": complete_scan(),
            "acme/b:1": complete_scan(),
        })
        original = registry.get_scan_findings

        def slow_b(image):
            if image.repository_name == "acme/b":
                time.sleep(2)
            return original(image)

        registry.get_scan_findings = slow_b
        images = {"a": ImageIdentity("acme/a", "1"), "b": ImageIdentity("acme/b", "1")}

        start = time.monotonic()
        results = ScanResultAggregator(registry, max_workers=2).get_findings_batch(images, timeout=0.5)

        assert time.monotonic() - start < 1.5
        assert results["a"].succeeded
        assert results["b"].message == TIMED_OUT_MESSAGE


class TestRunParallel:
    """Tests for the shared worker pool."""

    def test_results_by_key(self):
        """Test every job result is returned under its key."""
        results, unfinished = run_parallel({"x": lambda: 1, "y": lambda: 2}, max_workers=2)
        assert results == {"x": 1, "y": 2}
        assert unfinished == []

    def test_unfinished_keys(self):
        """Test jobs still running at the deadline are reported, not awaited."""
        start = time.monotonic()
        results, unfinished = run_parallel(
            {"fast": lambda: "done", "slow": lambda: time.sleep(2)},
            max_workers=2,
            timeout=0.5,
        )
        assert time.monotonic() - start < 1.5
        assert results == {"fast": "done"}
        assert unfinished == ["slow"]

    def test_job_errors_propagate(self):
        """Test an exception raised by a job reaches the caller."""
        def fail():
            raise RegistryConnectionException("no credentials")

        with pytest.raises(RegistryConnectionException):
            run_parallel({"x": fail}, max_workers=1)
