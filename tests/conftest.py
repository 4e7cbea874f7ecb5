"""
Pytest fixtures and configuration for Scangate tests.

Provides shared fixtures and test utilities across the test suite.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.exceptions import RegistryException
from core.error_classification import ErrorCategory
from core.models import (
    Allowlist,
    Finding,
    ImageDetail,
    ImageIdentity,
    RepositoryRef,
    ScanFindings,
    SeverityLevel,
)
from core.registry_interface import RegistryClient

NOW = datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)


def make_finding(
    name: str = "CVE-2024-0001",
    severity: str = "HIGH",
    package: Optional[str] = "openssl",
    version: Optional[str] = "1.0.1",
    description: Optional[str] = "Buffer overflow",
) -> Finding:
    """Build a finding with package attributes."""
    attributes = {}
    if package is not None:
        attributes["package_name"] = package
    if version is not None:
        attributes["package_version"] = version
    return Finding(
        name=name,
        severity=severity,
        description=description,
        uri=f"https://nvd.nist.gov/vuln/detail/{name}",
        attributes=attributes,
    )


def complete_scan(*findings: Finding, severity_counts: Optional[dict] = None) -> ScanFindings:
    """Build a completed scan with a histogram matching the findings."""
    if severity_counts is None:
        severity_counts = {}
        for finding in findings:
            severity_counts[finding.severity] = severity_counts.get(finding.severity, 0) + 1
    return ScanFindings(
        status="COMPLETE",
        findings=tuple(findings),
        severity_counts=severity_counts,
    )


class FakeRegistry(RegistryClient):
    """
    In-memory registry.

    Tags map repository -> list of (tag, pushed_at); scans map "repo:tag" to
    ScanFindings or to an exception raised on lookup.
    """

    def __init__(self, tags=None, scans=None, repositories=None):
        self.tags = tags or {}
        self.scans = scans or {}
        self.repositories = repositories
        self.detail_calls = []

    def name(self) -> str:
        return "fake"

    def list_repositories(self, registry_id=None):
        names = self.repositories if self.repositories is not None else list(self.tags)
        return [RepositoryRef(repository_name=name) for name in names]

    def list_image_identifiers(self, repository_name, registry_id=None):
        if repository_name not in self.tags:
            raise RegistryException(
                "ListImages",
                ErrorCategory.REPOSITORY_NOT_FOUND,
                f"Repository {repository_name} not found",
            )
        return [tag for tag, _ in self.tags[repository_name]]

    def get_image_details(self, repository_name, tags, registry_id=None):
        self.detail_calls.append((repository_name, list(tags)))
        return [
            ImageDetail(tag=tag, pushed_at=pushed_at)
            for tag, pushed_at in self.tags.get(repository_name, [])
            if tag in tags
        ]

    def get_scan_findings(self, image: ImageIdentity):
        scan = self.scans.get(str(image))
        if scan is None:
            raise RegistryException(
                "DescribeImageScanFindings",
                ErrorCategory.SCAN_NOT_FOUND,
                f"No scan found for {image}",
            )
        if isinstance(scan, Exception):
            raise scan
        return scan


@pytest.fixture
def now():
    """Fixed current time."""
    return NOW


@pytest.fixture
def clock():
    """Clock returning the fixed current time."""
    return lambda: NOW


@pytest.fixture
def finding():
    """HIGH finding in openssl@1.0.1."""
    return make_finding()


@pytest.fixture
def empty_allowlist():
    """Allowlist without entries."""
    return Allowlist()


@pytest.fixture
def cutoff():
    """Default cutoff."""
    return SeverityLevel.MEDIUM


@pytest.fixture
def fake_registry(now):
    """Registry with two repositories under the acme prefix."""
    return FakeRegistry(
        tags={
            "acme/nexus": [
                ("2.14.0", now - timedelta(days=3)),
                ("2.15.0", now - timedelta(hours=1)),
            ],
            "acme/portal": [("1.0.0", now - timedelta(days=1))],
        },
        scans={
            "acme/nexus:2.15.0": complete_scan(make_finding()),
            "acme/nexus:2.14.0": complete_scan(make_finding(severity="LOW")),
            "acme/portal:1.0.0": complete_scan(),
        },
    )
