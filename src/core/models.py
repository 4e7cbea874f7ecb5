"""
Domain models for image scan auditing.

This module defines the core data structures used throughout the application.
All models are immutable (frozen dataclasses) to prevent accidental mutation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class SeverityLevel(str, Enum):
    """
    Finding severity levels as reported by ECR basic scanning.

    Ordering is by rank (INFORMATIONAL lowest, CRITICAL highest), not by the
    string value.
    """

    INFORMATIONAL = "INFORMATIONAL"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @classmethod
    def ordered_levels(cls) -> list["SeverityLevel"]:
        """Return severity levels from lowest to highest."""
        return [cls.INFORMATIONAL, cls.LOW, cls.MEDIUM, cls.HIGH, cls.CRITICAL]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SeverityLevel"]:
        """
        Parse a raw severity string.

        Args:
            value: Severity as reported by the scanner (case-insensitive)

        Returns:
            Matching SeverityLevel, or None if the value is not recognized
        """
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    @property
    def rank(self) -> int:
        return SeverityLevel.ordered_levels().index(self)

    def __lt__(self, other):
        if not isinstance(other, SeverityLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, SeverityLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, SeverityLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, SeverityLevel):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value


class Verdict(str, Enum):
    """Outcome of evaluating a single finding."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


class ScanStatus(str, Enum):
    """Outcome of retrieving scan findings for an image."""

    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ImageIdentity:
    """
    One scannable image in the registry.

    Attributes:
        repository_name: Full repository name (e.g., "acme/nexus")
        tag: Image tag
        registry_id: AWS account id of the registry (None for the default)
    """

    repository_name: str
    tag: str
    registry_id: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.repository_name}:{self.tag}"


@dataclass(frozen=True)
class ImageDetail:
    """Push metadata for one tag of a repository."""

    tag: str
    pushed_at: datetime


@dataclass(frozen=True)
class Finding:
    """
    A single vulnerability reported for a package in a scanned image.

    Attributes:
        name: Vulnerability identifier (e.g., "CVE-2014-0160")
        severity: Raw severity string as returned by the scanner
        description: Vulnerability description, if any
        uri: Link to the vulnerability record, if any
        attributes: Scanner attributes (package_name, package_version, ...)
    """

    name: str
    severity: str
    description: Optional[str] = None
    uri: Optional[str] = None
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def severity_level(self) -> Optional[SeverityLevel]:
        return SeverityLevel.parse(self.severity)


@dataclass(frozen=True)
class Allowlist:
    """
    Packages exempted from failing regardless of severity.

    Patterns are matched as prefixes of "<package_name>@<package_version>",
    so "openssl" allows every version while "openssl@1.0.1" allows one.

    Attributes:
        global_patterns: Patterns applied to every component
        component_patterns: Patterns applied to one component only
    """

    global_patterns: tuple[str, ...] = ()
    component_patterns: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.global_patterns and not any(self.component_patterns.values())


@dataclass(frozen=True)
class EvaluatedFinding:
    """
    A finding together with its policy verdict.

    Attributes:
        finding: The finding that was evaluated
        verdict: PASSED, FAILED or ERROR
        reason: Human-readable explanation of the verdict
        matched_pattern: Allowlist pattern that exempted the finding, if any
        package_key: "<package_name>@<package_version>" when both are known
    """

    finding: Finding
    verdict: Verdict
    reason: str
    matched_pattern: Optional[str] = None
    package_key: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.PASSED

    @property
    def failed(self) -> bool:
        return self.verdict == Verdict.FAILED

    @property
    def allowlisted(self) -> bool:
        return self.matched_pattern is not None


@dataclass(frozen=True)
class ImageScanResult:
    """
    Scan findings retrieved for one image.

    Attributes:
        component: Logical image name used as report and allowlist key
        image: Image the findings belong to (None if it could not be resolved)
        status: Whether findings were retrieved
        findings: Findings in scanner order
        severity_counts: Scanner-provided histogram of findings per severity
        message: Failure description when status is FAILED
    """

    component: str
    image: Optional[ImageIdentity]
    status: ScanStatus
    findings: tuple[Finding, ...] = ()
    severity_counts: dict[str, int] = field(default_factory=dict)
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == ScanStatus.SUCCEEDED

    @classmethod
    def failed(
        cls,
        component: str,
        image: Optional[ImageIdentity],
        message: str,
    ) -> "ImageScanResult":
        """Build a synthetic FAILED result carrying only a message."""
        return cls(
            component=component,
            image=image,
            status=ScanStatus.FAILED,
            message=message,
        )


@dataclass(frozen=True)
class ImageReport:
    """
    Aggregate audit result for one image, ready for serialization.

    Attributes:
        image_name: Component name of the image
        tag: Tag that was evaluated (None if it could not be resolved)
        cutoff: Severity cutoff the findings were evaluated against
        total_findings: Number of findings evaluated
        failure_count: Number of findings with verdict FAILED
        undefined_severity_count: Findings with an unrecognized severity
        error_count: Number of findings with verdict ERROR
        evaluated_findings: Evaluated findings in scanner order
        scan_status: Whether findings could be retrieved at all
        scan_message: Failure description when scan_status is FAILED
    """

    image_name: str
    cutoff: SeverityLevel
    tag: Optional[str] = None
    total_findings: int = 0
    failure_count: int = 0
    undefined_severity_count: int = 0
    error_count: int = 0
    evaluated_findings: tuple[EvaluatedFinding, ...] = ()
    scan_status: ScanStatus = ScanStatus.SUCCEEDED
    scan_message: Optional[str] = None

    @property
    def scan_failed(self) -> bool:
        return self.scan_status == ScanStatus.FAILED

    @property
    def passed(self) -> bool:
        """True when the scan succeeded and no finding failed or errored."""
        return not self.scan_failed and self.failure_count == 0 and self.error_count == 0

    @property
    def reported_error_count(self) -> int:
        """
        Findings reported as errors: ERROR verdicts plus allowlisted findings
        whose severity is undefined.
        """
        return sum(
            1
            for f in self.evaluated_findings
            if f.verdict == Verdict.ERROR or f.finding.severity_level is None
        )

    @property
    def allowlisted_count(self) -> int:
        return sum(1 for f in self.evaluated_findings if f.allowlisted)

    def to_dict(self) -> dict:
        """Convert summary counts to a dictionary for serialization."""
        return {
            "image": self.image_name,
            "tag": self.tag,
            "cutoff": self.cutoff.value,
            "scan_status": self.scan_status.value,
            "total_findings": self.total_findings,
            "failures": self.failure_count,
            "errors": self.reported_error_count,
            "undefined_severity": self.undefined_severity_count,
            "allowlisted": self.allowlisted_count,
            "passed": self.passed,
        }


@dataclass(frozen=True)
class AuditTarget:
    """
    An image to audit before its tag is necessarily known.

    Attributes:
        component: Logical image name
        repository_name: Full repository name
        tag: Tag to audit, or None to resolve the latest tag
        registry_id: Registry the repository lives in
    """

    component: str
    repository_name: str
    tag: Optional[str] = None
    registry_id: Optional[str] = None

    def identity(self, tag: Optional[str] = None) -> ImageIdentity:
        return ImageIdentity(
            repository_name=self.repository_name,
            tag=tag or self.tag,
            registry_id=self.registry_id,
        )


@dataclass(frozen=True)
class RepositoryRef:
    """A repository listed by the registry."""

    repository_name: str
    registry_id: Optional[str] = None


@dataclass(frozen=True)
class ScanFindings:
    """
    Raw scan findings as returned by the registry.

    Attributes:
        status: Scanner status string (e.g., "COMPLETE", "FAILED")
        status_description: Scanner explanation of the status, if any
        findings: Findings in scanner order
        severity_counts: Findings per raw severity string
    """

    status: str
    status_description: Optional[str] = None
    findings: tuple[Finding, ...] = ()
    severity_counts: dict[str, int] = field(default_factory=dict)
