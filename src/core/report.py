"""
Assembly of per-image audit reports.

Folds the evaluated findings of one image into an ImageReport carrying the
counts an output generator needs (tests, failures, errors).
"""

import logging
from typing import Iterable, Mapping, Optional

from core.allowlist import AllowlistIndex
from core.models import (
    Allowlist,
    EvaluatedFinding,
    Finding,
    ImageReport,
    ImageScanResult,
    ScanStatus,
    SeverityLevel,
    Verdict,
)
from core.policy import evaluate_finding

logger = logging.getLogger(__name__)


def count_failures_from_histogram(
    severity_counts: Mapping[str, int],
    cutoff: SeverityLevel,
) -> int:
    """
    Count failures from a scanner severity histogram.

    This ignores the allowlist, so it is only an upper bound on the real
    failure count when allowlist entries match.

    Args:
        severity_counts: Findings per severity as reported by the scanner
        cutoff: Minimum severity counted as a failure

    Returns:
        Number of findings at or above the cutoff
    """
    total = 0
    for raw_severity, count in severity_counts.items():
        severity = SeverityLevel.parse(raw_severity)
        if severity is not None and severity >= cutoff:
            total += int(count or 0)
    return total


class ReportAssembler:
    """
    Builds ImageReports for one run.

    Holds the run's read-only policy (cutoff and allowlist) so the same
    instance can be shared by every worker.
    """

    def __init__(self, cutoff: SeverityLevel, allowlist: Optional[Allowlist] = None):
        """
        Initialize the assembler.

        Args:
            cutoff: Minimum severity counted as a failure
            allowlist: Package allowlist (empty if None)
        """
        self.cutoff = cutoff
        self.allowlist = allowlist or Allowlist()

    def assemble(self, result: ImageScanResult) -> ImageReport:
        """
        Build the report for one scan result.

        Args:
            result: Findings (or failure) retrieved for one image

        Returns:
            ImageReport for the image
        """
        tag = result.image.tag if result.image else None
        if not result.succeeded:
            return ImageReport(
                image_name=result.component,
                cutoff=self.cutoff,
                tag=tag,
                scan_status=ScanStatus.FAILED,
                scan_message=result.message or "Scan results unavailable",
            )
        return self.assemble_findings(
            result.component,
            result.findings,
            severity_counts=result.severity_counts,
            tag=tag,
        )

    def assemble_findings(
        self,
        image_name: str,
        findings: Iterable[Finding],
        severity_counts: Optional[Mapping[str, int]] = None,
        tag: Optional[str] = None,
    ) -> ImageReport:
        """
        Evaluate findings and fold them into a report.

        Args:
            image_name: Component name, also the allowlist key
            findings: Findings in scanner order
            severity_counts: Scanner severity histogram, used as a cross-check
            tag: Tag the findings belong to

        Returns:
            ImageReport with counts derived from the individual verdicts
        """
        index = AllowlistIndex.for_component(self.allowlist, image_name)
        evaluated = tuple(
            evaluate_finding(finding, self.cutoff, index) for finding in findings
        )

        failure_count = sum(1 for e in evaluated if e.verdict == Verdict.FAILED)
        error_count = sum(1 for e in evaluated if e.verdict == Verdict.ERROR)
        undefined = sum(1 for e in evaluated if e.finding.severity_level is None)

        if severity_counts:
            self._check_histogram(image_name, evaluated, severity_counts, failure_count)

        logger.debug(
            f"{image_name}: {len(evaluated)} findings, {failure_count} failures, "
            f"{error_count} errors"
        )

        return ImageReport(
            image_name=image_name,
            cutoff=self.cutoff,
            tag=tag,
            total_findings=len(evaluated),
            failure_count=failure_count,
            undefined_severity_count=undefined,
            error_count=error_count,
            evaluated_findings=evaluated,
        )

    def _check_histogram(
        self,
        image_name: str,
        evaluated: tuple[EvaluatedFinding, ...],
        severity_counts: Mapping[str, int],
        failure_count: int,
    ) -> None:
        """Warn when the scanner histogram disagrees with the per-finding tally."""
        # Allowlisted or unclassifiable findings legitimately drop out of the tally.
        exempt = sum(
            1
            for e in evaluated
            if e.finding.severity_level is not None
            and e.finding.severity_level >= self.cutoff
            and e.verdict != Verdict.FAILED
        )
        expected = count_failures_from_histogram(severity_counts, self.cutoff) - exempt
        if expected != failure_count:
            logger.warning(
                f"Severity counts for {image_name} imply {expected} failures but "
                f"{failure_count} findings failed; reporting per-finding tally"
            )
