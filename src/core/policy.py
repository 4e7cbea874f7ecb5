"""
Policy evaluation of individual findings.

Turns one scanner finding into a PASSED, FAILED or ERROR verdict against a
severity cutoff and an allowlist. Evaluation is pure and never raises for
data problems: a finding that cannot be classified gets an ERROR verdict.
"""

import logging

from constants import NO_DESCRIPTION_PLACEHOLDER, PACKAGE_NAME_KEY, PACKAGE_VERSION_KEY
from core.allowlist import AllowlistIndex
from core.exceptions import MissingAttributeException
from core.models import EvaluatedFinding, Finding, SeverityLevel, Verdict

logger = logging.getLogger(__name__)


def extract_package_attribute(finding: Finding, key: str) -> str:
    """
    Read a required attribute from a finding.

    Args:
        finding: Finding to read from
        key: Attribute key (e.g., "package_name")

    Returns:
        The attribute value

    Raises:
        MissingAttributeException: If the key is absent or its value is empty
    """
    value = finding.attributes.get(key)
    if value is None or not str(value).strip():
        raise MissingAttributeException(finding.name, key)
    return str(value)


def package_key_for(finding: Finding) -> str:
    """Return "<package_name>@<package_version>" for a finding."""
    name = extract_package_attribute(finding, PACKAGE_NAME_KEY)
    version = extract_package_attribute(finding, PACKAGE_VERSION_KEY)
    return f"{name}@{version}"


def exceeds_cutoff(severity: SeverityLevel, cutoff: SeverityLevel) -> bool:
    """True if a severity counts as a failure at the cutoff (inclusive)."""
    return severity >= cutoff


def evaluate_finding(
    finding: Finding,
    cutoff: SeverityLevel,
    allowlist: AllowlistIndex,
) -> EvaluatedFinding:
    """
    Evaluate one finding.

    The allowlist is consulted before the cutoff, so an allowlisted package
    passes even when its severity is above the cutoff.

    Args:
        finding: Finding to evaluate
        cutoff: Minimum severity counted as a failure
        allowlist: Flattened allowlist for the finding's component

    Returns:
        EvaluatedFinding with verdict and reason
    """
    try:
        package_key = package_key_for(finding)
    except MissingAttributeException as e:
        logger.warning(str(e))
        return EvaluatedFinding(
            finding=finding,
            verdict=Verdict.ERROR,
            reason=f"Unable to evaluate vulnerability {finding.name}: {e}. ERROR!",
        )

    hit = allowlist.match(package_key)
    if hit is not None:
        return EvaluatedFinding(
            finding=finding,
            verdict=Verdict.PASSED,
            reason=allowlisted_message(finding, package_key, hit, cutoff),
            matched_pattern=hit,
            package_key=package_key,
        )

    severity = finding.severity_level
    if severity is None:
        return EvaluatedFinding(
            finding=finding,
            verdict=Verdict.ERROR,
            reason=(
                f"Vulnerability {finding.name} has unrecognized severity "
                f"{finding.severity or 'UNDEFINED'}, cannot compare against cutoff "
                f"{cutoff}. ERROR!"
            ),
            package_key=package_key,
        )

    if exceeds_cutoff(severity, cutoff):
        return EvaluatedFinding(
            finding=finding,
            verdict=Verdict.FAILED,
            reason=failed_message(finding, severity, cutoff),
            package_key=package_key,
        )

    return EvaluatedFinding(
        finding=finding,
        verdict=Verdict.PASSED,
        reason=passed_message(finding, severity, cutoff),
        package_key=package_key,
    )


def passed_message(finding: Finding, severity: SeverityLevel, cutoff: SeverityLevel) -> str:
    return f"Vulnerability {finding.name} with severity {severity} below cutoff {cutoff}. PASSED!"


def allowlisted_message(
    finding: Finding,
    package_key: str,
    pattern: str,
    cutoff: SeverityLevel,
) -> str:
    return (
        f"Vulnerability {finding.name} with severity {finding.severity} in package "
        f"{package_key} matches allowlist entry {pattern} (cutoff {cutoff}). PASSED!"
    )


def failed_message(finding: Finding, severity: SeverityLevel, cutoff: SeverityLevel) -> str:
    description = finding.description or NO_DESCRIPTION_PLACEHOLDER
    return (
        f"Vulnerability {finding.name} of severity {severity} at or above cutoff "
        f"{cutoff}. FAILED! Description: {description}"
    )
