"""
Scangate - ECR Image Scan Audit Gate

Gate container images on their ECR scan findings: every finding is judged
against a severity cutoff and a package allowlist, and the verdicts are
written as JUnit XML test reports.
"""

__version__ = "1.0.0"
__author__ = "Scangate Developers"

from core.models import (
    ImageReport,
    SeverityLevel,
    Verdict,
)

__all__ = [
    "ImageReport",
    "SeverityLevel",
    "Verdict",
]
