"""Core audit engine: tag resolution, scan aggregation, policy and reports."""

from core.models import (
    EvaluatedFinding,
    Finding,
    ImageIdentity,
    ImageReport,
    ImageScanResult,
    SeverityLevel,
    Verdict,
)
from core.allowlist import AllowlistIndex
from core.aggregator import ScanResultAggregator
from core.report import ReportAssembler
from core.tag_resolver import TagResolver

__all__ = [
    "EvaluatedFinding",
    "Finding",
    "ImageIdentity",
    "ImageReport",
    "ImageScanResult",
    "SeverityLevel",
    "Verdict",
    "AllowlistIndex",
    "ScanResultAggregator",
    "ReportAssembler",
    "TagResolver",
]
