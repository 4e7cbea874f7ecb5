"""
Elasticsearch exporter for evaluated findings.

Indexes one document per evaluated finding through the bulk API so findings
can be searched and charted across runs.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from core.exceptions import OutputException
from core.models import EvaluatedFinding, ImageReport
from outputs.base import OutputGenerator
from outputs.config import ElasticsearchExporterConfig

logger = logging.getLogger(__name__)


def finding_document(
    report: ImageReport,
    evaluated: EvaluatedFinding,
    timestamp: str,
) -> dict:
    """
    Build the document indexed for one evaluated finding.

    Args:
        report: Report the finding belongs to
        evaluated: Evaluated finding
        timestamp: ISO-8601 time of the run

    Returns:
        JSON-serializable document
    """
    finding = evaluated.finding
    return {
        "@timestamp": timestamp,
        "image": report.image_name,
        "image_tag": report.tag,
        "name": finding.name,
        "severity": finding.severity,
        "uri": finding.uri,
        "package_name": finding.attributes.get("package_name"),
        "package_version": finding.attributes.get("package_version"),
        "cutoff": report.cutoff.value,
        "verdict": evaluated.verdict.value,
        "reason": evaluated.reason,
        "matched_pattern": evaluated.matched_pattern,
    }


class ElasticsearchExporter(OutputGenerator):
    """
    Elasticsearch bulk exporter.

    Failed scans have no findings and contribute no documents.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        """
        Initialize exporter.

        Args:
            session: HTTP session (a new one is created if None)
        """
        self.session = session or requests.Session()

    def supports_format(self) -> str:
        """Return format identifier."""
        return "elasticsearch"

    def build_bulk_body(self, reports: list[ImageReport], index: str, now: Optional[datetime] = None) -> str:
        """Build the NDJSON body of a bulk index request."""
        timestamp = (now or datetime.now(timezone.utc)).isoformat()
        lines = []
        for report in reports:
            for evaluated in report.evaluated_findings:
                lines.append(json.dumps({"index": {"_index": index}}))
                lines.append(json.dumps(finding_document(report, evaluated, timestamp)))
        # Bulk bodies must end with a newline
        return "\n".join(lines) + "\n" if lines else ""

    def generate(
        self,
        reports: list[ImageReport],
        config: ElasticsearchExporterConfig,
    ) -> list[str]:
        """
        Export evaluated findings to Elasticsearch.

        Args:
            reports: Image reports
            config: Exporter configuration

        Returns:
            Index URL documents were sent to (empty if nothing to send)
        """
        if not isinstance(config, ElasticsearchExporterConfig):
            raise OutputException(
                "elasticsearch",
                f"Expected ElasticsearchExporterConfig, got {type(config).__name__}"
            )
        config.validate()

        body = self.build_bulk_body(reports, config.index)
        if not body:
            logger.info("No findings to export to Elasticsearch")
            return []

        url = f"{config.url}/_bulk"
        try:
            logger.info(f"Exporting findings to {config.url}/{config.index}")
            response = self.session.post(
                url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/x-ndjson"},
                timeout=config.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.Timeout:
            raise OutputException("elasticsearch", f"Timeout posting to {url}")
        except requests.RequestException as e:
            raise OutputException("elasticsearch", f"Bulk request to {url} failed: {e}")
        except ValueError as e:
            raise OutputException("elasticsearch", f"Invalid bulk response: {e}")

        if result.get("errors"):
            failed = [
                item.get("index", {}).get("error")
                for item in result.get("items", [])
                if item.get("index", {}).get("error")
            ]
            raise OutputException(
                "elasticsearch",
                f"{len(failed)} documents were rejected, first error: {failed[0] if failed else 'unknown'}",
            )

        logger.info(f"Exported {len(result.get('items', []))} findings")
        return [f"{config.url}/{config.index}"]
