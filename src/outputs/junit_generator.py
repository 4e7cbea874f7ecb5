"""
JUnit XML generator for image audit reports.

Renders every ImageReport as one JUnit test suite with one test case per
finding, so CI systems can display vulnerabilities as test results.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from constants import BATCH_REPORT_FILE_NAME, SINGLE_REPORT_FILE_NAME
from core.exceptions import OutputException
from core.models import EvaluatedFinding, ImageReport, Verdict
from outputs.base import OutputGenerator
from outputs.config import JUnitGeneratorConfig
from utils.formatting import report_file_name

logger = logging.getLogger(__name__)


def build_test_case(evaluated: EvaluatedFinding) -> ET.Element:
    """
    Build the test case element for one evaluated finding.

    Args:
        evaluated: Evaluated finding

    Returns:
        <testcase> element with a failure, error or system-out child
    """
    finding = evaluated.finding
    case = ET.Element(
        "testcase",
        {
            "name": finding.name,
            "classname": evaluated.package_key or "unknown",
            "time": "0",
        },
    )
    if evaluated.verdict == Verdict.FAILED:
        failure = ET.SubElement(case, "failure", {"type": finding.severity, "message": evaluated.reason})
        failure.text = evaluated.reason
    elif evaluated.verdict == Verdict.ERROR:
        error_type = "MissingAttribute" if evaluated.package_key is None else "UndefinedSeverity"
        error = ET.SubElement(case, "error", {"type": error_type, "message": evaluated.reason})
        error.text = evaluated.reason
    else:
        ET.SubElement(case, "system-out").text = evaluated.reason
    return case


def build_test_suite(report: ImageReport) -> ET.Element:
    """
    Build the test suite element for one image report.

    Suite-level counts are taken from the report. A failed scan becomes a
    suite with a single errored test case named "scan".

    Args:
        report: Image report

    Returns:
        <testsuite> element
    """
    if report.scan_failed:
        counts = {"tests": "1", "failures": "0", "errors": "1"}
    else:
        counts = {
            "tests": str(report.total_findings),
            "failures": str(report.failure_count),
            "errors": str(report.reported_error_count),
        }
    suite = ET.Element("testsuite", {"name": report.image_name, **counts, "time": "0"})

    properties = ET.SubElement(suite, "properties")
    ET.SubElement(properties, "property", {"name": "tag", "value": report.tag or ""})
    ET.SubElement(properties, "property", {"name": "cutoff", "value": report.cutoff.value})
    ET.SubElement(
        properties,
        "property",
        {"name": "undefined_severity", "value": str(report.undefined_severity_count)},
    )

    if report.scan_failed:
        case = ET.SubElement(suite, "testcase", {"name": "scan", "classname": report.image_name, "time": "0"})
        error = ET.SubElement(case, "error", {"type": "ScanFailed", "message": report.scan_message or ""})
        error.text = report.scan_message
        return suite

    for evaluated in report.evaluated_findings:
        suite.append(build_test_case(evaluated))
    return suite


class JUnitGenerator(OutputGenerator):
    """
    JUnit XML report generator.

    Single-image runs write one file; batch runs write one file per
    component, in a directory named after the component.
    """

    def supports_format(self) -> str:
        """Return format identifier."""
        return "junit"

    def report_path(self, report: ImageReport, config: JUnitGeneratorConfig) -> Path:
        """Return the file a report is written to."""
        if config.timestamped:
            return config.output_dir / report_file_name(report.image_name, config.now)
        if config.batch:
            return config.output_dir / report.image_name / BATCH_REPORT_FILE_NAME
        return config.output_dir / SINGLE_REPORT_FILE_NAME

    def generate(
        self,
        reports: list[ImageReport],
        config: JUnitGeneratorConfig,
    ) -> list[str]:
        """
        Write JUnit XML files.

        Args:
            reports: Image reports
            config: JUnit generator configuration

        Returns:
            Paths of the written files
        """
        if not isinstance(config, JUnitGeneratorConfig):
            raise OutputException(
                "junit",
                f"Expected JUnitGeneratorConfig, got {type(config).__name__}"
            )
        config.validate()

        written = []
        for report in reports:
            path = self.report_path(report, config)
            suite = build_test_suite(report)
            tree = ET.ElementTree(suite)
            ET.indent(tree, space="\t")
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                logger.info(f"Writing results for {report.image_name} to {path}")
                tree.write(path, encoding="utf-8", xml_declaration=True)
            except OSError as e:
                raise OutputException("junit", f"Failed to write {path}: {e}")
            written.append(str(path))
        return written
