"""
XLSX generator for fleet audit summaries.

Generates an Excel workbook with one summary row per audited image and one
row per evaluated finding, for reviewing a whole batch at a glance.
"""

import logging

import xlsxwriter
from xlsxwriter.exceptions import XlsxWriterException

from core.exceptions import OutputException
from core.models import ImageReport, Verdict
from outputs.base import OutputGenerator
from outputs.config import XLSXGeneratorConfig
from outputs.xlsx_formats import OutputFormatter

logger = logging.getLogger(__name__)

SUMMARY_HEADERS = [
    "Image",
    "Tag",
    "Cutoff",
    "Scan Status",
    "Findings",
    "Failures",
    "Errors",
    "Undefined Severity",
    "Allowlisted",
    "Result",
]

FINDINGS_HEADERS = [
    "Image",
    "Vulnerability",
    "Severity",
    "Package",
    "Verdict",
    "Allowlist Entry",
    "Reason",
]


class XLSXGenerator(OutputGenerator):
    """
    Fleet summary generator (XLSX format).

    Writes two worksheets:
    - summary: counts and overall result per image
    - findings: every evaluated finding with its verdict and reason
    """

    def supports_format(self) -> str:
        """Return format identifier."""
        return "xlsx"

    def generate(
        self,
        reports: list[ImageReport],
        config: XLSXGeneratorConfig,
    ) -> list[str]:
        """
        Generate the summary workbook.

        Args:
            reports: Image reports
            config: XLSX generator configuration

        Returns:
            Path of the written workbook
        """
        if not isinstance(config, XLSXGeneratorConfig):
            raise OutputException(
                "xlsx",
                f"Expected XLSXGeneratorConfig, got {type(config).__name__}"
            )
        config.validate()

        if not reports:
            raise OutputException("xlsx", "No image reports to summarize")

        output_path = config.output_path
        logger.info(f"Generating audit summary workbook: {output_path}")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            workbook = xlsxwriter.Workbook(str(output_path))
            formatter = OutputFormatter(workbook)
            self._write_summary(workbook.add_worksheet("summary"), formatter, reports)
            self._write_findings(workbook.add_worksheet("findings"), formatter, reports)
            workbook.close()
        except (OSError, XlsxWriterException) as e:
            raise OutputException("xlsx", str(e))

        return [str(output_path)]

    def _write_summary(self, worksheet, formatter: OutputFormatter, reports: list[ImageReport]) -> None:
        worksheet.write_row(0, 0, SUMMARY_HEADERS, formatter.get("header"))
        worksheet.set_column(0, 0, 30)
        worksheet.set_column(1, 1, 24)
        worksheet.set_column(2, len(SUMMARY_HEADERS) - 1, 14)

        for row, report in enumerate(reports, 1):
            body = formatter.get("body")
            worksheet.write(row, 0, report.image_name, body)
            worksheet.write(row, 1, report.tag or "", body)
            worksheet.write(row, 2, report.cutoff.value, body)
            worksheet.write(row, 3, report.scan_status.value, body)
            worksheet.write_number(row, 4, report.total_findings, body)
            worksheet.write_number(row, 5, report.failure_count, body)
            worksheet.write_number(row, 6, report.error_count, body)
            worksheet.write_number(row, 7, report.undefined_severity_count, body)
            worksheet.write_number(row, 8, report.allowlisted_count, body)

            if report.scan_failed:
                worksheet.write(row, 9, "SCAN FAILED", formatter.for_verdict(Verdict.ERROR))
            elif report.passed:
                worksheet.write(row, 9, "PASSED", formatter.for_verdict(Verdict.PASSED))
            else:
                worksheet.write(row, 9, "FAILED", formatter.for_verdict(Verdict.FAILED))

        worksheet.freeze_panes(1, 0)
        worksheet.autofilter(0, 0, len(reports), len(SUMMARY_HEADERS) - 1)

    def _write_findings(self, worksheet, formatter: OutputFormatter, reports: list[ImageReport]) -> None:
        worksheet.write_row(0, 0, FINDINGS_HEADERS, formatter.get("header"))
        worksheet.set_column(0, 1, 24)
        worksheet.set_column(2, 2, 14)
        worksheet.set_column(3, 3, 30)
        worksheet.set_column(4, 5, 18)
        worksheet.set_column(6, 6, 80)

        row = 1
        for report in reports:
            for evaluated in report.evaluated_findings:
                body = formatter.get("body")
                worksheet.write(row, 0, report.image_name, body)
                worksheet.write(row, 1, evaluated.finding.name, body)
                worksheet.write(row, 2, evaluated.finding.severity, body)
                worksheet.write(row, 3, evaluated.package_key or "", body)
                worksheet.write(row, 4, evaluated.verdict.value, formatter.for_verdict(evaluated.verdict))
                worksheet.write(row, 5, evaluated.matched_pattern or "", body)
                worksheet.write(row, 6, evaluated.reason, formatter.get("body_wrap"))
                row += 1

        worksheet.freeze_panes(1, 0)
        if row > 1:
            worksheet.autofilter(0, 0, row - 1, len(FINDINGS_HEADERS) - 1)
