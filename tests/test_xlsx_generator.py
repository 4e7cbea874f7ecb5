"""Tests for the XLSX summary generator."""

from unittest.mock import patch

import pytest

from core.exceptions import OutputException
from core.models import ImageReport, ScanStatus, SeverityLevel
from core.report import ReportAssembler
from outputs.config import XLSXGeneratorConfig
from outputs.xlsx_generator import XLSXGenerator
from conftest import make_finding


@pytest.fixture
def reports():
    """One failing image and one image whose scan failed."""
    assembler = ReportAssembler(SeverityLevel.MEDIUM)
    return [
        assembler.assemble_findings("nexus", [make_finding(), make_finding(name="CVE-2", severity="LOW")], tag="1"),
        ImageReport(
            image_name="portal",
            cutoff=SeverityLevel.MEDIUM,
            scan_status=ScanStatus.FAILED,
            scan_message="Repository not found",
        ),
    ]


class TestXLSXGenerator:
    """Tests for XLSXGenerator."""

    def test_default_path(self, tmp_path, reports):
        """Test the workbook defaults into the output directory."""
        files = XLSXGenerator().generate(reports, XLSXGeneratorConfig(output_dir=tmp_path))
        assert files == [str(tmp_path / "scan-summary.xlsx")]
        assert (tmp_path / "scan-summary.xlsx").stat().st_size > 0

    def test_custom_path(self, tmp_path, reports):
        """Test an explicit workbook path is honored."""
        path = tmp_path / "nested" / "fleet.xlsx"
        files = XLSXGenerator().generate(
            reports, XLSXGeneratorConfig(output_dir=tmp_path, output_path=path)
        )
        assert files == [str(path)]
        assert path.exists()

    def test_worksheets(self, tmp_path, reports):
        """Test summary and findings sheets are written."""
        with patch("outputs.xlsx_generator.xlsxwriter.Workbook") as workbook_cls:
            workbook = workbook_cls.return_value
            XLSXGenerator().generate(reports, XLSXGeneratorConfig(output_dir=tmp_path))

        names = [c.args[0] for c in workbook.add_worksheet.call_args_list]
        assert names == ["summary", "findings"]
        workbook.close.assert_called_once()

    def test_empty_reports(self, tmp_path):
        """Test an empty run is rejected."""
        with pytest.raises(OutputException):
            XLSXGenerator().generate([], XLSXGeneratorConfig(output_dir=tmp_path))

    def test_supports_format(self):
        """Test format identifier."""
        assert XLSXGenerator().supports_format() == "xlsx"
