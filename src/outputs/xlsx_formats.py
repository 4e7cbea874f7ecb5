"""
XLSX cell formats for the audit summary workbook.

All formats share one base style; each named format only lists what it adds
on top, and verdicts map to a highlight color.
"""

import xlsxwriter

from core.models import Verdict

# Shared by every cell format in the workbook
BASE_FORMAT = {
    "border": 1,
    "font_name": "Arial",
    "font_size": 10,
    "align": "left",
    "valign": "vcenter",
}

COLORS = {
    "blue": "#4285f4",
    "green": "#D9EAD3",
    "red": "#FFE5E5",
    "amber": "#FFF2CC",
}

# Overrides applied on top of BASE_FORMAT, per format name
FORMAT_OVERRIDES = {
    "header": {"bg_color": COLORS["blue"], "font_color": "white", "bold": True},
    "body": {},
    "body_wrap": {"text_wrap": True},
    "verdict_passed": {"bg_color": COLORS["green"]},
    "verdict_failed": {"bg_color": COLORS["red"]},
    "verdict_error": {"bg_color": COLORS["amber"]},
}


class OutputFormatter:
    """Creates the workbook's formats once and hands them out by name."""

    def __init__(self, workbook: xlsxwriter.Workbook):
        """
        Register all formats with a workbook.

        Args:
            workbook: XlsxWriter workbook instance
        """
        self.workbook = workbook
        self.formats = {
            name: workbook.add_format({**BASE_FORMAT, **overrides})
            for name, overrides in FORMAT_OVERRIDES.items()
        }

    def get(self, format_name: str) -> xlsxwriter.format.Format:
        """
        Get a format by name.

        Raises:
            KeyError: If format name doesn't exist
        """
        return self.formats[format_name]

    def for_verdict(self, verdict: Verdict) -> xlsxwriter.format.Format:
        """Get the highlight format for a verdict."""
        return self.formats[f"verdict_{verdict.value}"]
