"""Output generators for image audit reports."""

from outputs.base import OutputGenerator
from outputs.elasticsearch_exporter import ElasticsearchExporter
from outputs.junit_generator import JUnitGenerator
from outputs.xlsx_generator import XLSXGenerator

__all__ = [
    "OutputGenerator",
    "ElasticsearchExporter",
    "JUnitGenerator",
    "XLSXGenerator",
]
