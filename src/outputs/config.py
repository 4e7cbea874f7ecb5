"""
Configuration dataclasses for output generators.

Provides strongly-typed configuration objects for each output format,
replacing loose **kwargs with structured configuration.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from constants import DEFAULT_ES_INDEX, DEFAULT_OUTPUT_DIR, ES_REQUEST_TIMEOUT


@dataclass
class GeneratorConfig:
    """Base configuration for all generators."""

    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValidationException: If configuration is invalid
        """
        from core.exceptions import ValidationException

        if not str(self.output_dir).strip():
            raise ValidationException("Output directory cannot be empty", "output_dir")
        self.output_dir = Path(self.output_dir)


@dataclass
class JUnitGeneratorConfig(GeneratorConfig):
    """Configuration for JUnit XML output generator."""

    batch: bool = False
    timestamped: bool = False
    now: Optional[datetime] = None


@dataclass
class XLSXGeneratorConfig(GeneratorConfig):
    """Configuration for XLSX summary generator."""

    output_path: Optional[Path] = None

    def validate(self) -> None:
        """Validate XLSX-specific configuration."""
        super().validate()

        from constants import DEFAULT_XLSX_FILE_NAME

        if self.output_path is None:
            self.output_path = self.output_dir / DEFAULT_XLSX_FILE_NAME
        self.output_path = Path(self.output_path)


@dataclass
class ElasticsearchExporterConfig(GeneratorConfig):
    """Configuration for the Elasticsearch exporter."""

    url: str = ""
    index: str = DEFAULT_ES_INDEX
    timeout: float = ES_REQUEST_TIMEOUT

    def validate(self) -> None:
        """Validate Elasticsearch-specific configuration."""
        super().validate()

        from core.exceptions import ValidationException
        from utils.validation import validate_positive_number

        if not self.url or not self.url.startswith(("http://", "https://")):
            raise ValidationException(f"Invalid Elasticsearch URL: {self.url!r}", "es_url")
        if not self.index or self.index != self.index.lower():
            raise ValidationException(f"Invalid index name: {self.index!r}", "es_index")
        self.url = self.url.rstrip("/")
        self.timeout = validate_positive_number(self.timeout, "timeout", min_value=1)


__all__ = [
    "GeneratorConfig",
    "JUnitGeneratorConfig",
    "XLSXGeneratorConfig",
    "ElasticsearchExporterConfig",
]
