"""
Run configuration for an audit.

Built once from parsed command-line arguments and passed explicitly into the
orchestrator; nothing in the engine reads global state.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from constants import DEFAULT_ES_INDEX, DEFAULT_MAX_WORKERS, DEFAULT_OUTPUT_DIR
from core.exceptions import ValidationException
from core.models import SeverityLevel


class AuditMode(str, Enum):
    """Which images a run audits."""

    SINGLE = "single"
    COMPOSITION = "composition"
    ALL_REPOSITORIES = "all"


@dataclass(frozen=True)
class AuditConfig:
    """
    Immutable configuration for one audit run.

    Attributes:
        mode: Single image, composition batch, or all repositories
        cutoff: Minimum severity counted as a failure
        allowlist_path: Allowlist YAML file (optional)
        base_repo: Repository prefix shared by all components
        registry_id: ECR registry id (default registry if None)
        region: AWS region (AWS default chain if None)
        container: Component name in single mode
        tag: Tag in single mode
        composition_path: Composition YAML file in composition mode
        latest: Resolve the latest tag instead of using the configured one
        tag_filter: Tags containing this substring are skipped when resolving
        output_dir: Directory reports are written to
        reporters: Output generators to run
        max_workers: Images audited concurrently
        timeout: Overall time budget for the run in seconds (None = unbounded)
        fail_on_scan_error: Exit non-zero when any image could not be scanned
        timestamped_reports: Use timestamped JUnit file names
        xlsx_path: Summary workbook path (defaults into output_dir)
        es_url: Elasticsearch base URL for the elasticsearch reporter
        es_index: Elasticsearch index name
    """

    mode: AuditMode
    cutoff: SeverityLevel = SeverityLevel.MEDIUM
    allowlist_path: Optional[Path] = None
    base_repo: str = ""
    registry_id: Optional[str] = None
    region: Optional[str] = None
    container: Optional[str] = None
    tag: Optional[str] = None
    composition_path: Optional[Path] = None
    latest: bool = False
    tag_filter: str = ""
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    reporters: frozenset[str] = field(default_factory=lambda: frozenset({"junit"}))
    max_workers: int = DEFAULT_MAX_WORKERS
    timeout: Optional[float] = None
    fail_on_scan_error: bool = False
    timestamped_reports: bool = False
    xlsx_path: Optional[Path] = None
    es_url: Optional[str] = None
    es_index: str = DEFAULT_ES_INDEX

    def validate(self) -> None:
        """
        Validate the configuration as a whole.

        Raises:
            ValidationException: If the configuration is inconsistent
        """
        from utils.validation import (
            validate_file_path,
            validate_image_tag,
            validate_positive_number,
            validate_repository_name,
        )

        if self.mode == AuditMode.SINGLE:
            if not self.container:
                raise ValidationException("A container name is required in single-image mode", "container")
            validate_repository_name(self.container, "container")
            if not self.latest:
                validate_image_tag(self.tag, "tag")
        elif self.mode == AuditMode.COMPOSITION:
            if not self.composition_path:
                raise ValidationException("A composition file is required in batch mode", "composition")
            validate_file_path(self.composition_path, must_exist=True)

        if self.base_repo:
            validate_repository_name(self.base_repo, "base_repo")

        if not self.reporters:
            raise ValidationException("At least one reporter must be selected", "reporter")
        if "elasticsearch" in self.reporters and not self.es_url:
            raise ValidationException("--es-url is required for the elasticsearch reporter", "es_url")

        validate_positive_number(self.max_workers, "max_workers", min_value=1, max_value=64)
        if self.timeout is not None:
            validate_positive_number(self.timeout, "timeout", min_value=1)

    @property
    def batch(self) -> bool:
        return self.mode != AuditMode.SINGLE


__all__ = ["AuditMode", "AuditConfig"]
