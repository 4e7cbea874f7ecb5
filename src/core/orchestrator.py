"""
Audit orchestration.

Coordinates one audit run: loads the allowlist, builds the list of images to
audit for the selected mode, runs the per-image pipeline (resolve tag, fetch
findings, assemble report) on a worker pool, and hands the reports to the
output generators.
"""

import logging
from functools import partial
from typing import Optional

from common import OUTPUT_CONFIGS
from core.aggregator import TIMED_OUT_MESSAGE, ScanResultAggregator, run_parallel
from core.config import AuditConfig, AuditMode
from core.exceptions import (
    ConfigurationException,
    RegistryConnectionException,
    RegistryException,
    TagResolutionException,
)
from core.models import Allowlist, AuditTarget, ImageReport, ImageScanResult
from core.registry_interface import RegistryClient
from core.report import ReportAssembler
from core.tag_resolver import TagResolver
from outputs.base import OutputGenerator
from outputs.config import (
    ElasticsearchExporterConfig,
    GeneratorConfig,
    JUnitGeneratorConfig,
    XLSXGeneratorConfig,
)
from utils.formatting import component_name, repository_name
from utils.loaders import load_allowlist, load_composition
from utils.logging_helpers import log_info_header, log_warning_section

logger = logging.getLogger(__name__)


class AuditOrchestrator:
    """Runs an audit for one AuditConfig."""

    def __init__(
        self,
        config: AuditConfig,
        registry: Optional[RegistryClient] = None,
        generators: Optional[dict[str, OutputGenerator]] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Validated run configuration
            registry: Registry client (an ECR client is created if None)
            generators: Reporter name to generator (defaults to the built-in generators)
        """
        self.config = config
        if registry is None:
            from integrations.ecr_client import ECRClient

            registry = ECRClient(region=config.region, timeout=config.timeout)
        self.registry = registry
        self.generators = generators or self._default_generators()

        self.allowlist: Allowlist = Allowlist()
        self.tag_resolver = TagResolver(registry)
        self.aggregator = ScanResultAggregator(registry, max_workers=config.max_workers)
        self.assembler = ReportAssembler(config.cutoff)
        self.timed_out = False

    @staticmethod
    def _default_generators() -> dict[str, OutputGenerator]:
        from outputs import ElasticsearchExporter, JUnitGenerator, XLSXGenerator

        return {
            "junit": JUnitGenerator(),
            "xlsx": XLSXGenerator(),
            "elasticsearch": ElasticsearchExporter(),
        }

    def run(self) -> int:
        """
        Execute the audit.

        Returns:
            Process exit code

        Raises:
            ConfigurationException: Allowlist or composition file is malformed
            RegistryConnectionException: The registry could not be reached
            RegistryException: Listing repositories was rejected
            OutputException: A report could not be written
        """
        self.allowlist = load_allowlist(self.config.allowlist_path)
        self.assembler = ReportAssembler(self.config.cutoff, self.allowlist)

        targets = self.build_targets()
        log_info_header(
            f"Auditing {len(targets)} image(s) against cutoff {self.config.cutoff}",
            logger=logger,
        )

        reports = self.audit_targets(targets)
        output_files = self.generate_outputs(reports)

        self._log_summary(reports, output_files)
        return self.exit_code(reports)

    def build_targets(self) -> list[AuditTarget]:
        """
        Build the images to audit for the configured mode.

        Raises:
            ConfigurationException: If there is nothing to audit
            RegistryException: Listing repositories failed
        """
        config = self.config

        if config.mode == AuditMode.SINGLE:
            return [
                AuditTarget(
                    component=config.container,
                    repository_name=repository_name(config.base_repo, config.container),
                    tag=config.tag,
                    registry_id=config.registry_id,
                )
            ]

        if config.mode == AuditMode.COMPOSITION:
            components = load_composition(config.composition_path)
            return [
                AuditTarget(
                    component=component,
                    repository_name=repository_name(config.base_repo, component),
                    tag=tag,
                    registry_id=config.registry_id,
                )
                for component, tag in components.items()
            ]

        repositories = self.registry.list_repositories(config.registry_id)
        if config.base_repo:
            prefix = config.base_repo.rstrip("/") + "/"
            repositories = [r for r in repositories if r.repository_name.startswith(prefix)]
        if not repositories:
            where = f" under {config.base_repo}" if config.base_repo else ""
            raise ConfigurationException(f"No repositories found{where}")

        logger.info(f"Found {len(repositories)} repositories to audit")
        return [
            AuditTarget(
                component=component_name(repo.repository_name, config.base_repo),
                repository_name=repo.repository_name,
                registry_id=repo.registry_id or config.registry_id,
            )
            for repo in repositories
        ]

    def audit_target(self, target: AuditTarget) -> ImageReport:
        """
        Run the per-image pipeline for one target.

        Anything that goes wrong for this image is recorded in its report.

        Raises:
            RegistryConnectionException: The registry could not be reached
        """
        try:
            return self._audit_target(target)
        except RegistryConnectionException:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error auditing {target.component}")
            return self.assembler.assemble(
                ImageScanResult.failed(target.component, None, f"Unexpected error: {e}")
            )

    def _audit_target(self, target: AuditTarget) -> ImageReport:
        tag = target.tag
        if self.config.latest or not tag:
            try:
                tag = self.tag_resolver.resolve_latest_tag(
                    target.repository_name,
                    self.config.tag_filter,
                    target.registry_id,
                )
            except RegistryConnectionException:
                raise
            except (TagResolutionException, RegistryException) as e:
                logger.warning(f"Could not resolve a tag for {target.component}: {e}")
                return self.assembler.assemble(
                    ImageScanResult.failed(target.component, None, str(e))
                )

        result = self.aggregator.get_findings_isolated(target.component, target.identity(tag))
        report = self.assembler.assemble(result)
        if report.scan_failed:
            logger.warning(f"{target.component}: {report.scan_message}")
        else:
            logger.info(
                f"{target.component}:{tag}: {report.total_findings} findings, "
                f"{report.failure_count} failures, {report.error_count} errors"
            )
        return report

    def audit_targets(self, targets: list[AuditTarget]) -> list[ImageReport]:
        """
        Audit targets on the worker pool within the configured timeout.

        Targets unfinished at the deadline get a failed report and
        `timed_out` is set.

        Returns:
            One report per target, in target order

        Raises:
            RegistryConnectionException: The registry could not be reached
        """
        jobs = {t.component: partial(self.audit_target, t) for t in targets}
        reports, unfinished = run_parallel(jobs, self.config.max_workers, self.config.timeout)

        if unfinished:
            self.timed_out = True
            for target in targets:
                if target.component in unfinished:
                    reports[target.component] = self.assembler.assemble(
                        ImageScanResult.failed(target.component, None, TIMED_OUT_MESSAGE)
                    )

        return [reports[t.component] for t in targets]

    def generator_config(self, reporter: str) -> GeneratorConfig:
        """Build the generator configuration for a reporter."""
        config = self.config
        if reporter == "junit":
            return JUnitGeneratorConfig(
                output_dir=config.output_dir,
                batch=config.batch,
                timestamped=config.timestamped_reports,
            )
        if reporter == "xlsx":
            return XLSXGeneratorConfig(output_dir=config.output_dir, output_path=config.xlsx_path)
        if reporter == "elasticsearch":
            return ElasticsearchExporterConfig(
                output_dir=config.output_dir,
                url=config.es_url or "",
                index=config.es_index,
            )
        raise ConfigurationException(f"Unknown reporter: {reporter}")

    def generate_outputs(self, reports: list[ImageReport]) -> list[str]:
        """
        Run every configured reporter.

        Returns:
            Files (or URLs) written

        Raises:
            OutputException: A reporter failed
        """
        output_files = []
        for reporter in sorted(self.config.reporters):
            logger.info(f"Generating {OUTPUT_CONFIGS[reporter]['description']}...")
            generator = self.generators[reporter]
            output_files.extend(generator.generate(reports, self.generator_config(reporter)))
        return output_files

    def exit_code(self, reports: list[ImageReport]) -> int:
        """
        Compute the process exit code.

        Policy failures never change the exit code; the JUnit consumer gates
        on them. A failed scan does in single-image mode, or with
        fail_on_scan_error.
        """
        if not any(r.scan_failed for r in reports):
            return 0
        if self.config.mode == AuditMode.SINGLE or self.config.fail_on_scan_error:
            return 1
        return 0

    def _log_summary(self, reports: list[ImageReport], output_files: list[str]) -> None:
        scan_failures = [r for r in reports if r.scan_failed]
        policy_failures = [r for r in reports if not r.scan_failed and not r.passed]

        log_info_header("Audit complete", logger=logger)
        logger.info(f"Images audited: {len(reports)}")
        logger.info(f"Images passing: {len(reports) - len(scan_failures) - len(policy_failures)}")
        logger.info(f"Images with failures: {len(policy_failures)}")
        for path in output_files:
            logger.info(f"Report: {path}")

        if scan_failures:
            log_warning_section(
                f"{len(scan_failures)} image(s) could not be audited",
                [f"{r.image_name}: {r.scan_message}" for r in scan_failures],
                logger=logger,
            )
