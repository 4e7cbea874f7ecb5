"""
Command-line interface for Scangate - ECR Image Scan Audit Gate.

Audits the basic-scanning results of ECR images against a severity cutoff and
a package allowlist, and writes the verdicts as reports:
- JUnit XML: one test suite per image, for CI test-report consumers
- XLSX: fleet summary workbook
- Elasticsearch: one document per evaluated finding

Every option can also be set through an ESA_* environment variable.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from common import OUTPUT_CONFIGS, parse_reporters
from constants import DEFAULT_ES_INDEX, DEFAULT_MAX_WORKERS, DEFAULT_OUTPUT_DIR, DEFAULT_SEVERITY_CUTOFF, ENV_PREFIX
from core.config import AuditConfig, AuditMode
from core.exceptions import (
    ConfigurationException,
    OutputException,
    RegistryConnectionException,
    RegistryException,
    ValidationException,
)
from utils.logging_helpers import log_error_section
from utils.validation import validate_severity

logger = logging.getLogger(__name__)

# Loggers too chatty at INFO for normal runs
QUIET_LOGGERS = ("boto3", "botocore", "urllib3")


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    if not verbose:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def _env(name: str, default=None):
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _env_flag(name: str) -> bool:
    return _env(name, "").strip().lower() in ("1", "true", "yes", "on")


def parse_args(args: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="scangate",
        description="Scangate - ECR Image Scan Audit Gate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Reporters: " + ", ".join(
            f"{name} ({config['description']})" for name, config in OUTPUT_CONFIGS.items()
        ),
    )

    # Add argument groups
    mode_group = parser.add_argument_group("audit mode (choose one)")
    registry_group = parser.add_argument_group("registry options")
    policy_group = parser.add_argument_group("policy options")
    output_group = parser.add_argument_group("output options")
    run_group = parser.add_argument_group("run options")

    # Audit mode
    mode_group.add_argument("--container", default=_env("ECR_CONTAINER_NAME"), help="Component to audit (single-image mode).")
    mode_group.add_argument("--tag", default=_env("ECR_CONTAINER_IDENTIFIER"), help="Tag to audit in single-image mode.")
    mode_group.add_argument("--composition", type=Path, default=_env("COMPOSITION_FILE"), help="Composition YAML mapping components to tags (batch mode).")
    mode_group.add_argument("--all", dest="all_repositories", action="store_true", default=_env_flag("ALL_REPOSITORIES"), help="Audit the latest tag of every repository.")

    # Registry options
    registry_group.add_argument("--registry-id", default=_env("ECR_REGISTRY_ID"), help="ECR registry (AWS account) id.")
    registry_group.add_argument("--base-repo", default=_env("ECR_BASE_REPO", ""), help="Repository prefix shared by all components.")
    registry_group.add_argument("--region", default=_env("ECR_REGION"), help="AWS region (default: AWS configuration).")
    registry_group.add_argument("--latest", action="store_true", default=_env_flag("LATEST"), help="Audit the most recently pushed tag.")
    registry_group.add_argument("--tag-filter", default=_env("TAG_FILTER", ""), help="Skip tags containing this substring when resolving the latest tag.")

    # Policy options
    policy_group.add_argument("--cutoff", default=_env("SEVERITY_CUTOFF", DEFAULT_SEVERITY_CUTOFF), help="Minimum severity that fails an image.")
    policy_group.add_argument("--allowlist", type=Path, default=_env("ALLOWLIST_FILE"), help="Allowlist YAML file.")

    # Output options
    output_group.add_argument("--reporter", default=_env("REPORTERS"), help="Reporters (comma-separated, default: junit).")
    output_group.add_argument("--output-dir", type=Path, default=_env("OUTPUT_DIR", DEFAULT_OUTPUT_DIR), help="Report directory.")
    output_group.add_argument("--timestamped-reports", action="store_true", default=_env_flag("TIMESTAMPED_REPORTS"), help="Use timestamped JUnit file names.")
    output_group.add_argument("--xlsx-path", type=Path, default=_env("XLSX_PATH"), help="Summary workbook path.")
    output_group.add_argument("--es-url", default=_env("ES_URL"), help="Elasticsearch URL.")
    output_group.add_argument("--es-index", default=_env("ES_INDEX", DEFAULT_ES_INDEX), help="Elasticsearch index.")

    # Run options
    run_group.add_argument("--max-workers", type=int, default=_env("MAX_WORKERS", DEFAULT_MAX_WORKERS), help="Number of parallel workers.")
    run_group.add_argument("--timeout", type=float, default=_env("TIMEOUT"), help="Overall time budget in seconds.")
    run_group.add_argument("--fail-on-scan-error", action="store_true", default=_env_flag("FAIL_ON_SCAN_ERROR"), help="Exit non-zero if any image could not be scanned.")

    # Other options
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")

    return parser.parse_args(args)


def audit_mode(args: argparse.Namespace) -> AuditMode:
    """
    Determine the audit mode.

    --all takes precedence over --composition, which takes precedence over
    --container.

    Raises:
        ConfigurationException: If no mode was selected
    """
    if args.all_repositories:
        return AuditMode.ALL_REPOSITORIES
    if args.composition:
        return AuditMode.COMPOSITION
    if args.container:
        return AuditMode.SINGLE
    raise ConfigurationException("Select an audit mode: --container, --composition or --all")


def build_config(args: argparse.Namespace) -> AuditConfig:
    """
    Build the audit configuration from parsed arguments.

    Raises:
        ConfigurationException: If no mode or an unknown reporter was selected
        ValidationException: If a value is invalid
    """
    try:
        reporters = parse_reporters(args.reporter)
    except ValueError as e:
        raise ConfigurationException(str(e))

    return AuditConfig(
        mode=audit_mode(args),
        cutoff=validate_severity(args.cutoff, "cutoff"),
        allowlist_path=Path(args.allowlist) if args.allowlist else None,
        base_repo=args.base_repo or "",
        registry_id=args.registry_id,
        region=args.region,
        container=args.container,
        tag=args.tag,
        composition_path=Path(args.composition) if args.composition else None,
        latest=args.latest,
        tag_filter=args.tag_filter or "",
        output_dir=Path(args.output_dir),
        reporters=frozenset(reporters),
        max_workers=args.max_workers,
        timeout=args.timeout,
        fail_on_scan_error=args.fail_on_scan_error,
        timestamped_reports=args.timestamped_reports,
        xlsx_path=Path(args.xlsx_path) if args.xlsx_path else None,
        es_url=args.es_url,
        es_index=args.es_index,
    )


def main(args: Optional[list[str]] = None):
    """Main entry point."""
    parsed = parse_args(args)
    setup_logging(parsed.verbose)

    from core.orchestrator import AuditOrchestrator

    try:
        config = build_config(parsed)
        config.validate()
        orchestrator = AuditOrchestrator(config)
        exit_code = orchestrator.run()
    except (ConfigurationException, ValidationException) as e:
        log_error_section("Invalid configuration.", [str(e)], logger=logger)
        sys.exit(1)
    except RegistryConnectionException as e:
        log_error_section(
            "Unable to reach the container registry.",
            [
                str(e),
                "Check AWS credentials and region configuration",
                "(AWS_PROFILE, AWS_REGION or --region).",
            ],
            logger=logger,
        )
        sys.exit(1)
    except RegistryException as e:
        log_error_section(
            "The container registry rejected the request.",
            [str(e), "Check the IAM permissions for ECR and the --registry-id value."],
            logger=logger,
        )
        sys.exit(1)
    except OutputException as e:
        log_error_section("Report generation failed.", [str(e)], logger=logger)
        sys.exit(1)

    if orchestrator.timed_out:
        # Workers still blocked in registry calls would keep the interpreter alive
        logging.shutdown()
        os._exit(exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
