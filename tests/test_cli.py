"""Tests for CLI argument parsing and configuration building."""

import pytest
from pathlib import Path
from unittest.mock import patch

from cli import audit_mode, build_config, main, parse_args
from common import parse_reporters
from core.config import AuditMode
from core.error_classification import ErrorCategory
from core.exceptions import (
    ConfigurationException,
    RegistryConnectionException,
    RegistryException,
    ValidationException,
)
from core.models import SeverityLevel


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove ESA_* variables from the environment."""
    import os

    for name in list(os.environ):
        if name.startswith("ESA_"):
            monkeypatch.delenv(name)


class TestReporterParsing:
    """Tests for parse_reporters function."""

    def test_default_none_returns_junit(self):
        """Test that None (default) selects the JUnit reporter."""
        assert parse_reporters(None) == {"junit"}

    def test_comma_delimited(self):
        """Test parsing a comma-delimited list."""
        assert parse_reporters("junit, xlsx") == {"junit", "xlsx"}

    def test_duplicates_deduped(self):
        """Test duplicates collapse."""
        assert parse_reporters("xlsx,xlsx") == {"xlsx"}

    def test_invalid_reporter(self):
        """Test an unknown reporter raises ValueError."""
        with pytest.raises(ValueError) as exc_info:
            parse_reporters("junit,html")
        assert "Invalid reporter(s): html" in str(exc_info.value)

    def test_empty_list(self):
        """Test an empty list raises ValueError."""
        with pytest.raises(ValueError):
            parse_reporters(" , ")


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test default values."""
        args = parse_args(["--container", "nexus", "--tag", "1.0"])
        assert args.cutoff == "MEDIUM"
        assert args.max_workers == 4
        assert args.output_dir == Path("reports")
        assert args.reporter is None
        assert args.timeout is None
        assert not args.latest
        assert not args.all_repositories

    def test_environment_defaults(self, monkeypatch):
        """Test ESA_* variables provide defaults."""
        monkeypatch.setenv("ESA_ECR_CONTAINER_NAME", "nexus")
        monkeypatch.setenv("ESA_ECR_CONTAINER_IDENTIFIER", "2.15.0")
        monkeypatch.setenv("ESA_SEVERITY_CUTOFF", "HIGH")
        monkeypatch.setenv("ESA_ECR_BASE_REPO", "acme")
        monkeypatch.setenv("ESA_MAX_WORKERS", "8")
        monkeypatch.setenv("ESA_LATEST", "true")
        args = parse_args([])
        assert args.container == "nexus"
        assert args.tag == "2.15.0"
        assert args.cutoff == "HIGH"
        assert args.base_repo == "acme"
        assert args.max_workers == 8
        assert args.latest

    def test_flags_override_environment(self, monkeypatch):
        """Test command-line flags win over the environment."""
        monkeypatch.setenv("ESA_SEVERITY_CUTOFF", "HIGH")
        assert parse_args(["--cutoff", "LOW"]).cutoff == "LOW"


class TestAuditMode:
    """Tests for mode selection."""

    def test_single(self):
        """Test --container selects single-image mode."""
        assert audit_mode(parse_args(["--container", "nexus"])) == AuditMode.SINGLE

    def test_composition(self):
        """Test --composition selects batch mode."""
        assert audit_mode(parse_args(["--composition", "c.yaml"])) == AuditMode.COMPOSITION

    def test_all(self):
        """Test --all selects all-repositories mode."""
        assert audit_mode(parse_args(["--all"])) == AuditMode.ALL_REPOSITORIES

    def test_none(self):
        """Test no mode raises ConfigurationException."""
        with pytest.raises(ConfigurationException):
            audit_mode(parse_args([]))


class TestBuildConfig:
    """Tests for building AuditConfig."""

    def test_single(self):
        """Test single-image configuration."""
        config = build_config(parse_args([
            "--container", "nexus", "--tag", "2.15.0", "--cutoff", "critical",
            "--base-repo", "acme", "--reporter", "junit,xlsx",
        ]))
        assert config.mode == AuditMode.SINGLE
        assert config.cutoff == SeverityLevel.CRITICAL
        assert config.reporters == frozenset({"junit", "xlsx"})
        assert config.base_repo == "acme"
        assert not config.batch
        config.validate()

    def test_invalid_cutoff(self):
        """Test an unknown cutoff raises ValidationException."""
        with pytest.raises(ValidationException):
            build_config(parse_args(["--container", "nexus", "--cutoff", "SEVERE"]))

    def test_invalid_reporter(self):
        """Test an unknown reporter raises ConfigurationException."""
        with pytest.raises(ConfigurationException):
            build_config(parse_args(["--container", "nexus", "--reporter", "html"]))

    def test_missing_tag_fails_validation(self):
        """Test single mode without a tag or --latest is invalid."""
        config = build_config(parse_args(["--container", "nexus"]))
        with pytest.raises(ValidationException):
            config.validate()

    def test_latest_without_tag(self):
        """Test --latest makes the tag optional."""
        build_config(parse_args(["--container", "nexus", "--latest"])).validate()

    def test_elasticsearch_requires_url(self):
        """Test the elasticsearch reporter needs --es-url."""
        config = build_config(parse_args(["--all", "--reporter", "elasticsearch"]))
        with pytest.raises(ValidationException):
            config.validate()

    def test_missing_composition_file(self, tmp_path):
        """Test a composition file that does not exist is invalid."""
        config = build_config(parse_args(["--composition", str(tmp_path / "missing.yaml")]))
        with pytest.raises(ValidationException):
            config.validate()

    def test_max_workers_range(self):
        """Test worker count bounds."""
        config = build_config(parse_args(["--all", "--max-workers", "0"]))
        with pytest.raises(ValidationException):
            config.validate()


class TestMain:
    """Tests for the main entry point."""

    def test_exit_code_from_orchestrator(self):
        """Test the orchestrator's exit code is the process exit code."""
        with patch("core.orchestrator.AuditOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run.return_value = 0
            orchestrator_cls.return_value.timed_out = False
            with pytest.raises(SystemExit) as exc:
                main(["--container", "nexus", "--tag", "1.0"])
        assert exc.value.code == 0

    def test_invalid_configuration_exits_1(self):
        """Test configuration errors exit 1 before any registry call."""
        with patch("core.orchestrator.AuditOrchestrator") as orchestrator_cls:
            with pytest.raises(SystemExit) as exc:
                main(["--container", "nexus"])
        assert exc.value.code == 1
        orchestrator_cls.assert_not_called()

    def test_unreachable_registry_exits_1(self):
        """Test an unreachable registry exits 1."""
        with patch("core.orchestrator.AuditOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run.side_effect = RegistryConnectionException("no credentials")
            with pytest.raises(SystemExit) as exc:
                main(["--all"])
        assert exc.value.code == 1

    def test_rejected_repository_listing_exits_1(self, caplog):
        """Test a rejected DescribeRepositories call exits 1 with an error section."""
        with patch("core.orchestrator.AuditOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run.side_effect = RegistryException(
                "DescribeRepositories", ErrorCategory.ACCESS_DENIED, "denied"
            )
            with pytest.raises(SystemExit) as exc:
                main(["--all"])
        assert exc.value.code == 1
        assert "The container registry rejected the request." in caplog.text

    def test_timed_out_run_exits_immediately(self):
        """Test a timed-out run exits without waiting for abandoned workers."""
        with patch("core.orchestrator.AuditOrchestrator") as orchestrator_cls, \
                patch("cli.os._exit") as hard_exit, \
                patch("cli.logging.shutdown"):
            orchestrator_cls.return_value.run.return_value = 0
            orchestrator_cls.return_value.timed_out = True
            with pytest.raises(SystemExit):
                main(["--all", "--timeout", "5"])
        hard_exit.assert_called_once_with(0)

    def test_completed_run_exits_normally(self):
        """Test a run within the time budget does not force the exit."""
        with patch("core.orchestrator.AuditOrchestrator") as orchestrator_cls, \
                patch("cli.os._exit") as hard_exit:
            orchestrator_cls.return_value.run.return_value = 1
            orchestrator_cls.return_value.timed_out = False
            with pytest.raises(SystemExit) as exc:
                main(["--all"])
        assert exc.value.code == 1
        hard_exit.assert_not_called()
