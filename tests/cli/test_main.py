"""Tests for the main CLI entry point."""

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nodejs_repl import __version__
from nodejs_repl.cli.exit_codes import ExitCode
from nodejs_repl.config import LoggingConfig
from nodejs_repl.main import _setup_logging, app

runner = CliRunner()


@pytest.fixture(autouse=True)
def config_dir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("NODEJS_REPL_CONFIG_DIR", str(tmp_path))
    return tmp_path


class TestSetupLogging:
    """Tests for _setup_logging function."""

    def test_debug_level(self) -> None:
        _setup_logging(debug=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_default_level_from_config(self) -> None:
        _setup_logging(settings=LoggingConfig(level="info"))
        assert logging.getLogger().level == logging.INFO

    def test_unknown_default_level(self) -> None:
        _setup_logging(settings=LoggingConfig(level="chatty"))
        assert logging.getLogger().level == logging.WARNING

    def test_creates_log_directory(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "repl.log"
        _setup_logging(quiet=True, log_file=log_file)
        assert log_file.parent.exists()
        assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_file_from_settings(self, tmp_path: Path) -> None:
        """A configured log file is used when no --log-file is given."""
        log_file = tmp_path / "configured.log"
        _setup_logging(quiet=True, settings=LoggingConfig(file=log_file))
        logging.getLogger("nodejs_repl.test").warning("recorded")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "recorded" in log_file.read_text()


class TestMainApp:
    """Tests for the top-level app."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("repl", "send", "paths", "versions", "config"):
            assert command in result.output

    def test_quiet_and_verbose_conflict(self) -> None:
        result = runner.invoke(app, ["--quiet", "--verbose", "config", "path"])
        assert result.exit_code == ExitCode.INVALID_ARGUMENT

    def test_subcommand_runs(self) -> None:
        result = runner.invoke(app, ["config", "path"])
        assert result.exit_code == 0
        assert "Config file" in result.output

    def test_debug_and_quiet_conflict(self) -> None:
        result = runner.invoke(app, ["--quiet", "--debug", "config", "path"])
        assert result.exit_code == ExitCode.INVALID_ARGUMENT
        assert "--debug" in result.output
