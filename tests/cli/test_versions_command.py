"""Tests for the versions CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from nodejs_repl.cli.exit_codes import ExitCode
from nodejs_repl.cli.versions import app
from nodejs_repl.config import load_config

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch) -> Path:
    directory = tmp_path / "config"
    monkeypatch.setenv("NODEJS_REPL_CONFIG_DIR", str(directory))
    monkeypatch.delenv("NODEJS_REPL_COMMAND", raising=False)
    return directory


@pytest.fixture
def nvm_dir(tmp_path: Path, monkeypatch) -> Path:
    directory = tmp_path / "nvm"
    for version in ("v18.19.0", "v20.11.1"):
        (directory / "versions" / "node" / version / "bin").mkdir(parents=True)
    monkeypatch.setenv("NVM_DIR", str(directory))
    return directory


class TestVersionsCommands:
    """Test versions list and versions use."""

    def test_list(self, config_dir: Path, nvm_dir: Path) -> None:
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "v18.19.0" in result.output
        assert "v20.11.1" in result.output

    def test_list_json(self, config_dir: Path, nvm_dir: Path) -> None:
        result = runner.invoke(app, ["list", "--json"])
        assert result.exit_code == 0
        assert '"versions"' in result.output

    def test_use_saves_command(self, config_dir: Path, nvm_dir: Path) -> None:
        result = runner.invoke(app, ["use", "20"])

        assert result.exit_code == 0
        expected = nvm_dir / "versions" / "node" / "v20.11.1" / "bin" / "node"
        assert load_config(config_dir / "config.toml").repl.command == str(expected)

    def test_use_unknown_version(self, config_dir: Path, nvm_dir: Path) -> None:
        result = runner.invoke(app, ["use", "22"])
        assert result.exit_code == ExitCode.NOT_FOUND

    def test_without_nvm(self, config_dir: Path, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("NVM_DIR", str(tmp_path / "no-nvm"))
        result = runner.invoke(app, ["list"])
        assert result.exit_code == ExitCode.NOT_FOUND
