"""Tests for the paths CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from nodejs_repl.cli.exit_codes import ExitCode
from nodejs_repl.cli.paths import app
from nodejs_repl.config import PROJECT_SETTINGS_FILE, load_config, load_project_settings

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch) -> Path:
    directory = tmp_path / "config"
    monkeypatch.setenv("NODEJS_REPL_CONFIG_DIR", str(directory))
    monkeypatch.delenv("NODE_PATH", raising=False)
    return directory


class TestAddRemove:
    """Test paths add and paths remove."""

    def test_add(self, config_dir: Path, tmp_path: Path) -> None:
        lib = tmp_path / "lib"
        lib.mkdir()

        result = runner.invoke(app, ["add", str(lib)])

        assert result.exit_code == 0
        assert "Module path added" in result.output
        assert load_config(config_dir / "config.toml").repl.node_paths == [str(lib.resolve())]

    def test_add_twice(self, config_dir: Path, tmp_path: Path) -> None:
        runner.invoke(app, ["add", str(tmp_path)])
        result = runner.invoke(app, ["add", str(tmp_path)])

        assert result.exit_code == 0
        assert "already configured" in result.output
        assert len(load_config(config_dir / "config.toml").repl.node_paths) == 1

    def test_remove(self, config_dir: Path, tmp_path: Path) -> None:
        runner.invoke(app, ["add", str(tmp_path)])
        result = runner.invoke(app, ["remove", str(tmp_path)])

        assert result.exit_code == 0
        assert load_config(config_dir / "config.toml").repl.node_paths == []

    def test_relative_paths_resolved_like_sessions(self, config_dir: Path, tmp_path: Path,
                                                   monkeypatch) -> None:
        """Add and remove share the session manager's path handling."""
        (tmp_path / "lib").mkdir()
        monkeypatch.chdir(tmp_path)

        runner.invoke(app, ["add", "lib"])
        assert load_config(config_dir / "config.toml").repl.node_paths == [str((tmp_path / "lib").resolve())]

        result = runner.invoke(app, ["remove", "lib"])
        assert result.exit_code == 0
        assert load_config(config_dir / "config.toml").repl.node_paths == []

    def test_remove_unknown(self, config_dir: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["remove", str(tmp_path / "nope")])
        assert result.exit_code == ExitCode.NOT_FOUND


class TestShow:
    """Test paths show."""

    def test_show_sources(self, config_dir: Path, tmp_path: Path) -> None:
        project = tmp_path / "p"
        (project / "node_modules").mkdir(parents=True)

        result = runner.invoke(app, ["show", "--project", str(project)])

        assert result.exit_code == 0
        assert "discovered" in result.output
        assert "NODE_PATH" in result.output

    def test_show_json(self, config_dir: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["show", "--project", str(tmp_path), "--json"])

        assert result.exit_code == 0
        assert '"node_path"' in result.output
        assert '"auto_env": true' in result.output

    def test_show_missing_project(self, config_dir: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["show", "--project", str(tmp_path / "missing")])
        assert result.exit_code == ExitCode.NOT_FOUND


class TestSave:
    """Test paths save."""

    def test_save_to_project(self, config_dir: Path, tmp_path: Path) -> None:
        lib = tmp_path / "lib"
        lib.mkdir()
        project = tmp_path / "p"
        project.mkdir()
        runner.invoke(app, ["add", str(lib)])

        result = runner.invoke(app, ["save", "--project", str(project)])

        assert result.exit_code == 0
        assert (project / PROJECT_SETTINGS_FILE).exists()
        assert load_project_settings(project) == [str(lib.resolve())]
