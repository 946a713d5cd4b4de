"""Tests for Node.js version manager integration."""

from pathlib import Path

import pytest

from nodejs_repl.repl.exceptions import UnknownVersion
from nodejs_repl.repl.versions import NvmVersionManager, VersionManager, discover_version_manager


@pytest.fixture
def nvm_dir(tmp_path: Path) -> Path:
    """An nvm installation with a few Node.js versions."""
    versions = tmp_path / "versions" / "node"
    for version in ("v18.19.0", "v20.9.0", "v20.11.1", "v8.17.0"):
        (versions / version / "bin").mkdir(parents=True)
        (versions / version / "bin" / "node").write_text("")
    (versions / "not-a-version").mkdir()
    return tmp_path


class TestNvmVersionManager:
    """Test NvmVersionManager."""

    def test_implements_protocol(self, nvm_dir: Path) -> None:
        assert isinstance(NvmVersionManager(nvm_dir), VersionManager)

    def test_list_versions_sorted(self, nvm_dir: Path) -> None:
        """Versions sort numerically, not lexically."""
        manager = NvmVersionManager(nvm_dir)
        assert manager.list_versions() == ["v8.17.0", "v18.19.0", "v20.9.0", "v20.11.1"]

    def test_list_versions_without_installations(self, tmp_path: Path) -> None:
        assert NvmVersionManager(tmp_path).list_versions() == []

    def test_resolve_exact(self, nvm_dir: Path) -> None:
        manager = NvmVersionManager(nvm_dir)
        expected = nvm_dir / "versions" / "node" / "v18.19.0" / "bin" / "node"
        assert manager.resolve("v18.19.0") == expected
        assert manager.resolve("18.19.0") == expected

    def test_resolve_partial_picks_newest(self, nvm_dir: Path) -> None:
        manager = NvmVersionManager(nvm_dir)
        assert manager.resolve("20").parent.parent.name == "v20.11.1"
        assert manager.resolve("20.9").parent.parent.name == "v20.9.0"

    def test_resolve_unknown(self, nvm_dir: Path) -> None:
        with pytest.raises(UnknownVersion):
            NvmVersionManager(nvm_dir).resolve("22")

    def test_resolve_invalid(self, nvm_dir: Path) -> None:
        with pytest.raises(UnknownVersion):
            NvmVersionManager(nvm_dir).resolve("lts/iron")


class TestDiscoverVersionManager:
    """Test discover_version_manager."""

    def test_from_nvm_dir(self, nvm_dir: Path) -> None:
        manager = discover_version_manager({"NVM_DIR": str(nvm_dir)})
        assert isinstance(manager, NvmVersionManager)
        assert manager.nvm_dir == nvm_dir

    def test_missing_installation(self, tmp_path: Path) -> None:
        assert discover_version_manager({"NVM_DIR": str(tmp_path)}) is None
