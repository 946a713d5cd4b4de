"""
Node.js version manager integration.

A version manager lists installed Node.js versions and resolves one to an
interpreter path. It is optional: when none is found, version switching is
disabled and the configured command is used as-is.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .exceptions import UnknownVersion

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?$")


@runtime_checkable
class VersionManager(Protocol):
    """Capability interface for switching Node.js installations."""

    def list_versions(self) -> list[str]: ...

    def resolve(self, version: str) -> Path: ...


def _version_key(version: str) -> tuple[int, int, int]:
    match = VERSION_PATTERN.match(version)
    if not match:
        return (0, 0, 0)
    return tuple(int(part) if part else 0 for part in match.groups())  # type: ignore[return-value]


class NvmVersionManager:
    """Versions installed by nvm under ``$NVM_DIR/versions/node``.

    Example:
        manager = NvmVersionManager(Path.home() / ".nvm")
        manager.list_versions()    # ["v18.19.0", "v20.11.1"]
        manager.resolve("20")      # .../v20.11.1/bin/node
    """

    def __init__(self, nvm_dir: Path) -> None:
        self.nvm_dir = nvm_dir

    @property
    def versions_dir(self) -> Path:
        return self.nvm_dir / "versions" / "node"

    def list_versions(self) -> list[str]:
        """Installed versions, oldest first."""
        if not self.versions_dir.is_dir():
            return []
        versions = [
            entry.name
            for entry in self.versions_dir.iterdir()
            if entry.is_dir() and VERSION_PATTERN.match(entry.name)
        ]
        return sorted(versions, key=_version_key)

    def resolve(self, version: str) -> Path:
        """Path to the ``node`` binary for ``version``.

        A partial version ("20" or "20.11") selects the newest match.

        Raises:
            UnknownVersion: If no installed version matches
        """
        wanted = version.strip().lstrip("v")
        if not VERSION_PATTERN.match(wanted):
            raise UnknownVersion(f"Invalid Node.js version: {version}")

        wanted_parts = wanted.split(".")
        candidates = [
            v for v in self.list_versions()
            if v.lstrip("v").split(".")[:len(wanted_parts)] == wanted_parts
        ]
        if not candidates:
            raise UnknownVersion(f"Node.js {version} is not installed")

        selected = candidates[-1]
        executable = self.versions_dir / selected / "bin" / "node"
        logger.debug(f"Resolved Node.js {version} to {executable}")
        return executable


def discover_version_manager(environ: Optional[dict[str, str]] = None) -> Optional[VersionManager]:
    """Return an nvm adapter if an nvm installation exists, else None."""
    if environ is None:
        environ = dict(os.environ)

    nvm_dir = Path(environ["NVM_DIR"]) if environ.get("NVM_DIR") else Path.home() / ".nvm"
    if (nvm_dir / "versions" / "node").is_dir():
        logger.debug(f"Found nvm installation at {nvm_dir}")
        return NvmVersionManager(nvm_dir)
    return None
