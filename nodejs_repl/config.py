"""
nodejs-repl Configuration Management.

Settings come from, lowest priority first:
- Default values
- Global configuration file (TOML)
- Environment variables (``NODEJS_REPL_*``)

Module paths can also be saved per project in ``.nodejs-repl.toml``; those
are merged by the session manager when a session starts.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, List

import tomli_w
import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "nodejs-repl"
CONFIG_FILE = "config.toml"
ENV_PREFIX = "NODEJS_REPL_"

# Per-project settings file holding the module path list
PROJECT_SETTINGS_FILE = ".nodejs-repl.toml"

REPL_MODES = ("sloppy", "strict")

# Noise emitted by the Node.js REPL when it redraws the input line
DEFAULT_OUTPUT_FILTERS = [
    r"\x1b\[[0-9]*[GJK]",
    r"\x1b\[[0-9]*C",
    r"(?m)^undefined\r?\n",
]

TRUE_VALUES = ("true", "1", "yes", "on")


@dataclass
class ConfigIssue:
    """A problem found by :func:`validate_config`."""

    field: str
    message: str
    severity: str  # "error" or "warning"

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.field}: {self.message}"


@dataclass
class ReplSettings:
    """Settings read when a REPL session starts.

    Changing these has no effect on a process that is already running.
    """

    # Interpreter
    command: str = "node"
    arguments: list[str] = field(default_factory=list)

    # REPL behaviour
    prompt: str = "> "
    repl_mode: str = "sloppy"

    # Environment: export NODE_PATH built from node_paths and node_modules
    auto_env: bool = True
    node_paths: list[str] = field(default_factory=list)

    # The pty echoes input; drop that copy since the input is recorded locally
    process_echoes: bool = True

    # Do not record an input identical to the previous one in history
    ignore_dups: bool = True

    # Regular expressions removed from fresh output
    output_filters: list[str] = field(default_factory=lambda: list(DEFAULT_OUTPUT_FILTERS))

    # Seconds to wait for the process to exit on reset
    exit_timeout: float = 0.5


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[Path] = None


@dataclass
class NodeReplConfig:
    """Main configuration container for nodejs-repl."""

    config_dir: Path = CONFIG_DIR

    repl: ReplSettings = field(default_factory=ReplSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def config_file_path(env_prefix: str = ENV_PREFIX) -> Path:
    """Global config file: ``$NODEJS_REPL_CONFIG_DIR/config.toml`` or the default."""
    directory = os.environ.get(f"{env_prefix}CONFIG_DIR")
    return (Path(directory) if directory else CONFIG_DIR) / CONFIG_FILE


def load_config(
    config_path: Optional[Path] = None,
    env_prefix: str = ENV_PREFIX,
) -> NodeReplConfig:
    """
    Load configuration from file and environment variables.

    An unreadable file is logged and skipped; defaults and environment
    variables still apply.

    Args:
        config_path: Path to config file (default: :func:`config_file_path`)
        env_prefix: Prefix for environment variables

    Returns:
        Loaded configuration
    """
    config = NodeReplConfig()
    path = config_path or config_file_path(env_prefix)

    if path.exists():
        _load_from_file(path, config)
    _load_from_env(config, env_prefix)

    return config


def _load_from_file(path: Path, config: NodeReplConfig) -> None:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return

    for key, value in data.get("repl", {}).items():
        if hasattr(config.repl, key):
            setattr(config.repl, key, value)
        else:
            logger.warning(f"Ignoring unknown setting repl.{key} in {path}")

    for key, value in data.get("logging", {}).items():
        if key == "file":
            config.logging.file = Path(value) if value else None
        elif hasattr(config.logging, key):
            setattr(config.logging, key, value)

    if "config_dir" in data:
        config.config_dir = Path(data["config_dir"])


# Environment variable suffix -> (section, key, converter)
_ENV_VARS: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "COMMAND": ("repl", "command", str),
    "ARGUMENTS": ("repl", "arguments", str.split),
    "PROMPT": ("repl", "prompt", str),
    "MODE": ("repl", "repl_mode", str.lower),
    "AUTO_ENV": ("repl", "auto_env", lambda v: v.lower() in TRUE_VALUES),
    "EXIT_TIMEOUT": ("repl", "exit_timeout", float),
    "LOG_LEVEL": ("logging", "level", str.upper),
}


def _load_from_env(config: NodeReplConfig, prefix: str) -> None:
    for suffix, (section, key, convert) in _ENV_VARS.items():
        value = os.environ.get(f"{prefix}{suffix}")
        if value:
            setattr(getattr(config, section), key, convert(value))

    if value := os.environ.get(f"{prefix}CONFIG_DIR"):
        config.config_dir = Path(value)


def _config_to_dict(config: NodeReplConfig) -> dict[str, Any]:
    """Plain-data form of the configuration; paths become strings."""
    log_file = config.logging.file
    return {
        "config_dir": str(config.config_dir),
        "repl": asdict(config.repl),
        "logging": {**asdict(config.logging), "file": str(log_file) if log_file else None},
    }


def save_config(config: NodeReplConfig, path: Optional[Path] = None) -> None:
    """
    Save configuration to a TOML file.

    Args:
        config: Configuration to save
        path: Path to save to (default: config.config_dir / config.toml)
    """
    path = path or config.config_dir / CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)
    # TOML has no null
    if data["logging"]["file"] is None:
        del data["logging"]["file"]

    with open(path, "wb") as f:
        tomli_w.dump(data, f)
    logger.debug(f"Saved configuration to {path}")


def get_default_config() -> NodeReplConfig:
    return NodeReplConfig()


def _convert(current: Any, key: str, value: str) -> Any:
    """Parse a command-line string into the type of the current value."""
    if isinstance(current, bool):
        return value.lower() in TRUE_VALUES
    if isinstance(current, (int, float)):
        return type(current)(value)
    if isinstance(current, list):
        return [item.strip() for item in value.split(",") if item.strip()]
    if key == "file":
        return Path(value) if value else None
    return value


def set_config_value(section: str, key: str, value: str, config_path: Optional[Path] = None) -> None:
    """
    Set a single configuration value and persist it.

    Args:
        section: Configuration section ('repl' or 'logging')
        key: Configuration key within the section
        value: Value as typed (converted to the type of the current value)
        config_path: Path to config file (default: :func:`config_file_path`)

    Raises:
        ValueError: Unknown section or key, or a value that does not convert
    """
    config_path = config_path or config_file_path()
    config = load_config(config_path)

    if section not in ("repl", "logging"):
        raise ValueError(f"Unknown configuration section: {section}")
    section_obj = getattr(config, section)
    if not hasattr(section_obj, key):
        raise ValueError(f"Unknown configuration key: {section}.{key}")

    setattr(section_obj, key, _convert(getattr(section_obj, key), key, value))
    save_config(config, config_path)


def load_project_settings(project_dir: Path) -> list[str]:
    """
    Read the module path list saved for a project.

    Args:
        project_dir: Directory holding the project settings file

    Returns:
        The saved node_paths list, empty if the file does not exist
    """
    path = project_dir / PROJECT_SETTINGS_FILE
    if not path.exists():
        return []

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return [str(p) for p in data.get("node_paths", [])]


def save_project_settings(project_dir: Path, node_paths: list[str]) -> Path:
    """
    Write the module path list to the project settings file.

    Other keys already present in the file are preserved.

    Returns:
        Path of the written settings file
    """
    path = project_dir / PROJECT_SETTINGS_FILE
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)

    data["node_paths"] = list(node_paths)

    with open(path, "wb") as f:
        tomli_w.dump(data, f)

    return path


def validate_config(config: Optional[NodeReplConfig] = None) -> List[ConfigIssue]:
    """
    Check a configuration for values that would break a session.

    Args:
        config: Configuration to validate (default: loaded from file)

    Returns:
        Issues found, empty if the configuration is usable
    """
    if config is None:
        config = load_config()
    repl = config.repl

    issues: List[ConfigIssue] = []

    def error(name: str, message: str) -> None:
        issues.append(ConfigIssue(field=f"repl.{name}", message=message, severity="error"))

    def warning(name: str, message: str) -> None:
        issues.append(ConfigIssue(field=f"repl.{name}", message=message, severity="warning"))

    if shutil.which(repl.command) is None:
        error("command", f"Executable not found on PATH: {repl.command}")
    if not repl.prompt:
        warning("prompt", "Prompt is empty; output cannot be told apart from input.")
    if repl.repl_mode not in REPL_MODES:
        error("repl_mode", f"Unknown REPL mode '{repl.repl_mode}' (expected one of {', '.join(REPL_MODES)})")
    if repl.exit_timeout <= 0:
        error("exit_timeout", "Exit timeout must be positive.")

    for pattern in repl.output_filters:
        try:
            re.compile(pattern)
        except re.error as e:
            error("output_filters", f"Invalid regular expression {pattern!r}: {e}")

    for node_path in repl.node_paths:
        if not Path(node_path).is_dir():
            warning("node_paths", f"Module path does not exist: {node_path}")

    return issues


def export_config_yaml(config: NodeReplConfig) -> str:
    """Export configuration as YAML string."""
    return yaml.dump(_config_to_dict(config), default_flow_style=False, sort_keys=False, allow_unicode=True)


def export_config_json(config: NodeReplConfig) -> str:
    """Export configuration as JSON string."""
    return json.dumps(_config_to_dict(config), indent=2)
