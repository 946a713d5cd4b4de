"""
Command and environment construction for the Node.js REPL.

Pure functions that build the interpreter invocation, the NODE_PATH value
handed to the subprocess, and the text written to its input.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

# Directory name Node.js resolves bare module specifiers from
MODULE_DIR_NAME = "node_modules"

NODE_PATH_VAR = "NODE_PATH"

# Node's REPL enters multi-line editor mode on this command and
# evaluates the whole block when input ends
EDITOR_MODE_COMMAND = ".editor"
EXIT_COMMAND = ".exit"

# Terminal control bytes
EOF_BYTE = b"\x04"
INTERRUPT_BYTE = b"\x03"

# The embedded REPL cannot query the pty for its width, so it is passed in
REPL_CODE_TEMPLATE = (
    "process.stdout.columns = {columns};"
    "require('repl').start({{"
    "prompt: '{prompt}', "
    "ignoreUndefined: false, "
    "useGlobal: false, "
    "replMode: require('repl').REPL_MODE_{mode}"
    "}})"
)


def path_separator(os_name: Optional[str] = None) -> str:
    """Return the NODE_PATH separator for an OS family.

    Args:
        os_name: Value like ``os.name``; the running system when omitted

    Returns:
        ``";"`` on Windows, ``":"`` everywhere else
    """
    if os_name is None:
        os_name = os.name
    return ";" if os_name == "nt" else ":"


def find_module_dir(start: Path) -> Optional[Path]:
    """Find the nearest ``node_modules`` directory at or above ``start``.

    Args:
        start: Directory (or file) to begin the upward walk from

    Returns:
        Path of the ``node_modules`` directory, or None if no ancestor has one
    """
    start = start.resolve()
    if start.is_file():
        start = start.parent

    for directory in (start, *start.parents):
        candidate = directory / MODULE_DIR_NAME
        if candidate.is_dir():
            return candidate
    return None


def build_module_path(
    external: Optional[str],
    discovered: Optional[Path | str],
    configured: Iterable[str],
    separator: Optional[str] = None,
) -> str:
    """Merge module search paths into one NODE_PATH value.

    Entries keep their order: the externally supplied value first, then the
    discovered ``node_modules`` directory, then the configured list. Empty
    entries are dropped; duplicates are kept.

    Args:
        external: Existing NODE_PATH value, possibly empty or None
        discovered: Result of :func:`find_module_dir`
        configured: Module paths from configuration
        separator: Join separator (platform default when omitted)

    Returns:
        The joined NODE_PATH string
    """
    if separator is None:
        separator = path_separator()

    entries: list[str] = []
    if external:
        entries.extend(external.split(separator))
    if discovered:
        entries.append(str(discovered))
    entries.extend(str(p) for p in configured)

    return separator.join(entry for entry in entries if entry)


def build_environment(
    base: dict[str, str],
    cwd: Path,
    node_paths: Iterable[str],
    auto_env: bool = True,
    overrides: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """Build the subprocess environment.

    When ``auto_env`` is set, NODE_PATH is rebuilt from the inherited value,
    the ``node_modules`` directory nearest to ``cwd`` and ``node_paths``.
    ``overrides`` are applied last.
    """
    env = dict(base)
    if auto_env:
        env[NODE_PATH_VAR] = build_module_path(
            base.get(NODE_PATH_VAR),
            find_module_dir(cwd),
            node_paths,
        )
    if overrides:
        env.update(overrides)
    return env


def repl_code(columns: int, prompt: str, mode: str = "sloppy") -> str:
    """JavaScript snippet that starts the REPL with a fixed width and prompt."""
    escaped_prompt = prompt.replace("\\", "\\\\").replace("'", "\\'")
    return REPL_CODE_TEMPLATE.format(
        columns=columns,
        prompt=escaped_prompt,
        mode=mode.upper(),
    )


def build_invocation(command: str, args: Iterable[str], code: str) -> list[str]:
    """Full argv for the interpreter: extra arguments, then ``-e <code>``."""
    return [command, *args, "-e", code]


def load_file_command(path: Path | str) -> str:
    """One-line statement that loads and runs a file in the REPL.

    Paths containing single quotes are not supported.
    """
    return f"require('{Path(path)}');"


def wrap_input(text: str) -> tuple[str, bool]:
    """Prepare a chunk of source for the REPL.

    Single-line text gets one trailing newline. Multi-line text is wrapped in
    editor mode so it is evaluated as one block; the caller must signal end
    of input after writing it.

    Returns:
        Tuple of (payload, needs_eof)
    """
    if "\n" in text:
        return f"{EDITOR_MODE_COMMAND}\n{text}\n", True
    return f"{text}\n", False
