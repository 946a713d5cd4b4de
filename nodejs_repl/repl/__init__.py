"""Node.js REPL sessions.

Spawns interactive Node.js processes in pseudo-terminals, sends source
text to them, and cleans their output for display.
"""

from nodejs_repl.repl.display import DisplayHost, MemoryDisplayHost, ReplBuffer
from nodejs_repl.repl.exceptions import (
    DisplayBufferMissing,
    NoActiveSession,
    ReplError,
    SpawnError,
    UnknownVersion,
    VersionManagerUnavailable,
)
from nodejs_repl.repl.manager import DEFAULT_SESSION, Session, SessionManager
from nodejs_repl.repl.process import ProcessSpawner, PtySpawner, ReplProcess
from nodejs_repl.repl.sanitizer import OutputSanitizer
from nodejs_repl.repl.versions import NvmVersionManager, VersionManager, discover_version_manager

__all__ = [
    # Manager
    "DEFAULT_SESSION",
    "Session",
    "SessionManager",
    # Process
    "ProcessSpawner",
    "PtySpawner",
    "ReplProcess",
    # Display
    "DisplayHost",
    "MemoryDisplayHost",
    "ReplBuffer",
    # Output
    "OutputSanitizer",
    # Versions
    "NvmVersionManager",
    "VersionManager",
    "discover_version_manager",
    # Errors
    "DisplayBufferMissing",
    "NoActiveSession",
    "ReplError",
    "SpawnError",
    "UnknownVersion",
    "VersionManagerUnavailable",
]
