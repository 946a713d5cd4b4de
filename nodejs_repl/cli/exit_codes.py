"""Exit codes returned by nodejs-repl commands.

Scripts driving the REPL can tell a missing session from a bad
configuration or a Node.js that would not start.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit status of a command.

    0, 1 and 130 keep their usual Unix meaning; the rest are specific to
    sessions, configuration and lookups.
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIGURATION_ERROR = 2
    SESSION_ERROR = 3
    SPAWN_ERROR = 4
    INVALID_ARGUMENT = 7
    NOT_FOUND = 8
    CANCELLED = 130  # SIGINT

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ExitCode.SUCCESS: "Command completed",
    ExitCode.GENERAL_ERROR: "Unexpected failure",
    ExitCode.CONFIGURATION_ERROR: "Configuration file or value is invalid",
    ExitCode.SESSION_ERROR: "No usable REPL session",
    ExitCode.SPAWN_ERROR: "Node.js could not be started",
    ExitCode.INVALID_ARGUMENT: "Invalid command-line argument",
    ExitCode.NOT_FOUND: "File, path or Node.js version not found",
    ExitCode.CANCELLED: "Interrupted",
}


def describe(code: int) -> str:
    """Human-readable meaning of an exit status, including unknown ones."""
    try:
        return ExitCode(code).description
    except ValueError:
        return f"Unknown exit code {code}"
