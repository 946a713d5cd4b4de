"""CLI command modules for nodejs-repl.

One typer app per command group, plus the shared error handling and output
helpers they use.
"""

from nodejs_repl.cli import config, paths, session, versions
from nodejs_repl.cli.exit_codes import ExitCode
from nodejs_repl.cli.error_handler import (
    NodeReplError,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    handle_errors,
)
from nodejs_repl.cli.output import (
    TranscriptWriter,
    print_json,
    print_list,
    print_result,
    print_table,
)

__all__ = [
    # Command modules
    "config",
    "paths",
    "session",
    "versions",
    # Exit codes
    "ExitCode",
    # Error handling
    "NodeReplError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "handle_errors",
    # Output
    "TranscriptWriter",
    "print_json",
    "print_list",
    "print_result",
    "print_table",
]
