"""Error reporting for nodejs-repl commands.

Commands raise :class:`NodeReplError` subclasses for problems with their
input, and let :class:`~nodejs_repl.repl.exceptions.ReplError` from the
session layer propagate. :func:`handle_errors` turns both into a message on
stderr and a process exit code.
"""

import logging
import sys
import traceback
from functools import wraps
from typing import Any, Callable, NoReturn, TypeVar

import typer
from rich.console import Console

from nodejs_repl.cli.exit_codes import ExitCode, describe
from nodejs_repl.repl.exceptions import (
    DisplayBufferMissing,
    NoActiveSession,
    ReplError,
    SpawnError,
    UnknownVersion,
    VersionManagerUnavailable,
)

console = Console(stderr=True)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Exit codes for errors raised by the session layer
REPL_ERROR_EXIT_CODES: dict[type[ReplError], int] = {
    NoActiveSession: ExitCode.SESSION_ERROR,
    DisplayBufferMissing: ExitCode.SESSION_ERROR,
    SpawnError: ExitCode.SPAWN_ERROR,
    VersionManagerUnavailable: ExitCode.NOT_FOUND,
    UnknownVersion: ExitCode.NOT_FOUND,
}


class NodeReplError(Exception):
    """A command failure with its own exit code.

    Attributes:
        message: Text shown after "Error:"
        exit_code: Process exit status (class default unless overridden)
        details: Extra key/value lines printed under the message
    """

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        if exit_code is not None:
            self.exit_code = exit_code

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({extra})"


class ConfigurationError(NodeReplError):
    """Unknown setting, unreadable config file or unusable value."""

    exit_code = ExitCode.CONFIGURATION_ERROR


class ValidationError(NodeReplError):
    """Bad command-line input, such as a region outside the source file."""

    exit_code = ExitCode.INVALID_ARGUMENT


class NotFoundError(NodeReplError):
    """A source file, project directory or module path that does not exist."""

    exit_code = ExitCode.NOT_FOUND


def exit_code_for(error: ReplError) -> int:
    """Map a session-layer error to its exit code."""
    for error_type, code in REPL_ERROR_EXIT_CODES.items():
        if isinstance(error, error_type):
            return code
    return ExitCode.GENERAL_ERROR


def _fail(message: str, code: int, lines: list[str] | None = None) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    for line in lines or []:
        console.print(line)
    raise typer.Exit(code=code)


def handle_errors(func: F) -> F:
    """Report errors raised by a CLI command and exit with a matching code.

    - NodeReplError: message, details and the error's exit code
    - ReplError: message and the code from ``REPL_ERROR_EXIT_CODES``
    - KeyboardInterrupt: exit code 130
    - anything else: logged with traceback, exit code 1

    Example:
        @app.command()
        @handle_errors
        def load(file: Path):
            if not file.exists():
                raise NotFoundError(f"File not found: {file}")
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except NodeReplError as e:
            logger.error(f"{type(e).__name__}: {e}", extra={"exit_code": e.exit_code})
            _fail(e.message, e.exit_code, [f"  [dim]{k}:[/dim] {v}" for k, v in e.details.items()])
        except ReplError as e:
            code = exit_code_for(e)
            logger.error(f"{type(e).__name__}: {e}", extra={"exit_code": code})
            _fail(str(e), code, [f"[dim]{describe(code)}[/dim]"])
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            console.print("\n[yellow]Interrupted.[/yellow]")
            raise typer.Exit(code=ExitCode.CANCELLED)
        except Exception as e:
            logger.exception(f"Unexpected error in {func.__name__}")
            console.print(f"[red]Unexpected error:[/red] {e}")
            console.print(f"[dim]{get_error_context()}[/dim]", highlight=False)
            console.print("[dim]Run with --debug for the full traceback[/dim]")
            raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore[return-value]


def get_error_context(verbose: bool = False) -> str:
    """Describe the exception currently being handled.

    Args:
        verbose: Return the whole traceback instead of its last frame and
            the exception line

    Returns:
        Empty string when no exception is being handled
    """
    exc_type, exc, tb = sys.exc_info()
    if exc_type is None:
        return ""
    if verbose:
        return "".join(traceback.format_exception(exc_type, exc, tb))

    location = ""
    frames = traceback.extract_tb(tb)
    if frames:
        last = frames[-1]
        location = f"{last.filename}:{last.lineno} in {last.name}: "
    return location + "".join(traceback.format_exception_only(exc_type, exc)).strip()
