"""nodejs-repl command line entry point."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from nodejs_repl import __app_name__, __version__
from nodejs_repl.cli import config, paths, session, versions
from nodejs_repl.cli.exit_codes import ExitCode
from nodejs_repl.config import LoggingConfig

app = typer.Typer(
    name=__app_name__,
    help="Run a Node.js REPL in a terminal and send source code to it.",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.command("repl")(session.repl)
app.add_typer(session.app, name="send")
app.add_typer(paths.app, name="paths")
app.add_typer(versions.app, name="versions")
app.add_typer(config.app, name="config")

# Source location is added to records when --debug is given
DEBUG_FORMAT_SUFFIX = " [%(filename)s:%(lineno)d]"


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__app_name__} v{__version__}")
        raise typer.Exit(code=ExitCode.SUCCESS)


def _console_level(verbose: bool, debug: bool, quiet: bool, configured: str) -> int:
    """Level for stderr logging; flags win over the configured level."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if quiet:
        return logging.ERROR
    level = logging.getLevelName(configured.upper())
    return level if isinstance(level, int) else logging.WARNING


def _setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
    settings: Optional[LoggingConfig] = None,
) -> None:
    """Configure the root logger.

    Records go to stderr at the level picked by the flags (or the
    ``[logging]`` section), and to ``log_file`` at DEBUG when one is given.
    ``--quiet`` without a log file silences logging altogether.
    """
    settings = settings or LoggingConfig()
    level = _console_level(verbose, debug, quiet, settings.level)
    log_format = settings.format + (DEBUG_FORMAT_SUFFIX if debug else "")
    log_file = log_file or settings.file

    handlers: list[logging.Handler] = []
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        to_file = logging.FileHandler(log_file)
        to_file.setLevel(logging.DEBUG)
        handlers.append(to_file)
    if not quiet:
        to_stderr = logging.StreamHandler(sys.stderr)
        to_stderr.setLevel(level)
        handlers.append(to_stderr)
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        format=log_format,
        handlers=handlers,
        force=True,
    )
    logging.getLogger(__name__).debug(
        f"Logging to stderr at {logging.getLevelName(level)}"
        + (f", file {log_file}" if log_file else "")
    )


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Log at INFO level."),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level with source locations."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors."),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write DEBUG logs to this file (overrides logging.file).",
    ),
) -> None:
    """Run a Node.js REPL in a terminal and send source code to it.

    [bold]Commands:[/bold]

    • [cyan]repl[/cyan] - Start an interactive REPL
    • [cyan]send[/cyan] - Evaluate snippets, files, lines, regions and expressions
    • [cyan]paths[/cyan] - Manage module search paths (NODE_PATH)
    • [cyan]versions[/cyan] - Switch Node.js versions through nvm
    • [cyan]config[/cyan] - Show and edit settings

    [bold]Examples:[/bold]

        nodejs-repl repl
        nodejs-repl send eval "1 + 1"
        nodejs-repl send last-expression app.js --point 240
        nodejs-repl paths add ./lib
    """
    from nodejs_repl.config import load_config

    if quiet and (verbose or debug):
        flag = "--verbose" if verbose else "--debug"
        console.print(f"[red]Error:[/red] --quiet cannot be combined with {flag}")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    settings = load_config(config.get_config_path()).logging
    _setup_logging(verbose=verbose, debug=debug, quiet=quiet, log_file=log_file, settings=settings)
    logging.getLogger(__name__).debug(f"{__app_name__} v{__version__} starting")


if __name__ == "__main__":
    app()
