"""nodejs-repl session commands - run and feed a Node.js REPL."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

import typer
from rich.console import Console

from nodejs_repl.cli.error_handler import NotFoundError, ValidationError, handle_errors
from nodejs_repl.cli.output import TranscriptWriter, print_list, print_result
from nodejs_repl.config import NodeReplConfig, load_config
from nodejs_repl.repl import (
    DEFAULT_SESSION,
    MemoryDisplayHost,
    ReplBuffer,
    ReplError,
    SessionManager,
    discover_version_manager,
)

app = typer.Typer(help="Send source code to a Node.js REPL.")
console = Console()

logger = logging.getLogger(__name__)

# Seconds to wait for the prompt after startup and after each evaluation
DEFAULT_EVAL_TIMEOUT = 10.0

META_HELP = {
    ":reset": "Restart the REPL process",
    ":clear": "Clear the transcript",
    ":load FILE": "Load and run a file",
    ":interrupt": "Interrupt the running evaluation",
    ":paths": "Show configured module paths",
    ":add-path DIR": "Add a module path (next start)",
    ":remove-path DIR": "Remove a module path (next start)",
    ":save-paths": "Save this project's module paths to the project settings file",
    ":quit": "Exit",
}


def build_manager(
    config: NodeReplConfig,
    project_dir: Optional[Path] = None,
    console_instance: Console | None = None,
) -> SessionManager:
    """Create a session manager for the CLI.

    Module paths saved for ``project_dir`` are merged into the configured list.
    """
    prog_console = console_instance or console
    manager = SessionManager(
        settings=config.repl,
        display=MemoryDisplayHost(ignore_dups=config.repl.ignore_dups),
        version_manager=discover_version_manager(),
        cwd=project_dir or Path.cwd(),
        columns=lambda: prog_console.width,
    )
    manager.load_module_paths()
    return manager


async def wait_for_prompt(
    buffer: ReplBuffer,
    prompt: str,
    after: int = 0,
    timeout: float = DEFAULT_EVAL_TIMEOUT,
    poll_interval: float = 0.05,
) -> bool:
    """Wait until the text after offset ``after`` ends with the prompt.

    Returns:
        False if the timeout expired first
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        fresh = buffer.text[after:]
        if fresh and fresh.endswith(prompt):
            return True
        await asyncio.sleep(poll_interval)
    logger.warning(f"No prompt from {buffer.buffer_id} after {timeout}s")
    return False


def strip_prompt(text: str, prompt: str) -> str:
    """Remove the trailing prompt and normalize line endings."""
    if prompt and text.endswith(prompt):
        text = text[: -len(prompt)]
    return text.replace("\r\n", "\n")


async def run_once(
    manager: SessionManager,
    action: Callable[[SessionManager], Awaitable[object]],
    name: str = DEFAULT_SESSION,
    timeout: float = DEFAULT_EVAL_TIMEOUT,
) -> str:
    """Start a session, run ``action`` once and collect its transcript."""
    prompt = manager.settings.prompt
    try:
        await manager.start_or_switch(name, show=False)
        buffer = manager.get_buffer(name)
        await wait_for_prompt(buffer, prompt, timeout=timeout)

        mark = len(buffer.text)
        await action(manager)
        await wait_for_prompt(buffer, prompt, after=mark, timeout=timeout)
        return strip_prompt(buffer.text[mark:], prompt)
    finally:
        await manager.shutdown()


def _read_source(file: Path) -> str:
    if not file.is_file():
        raise NotFoundError(f"File not found: {file}")
    return file.read_text(encoding="utf-8")


def _run_and_print(
    file_action: Callable[[SessionManager], Awaitable[object]],
    session_name: str,
    timeout: float,
) -> None:
    config = load_config()
    manager = build_manager(config)
    transcript = asyncio.run(run_once(manager, file_action, session_name, timeout))
    console.out(transcript, end="", highlight=False)


@app.command("eval")
@handle_errors
def eval_code(
    code: str = typer.Argument(..., help="JavaScript source to evaluate."),
    session_name: str = typer.Option(DEFAULT_SESSION, "--session", "-s", help="Session name."),
    timeout: float = typer.Option(DEFAULT_EVAL_TIMEOUT, "--timeout", "-t", help="Seconds to wait for output."),
) -> None:
    """Evaluate a snippet in a fresh REPL and print the transcript.

    Example:
        nodejs-repl send eval "[1, 2, 3].map(x => x * 2)"
    """
    async def action(manager: SessionManager) -> None:
        await manager.send_buffer(session_name, code)

    _run_and_print(action, session_name, timeout)


@app.command("region")
@handle_errors
def send_region(
    file: Path = typer.Argument(..., help="Source file."),
    start: int = typer.Option(..., "--start", help="Start offset (characters)."),
    end: int = typer.Option(..., "--end", help="End offset (characters)."),
    session_name: str = typer.Option(DEFAULT_SESSION, "--session", "-s", help="Session name."),
    timeout: float = typer.Option(DEFAULT_EVAL_TIMEOUT, "--timeout", "-t", help="Seconds to wait for output."),
) -> None:
    """Send a character range of a file.

    Example:
        nodejs-repl send region app.js --start 0 --end 120
    """
    source = _read_source(file)
    if not (0 <= start <= len(source) and 0 <= end <= len(source)):
        raise ValidationError(
            "Region is outside the file",
            details={"length": len(source), "start": start, "end": end},
        )

    async def action(manager: SessionManager) -> None:
        await manager.send_region(session_name, source, start, end)

    _run_and_print(action, session_name, timeout)


@app.command("line")
@handle_errors
def send_line(
    file: Path = typer.Argument(..., help="Source file."),
    line: int = typer.Option(..., "--line", "-l", help="Line number (1-based)."),
    session_name: str = typer.Option(DEFAULT_SESSION, "--session", "-s", help="Session name."),
    timeout: float = typer.Option(DEFAULT_EVAL_TIMEOUT, "--timeout", "-t", help="Seconds to wait for output."),
) -> None:
    """Send one line of a file.

    Example:
        nodejs-repl send line app.js --line 12
    """
    source = _read_source(file)
    lines = source.split("\n")
    if not 1 <= line <= len(lines):
        raise ValidationError("Line number out of range", details={"lines": len(lines)})
    point = sum(len(text) + 1 for text in lines[: line - 1])

    async def action(manager: SessionManager) -> None:
        await manager.send_line(session_name, source, point)

    _run_and_print(action, session_name, timeout)


@app.command("last-expression")
@handle_errors
def send_last_expression(
    file: Path = typer.Argument(..., help="Source file."),
    point: Optional[int] = typer.Option(None, "--point", "-p", help="Cursor offset (default: end of file)."),
    session_name: str = typer.Option(DEFAULT_SESSION, "--session", "-s", help="Session name."),
    timeout: float = typer.Option(DEFAULT_EVAL_TIMEOUT, "--timeout", "-t", help="Seconds to wait for output."),
) -> None:
    """Send the expression ending at a cursor offset.

    Example:
        nodejs-repl send last-expression app.js --point 240
    """
    source = _read_source(file)
    offset = len(source) if point is None else point
    if not 0 <= offset <= len(source):
        raise ValidationError("Point is outside the file", details={"length": len(source)})

    async def action(manager: SessionManager) -> None:
        await manager.send_last_expression(session_name, source, offset)

    _run_and_print(action, session_name, timeout)


@app.command("buffer")
@handle_errors
def send_buffer(
    file: Path = typer.Argument(..., help="Source file."),
    session_name: str = typer.Option(DEFAULT_SESSION, "--session", "-s", help="Session name."),
    timeout: float = typer.Option(DEFAULT_EVAL_TIMEOUT, "--timeout", "-t", help="Seconds to wait for output."),
) -> None:
    """Send a whole file's text.

    Example:
        nodejs-repl send buffer app.js
    """
    source = _read_source(file)

    async def action(manager: SessionManager) -> None:
        await manager.send_buffer(session_name, source)

    _run_and_print(action, session_name, timeout)


@app.command("load")
@handle_errors
def load_file(
    file: Path = typer.Argument(..., help="File to load."),
    session_name: str = typer.Option(DEFAULT_SESSION, "--session", "-s", help="Session name."),
    timeout: float = typer.Option(DEFAULT_EVAL_TIMEOUT, "--timeout", "-t", help="Seconds to wait for output."),
) -> None:
    """Load a file with require() in a fresh REPL.

    Example:
        nodejs-repl send load lib/util.js
    """
    if not file.is_file():
        raise NotFoundError(f"File not found: {file}")

    async def action(manager: SessionManager) -> None:
        await manager.load_file(session_name, file)

    _run_and_print(action, session_name, timeout)


async def handle_meta_command(manager: SessionManager, name: str, line: str) -> bool:
    """Run a ``:``-prefixed command typed at the interactive prompt.

    Returns:
        False when the front-end should exit
    """
    command, _, argument = line.strip().partition(" ")
    argument = argument.strip()

    if command in (":quit", ":q"):
        return False
    if command == ":reset":
        await manager.reset(name)
    elif command == ":clear":
        manager.clear(name)
        console.clear()
    elif command == ":load":
        if not argument:
            console.print("[red]Usage:[/red] :load FILE")
        else:
            await manager.load_file(name, Path(argument))
    elif command == ":interrupt":
        manager.quit_or_cancel(name)
    elif command == ":paths":
        print_list(manager.settings.node_paths or ["(none)"], title="Module paths")
    elif command == ":add-path":
        added = manager.add_module_path(argument or ".")
        print_result(added, "Module path added" if added else "Module path already present")
    elif command == ":remove-path":
        removed = manager.remove_module_path(argument)
        print_result(removed, "Module path removed" if removed else "Module path not found")
    elif command == ":save-paths":
        path = manager.save_module_paths()
        print_result(True, "Module paths saved", {"file": path})
    else:
        for usage, text in META_HELP.items():
            console.print(f"  [cyan]{usage:<18}[/cyan] {text}")
    return True


async def interactive(manager: SessionManager, name: str = DEFAULT_SESSION) -> None:
    """Drive a REPL session from the terminal until EOF or :quit."""
    loop = asyncio.get_running_loop()
    writer = TranscriptWriter(console)

    await manager.start_or_switch(name)
    unregister = manager.get_buffer(name).add_listener(writer)

    def interrupt() -> None:
        try:
            manager.quit_or_cancel(name)
        except ReplError as e:
            console.print(f"[yellow]{e}[/yellow]")

    loop.add_signal_handler(signal.SIGINT, interrupt)
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            line = line.rstrip("\n")

            if line.startswith(":"):
                try:
                    if not await handle_meta_command(manager, name, line):
                        break
                except ReplError as e:
                    console.print(f"[red]Error:[/red] {e}")
                continue

            if manager.get_process(name) is None:
                console.print("[yellow]REPL process exited; restarting[/yellow]")
                await manager.start_or_switch(name)
            manager.send(name, line)
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        unregister()
        await manager.shutdown()


@handle_errors
def repl(
    session_name: str = typer.Option(DEFAULT_SESSION, "--session", "-s", help="Session name."),
    project_dir: Optional[Path] = typer.Option(
        None,
        "--project",
        "-p",
        help="Project directory (module discovery and saved paths).",
    ),
) -> None:
    """Start an interactive Node.js REPL.

    Lines starting with ':' are front-end commands; type :help for a list.

    Example:
        nodejs-repl repl
        nodejs-repl repl --project ~/src/app
    """
    config = load_config()
    manager = build_manager(config, project_dir)
    asyncio.run(interactive(manager, session_name))
