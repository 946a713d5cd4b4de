"""nodejs-repl paths command - Module search path management."""

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from nodejs_repl.cli.config import get_config_path
from nodejs_repl.cli.error_handler import NotFoundError, handle_errors
from nodejs_repl.cli.output import print_json, print_result, print_table
from nodejs_repl.config import load_config, load_project_settings, save_config
from nodejs_repl.repl import SessionManager
from nodejs_repl.repl.command import (
    NODE_PATH_VAR,
    build_module_path,
    find_module_dir,
    path_separator,
)

app = typer.Typer(help="Manage the module search paths exported as NODE_PATH.")
console = Console()

logger = logging.getLogger(__name__)


def _project_dir(project_dir: Optional[Path]) -> Path:
    directory = (project_dir or Path.cwd()).expanduser().resolve()
    if not directory.is_dir():
        raise NotFoundError(f"Project directory not found: {directory}")
    return directory


@app.command("show")
@handle_errors
def show_paths(
    project_dir: Optional[Path] = typer.Option(None, "--project", "-p", help="Project directory."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show the NODE_PATH a session started in the project would get.

    Example:
        nodejs-repl paths show
        nodejs-repl paths show --project ~/src/app --json
    """
    directory = _project_dir(project_dir)
    config = load_config(get_config_path())

    external = os.environ.get(NODE_PATH_VAR, "")
    discovered = find_module_dir(directory)
    configured = list(config.repl.node_paths)
    project = [p for p in load_project_settings(directory) if p not in configured]

    rows = [
        {"source": "environment", "path": entry, "exists": Path(entry).is_dir()}
        for entry in external.split(path_separator())
        if entry
    ]
    if discovered:
        rows.append({"source": "discovered", "path": str(discovered), "exists": True})
    rows.extend({"source": "config", "path": p, "exists": Path(p).is_dir()} for p in configured)
    rows.extend({"source": "project", "path": p, "exists": Path(p).is_dir()} for p in project)

    node_path = build_module_path(external, discovered, configured + project)

    if json_output:
        print_json({
            "auto_env": config.repl.auto_env,
            "entries": rows,
            "node_path": node_path,
        })
        return

    if not rows:
        console.print("[dim]No module paths[/dim]")
    else:
        print_table(
            rows,
            ["source", "path", "exists"],
            title="Module Paths",
            column_styles={"source": "cyan"},
        )
    console.print(f"[bold]{NODE_PATH_VAR}:[/bold] {node_path or '(empty)'}")
    if not config.repl.auto_env:
        console.print("[yellow]auto_env is off; NODE_PATH is not exported to sessions[/yellow]")


@app.command("add")
@handle_errors
def add_path(
    path: Path = typer.Argument(..., help="Directory to add."),
) -> None:
    """Add a directory to the configured module paths.

    Example:
        nodejs-repl paths add ~/lib/js
    """
    config_path = get_config_path()
    config = load_config(config_path)

    if not path.expanduser().is_dir():
        logger.warning(f"Module path does not exist yet: {path}")

    if not SessionManager(settings=config.repl).add_module_path(path):
        print_result(False, "Module path already configured", {"path": path})
        return

    save_config(config, config_path)
    print_result(True, "Module path added", {"path": config.repl.node_paths[-1]})


@app.command("remove")
@handle_errors
def remove_path(
    path: Path = typer.Argument(..., help="Directory to remove."),
) -> None:
    """Remove a directory from the configured module paths.

    Example:
        nodejs-repl paths remove ~/lib/js
    """
    config_path = get_config_path()
    config = load_config(config_path)

    if not SessionManager(settings=config.repl).remove_module_path(path):
        raise NotFoundError(f"Module path not configured: {path}")

    save_config(config, config_path)
    print_result(True, "Module path removed", {"path": path})


@app.command("save")
@handle_errors
def save_paths(
    project_dir: Optional[Path] = typer.Option(None, "--project", "-p", help="Project directory."),
) -> None:
    """Save the configured module paths to the project settings file.

    Paths already saved for the project are kept.

    Example:
        nodejs-repl paths save --project ~/src/app
    """
    directory = _project_dir(project_dir)
    config = load_config(get_config_path())

    manager = SessionManager(settings=config.repl, cwd=directory)
    manager.load_module_paths()
    written = manager.save_module_paths(include_global=True)
    print_result(
        True,
        "Module paths saved",
        {"file": written, "paths": len(config.repl.node_paths)},
    )
