"""nodejs-repl versions command - Switch between installed Node.js versions."""

import typer
from rich.console import Console

from nodejs_repl.cli.config import get_config_path
from nodejs_repl.cli.error_handler import handle_errors
from nodejs_repl.cli.output import print_json, print_result, print_table
from nodejs_repl.config import load_config, set_config_value
from nodejs_repl.repl import SessionManager, discover_version_manager

app = typer.Typer(help="List and switch Node.js versions (requires nvm).")
console = Console()


def _manager() -> SessionManager:
    config = load_config(get_config_path())
    return SessionManager(settings=config.repl, version_manager=discover_version_manager())


@app.command("list")
@handle_errors
def list_versions(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List installed Node.js versions.

    Example:
        nodejs-repl versions list
    """
    manager = _manager()
    versions = manager.list_versions()

    if json_output:
        print_json({"versions": versions, "command": manager.settings.command})
        return

    if not versions:
        console.print("[dim]No Node.js versions installed[/dim]")
        return

    rows = []
    for version in versions:
        executable = str(manager.version_manager.resolve(version))
        rows.append({
            "version": version,
            "executable": executable,
            "active": executable == manager.settings.command,
        })
    print_table(rows, ["version", "executable", "active"], title="Node.js Versions",
                column_styles={"version": "cyan"})


@app.command("use")
@handle_errors
def use_version(
    version: str = typer.Argument(..., help="Version to use (e.g. 20, v18.19)."),
) -> None:
    """Use an installed Node.js version for new sessions.

    The resolved executable is saved as repl.command.

    Example:
        nodejs-repl versions use 20
    """
    manager = _manager()
    executable = manager.switch_version(version)
    set_config_value("repl", "command", str(executable), get_config_path())
    print_result(True, f"Using Node.js {version}", {"command": executable})
