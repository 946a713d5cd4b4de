"""nodejs-repl config command - Configuration management."""

from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from nodejs_repl.cli.error_handler import ConfigurationError, ValidationError, handle_errors
from nodejs_repl.cli.exit_codes import ExitCode

app = typer.Typer(help="Show and edit nodejs-repl settings.")
console = Console()

SECTIONS = ("repl", "logging")
FORMATS = ("table", "yaml", "json")

# (variable, meaning, example)
ENV_VARS = [
    ("NODEJS_REPL_COMMAND", "Node.js executable", "node"),
    ("NODEJS_REPL_ARGUMENTS", "Extra interpreter arguments (space-separated)", "--inspect"),
    ("NODEJS_REPL_PROMPT", "REPL prompt", "> "),
    ("NODEJS_REPL_MODE", "REPL mode", "sloppy/strict"),
    ("NODEJS_REPL_AUTO_ENV", "Export NODE_PATH for discovered node_modules", "true/false"),
    ("NODEJS_REPL_EXIT_TIMEOUT", "Seconds to wait for exit on reset", "0.5"),
    ("NODEJS_REPL_LOG_LEVEL", "Logging level", "DEBUG/INFO/WARNING/ERROR"),
    ("NODEJS_REPL_CONFIG_DIR", "Configuration directory", "~/.config/nodejs-repl"),
    ("NVM_DIR", "nvm installation used by `versions`", "~/.nvm"),
]


def get_config_path() -> Path:
    """Path of the global config file, honouring NODEJS_REPL_CONFIG_DIR."""
    from nodejs_repl.config import config_file_path

    return config_file_path()


def _display_value(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value) or "(none)"
    if value is None:
        return ""
    if isinstance(value, str) and value != value.strip():
        return repr(value)
    return str(value)


@app.command("show")
@handle_errors
def show_config(
    section: Optional[str] = typer.Argument(None, help="Section to show (repl, logging)."),
    format: str = typer.Option("table", "--format", "-f", help="Output format (table, yaml, json)."),
) -> None:
    """Show the effective configuration (file and environment merged).

    Example:
        nodejs-repl config show
        nodejs-repl config show repl
        nodejs-repl config show --format yaml
    """
    from nodejs_repl.config import _config_to_dict, export_config_json, export_config_yaml, load_config

    if format not in FORMATS:
        raise ValidationError(f"Unknown format: {format}", details={"expected": ", ".join(FORMATS)})
    if section is not None and section not in SECTIONS:
        raise ValidationError(f"Unknown section: {section}", details={"expected": ", ".join(SECTIONS)})

    config = load_config(get_config_path())

    if format != "table":
        text = export_config_yaml(config) if format == "yaml" else export_config_json(config)
        console.print(Syntax(text, format, theme="monokai"))
        return

    data = _config_to_dict(config)
    for name in [section] if section else SECTIONS:
        table = Table(title=name.capitalize())
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in data[name].items():
            table.add_row(key, escape(_display_value(value)))
        console.print(table)
        console.print()


@app.command("set")
@handle_errors
def set_config(
    key: str = typer.Argument(..., help="Setting as section.key, e.g. repl.command."),
    value: str = typer.Argument(..., help="New value (comma-separated for lists)."),
) -> None:
    """Change one setting in the config file.

    Example:
        nodejs-repl config set repl.command /usr/local/bin/node
        nodejs-repl config set repl.arguments --experimental-vm-modules
        nodejs-repl config set repl.auto_env false
    """
    from nodejs_repl.config import set_config_value

    section, dot, name = key.partition(".")
    if not dot or not name:
        raise ValidationError("Key must be in format: section.key", details={"key": key})

    try:
        set_config_value(section, name, value, get_config_path())
    except ValueError as e:
        raise ConfigurationError(str(e), details={"key": key})

    console.print(f"[green]✓[/green] {key} = {escape(value)}")


@app.command("init")
@handle_errors
def init_config(
    force: bool = typer.Option(False, "--force", "-f", help="Replace an existing config file."),
    interactive: bool = typer.Option(
        False,
        "--interactive/--no-interactive",
        "-i/-I",
        help="Prompt for the most common settings.",
    ),
) -> None:
    """Write a config file with default values.

    Example:
        nodejs-repl config init
        nodejs-repl config init --interactive
    """
    from nodejs_repl.config import REPL_MODES, NodeReplConfig, save_config

    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]{config_path} already exists[/yellow] (use --force to replace it)")
        raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    config = NodeReplConfig(config_dir=config_path.parent)

    if interactive:
        repl = config.repl
        repl.command = typer.prompt("Node.js executable", default=repl.command)
        repl.prompt = typer.prompt("Prompt", default=repl.prompt)
        mode = typer.prompt("REPL mode", default=repl.repl_mode)
        if mode not in REPL_MODES:
            raise ValidationError(f"Unknown REPL mode: {mode}", details={"expected": ", ".join(REPL_MODES)})
        repl.repl_mode = mode
        repl.auto_env = typer.confirm("Export NODE_PATH for discovered node_modules?", default=repl.auto_env)

    save_config(config, config_path)
    console.print(f"[green]✓[/green] Wrote {config_path}")


@app.command("path")
def config_path() -> None:
    """Show where settings are read from.

    Example:
        nodejs-repl config path
    """
    from nodejs_repl.config import PROJECT_SETTINGS_FILE

    path = get_config_path()
    state = "exists" if path.exists() else "not created yet"
    console.print(f"[bold]Config file:[/bold] {path} [dim]({state})[/dim]", soft_wrap=True)
    console.print(f"[bold]Project settings:[/bold] {Path.cwd() / PROJECT_SETTINGS_FILE}", soft_wrap=True)


@app.command("validate")
def validate_config() -> None:
    """Check the configuration for values that would break a session.

    Exits with status 2 when an error is found; warnings only are reported.

    Example:
        nodejs-repl config validate
    """
    from nodejs_repl.config import load_config, validate_config as check

    path = get_config_path()
    if not path.exists():
        console.print(f"[yellow]![/yellow] {path} not found, checking defaults")

    issues = check(load_config(path))
    for issue in issues:
        mark = "[red]✗[/red]" if issue.severity == "error" else "[yellow]![/yellow]"
        console.print(f"  {mark} {escape(str(issue))}")

    if any(issue.severity == "error" for issue in issues):
        console.print("[red]Configuration has errors[/red]")
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR)
    console.print("[green]Configuration is valid[/green]")


@app.command("env")
def show_env_vars() -> None:
    """List environment variables that override the config file.

    Example:
        nodejs-repl config env
    """
    table = Table(title="Environment Variables")
    table.add_column("Variable", style="cyan")
    table.add_column("Meaning")
    table.add_column("Example", style="green")
    for row in ENV_VARS:
        table.add_row(*row)
    console.print(table)
