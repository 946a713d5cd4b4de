"""Console rendering for nodejs-repl commands.

Command results, module path and version listings, and the live transcript
of an interactive session.
"""

import json
from typing import Any, Iterable, Mapping, Sequence

from rich.console import Console
from rich.json import JSON as RichJSON
from rich.table import Table

from nodejs_repl.repl.display import ReplBuffer

console = Console()


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "[green]Yes[/green]" if value else "[red]No[/red]"
    return str(value)


def print_json(data: Any, console_instance: Console | None = None) -> None:
    """Print JSON-serializable data; paths and other objects become strings."""
    (console_instance or console).print(RichJSON(json.dumps(data, indent=2, default=str)))


def print_table(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[str],
    title: str | None = None,
    column_styles: Mapping[str, str] | None = None,
    console_instance: Console | None = None,
) -> None:
    """Print rows of dicts as a table with one column per key in ``columns``.

    Headers are derived from the keys (``exit_code`` becomes ``Exit Code``)
    and booleans render as Yes/No.

    Example:
        print_table(
            [{"version": "v20.11.1", "active": True}],
            ["version", "active"],
            title="Node.js versions",
        )
    """
    styles = column_styles or {}
    table = Table(title=title)
    for key in columns:
        table.add_column(key.replace("_", " ").title(), style=styles.get(key))
    for row in rows:
        table.add_row(*(_cell(row.get(key)) for key in columns))
    (console_instance or console).print(table)


def print_result(
    success: bool,
    message: str,
    details: Mapping[str, Any] | None = None,
    console_instance: Console | None = None,
) -> None:
    """Print a ✓/✗ line followed by any non-None details."""
    out = console_instance or console
    mark = "[green]✓[/green]" if success else "[red]✗[/red]"
    out.print(f"{mark} {message}")
    for key, value in (details or {}).items():
        if value is not None:
            out.print(f"  [dim]{key}:[/dim] {value}")


def print_list(
    items: Iterable[str],
    title: str | None = None,
    console_instance: Console | None = None,
) -> None:
    out = console_instance or console
    if title:
        out.print(f"[bold]{title}[/bold]")
    for item in items:
        out.print(f"  • {item}")


class TranscriptWriter:
    """Echo cleaned REPL output to a console as it arrives.

    Register with :meth:`ReplBuffer.add_listener`. Text is written verbatim,
    without markup or highlighting.
    """

    def __init__(self, console_instance: Console | None = None) -> None:
        self.console = console_instance or console

    def __call__(self, buffer: ReplBuffer, text: str) -> None:
        if not text:
            return
        self.console.out(text.replace("\r\n", "\n"), end="", highlight=False)
        self.console.file.flush()
