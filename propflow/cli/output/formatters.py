"""Output formatting utilities using Rich."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from propflow.cli.output.styles import PROPFLOW_THEME, STATUS_STYLES

console = Console(theme=PROPFLOW_THEME)
err_console = Console(theme=PROPFLOW_THEME, stderr=True)


def format_table(
    data: List[Dict[str, Any]],
    columns: List[str],
    title: Optional[str] = None,
) -> None:
    """
    Format and print data as a Rich table.

    Args:
        data: List of dictionaries containing row data
        columns: List of column names to display
        title: Optional table title

    Examples:
        data = [
            {"street": "main-street", "number": "222", "status": "APPROVED"},
        ]
        format_table(data, ["street", "number", "status"], title="Properties")
    """
    if not data:
        console.print("[dim]No data to display[/dim]")
        return

    table = Table(
        title=title,
        show_header=True,
        header_style="bold magenta",
        box=box.ROUNDED,
    )

    for col in columns:
        table.add_column(col, style="cyan")

    for row in data:
        cells = []
        for col in columns:
            value = row.get(col, "")
            if col.lower() == "status":
                value = format_status(str(value))
            elif isinstance(value, datetime):
                value = value.strftime("%Y-%m-%d %H:%M:%S")
            elif value is None:
                value = "-"
            else:
                value = str(value)
            cells.append(value)
        table.add_row(*cells)

    console.print(table)


def format_json(data: Any, indent: int = 2) -> None:
    """Format and print data as JSON with syntax highlighting."""
    json_str = json.dumps(data, indent=indent, default=str)
    syntax = Syntax(json_str, "json", theme="monokai", line_numbers=False)
    console.print(syntax)


def format_plain(data: List[str]) -> None:
    """Format and print data as plain text (one item per line)."""
    for item in data:
        console.print(item, markup=False)


def format_status(status: str) -> str:
    """
    Colorize a listing, contract or execution status.

    Examples:
        >>> format_status("APPROVED")
        '[status.approved]APPROVED[/status.approved]'
    """
    style = STATUS_STYLES.get(status.lower())
    if style is None:
        return status
    return f"[{style}]{status}[/{style}]"


def format_key_value(data: Dict[str, Any], title: Optional[str] = None) -> None:
    """
    Format and print key-value pairs.

    Examples:
        format_key_value(record.to_dict(), title="Contract Status")
    """
    if title:
        console.print(f"\n[bold magenta]{title}[/bold magenta]")

    for key, value in data.items():
        if isinstance(value, datetime):
            value_str = value.strftime("%Y-%m-%d %H:%M:%S")
        elif isinstance(value, (dict, list)):
            value_str = json.dumps(value, indent=2, default=str)
        elif value is None:
            value_str = "[dim]None[/dim]"
        else:
            value_str = str(value)

        if key.lower() in ("status", "contract_status"):
            value_str = format_status(value_str)

        console.print(f"  [cyan]{key}:[/cyan] {value_str}")


def print_output(
    output: str,
    rows: List[Dict[str, Any]],
    columns: List[str],
    title: Optional[str] = None,
    plain_key: Optional[str] = None,
) -> None:
    """Print rows in the format chosen with ``--output``."""
    if output == "json":
        format_json(rows)
    elif output == "plain":
        key = plain_key or columns[0]
        format_plain([str(row.get(key, "")) for row in rows])
    else:
        format_table(rows, columns, title=title)


def print_success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print error message."""
    err_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message."""
    console.print(f"[blue]ℹ[/blue] {message}")
