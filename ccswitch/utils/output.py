"""Output formatting utilities using Rich."""

from datetime import datetime, timezone

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

console = Console()


def print_error(msg: str) -> None:
    """Print an error message to the console.

    Args:
        msg: The error message to display.
    """
    console.print(f"[bold red]Error:[/bold red] {msg}")


def print_success(msg: str) -> None:
    """Print a success message to the console.

    Args:
        msg: The success message to display.
    """
    console.print(f"[bold green]✓[/bold green] {msg}")


def print_warning(msg: str) -> None:
    """Print a warning message to the console.

    Args:
        msg: The warning message to display.
    """
    console.print(f"[bold yellow]Warning:[/bold yellow] {msg}")


def print_info(msg: str) -> None:
    """Print an info message to the console.

    Args:
        msg: The info message to display.
    """
    console.print(f"[cyan]{msg}[/cyan]")


def print_cancelled(msg: str = "Cancelled") -> None:
    """Print a cancellation message to the console.

    Args:
        msg: The cancellation message to display.
    """
    console.print(f"[yellow]{msg}[/yellow]")


def create_table(
    title: str | None = None,
    columns: list[tuple[str, str]] | None = None,
    rows: list[list[str]] | None = None,
    show_header: bool = True,
) -> Table:
    """Create a Rich table.

    Args:
        title: Optional table title.
        columns: List of (column_name, column_style) tuples.
        rows: List of row data.
        show_header: Whether to show the header row.

    Returns:
        A configured Rich Table instance.
    """
    table = Table(title=title, show_header=show_header, header_style="bold cyan")

    if columns:
        for col_name, col_style in columns:
            table.add_column(col_name, style=col_style)

    if rows:
        for row in rows:
            table.add_row(*row)

    return table


def confirm(message: str, default: bool = False) -> bool:
    """Prompt user for confirmation.

    Args:
        message: The confirmation message to display.
        default: Default choice if user just presses enter.

    Returns:
        True if user confirmed, False otherwise.
    """
    return Confirm.ask(message, default=default)


def prompt(message: str, default: str | None = None) -> str:
    """Prompt user for text input.

    Args:
        message: The prompt message to display.
        default: Default value if user just presses enter.

    Returns:
        The user's input string.
    """
    if default is None:
        return Prompt.ask(message)
    return Prompt.ask(message, default=default)


def format_timestamp(ts: int | None, with_seconds: bool = False) -> str:
    """Format a unix timestamp (UTC) for tables.

    Args:
        ts: Seconds since the epoch, or None.
        with_seconds: Include seconds in the output.

    Returns:
        Formatted string (e.g., '2025-01-31 14:05') or 'Unknown'.
    """
    if ts is None:
        return "Unknown"
    fmt = "%Y-%m-%d %H:%M:%S" if with_seconds else "%Y-%m-%d %H:%M"
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime(fmt)
    except (OverflowError, OSError, ValueError):
        return "Unknown"


def check_mark(value: bool) -> str:
    """Render a boolean as a check mark cell."""
    return "[green]✓[/green]" if value else ""


def truncate(text: str | None, width: int = 40) -> str:
    """Shorten text for a table cell."""
    if not text:
        return ""
    text = text.replace("\n", " ")
    return text if len(text) <= width else text[: width - 1] + "…"
