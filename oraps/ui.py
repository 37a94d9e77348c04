import os
from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

# Global console for UI functions
_console = Console()

# Plain output for CI logs and other non-interactive terminals
_use_simple_ui = os.getenv("ORAPS_SIMPLE_UI") == "1"


def clear_screen():
    if not _use_simple_ui:
        _console.clear()


def print_banner(run_number: int, timestamp: datetime, count: int | None):
    """Print the per-iteration header above the table."""
    runs = f"{run_number}/{count}" if count else str(run_number)
    title = f"Oracle process monitor - {timestamp:%Y-%m-%d %H:%M:%S} - run {runs}"

    if _use_simple_ui:
        _console.print(f"[cyan]{'=' * 10} {title} {'=' * 10}[/cyan]")
    else:
        _console.print(Panel(title, border_style="cyan", expand=False))


def print_table(table: str):
    """Print a pre-rendered table exactly as given."""
    _console.print(
        table, markup=False, highlight=False, emoji=False, soft_wrap=True, end=""
    )


def print_next_refresh(interval: int):
    _console.print(
        f"\n[dim]Next refresh in {interval}s. Press Ctrl+C to stop.[/dim]"
    )


def print_success(message: str, prefix: str = "✅"):
    """Print a success message."""
    _console.print(f"[green]{prefix}[/green] {message}")


def print_info(message: str, prefix: str = "ℹ️"):
    """Print an info message."""
    _console.print(f"[blue]{prefix}[/blue]  {message}")


def print_step(message: str, prefix: str = "🔧"):
    """Print a step/progress message."""
    _console.print(f"[cyan]{prefix}[/cyan] {message}")


def print_error(message: str, prefix: str = "❌"):
    """Print a recoverable error message."""
    _console.print(f"[red]{prefix}[/red] {escape(message)}")
