"""Rich UI helpers for terminal output."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import MergeRequestInfo

console = Console()
err_console = Console(stderr=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]ℹ[/blue] {escape(message)}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}")


def warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]✗[/red] {escape(message)}", style="red")


def step(description: str) -> None:
    console.print(f"[bold cyan]»[/bold cyan] [bold]{escape(description)}[/bold]")


def debug(message: str) -> None:
    """Print a dim diagnostic line when running with --verbose."""
    if _verbose:
        console.print(f"[dim]{escape(message)}[/dim]")


def command(args: Sequence[str]) -> None:
    debug("$ " + " ".join(args))


def show_merge_request(mr: MergeRequestInfo) -> None:
    """Summarise the merge request being reviewed."""

    console.print()
    table = Table(title=f"Reviewing !{mr.iid}", show_header=False, title_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Title", escape(mr.title))
    table.add_row("Author", escape(mr.author.username))
    table.add_row("Branches", escape(f"{mr.source_branch} → {mr.target_branch}"))
    table.add_row("Pipeline", _pipeline_markup(mr.pipeline.status))
    console.print(table)
    console.print()


def _pipeline_markup(status: str) -> str:
    if status == "success":
        return f"[green]{status}[/green]"
    if status in {"failed", "canceled"}:
        return f"[red]{status}[/red]"
    return f"[yellow]{escape(status)}[/yellow]"
