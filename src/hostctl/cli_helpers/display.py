#!/usr/bin/env python3
"""
Display helper functions for hostctl CLI
"""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hostctl.models import Environment, HostEntry
from hostctl.store import EnvironmentSummary

console = Console()


def _timestamp(value) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def display_environments(summaries: List[EnvironmentSummary]) -> None:
    """Pretty-print a table with one row per environment."""
    table = Table(title="Environments", header_style="bold magenta")
    table.add_column("", no_wrap=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Entries", style="green", justify="right")
    table.add_column("Description", style="yellow")
    table.add_column("Updated", style="blue")

    for summary in summaries:
        marker = "*" if summary.active else ""
        entries = str(summary.entry_count)
        if summary.enabled_count != summary.entry_count:
            entries += f" ({summary.entry_count - summary.enabled_count} disabled)"
        table.add_row(
            marker,
            escape(summary.name),
            entries,
            escape(summary.description or "-"),
            _timestamp(summary.updated_at),
        )

    console.print(table)


def display_entries(entries: List[HostEntry], title: Optional[str] = None) -> None:
    """Pretty-print host entries in insertion order."""
    if not entries:
        console.print("  (no entries)")
        return

    table = Table(title=title, header_style="bold magenta")
    table.add_column("Address", style="green", no_wrap=True)
    table.add_column("Hostnames", style="cyan")
    table.add_column("Comment", style="yellow")
    table.add_column("Enabled", justify="center")

    for entry in entries:
        table.add_row(
            entry.address,
            " ".join(entry.hostnames),
            escape(entry.comment or ""),
            "yes" if entry.enabled else "[dim]no[/dim]",
        )

    console.print(table)


def display_environment(env: Environment, active: bool = False) -> None:
    """Print environment details followed by its entries."""
    suffix = " [green](active)[/green]" if active else ""
    console.print(f"[bold]Environment:[/bold] {escape(env.name)}{suffix}", soft_wrap=True)
    if env.description:
        console.print(f"[bold]Description:[/bold] {escape(env.description)}", soft_wrap=True)
    console.print(
        f"[dim]Created {_timestamp(env.created_at)}, updated {_timestamp(env.updated_at)}[/dim]"
    )
    console.print("[bold]Entries:[/bold]")
    display_entries(env.entries)


def display_success(message: str):
    """Display success message"""
    console.print(f"[green]✅ {escape(message)}[/green]", soft_wrap=True)


def display_warning(message: str):
    """Display warning message"""
    console.print(f"[yellow]⚠️  {escape(message)}[/yellow]", soft_wrap=True)


def display_error(message: str):
    """Display error message"""
    console.print(f"[red]❌ {escape(message)}[/red]", soft_wrap=True)


def display_info(message: str):
    """Display info message"""
    console.print(f"[blue]ℹ️  {escape(message)}[/blue]", soft_wrap=True)
