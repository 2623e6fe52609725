"""Rich console output utilities for the unithost CLI."""

from typing import Any

from rich.console import Console
from rich.table import Table

from orchestrator.lifecycle import CATEGORY_ORDER, LifecycleReport

console = Console()
error_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_key_value(key: str, value: Any, key_style: str = "bold") -> None:
    """Print a key-value pair."""
    console.print(f"[{key_style}]{key}:[/{key_style}] {value}")


def print_report(report: LifecycleReport) -> None:
    """Print the outcome of a lifecycle run."""
    table = Table(title="Unit Lifecycle")
    table.add_column("Category", style="cyan")
    table.add_column("Unit")
    table.add_column("Source")
    table.add_column("Activated")
    table.add_column("After Init", justify="center")

    for category in CATEGORY_ORDER:
        category_report = report[category]
        for key, activated_at in category_report.active.items():
            source = "config" if key in category_report.allowed else "stored"
            done = key in category_report.after_initialized
            table.add_row(
                category.value,
                key,
                source,
                activated_at or "-",
                "[green]✓[/green]" if done else "[dim]missing[/dim]",
            )
        if not category_report.reconciliation_enabled:
            table.add_row(category.value, "[dim]stored activations disabled[/dim]", "", "", "")

    console.print(table)
