"""Units CLI commands for unithost.

Inspect discovered units and manage their persisted activations.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from units.base import UnitCategory
from units.naming import normalize_key

console = Console()

units_app = typer.Typer(
    name="units",
    help="Inspect units and manage persisted activations.",
)


def get_loader(category: UnitCategory):
    """Get a unit loader for a category."""
    from settings.config import get_config
    from units.loader import UnitLoader

    paths = get_config().paths
    source = paths.extensions_dir if category == UnitCategory.EXTENSION else paths.addons_dir
    return UnitLoader(category, [Path(source)])


def get_store():
    """Get the activation store."""
    from local_storage.activation_store import ActivationStore
    from local_storage.options import JsonOptionsRepository
    from settings.config import get_config

    return ActivationStore(JsonOptionsRepository(Path(get_config().paths.storage_path)))


def _parse_category(value: str) -> UnitCategory:
    try:
        return UnitCategory(value)
    except ValueError:
        console.print(f"[red]Invalid category: {value}. Use: extensions or addons[/red]")
        raise typer.Exit(1)


@units_app.command("list")
def list_units(
    category: Optional[str] = typer.Option(
        None,
        "--category",
        "-c",
        help="Filter by category (extensions, addons)",
    ),
) -> None:
    """List discovered units and whether they are active.

    Examples:
        unithost units list
        unithost units list --category addons
    """
    from settings.config import get_config

    config = get_config()
    categories = [_parse_category(category)] if category else list(UnitCategory)
    store = get_store()

    table = Table(title="Units")
    table.add_column("Category", style="cyan")
    table.add_column("Key", style="green")
    table.add_column("Version")
    table.add_column("Config")
    table.add_column("Stored Since")

    total = 0
    for cat in categories:
        allowed = {normalize_key(k) for k in config.get(cat.value) or []}
        stored = store.read(cat).entries
        for key, entry in get_loader(cat).discover().items():
            version = entry.manifest.version if entry.manifest else "-"
            table.add_row(
                cat.value,
                key,
                version,
                "yes" if key in allowed else "-",
                str(stored.get(key, "-")),
            )
            total += 1

    if not total:
        console.print("[yellow]No units found[/yellow]")
        return

    console.print(table)
    console.print(f"\n[dim]Total: {total} units[/dim]")


@units_app.command("show")
def show(
    key: str = typer.Argument(..., help="Unit key"),
    category: str = typer.Option("extensions", "--category", "-c", help="Unit category"),
) -> None:
    """Show details of a discovered unit.

    Example:
        unithost units show audit_log
    """
    cat = _parse_category(category)
    loader = get_loader(cat)
    entry = loader.discover().get(normalize_key(key) or "")

    if entry is None or entry.manifest is None:
        console.print(f"[red]{cat.value} unit '{key}' not found[/red]")
        raise typer.Exit(1)

    manifest = entry.manifest
    console.print(f"\n[bold cyan]{entry.key}[/bold cyan] v{manifest.version}")
    if manifest.author:
        console.print(f"[dim]by {manifest.author}[/dim]")
    if manifest.description:
        console.print(f"\n{manifest.description}")

    console.print("\n[bold]Entry[/bold]")
    console.print(f"  Path: {entry.path}")
    console.print(f"  Class: {manifest.entry}:{manifest.unit_class}")

    stored = get_store().read(cat).entries
    console.print("\n[bold]Activation[/bold]")
    console.print(f"  Stored since: {stored.get(entry.key, '-')}")

    if manifest.requires:
        console.print("\n[bold]Requires[/bold]")
        for req in manifest.requires:
            console.print(f"  - {req}")


@units_app.command("enable")
def enable(
    key: str = typer.Argument(..., help="Unit key"),
    category: str = typer.Option("extensions", "--category", "-c", help="Unit category"),
    force: bool = typer.Option(False, "--force", "-f", help="Store even if the unit is not discovered"),
) -> None:
    """Persistently activate a unit.

    Example:
        unithost units enable audit_log
    """
    cat = _parse_category(category)
    if not force and not get_loader(cat).exists(key):
        console.print(f"[red]{cat.value} unit '{key}' not found (use --force to store anyway)[/red]")
        raise typer.Exit(1)

    try:
        result = get_store().activate(cat, key)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not result.ok:
        console.print(f"[red]Could not store activation: {result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Activated {cat.value} unit '{key.lower()}'")


@units_app.command("disable")
def disable(
    key: str = typer.Argument(..., help="Unit key"),
    category: str = typer.Option("extensions", "--category", "-c", help="Unit category"),
) -> None:
    """Remove a unit from the persisted activations.

    Units listed in config.toml stay active.

    Example:
        unithost units disable audit_log
    """
    cat = _parse_category(category)
    try:
        result = get_store().deactivate(cat, key)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not result.ok:
        console.print(f"[red]Could not store activation: {result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Deactivated {cat.value} unit '{key.lower()}'")
