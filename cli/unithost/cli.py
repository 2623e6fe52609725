"""unithost CLI.

Main command-line interface for running the unit lifecycle.
"""

from pathlib import Path
from typing import Optional

import typer

from cli.commands.units import units_app
from cli.unithost.output import (
    console,
    print_error,
    print_info,
    print_key_value,
    print_report,
    print_success,
)

app = typer.Typer(
    name="unithost",
    help="unithost - extension and add-on lifecycle for host applications",
    no_args_is_help=True,
)

app.add_typer(units_app, name="units")


@app.callback()
def main_callback(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to config.toml (default: search current and parent directories)",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override log level"),
) -> None:
    """Load configuration and set up logging."""
    from settings.config import ConfigError, reload_config
    from settings.logging import setup_logging

    try:
        config = reload_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    setup_logging(log_level or config.logging.level)


@app.command()
def boot() -> None:
    """Run the unit lifecycle once and report what was activated.

    Example:
        unithost boot
    """
    from orchestrator.lifecycle import build_orchestrator
    from settings.config import get_config

    orchestrator = build_orchestrator(get_config())
    report = orchestrator.run()
    print_report(report)
    print_success("Lifecycle complete")


@app.command()
def status() -> None:
    """Show configured allow-lists, disable flags and storage location."""
    from orchestrator.lifecycle import is_affirmative
    from settings.config import get_config
    from units.base import UnitCategory

    config = get_config()
    print_key_value("Storage", config.paths.storage_path)
    for category in UnitCategory:
        allowed = config.get(category.value) or []
        disabled = is_affirmative(config.disable.get(category.disable_flag))
        console.print(f"\n[bold cyan]{category.value}[/bold cyan]")
        print_key_value("  Allow-list", ", ".join(allowed) or "-")
        print_key_value("  Stored activations", "disabled" if disabled else "enabled")

    if not any(config.get(c.value) for c in UnitCategory):
        print_info("No units allow-listed in config.toml")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
