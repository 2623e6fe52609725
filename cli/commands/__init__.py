"""CLI command modules for unithost."""

from cli.commands.units import units_app

__all__ = ["units_app"]
