"""unithost CLI.

Command-line interface for the unit lifecycle.
"""

__version__ = "0.1.0"

from cli.unithost.cli import app, main

__all__ = ["__version__", "app", "main"]
