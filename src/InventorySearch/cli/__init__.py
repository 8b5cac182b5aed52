"""CLI package for InventorySearch command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from InventorySearch.cli.runner import CommandRunner
from InventorySearch.cli.ui import cli


def main() -> None:
    """Run the InventorySearch CLI.

    Entry point referenced by the console script in pyproject.toml.
    """
    cli()
