"""Command runner for coordinating CLI execution.

Manages logging configuration, component creation, resource cleanup and
error handling for command execution.
"""

from __future__ import annotations

import os
from typing import Sequence

import click

from InventorySearch.cli.commands import Echo, FetchCommand, QueryCommand, SearchForm, parse_identifier_types
from InventorySearch.config import AppConfig
from InventorySearch.services import create_session
from InventorySearch.sources.okapi.client import OkapiClient
from InventorySearch.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig, echo: Echo = click.echo) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
            echo: Output function for command results.
        """
        self.config = config
        self.echo = echo

    def _configure(self, action: str) -> None:
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
            secrets=(os.environ.get(self.config.okapi.token_env, ""),),
        )

    def run_query(self, action: str, form: SearchForm, identifier_types: Sequence[str] = ()) -> None:
        """Print the composed query for `form`.

        Raises:
            click.Abort: When the query cannot be built.
        """
        self._configure(action)
        try:
            command = QueryCommand(
                config=self.config,
                form=form,
                identifier_types=parse_identifier_types(identifier_types),
            )
            command.execute(self.echo)
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Query failed: %s", e)
            raise click.Abort from e

    def run_fetch(
        self,
        action: str,
        form: SearchForm,
        *,
        offset: int = 0,
        identifier_types: Sequence[str] = (),
        client: OkapiClient | None = None,
    ) -> None:
        """Fetch records for `form` from the configured backend.

        Raises:
            click.Abort: When the fetch fails.
        """
        self._configure(action)
        try:
            session = create_session(
                self.config,
                client=client,
                identifier_types=parse_identifier_types(identifier_types),
            )
            try:
                FetchCommand(session=session, form=form, offset=offset).execute(self.echo)
            finally:
                close = getattr(session.client, "close", None)
                if callable(close):
                    close()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Fetch failed: %s", e)
            raise click.Abort from e
