"""Search session layer for InventorySearch.

Provides the navigation-driven session and a factory wiring it to the
configured backend.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Sequence

from InventorySearch.services.session import FetchOutcome, RecordsClient, SearchSession, as_facet_snapshot

if TYPE_CHECKING:
    from InventorySearch.config import AppConfig
    from InventorySearch.core.models import IdentifierType


def create_session(
    config: AppConfig,
    *,
    client: RecordsClient | None = None,
    identifier_types: Sequence[IdentifierType] = (),
) -> SearchSession:
    """Create a search session from configuration.

    Args:
        config: Application configuration.
        client: Optional fetch runtime; an `OkapiClient` is built from
            `config.okapi` when omitted, reading the token from
            `config.okapi.token_env`.
        identifier_types: Identifier type records for ISBN/ISSN lookups.

    Returns:
        Configured SearchSession with a fresh manifest.
    """
    from InventorySearch.manifest import build_manifest

    if client is None:
        from InventorySearch.sources.okapi.client import OkapiClient

        client = OkapiClient(
            config.okapi.url,
            tenant=config.okapi.tenant,
            token=os.environ.get(config.okapi.token_env),
            timeout=config.okapi.timeout,
        )

    manifest = build_manifest(
        config.segments,
        identifier_types=identifier_types,
        settings=config.manifest,
    )
    return SearchSession(manifest, client)


__all__ = [
    "FetchOutcome",
    "RecordsClient",
    "SearchSession",
    "as_facet_snapshot",
    "create_session",
]
