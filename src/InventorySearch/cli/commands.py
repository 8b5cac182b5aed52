"""Command implementations for the InventorySearch CLI.

Encapsulates what the `query` and `fetch` commands do, separated from click
parameter handling.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence
from urllib.parse import urlencode

from InventorySearch.config import AppConfig
from InventorySearch.core.models import IdentifierType, Navigation, PersistedQueryState
from InventorySearch.manifest import browse_path, get_param_value, highlight_match, search_path
from InventorySearch.query.normalize import build_query
from InventorySearch.services import SearchSession
from InventorySearch.utils.log import log

Echo = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class SearchForm:
    """Search form values given on the command line."""

    segment: str | None = None
    qindex: str | None = None
    query: str | None = None
    browse_point: str | None = None
    filters: str | None = None
    sort: str | None = None
    selected_browse_result: bool = False

    def to_params(self) -> dict[str, str]:
        params = {
            "segment": self.segment,
            "qindex": self.qindex,
            "query": self.query,
            "browsePoint": self.browse_point,
            "filters": self.filters,
            "sort": self.sort,
            "selectedBrowseResult": "true" if self.selected_browse_result else None,
        }
        return {key: value for key, value in params.items() if value is not None}


def parse_identifier_types(values: Sequence[str]) -> tuple[IdentifierType, ...]:
    """Parse `ID:NAME` pairs.

    Raises:
        ValueError: If an entry has no `:` separator.
    """
    out: list[IdentifierType] = []
    for value in values:
        type_id, sep, name = value.partition(":")
        if not sep or not type_id.strip() or not name.strip():
            raise ValueError(f"Identifier type must be ID:NAME, got {value!r}")
        out.append(IdentifierType(id=type_id.strip(), name=name.strip()))
    return tuple(out)


@dataclass(slots=True)
class QueryCommand:
    """Print the request a search form would produce, without fetching."""

    config: AppConfig
    form: SearchForm
    identifier_types: Sequence[IdentifierType] = ()

    def execute(self, echo: Echo) -> None:
        params = self.form.to_params()
        state, cql = build_query(params, PersistedQueryState(), self.config.segments, self.identifier_types)
        path = search_path(params) or browse_path(params)
        log.debug("Query command params=%s state=%s", params, state.as_dict())

        echo(f"path: {path}")
        echo(f"records: {get_param_value(params, 'items', 'instances')}")
        echo(f"query: {cql if cql is not None else '(none)'}")
        echo(f"sort: {state.sort}")
        echo(f"highlightMatch: {str(highlight_match(params)).lower()}")
        preceding = get_param_value(params, self.config.manifest.preceding_records_count)
        if preceding is not None:
            echo(f"precedingRecordsCount: {preceding}")


@dataclass(slots=True)
class FetchCommand:
    """Run a search form through a session and print the records as JSON."""

    session: SearchSession
    form: SearchForm
    offset: int = 0
    facets: dict[str, Any] = field(default_factory=dict)

    def execute(self, echo: Echo) -> None:
        search = urlencode(self.form.to_params())
        navigation = Navigation(location_key="cli", search=search, result_offset=self.offset)
        outcomes = self.session.navigate(navigation, self.facets)
        if not outcomes:
            log.info("No request was needed for this search")
        for outcome in outcomes:
            if not outcome.ok:
                log.error("Request failed: resource=%s error=%s", outcome.resource, outcome.error)
            echo(
                json.dumps(
                    {
                        "resource": outcome.resource,
                        "path": outcome.path,
                        "query": outcome.query,
                        "totalRecords": outcome.total_records,
                        "records": outcome.records,
                        "error": outcome.error,
                    },
                    ensure_ascii=False,
                    indent=2,
                )
            )
