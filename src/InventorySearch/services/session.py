"""Search session for one resource container.

Runs each navigation through the manifest: the fetch gate of every record
resource decides whether to request, the query builder normalizes the
persisted state, and the client performs the request.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Protocol, Sequence, Union

import requests

from InventorySearch.core.models import Navigation, PersistedQueryState
from InventorySearch.manifest import LocalResource, ResourceSpec
from InventorySearch.query.fetch_gate import FacetSnapshot, FetchGate
from InventorySearch.utils.log import log

GATED_RESOURCES: tuple[str, ...] = ("records", "browseModeRecords")


class RecordsClient(Protocol):
    """Protocol for the fetch runtime."""

    def get(self, path: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        raise NotImplementedError


@dataclass(slots=True)
class FetchOutcome:
    """Result of one resource request.

    Attributes:
        resource: Manifest resource name.
        path: Backend path requested.
        query: Composed CQL.
        records: Records from the response, empty on failure.
        total_records: `totalRecords` when reported.
        error: Error text when the request failed and errors are not thrown.
    """

    resource: str
    path: str
    query: str
    records: list[Any] = field(default_factory=list)
    total_records: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SearchSession:
    """Navigation handling for one search container."""

    def __init__(
        self,
        manifest: Mapping[str, Union[LocalResource, ResourceSpec]],
        client: RecordsClient,
    ) -> None:
        """Initialize the session with the manifest's initial query state.

        Args:
            manifest: Manifest from `build_manifest`.
            client: Fetch runtime.

        Raises:
            TypeError: If the manifest's `query` entry is not a LocalResource.
        """
        self.manifest = manifest
        self.client = client
        initial = manifest["query"]
        if not isinstance(initial, LocalResource):
            raise TypeError(f"manifest['query'] must be a LocalResource, got {type(initial).__name__}")
        self.state: PersistedQueryState = replace(initial.initial_value)

    def navigate(self, navigation: Navigation, facets: FacetSnapshot | None = None) -> list[FetchOutcome]:
        """Handle one navigation event.

        Args:
            navigation: Navigation of the container.
            facets: Snapshot of pending facet selections.

        Returns:
            Outcomes of the requests issued, possibly empty.
        """
        query_params = navigation.params()
        outcomes: list[FetchOutcome] = []
        for name in GATED_RESOURCES:
            spec = self._resource(name)
            gate = spec.fetch
            wanted = gate.should_fetch(navigation, facets) if isinstance(gate, FetchGate) else bool(gate)
            path = spec.resolve_path(query_params)
            if path is None or not wanted:
                log.debug("Skip resource=%s path=%s fetch=%s", name, path, wanted)
                continue
            outcome = self._request(name, spec, path, query_params, offset=navigation.result_offset)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def fetch_ids(self, resource: str, query_params: Mapping[str, Any]) -> Optional[FetchOutcome]:
        """Fetch an on-demand id list, e.g. `recordsToExportIDs`."""
        spec = self._resource(resource)
        path = spec.resolve_path(query_params)
        if path is None:
            return None
        return self._request(resource, spec, path, query_params, offset=None)

    def _resource(self, name: str) -> ResourceSpec:
        spec = self.manifest.get(name)
        if not isinstance(spec, ResourceSpec):
            raise KeyError(f"Unknown resource in manifest: {name}")
        return spec

    def _request(
        self,
        name: str,
        spec: ResourceSpec,
        path: str,
        query_params: Mapping[str, Any],
        *,
        offset: Optional[int],
    ) -> Optional[FetchOutcome]:
        params = self._resolve_params(spec, query_params)
        if params is None:
            log.debug("No query for resource=%s; request skipped", name)
            return None
        if spec.per_request is not None:
            params["limit"] = spec.per_request
        if spec.result_offset is not None and offset is not None:
            params["offset"] = offset

        query = params.get("query", "")
        log.info("Fetching resource=%s path=%s query=%s", name, path, query)
        try:
            body = self.client.get(path, params)
        except requests.RequestException as error:
            if spec.throw_errors:
                raise
            log.warning("Resource request failed: resource=%s error=%s", name, error)
            return FetchOutcome(resource=name, path=path, query=query, error=str(error))

        records = list(body.get(spec.resolve_records_key(query_params), []))
        total = body.get("totalRecords")
        log.info("Fetched resource=%s count=%d total=%s", name, len(records), total)
        return FetchOutcome(
            resource=name,
            path=path,
            query=query,
            records=records,
            total_records=total if isinstance(total, int) else None,
        )

    def _resolve_params(self, spec: ResourceSpec, query_params: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        """Evaluate the parameter functions of `spec`.

        Returns:
            Request parameters, the static fallback when no query can be
            built, or `None` when the request should not happen.
        """
        params: dict[str, Any] = {}
        for key, func in spec.params.items():
            if key == "query":
                self.state, cql = func(query_params, self.state)
                if cql is None:
                    return dict(spec.static_fallback) if spec.static_fallback is not None else None
                params[key] = cql
            else:
                value = func(query_params)
                if value is not None:
                    params[key] = value
        return params


def as_facet_snapshot(selections: Mapping[str, Sequence[str]] | None) -> FacetSnapshot:
    """Drop facets without selected values; the gate only checks emptiness."""
    if not selections:
        return {}
    return {name: tuple(values) for name, values in selections.items() if values}
