"""Resource manifest for the inventory search container.

Declares the resources a search container fetches: where each one lives on
the backend, its paging shape, and which functions supply the per-request
parameters. Paths and record keys can depend on the current `qindex`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from InventorySearch.config.manifest import ManifestSettings
from InventorySearch.config.segments import FilterConfigProvider
from InventorySearch.core.models import IdentifierType, PersistedQueryState
from InventorySearch.core.query import BROWSE_MODE_MAP, is_browse_mode, is_field_comparison
from InventorySearch.query.fetch_gate import FetchGate
from InventorySearch.query.normalize import build_query

QueryParams = Mapping[str, Any]
ParamFunc = Callable[..., Any]
PathFunc = Callable[[QueryParams], Optional[str]]

RESULT_OFFSET_PLACEHOLDER = "%{resultOffset}"
RESULT_DENSITY_SPARSE = "sparse"


@dataclass(frozen=True, slots=True)
class LocalResource:
    """Client-side value with an initial state."""

    initial_value: Any


@dataclass(slots=True)
class ResourceSpec:
    """Backend resource declaration.

    Attributes:
        path: Default backend path.
        records: Key of the record list in the response, or a function of
            the query parameters.
        get_path: Per-request path; `None` from the function means the
            resource is inactive for this request.
        params: Request parameter name -> value function.
        fetch: `False`, or a gate deciding per navigation.
        per_request: Page size; `None` for unpaged resources.
        result_offset: Offset placeholder filled by the fetch runtime.
        accumulate: Whether pages accumulate into one list.
        result_density: Paging density hint.
        throw_errors: Whether backend failures propagate.
        static_fallback: Params used when the query cannot be built.
    """

    path: str
    records: Union[str, Callable[[QueryParams], str]]
    get_path: Union[str, PathFunc, None] = None
    params: dict[str, ParamFunc] = field(default_factory=dict)
    fetch: Union[bool, FetchGate] = True
    per_request: Optional[int] = None
    result_offset: Optional[str] = None
    accumulate: bool = False
    result_density: Optional[str] = None
    throw_errors: bool = False
    static_fallback: Optional[dict[str, Any]] = None

    def resolve_path(self, query_params: QueryParams) -> Optional[str]:
        """Return the request path, or `None` when the resource is inactive."""
        if callable(self.get_path):
            return self.get_path(query_params)
        return self.get_path or self.path

    def resolve_records_key(self, query_params: QueryParams) -> str:
        if callable(self.records):
            return self.records(query_params)
        return self.records


def get_param_value(query_params: QueryParams, browse_value: Any, no_browse_value: Any = None) -> Any:
    """Pick a value depending on whether the request browses.

    A request browses when `qindex` is a browse option or the query is
    already a relational expression against a browsable field.
    """
    query = query_params.get("query") or ""
    if is_browse_mode(query_params.get("qindex")) or is_field_comparison(query):
        return browse_value
    return no_browse_value


def highlight_match(query_params: QueryParams) -> bool:
    """Return True for free-text queries; relational expressions get no highlight."""
    query = query_params.get("query") or ""
    return bool(query) and not is_field_comparison(query)


def search_path(query_params: QueryParams) -> Optional[str]:
    if query_params.get("qindex") in BROWSE_MODE_MAP:
        return None
    return "search/instances"


def browse_path(query_params: QueryParams) -> Optional[str]:
    entry = BROWSE_MODE_MAP.get(query_params.get("qindex"))
    return entry[1] if entry else None


def _query_param(
    provider: FilterConfigProvider,
    identifier_types: Sequence[IdentifierType],
) -> Callable[[QueryParams, PersistedQueryState], tuple[PersistedQueryState, Optional[str]]]:
    def _build(query_params: QueryParams, state: PersistedQueryState) -> tuple[PersistedQueryState, Optional[str]]:
        return build_query(query_params, state, provider, identifier_types)

    return _build


def build_records_manifest(
    *,
    path: PathFunc,
    provider: FilterConfigProvider,
    identifier_types: Sequence[IdentifierType],
    settings: ManifestSettings,
) -> ResourceSpec:
    """Declare a paged, gated record resource.

    Every call creates a new `FetchGate`, so each resource keeps its own
    navigation history.
    """
    preceding = settings.preceding_records_count
    return ResourceSpec(
        path="inventory/instances",
        records=lambda query_params: get_param_value(query_params, "items", "instances"),
        get_path=path,
        params={
            "query": _query_param(provider, identifier_types),
            "highlightMatch": highlight_match,
            "precedingRecordsCount": lambda query_params: get_param_value(query_params, preceding),
        },
        fetch=FetchGate(),
        per_request=settings.per_request,
        result_offset=RESULT_OFFSET_PLACEHOLDER,
        accumulate=True,
        result_density=RESULT_DENSITY_SPARSE,
        throw_errors=False,
    )


def build_ids_manifest(
    *,
    path: str,
    provider: FilterConfigProvider,
    identifier_types: Sequence[IdentifierType],
) -> ResourceSpec:
    """Declare an id-list resource fetched on demand only."""
    return ResourceSpec(
        path=path,
        records="ids",
        params={"query": _query_param(provider, identifier_types)},
        fetch=False,
        accumulate=True,
        throw_errors=False,
        static_fallback={},
    )


def build_manifest(
    provider: FilterConfigProvider,
    *,
    identifier_types: Sequence[IdentifierType] = (),
    settings: ManifestSettings | None = None,
) -> dict[str, Union[LocalResource, ResourceSpec]]:
    """Build the manifest of a search container.

    Args:
        provider: Segment index/filter configuration.
        identifier_types: Identifier type records for ISBN/ISSN lookups.
        settings: Paging settings.

    Returns:
        Resource name -> declaration.
    """
    settings = settings or ManifestSettings()
    return {
        # Incremented as each filter loads.
        "numFiltersLoaded": LocalResource(initial_value=1),
        "query": LocalResource(initial_value=PersistedQueryState()),
        "resultCount": LocalResource(initial_value=settings.initial_result_count),
        "resultOffset": LocalResource(initial_value=0),
        "records": build_records_manifest(
            path=search_path,
            provider=provider,
            identifier_types=identifier_types,
            settings=settings,
        ),
        "browseModeRecords": build_records_manifest(
            path=browse_path,
            provider=provider,
            identifier_types=identifier_types,
            settings=settings,
        ),
        "recordsToExportIDs": build_ids_manifest(
            path="search/instances/ids",
            provider=provider,
            identifier_types=identifier_types,
        ),
        "holdingsToExportIDs": build_ids_manifest(
            path="search/holdings/ids",
            provider=provider,
            identifier_types=identifier_types,
        ),
    }
