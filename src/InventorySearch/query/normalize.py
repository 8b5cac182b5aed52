"""Request state normalization and query building."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Mapping, Sequence

from InventorySearch.core.models import IdentifierType, IndexConfig, PersistedQueryState
from InventorySearch.core.query import (
    CQL_FIND_ALL,
    DEFAULT_INDEX,
    DEFAULT_SORT,
    FIND_ALL_SENTINEL,
    QueryIndex,
    SearchRequest,
    is_browse_mode,
)
from InventorySearch.query.compose import FAIL_WITHOUT_QUERY_OR_FILTERS, compose_query
from InventorySearch.query.templates import resolve_query_template
from InventorySearch.utils.log import log

if TYPE_CHECKING:
    from InventorySearch.config.segments import FilterConfigProvider

RAW_SORT_DIRECTIVE = "sortby"


@dataclass(frozen=True, slots=True)
class NormalizedRequest:
    """Outcome of normalizing one navigation.

    Attributes:
        state: Updated persisted query state.
        fragment: Resolved CQL template for the search index.
        escape: Whether query composition must escape the query text.
        search_index: Effective search index.
    """

    state: PersistedQueryState
    fragment: str
    escape: bool
    search_index: str


def state_from_request(previous: PersistedQueryState, request: SearchRequest) -> PersistedQueryState:
    """Rebuild the persisted state from the URL parameters of one navigation.

    Parameters missing from the URL are empty, so nothing the previous
    navigation set carries over.
    """
    return replace(
        previous,
        query=request.query_text or "",
        browse_point=request.browse_point or "",
        filters=request.filters_text or "",
        sort=request.sort_field or "",
        selected_browse_result=request.is_selected_browse_result,
        qindex=request.search_index or "",
    )


def resolve_sort(search_index: str, query_text: str, requested_sort: str | None) -> str:
    """Pick the effective sort for a search.

    Raw CQL carrying its own `sortby` and all browse modes get no sort; a
    request without a sort falls back to `DEFAULT_SORT`.
    """
    sort = requested_sort or DEFAULT_SORT
    if search_index == QueryIndex.QUERY_SEARCH and RAW_SORT_DIRECTIVE in query_text:
        sort = ""
    if is_browse_mode(search_index):
        sort = ""
    return sort


def normalize_request(
    previous_state: PersistedQueryState,
    incoming_params: Mapping[str, object],
    index_config: IndexConfig,
    identifier_types: Sequence[IdentifierType] = (),
) -> NormalizedRequest:
    """Normalize the persisted state for one navigation.

    Args:
        previous_state: State persisted by the previous navigation. Its URL
            derived fields are replaced, never merged.
        incoming_params: URL query parameters of this navigation.
        index_config: Index configuration of the current segment.
        identifier_types: Identifier type records for ISBN/ISSN lookups.

    Returns:
        NormalizedRequest holding the new state and the resolved fragment.

    Raises:
        UnknownIndexError: If the search index is not configured.
    """
    request = SearchRequest.from_params(incoming_params)
    state = state_from_request(previous_state, request)
    search_index = request.search_index or DEFAULT_INDEX
    query_text = request.query_text or ""

    template_value = query_text
    browse_point = request.browse_point
    if is_browse_mode(search_index) and not query_text and request.filters_text:
        state.query = FIND_ALL_SENTINEL
        template_value = FIND_ALL_SENTINEL
        browse_point = None

    resolution = resolve_query_template(
        search_index,
        template_value,
        browse_point,
        index_config.indexes,
        identifier_types,
        selected_browse_result=request.is_selected_browse_result,
    )
    if resolution.reset_selected_browse_result:
        state.selected_browse_result = False

    state.sort = resolve_sort(search_index, query_text, request.sort_field)
    state.qindex = ""

    log.debug(
        "Normalized request qindex=%s sort=%s fragment=%s",
        search_index,
        state.sort,
        resolution.fragment,
    )
    return NormalizedRequest(
        state=state,
        fragment=resolution.fragment,
        escape=search_index != QueryIndex.QUERY_SEARCH,
        search_index=search_index,
    )


def build_query(
    query_params: Mapping[str, object],
    state: PersistedQueryState,
    provider: FilterConfigProvider,
    identifier_types: Sequence[IdentifierType] = (),
) -> tuple[PersistedQueryState, str | None]:
    """Build the CQL for a navigation.

    The segment is read from `query_params["segment"]` and defaults to the
    provider's default segment.

    Returns:
        Tuple of (normalized state, CQL or None when no request is needed).
    """
    segment = query_params.get("segment")
    index_config = provider.get_filter_config(str(segment) if segment else None)
    normalized = normalize_request(state, query_params, index_config, identifier_types)
    cql = compose_query(
        CQL_FIND_ALL,
        normalized.fragment,
        index_config.sort_map,
        index_config.filters,
        FAIL_WITHOUT_QUERY_OR_FILTERS,
        normalized.escape,
        normalized.state,
    )
    log.debug("Composed CQL: %s", cql)
    return normalized.state, cql
