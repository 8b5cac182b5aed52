"""Fetch gating for navigation events.

Decides whether a navigation needs a new backend request. Switching the
search index alone (while the user is still composing a search) must not
trigger a request; paging back to the same navigation must not recompute.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping, Optional

from InventorySearch.core.models import Navigation
from InventorySearch.core.query import DEFAULT_SORT, SearchRequest
from InventorySearch.utils.log import log

FacetSnapshot = Mapping[str, Any]
DecideFunc = Callable[["FetchGateState", Navigation, FacetSnapshot], tuple["FetchGateState", bool]]

_EMPTY_FACETS: FacetSnapshot = {}


@dataclass(frozen=True, slots=True)
class FetchGateState:
    """Memory of the previous navigation.

    Attributes:
        last_navigation: `(location_key, result_offset)` of the last call.
        last_result: Decision returned for `last_navigation`.
        last_search: `(qindex, query)` seen by the last evaluation.
    """

    last_navigation: Optional[tuple[str, int]] = None
    last_result: bool = False
    last_search: tuple[Optional[str], Optional[str]] = (None, None)


def is_reset(request: SearchRequest, facets: FacetSnapshot) -> bool:
    """Return True when the navigation clears the whole search form."""
    return (
        not request.search_index
        and not request.query_text
        and not request.filters_text
        and (not request.sort_field or request.sort_field == DEFAULT_SORT)
        and not facets
        and not request.browse_point
    )


def evaluate_fetch(
    state: FetchGateState,
    request: SearchRequest,
    facets: FacetSnapshot = _EMPTY_FACETS,
) -> tuple[FetchGateState, bool]:
    """Decide whether `request` needs a fetch, given the previous search.

    A changed `qindex` fetches only for a reset, a changed query, or a
    selected browse result. An unchanged `qindex` always fetches.
    """
    should_fetch = True
    prev_qindex, prev_query = state.last_search

    if prev_qindex != request.search_index:
        should_fetch = (
            is_reset(request, facets)
            or prev_query != request.query_text
            or request.is_selected_browse_result
        )

    new_state = replace(state, last_search=(request.search_index, request.query_text))
    return new_state, should_fetch


def decide_navigation(
    state: FetchGateState,
    navigation: Navigation,
    facets: FacetSnapshot,
) -> tuple[FetchGateState, bool]:
    """Evaluate a navigation from its URL parameters."""
    request = SearchRequest.from_params(navigation.params())
    return evaluate_fetch(state, request, facets)


def memoized_fetch(
    state: FetchGateState,
    navigation: Navigation,
    facets: FacetSnapshot,
    decide: DecideFunc = decide_navigation,
) -> tuple[FetchGateState, bool]:
    """Return the cached decision for an unchanged navigation, else decide anew.

    A navigation is unchanged when both its location key and result offset
    equal those of the previous call. `decide` is not called in that case.
    """
    identity = (navigation.location_key, navigation.result_offset)
    if state.last_navigation == identity:
        return state, state.last_result

    new_state, result = decide(state, navigation, facets)
    return replace(new_state, last_navigation=identity, last_result=result), result


class FetchGate:
    """Stateful fetch decision for one resource container."""

    def __init__(self, decide: DecideFunc = decide_navigation) -> None:
        """Initialize the gate with empty history.

        Args:
            decide: Decision function, replaceable for instrumentation.
        """
        self._decide = decide
        self.state = FetchGateState()

    def should_fetch(self, navigation: Navigation, facets: FacetSnapshot | None = None) -> bool:
        """Return whether `navigation` requires a backend request.

        Args:
            navigation: Navigation event of the container.
            facets: Snapshot of pending facet selections.
        """
        self.state, result = memoized_fetch(
            self.state,
            navigation,
            facets if facets is not None else _EMPTY_FACETS,
            self._decide,
        )
        log.debug(
            "Fetch gate key=%s offset=%s fetch=%s",
            navigation.location_key,
            navigation.result_offset,
            result,
        )
        return result

    def __call__(self, navigation: Navigation, facets: FacetSnapshot | None = None) -> bool:
        return self.should_fetch(navigation, facets)
