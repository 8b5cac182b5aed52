"""Tests for navigation fetch gating."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path
from urllib.parse import urlencode

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from InventorySearch.core.models import Navigation
from InventorySearch.core.query import SearchRequest
from InventorySearch.query.fetch_gate import (
    FetchGate,
    FetchGateState,
    decide_navigation,
    evaluate_fetch,
    is_reset,
    memoized_fetch,
)


def _nav(key: str, offset: int = 0, **params: str) -> Navigation:
    return Navigation(location_key=key, search="?" + urlencode(params), result_offset=offset)


class _CountingDecide:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, state, navigation, facets):
        self.calls += 1
        return decide_navigation(state, navigation, facets)


class TestMemo(unittest.TestCase):
    def test_same_key_and_offset_reuses_result(self) -> None:
        decide = _CountingDecide()
        gate = FetchGate(decide=decide)

        first = gate.should_fetch(_nav("k1", qindex="title", query="cat"))
        second = gate.should_fetch(_nav("k1", qindex="title", query="cat"))

        self.assertEqual(first, second)
        self.assertEqual(decide.calls, 1)

    def test_cached_false_is_returned_without_recomputation(self) -> None:
        decide = _CountingDecide()
        gate = FetchGate(decide=decide)
        gate.should_fetch(_nav("k1", qindex="title", query="cat"))

        self.assertFalse(gate.should_fetch(_nav("k2", qindex="subject", query="cat")))
        self.assertFalse(gate.should_fetch(_nav("k2", qindex="subject", query="cat")))
        self.assertEqual(decide.calls, 2)

    def test_offset_change_recomputes(self) -> None:
        decide = _CountingDecide()
        gate = FetchGate(decide=decide)
        gate.should_fetch(_nav("k1", 0, qindex="title", query="cat"))
        self.assertTrue(gate.should_fetch(_nav("k1", 100, qindex="title", query="cat")))
        self.assertEqual(decide.calls, 2)

    def test_memoized_fetch_is_pure(self) -> None:
        state = FetchGateState()
        nav = _nav("k1", qindex="title", query="cat")
        new_state, result = memoized_fetch(state, nav, {})
        self.assertTrue(result)
        self.assertEqual(state, FetchGateState())
        self.assertEqual(new_state.last_navigation, ("k1", 0))
        self.assertEqual(new_state.last_search, ("title", "cat"))


class TestIndexSwitch(unittest.TestCase):
    def _after(self, qindex: str, query: str) -> FetchGateState:
        state, _ = evaluate_fetch(FetchGateState(), SearchRequest(search_index=qindex, query_text=query))
        return state

    def test_reset_fetches(self) -> None:
        state = self._after("A", "cat")
        _, result = evaluate_fetch(state, SearchRequest(sort_field="title"))
        self.assertTrue(result)

    def test_query_change_fetches(self) -> None:
        state = self._after("A", "cat")
        _, result = evaluate_fetch(state, SearchRequest(search_index="B", query_text="dog"))
        self.assertTrue(result)

    def test_index_switch_alone_does_not_fetch(self) -> None:
        state = self._after("A", "cat")
        _, result = evaluate_fetch(state, SearchRequest(search_index="B", query_text="cat"))
        self.assertFalse(result)

    def test_selected_browse_result_fetches(self) -> None:
        state = self._after("A", "cat")
        _, result = evaluate_fetch(
            state, SearchRequest(search_index="B", query_text="cat", selected_browse_result="true")
        )
        self.assertTrue(result)

    def test_same_index_always_fetches(self) -> None:
        state = self._after("A", "cat")
        _, result = evaluate_fetch(state, SearchRequest(search_index="A", query_text="cat", filters_text="x.y"))
        self.assertTrue(result)

    def test_history_is_recorded_even_without_fetch(self) -> None:
        state = self._after("A", "cat")
        state, result = evaluate_fetch(state, SearchRequest(search_index="B", query_text="cat"))
        self.assertFalse(result)
        self.assertEqual(state.last_search, ("B", "cat"))
        _, result = evaluate_fetch(state, SearchRequest(search_index="B", query_text="cat"))
        self.assertTrue(result)

    def test_pending_facets_block_reset(self) -> None:
        state, _ = evaluate_fetch(FetchGateState(), SearchRequest(search_index="A"))
        _, with_facets = evaluate_fetch(state, SearchRequest(), {"language": ("eng",)})
        _, without_facets = evaluate_fetch(state, SearchRequest(), {})
        self.assertFalse(with_facets)
        self.assertTrue(without_facets)


class TestReset(unittest.TestCase):
    def test_default_sort_counts_as_reset(self) -> None:
        self.assertTrue(is_reset(SearchRequest(sort_field="title"), {}))

    def test_other_sort_is_not_reset(self) -> None:
        self.assertFalse(is_reset(SearchRequest(sort_field="-title"), {}))

    def test_browse_point_is_not_reset(self) -> None:
        self.assertFalse(is_reset(SearchRequest(browse_point="A"), {}))

    def test_gate_index_switch_through_urls(self) -> None:
        gate = FetchGate()
        self.assertTrue(gate.should_fetch(_nav("k1", qindex="A", query="cat", sort="title")))
        self.assertFalse(gate.should_fetch(_nav("k2", qindex="B", query="cat"), {}))
        self.assertTrue(gate.should_fetch(_nav("k3", sort="title")))


if __name__ == "__main__":
    unittest.main()
