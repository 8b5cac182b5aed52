"""Tests for navigation handling in a search session."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlencode

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from InventorySearch.config import DEFAULT_CONFIG_PATH, load_config
from InventorySearch.core.models import Navigation
from InventorySearch.services import SearchSession, as_facet_snapshot, create_session


class _StubClient:
    def __init__(self, *, body: Mapping[str, Any] | None = None, should_fail: bool = False) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._body = body or {"instances": [{"id": "i1"}], "totalRecords": 1}
        self._should_fail = should_fail

    def get(self, path: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((path, dict(params)))
        if self._should_fail:
            raise requests.ConnectionError("backend down")
        return self._body


def _nav(key: str, offset: int = 0, **params: str) -> Navigation:
    return Navigation(location_key=key, search=urlencode(params), result_offset=offset)


class TestSearchSession(unittest.TestCase):
    def setUp(self) -> None:
        self.config = load_config(DEFAULT_CONFIG_PATH)

    def test_search_fetches_records(self) -> None:
        client = _StubClient()
        session = create_session(self.config, client=client)

        outcomes = session.navigate(_nav("k1", qindex="title", query="whale"))

        self.assertEqual(len(outcomes), 1)
        self.assertTrue(outcomes[0].ok)
        self.assertEqual(outcomes[0].records, [{"id": "i1"}])
        self.assertEqual(outcomes[0].total_records, 1)
        path, params = client.calls[0]
        self.assertEqual(path, "search/instances")
        self.assertEqual(params["query"], 'title all "whale" sortby title/sort.ascending')
        self.assertEqual(params["limit"], 100)
        self.assertEqual(params["offset"], 0)
        self.assertTrue(params["highlightMatch"])
        self.assertNotIn("precedingRecordsCount", params)

    def test_browse_uses_browse_path(self) -> None:
        client = _StubClient(body={"items": [{"subject": "History"}], "totalRecords": 1})
        session = create_session(self.config, client=client)

        outcomes = session.navigate(_nav("k1", qindex="browseSubjects", query="History"))

        self.assertEqual([o.resource for o in outcomes], ["browseModeRecords"])
        path, params = client.calls[0]
        self.assertEqual(path, "browse/subjects/instances")
        self.assertEqual(params["query"], 'subject>="History" or subject<"History"')
        self.assertEqual(params["precedingRecordsCount"], 5)
        self.assertEqual(outcomes[0].records, [{"subject": "History"}])

    def test_repeated_navigation_reuses_gate_decision(self) -> None:
        client = _StubClient()
        session = create_session(self.config, client=client)
        nav = _nav("k1", qindex="title", query="whale")

        session.navigate(nav)
        session.navigate(nav)

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(client.calls[0], client.calls[1])

    def test_index_switch_without_submit_skips_fetch(self) -> None:
        client = _StubClient()
        session = create_session(self.config, client=client)

        session.navigate(_nav("k1", qindex="title", query="whale"))
        outcomes = session.navigate(_nav("k2", qindex="subject", query="whale"))

        self.assertEqual(outcomes, [])
        self.assertEqual(len(client.calls), 1)

    def test_empty_form_makes_no_request(self) -> None:
        client = _StubClient()
        session = create_session(self.config, client=client)

        self.assertEqual(session.navigate(_nav("k1")), [])
        self.assertEqual(client.calls, [])

    def test_backend_errors_are_reported_not_raised(self) -> None:
        session = create_session(self.config, client=_StubClient(should_fail=True))

        outcomes = session.navigate(_nav("k1", qindex="title", query="whale"))

        self.assertEqual(len(outcomes), 1)
        self.assertFalse(outcomes[0].ok)
        self.assertIn("backend down", outcomes[0].error)

    def test_contributor_browse_selection_is_reset_in_state(self) -> None:
        client = _StubClient()
        session = create_session(self.config, client=client)

        session.navigate(_nav("k1", qindex="contributor", query="Twain", selectedBrowseResult="true"))

        self.assertEqual(client.calls[0][1]["query"], 'contributors.name ==/string "Twain" sortby title/sort.ascending')
        self.assertFalse(session.state.selected_browse_result)
        self.assertEqual(session.state.qindex, "")

    def test_next_search_drops_previous_filters_and_sort(self) -> None:
        client = _StubClient()
        session = create_session(self.config, client=client)

        session.navigate(_nav("k1", qindex="title", query="whale", filters="language.eng", sort="-title"))
        session.navigate(_nav("k2", qindex="title", query="moby"))

        self.assertEqual(
            client.calls[0][1]["query"],
            '(title all "whale") and languages==("eng") sortby title/sort.descending',
        )
        self.assertEqual(client.calls[1][1]["query"], 'title all "moby" sortby title/sort.ascending')
        self.assertEqual(session.state.filters, "")
        self.assertEqual(session.state.sort, "title")

    def test_manifest_without_local_query_is_rejected(self) -> None:
        with self.assertRaisesRegex(TypeError, "LocalResource"):
            SearchSession({"query": {"query": ""}}, _StubClient())

    def test_fetch_ids(self) -> None:
        client = _StubClient(body={"ids": [{"id": "a"}], "totalRecords": 1})
        session = create_session(self.config, client=client)

        outcome = session.fetch_ids("recordsToExportIDs", {"qindex": "title", "query": "whale"})

        self.assertIsNotNone(outcome)
        self.assertEqual(outcome.records, [{"id": "a"}])
        path, params = client.calls[0]
        self.assertEqual(path, "search/instances/ids")
        self.assertNotIn("limit", params)


class TestFacetSnapshot(unittest.TestCase):
    def test_empty_selections_are_dropped(self) -> None:
        self.assertEqual(as_facet_snapshot({"language": [], "format": ["text"]}), {"format": ("text",)})
        self.assertEqual(as_facet_snapshot(None), {})


if __name__ == "__main__":
    unittest.main()
