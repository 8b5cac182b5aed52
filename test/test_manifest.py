"""Tests for the search container resource manifest."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from InventorySearch.config import DEFAULT_CONFIG_PATH, load_config
from InventorySearch.core.models import PersistedQueryState
from InventorySearch.manifest import (
    LocalResource,
    ResourceSpec,
    build_manifest,
    get_param_value,
    highlight_match,
)


class TestManifest(unittest.TestCase):
    def setUp(self) -> None:
        self.config = load_config(DEFAULT_CONFIG_PATH)
        self.manifest = build_manifest(self.config.segments, settings=self.config.manifest)

    def test_local_resources(self) -> None:
        query = self.manifest["query"]
        self.assertIsInstance(query, LocalResource)
        self.assertEqual(query.initial_value, PersistedQueryState())
        self.assertEqual(self.manifest["resultCount"].initial_value, 100)
        self.assertEqual(self.manifest["resultOffset"].initial_value, 0)

    def test_records_path_depends_on_browse_mode(self) -> None:
        records = self.manifest["records"]
        self.assertEqual(records.resolve_path({"qindex": "title"}), "search/instances")
        self.assertEqual(records.resolve_path({}), "search/instances")
        self.assertIsNone(records.resolve_path({"qindex": "callNumbers"}))

    def test_browse_paths(self) -> None:
        browse = self.manifest["browseModeRecords"]
        self.assertEqual(browse.resolve_path({"qindex": "browseSubjects"}), "browse/subjects/instances")
        self.assertEqual(browse.resolve_path({"qindex": "callNumbers"}), "browse/call-numbers/instances")
        self.assertEqual(browse.resolve_path({"qindex": "contributors"}), "browse/contributors/instances")
        self.assertIsNone(browse.resolve_path({"qindex": "title"}))

    def test_paging_shape(self) -> None:
        records = self.manifest["records"]
        self.assertEqual(records.per_request, 100)
        self.assertEqual(records.result_offset, "%{resultOffset}")
        self.assertTrue(records.accumulate)
        self.assertEqual(records.result_density, "sparse")
        self.assertFalse(records.throw_errors)

    def test_each_record_resource_has_its_own_gate(self) -> None:
        self.assertIsNot(self.manifest["records"].fetch, self.manifest["browseModeRecords"].fetch)

    def test_export_ids_resources(self) -> None:
        ids = self.manifest["recordsToExportIDs"]
        self.assertIsInstance(ids, ResourceSpec)
        self.assertFalse(ids.fetch)
        self.assertEqual(ids.resolve_path({}), "search/instances/ids")
        self.assertEqual(ids.resolve_records_key({}), "ids")
        self.assertEqual(self.manifest["holdingsToExportIDs"].resolve_path({}), "search/holdings/ids")

    def test_records_key(self) -> None:
        records = self.manifest["records"]
        self.assertEqual(records.resolve_records_key({"qindex": "title", "query": "x"}), "instances")
        self.assertEqual(records.resolve_records_key({"qindex": "callNumbers"}), "items")
        self.assertEqual(records.resolve_records_key({"query": "callNumber < A"}), "items")

    def test_query_param_builds_cql(self) -> None:
        build = self.manifest["records"].params["query"]
        state, cql = build({"qindex": "callNumbers", "query": "A 123"}, PersistedQueryState())
        self.assertEqual(cql, 'callNumber>="A 123" or callNumber<"A 123"')
        self.assertEqual(state.sort, "")


class TestParamFunctions(unittest.TestCase):
    def test_highlight_match(self) -> None:
        self.assertTrue(highlight_match({"query": "moby dick"}))
        self.assertFalse(highlight_match({"query": ""}))
        self.assertFalse(highlight_match({}))
        self.assertFalse(highlight_match({"query": "subject > history"}))

    def test_preceding_records_count(self) -> None:
        self.assertEqual(get_param_value({"qindex": "contributors"}, 5), 5)
        self.assertIsNone(get_param_value({"qindex": "title", "query": "x"}, 5))


if __name__ == "__main__":
    unittest.main()
