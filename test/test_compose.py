"""Tests for generic CQL composition."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from InventorySearch.core.models import FilterDefinition, PersistedQueryState
from InventorySearch.core.query import CQL_FIND_ALL
from InventorySearch.query.compose import (
    FAIL_NEVER,
    FAIL_WITHOUT_QUERY,
    FAIL_WITHOUT_QUERY_OR_FILTERS,
    compose_query,
    filters_to_cql,
    parse_filters,
    sort_clause,
)

FILTERS = (
    FilterDefinition(name="language", cql="languages"),
    FilterDefinition(name="staffSuppress", cql="staffSuppress", values={"true": 'staffSuppress=="true"'}),
)
SORT_MAP = {"title": "title", "contributors": "contributors.name"}
TEMPLATE = 'title all "%{query.query}"'


class TestComposeQuery(unittest.TestCase):
    def test_query_is_substituted_and_sorted(self) -> None:
        state = PersistedQueryState(query="moby dick", sort="title")
        cql = compose_query(CQL_FIND_ALL, TEMPLATE, SORT_MAP, FILTERS, FAIL_NEVER, True, state)
        self.assertEqual(cql, 'title all "moby dick" sortby title/sort.ascending')

    def test_query_is_escaped(self) -> None:
        state = PersistedQueryState(query='say "hi" \\ bye')
        cql = compose_query(CQL_FIND_ALL, TEMPLATE, SORT_MAP, FILTERS, FAIL_NEVER, True, state)
        self.assertEqual(cql, 'title all "say \\"hi\\" \\\\ bye"')

    def test_escape_disabled_for_raw_query(self) -> None:
        state = PersistedQueryState(query='title="a" sortby title')
        cql = compose_query(CQL_FIND_ALL, "%{query.query}", SORT_MAP, FILTERS, FAIL_NEVER, False, state)
        self.assertEqual(cql, 'title="a" sortby title')

    def test_filters_are_combined_with_query(self) -> None:
        state = PersistedQueryState(query="cats", filters="language.eng,language.fre,staffSuppress.true")
        cql = compose_query(CQL_FIND_ALL, TEMPLATE, SORT_MAP, FILTERS, FAIL_NEVER, True, state)
        self.assertEqual(
            cql,
            '(title all "cats") and languages==("eng" or "fre") and staffSuppress=="true"',
        )

    def test_find_all_without_query_and_filters(self) -> None:
        state = PersistedQueryState()
        cql = compose_query(CQL_FIND_ALL, TEMPLATE, SORT_MAP, FILTERS, FAIL_NEVER, True, state)
        self.assertEqual(cql, CQL_FIND_ALL)

    def test_fail_conditions(self) -> None:
        empty = PersistedQueryState()
        filtered = PersistedQueryState(filters="language.eng")
        self.assertIsNone(
            compose_query(CQL_FIND_ALL, TEMPLATE, SORT_MAP, FILTERS, FAIL_WITHOUT_QUERY_OR_FILTERS, True, empty)
        )
        self.assertEqual(
            compose_query(CQL_FIND_ALL, TEMPLATE, SORT_MAP, FILTERS, FAIL_WITHOUT_QUERY_OR_FILTERS, True, filtered),
            'languages==("eng")',
        )
        self.assertIsNone(
            compose_query(CQL_FIND_ALL, TEMPLATE, SORT_MAP, FILTERS, FAIL_WITHOUT_QUERY, True, filtered)
        )


class TestHelpers(unittest.TestCase):
    def test_parse_filters_groups_values(self) -> None:
        self.assertEqual(
            parse_filters("language.eng,resource.text,language.fre,broken"),
            {"language": ["eng", "fre"], "resource": ["text"]},
        )

    def test_unknown_filter_group_is_ignored(self) -> None:
        self.assertEqual(filters_to_cql(FILTERS, "unknown.x"), "")

    def test_sort_clause_directions_and_mapping(self) -> None:
        self.assertEqual(
            sort_clause("-contributors,title", SORT_MAP),
            " sortby contributors.name/sort.descending title/sort.ascending",
        )
        self.assertEqual(sort_clause("", SORT_MAP), "")


if __name__ == "__main__":
    unittest.main()
