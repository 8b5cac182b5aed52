"""Generic CQL composition.

Fills a resolved template with the persisted query text, appends the selected
filters, and adds the `sortby` clause.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from InventorySearch.core.models import FilterDefinition, PersistedQueryState

QUERY_PLACEHOLDER = "%{query.query}"

FAIL_NEVER = 0
FAIL_WITHOUT_QUERY = 1
FAIL_WITHOUT_QUERY_OR_FILTERS = 2


def escape_cql_value(value: str) -> str:
    """Escape backslashes and double quotes for use inside a quoted CQL term."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def parse_filters(filters_text: str | None) -> dict[str, list[str]]:
    """Split `group.value,group.value2` into values per group, in order."""
    groups: dict[str, list[str]] = {}
    if not filters_text:
        return groups
    for item in filters_text.split(","):
        item = item.strip()
        if not item or "." not in item:
            continue
        name, value = item.split(".", 1)
        groups.setdefault(name, []).append(value)
    return groups


def filters_to_cql(filter_defs: Sequence[FilterDefinition], filters_text: str | None) -> str:
    """Compile selected filters into CQL.

    Values of one group are OR-ed, groups are AND-ed. Groups without a
    definition are ignored.
    """
    selected = parse_filters(filters_text)
    if not selected:
        return ""

    by_name = {f.name: f for f in filter_defs}
    parts: list[str] = []
    for name, values in selected.items():
        definition = by_name.get(name)
        if definition is None:
            continue
        custom = [definition.values[v] for v in values if v in definition.values]
        plain = [v for v in values if v not in definition.values]
        clauses = list(custom)
        if plain:
            joined = " or ".join(f'"{escape_cql_value(v)}"' for v in plain)
            clauses.append(f"{definition.cql}{definition.operator}({joined})")
        if len(clauses) == 1:
            parts.append(clauses[0])
        else:
            parts.append("(" + " or ".join(clauses) + ")")
    return " and ".join(parts)


def sort_clause(sort: str | None, sort_map: Mapping[str, str]) -> str:
    """Compile `title,-contributors` into a CQL `sortby` clause."""
    if not sort:
        return ""
    indexes: list[str] = []
    for key in sort.split(","):
        key = key.strip()
        if not key:
            continue
        descending = key.startswith("-")
        name = key[1:] if descending else key
        field = sort_map.get(name, name)
        indexes.append(f"{field}/sort.{'descending' if descending else 'ascending'}")
    if not indexes:
        return ""
    return " sortby " + " ".join(indexes)


def compose_query(
    find_all: str,
    template: str,
    sort_map: Mapping[str, str],
    filter_defs: Sequence[FilterDefinition],
    fail_on_condition: int,
    escape: bool,
    state: PersistedQueryState,
) -> str | None:
    """Compose the final CQL for a request.

    Args:
        find_all: CQL used when neither query nor filters are present.
        template: Resolved template, may contain `%{query.query}`.
        sort_map: Sort key -> backend sort field.
        filter_defs: Filter definitions of the segment.
        fail_on_condition: 0 never fails, 1 fails without query, 2 fails
            without both query and filters.
        escape: Whether to escape the query text; off for raw CQL.
        state: Normalized query state.

    Returns:
        CQL string, or None when no request should be made.
    """
    query = state.query or ""
    filters = state.filters or ""

    if fail_on_condition == FAIL_WITHOUT_QUERY and not query:
        return None
    if fail_on_condition == FAIL_WITHOUT_QUERY_OR_FILTERS and not query and not filters:
        return None

    cql = ""
    if query:
        value = escape_cql_value(query) if escape else query
        cql = template.replace(QUERY_PLACEHOLDER, value)

    filter_cql = filters_to_cql(filter_defs, filters)
    if filter_cql:
        cql = f"({cql}) and {filter_cql}" if cql else filter_cql

    if not cql:
        cql = find_all

    return cql + sort_clause(state.sort, sort_map)
