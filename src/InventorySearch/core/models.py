from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import parse_qs


@dataclass(slots=True)
class PersistedQueryState:
    """Query parameters kept across navigations of one resource container.

    Mirrors the URL-synced query record handed to query composition. The
    request normalizer works on a copy and returns the updated record.

    Attributes:
        query: Persisted query text.
        browse_point: Anchor value used by browse paging.
        filters: Raw filters string.
        sort: Sort directive; never `None` after normalization.
        selected_browse_result: Whether the query came from a browse result row.
        qindex: Transient index selector, always cleared after normalization.
    """

    query: str = ""
    browse_point: str = ""
    filters: str = ""
    sort: Optional[str] = ""
    selected_browse_result: bool = False
    qindex: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "browsePoint": self.browse_point,
            "filters": self.filters,
            "sort": self.sort,
            "selectedBrowseResult": self.selected_browse_result,
            "qindex": self.qindex,
        }


@dataclass(frozen=True, slots=True)
class IndexTemplate:
    """Search index definition.

    Attributes:
        value: Index name as used in `qindex`.
        query_template: CQL template; `%{query.query}` is replaced by the
            query text, `%{identifierTypeId}` by identifier type ids.
        label: Optional display label.
    """

    value: str
    query_template: str
    label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FilterDefinition:
    """Filter group definition.

    Attributes:
        name: Group name used as prefix in the filters string.
        cql: CQL field the selected values are compared against.
        values: Optional mapping of value -> full CQL clause.
        operator: Relation used for plain values.
    """

    name: str
    cql: str
    values: Mapping[str, str] = field(default_factory=dict)
    operator: str = "=="

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))


@dataclass(frozen=True, slots=True)
class IndexConfig:
    """Indexes, sort mapping and filters available for one segment."""

    indexes: Mapping[str, IndexTemplate]
    sort_map: Mapping[str, str]
    filters: Sequence[FilterDefinition] = ()


@dataclass(frozen=True, slots=True)
class IdentifierType:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class Navigation:
    """One navigation event as seen by a resource container.

    Attributes:
        location_key: Opaque per-navigation identity.
        search: Raw URL query string (with or without leading `?`).
        result_offset: Current pagination offset.
    """

    location_key: str
    search: str = ""
    result_offset: int = 0

    def params(self) -> dict[str, str]:
        """Return URL parameters, first value wins."""
        parsed = parse_qs(self.search.lstrip("?"), keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items() if values}
