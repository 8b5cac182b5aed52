from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional, Union

CQL_FIND_ALL = "cql.allRecords=1"
FIND_ALL_SENTINEL = "undefined"
DEFAULT_SORT = "title"
DEFAULT_INDEX = "all"


class BrowseOption:
    """Browse variants, keyed by their `qindex` value."""

    CALL_NUMBERS = "callNumbers"
    SUBJECTS = "browseSubjects"
    CONTRIBUTORS = "contributors"


class QueryIndex:
    """Search indexes that need special query construction."""

    CALL_NUMBER = "callNumber"
    SUBJECT = "subject"
    CONTRIBUTOR = "contributor"
    QUERY_SEARCH = "querySearch"


BROWSE_OPTIONS: frozenset[str] = frozenset(
    (BrowseOption.CALL_NUMBERS, BrowseOption.SUBJECTS, BrowseOption.CONTRIBUTORS)
)

# Browse option -> (field compared in the range clause, backend browse path).
BROWSE_MODE_MAP: Mapping[str, tuple[str, str]] = {
    BrowseOption.CALL_NUMBERS: ("callNumber", "browse/call-numbers/instances"),
    BrowseOption.SUBJECTS: ("subject", "browse/subjects/instances"),
    BrowseOption.CONTRIBUTORS: ("name", "browse/contributors/instances"),
}

# A value that is already a relational expression against a browsable field.
FIELD_COMPARISON_RE = re.compile(
    r"^((callNumber|subject|name|itemEffectiveShelvingOrder) [<|>])",
    re.IGNORECASE,
)

_IDENTIFIER_RE = re.compile(r"isbn|issn")


def is_field_comparison(value: str | None) -> bool:
    """Return True if `value` starts with `<field> <` or `<field> >`."""
    return bool(value) and FIELD_COMPARISON_RE.search(value) is not None


def is_browse_mode(search_index: str | None) -> bool:
    return search_index in BROWSE_OPTIONS


@dataclass(frozen=True, slots=True)
class FreeText:
    index: str


@dataclass(frozen=True, slots=True)
class RangeBrowse:
    """Browse anchored at a point, compared on `field`."""

    kind: str
    field: str


@dataclass(frozen=True, slots=True)
class ExactLookup:
    kind: str


@dataclass(frozen=True, slots=True)
class IdentifierLookup:
    index: str
    family: str


@dataclass(frozen=True, slots=True)
class RawQueryLanguage:
    pass


SearchMode = Union[FreeText, RangeBrowse, ExactLookup, IdentifierLookup, RawQueryLanguage]


def classify_index(search_index: str) -> SearchMode:
    """Map a `qindex` value onto the search mode that builds its query.

    Args:
        search_index: Index name from the URL (e.g. `callNumbers`, `isbn`).

    Returns:
        One of the `SearchMode` variants.
    """
    if search_index in BROWSE_MODE_MAP:
        field, _ = BROWSE_MODE_MAP[search_index]
        return RangeBrowse(kind=search_index, field=field)
    if search_index == QueryIndex.QUERY_SEARCH:
        return RawQueryLanguage()
    if search_index in (QueryIndex.SUBJECT, QueryIndex.CALL_NUMBER, QueryIndex.CONTRIBUTOR):
        return ExactLookup(kind=search_index)
    match = _IDENTIFIER_RE.search(search_index)
    if match:
        return IdentifierLookup(index=search_index, family=match.group(0))
    return FreeText(index=search_index)


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Search form state read from the URL for one render.

    Attributes:
        search_index: `qindex` value, `None` when absent.
        query_text: `query` value, `None` when absent.
        browse_point: Anchor for browse paging.
        filters_text: Raw `filters` value (`group.value,group.value`).
        sort_field: Raw `sort` value.
        selected_browse_result: Raw `selectedBrowseResult` string.
    """

    search_index: Optional[str] = None
    query_text: Optional[str] = None
    browse_point: Optional[str] = None
    filters_text: Optional[str] = None
    sort_field: Optional[str] = None
    selected_browse_result: Optional[str] = None

    @classmethod
    def from_params(cls, params: Mapping[str, object]) -> SearchRequest:
        """Build a request from URL query parameters.

        Empty strings are kept as-is; only missing keys become `None`.
        """

        def _get(key: str) -> Optional[str]:
            value = params.get(key)
            if value is None:
                return None
            if isinstance(value, (list, tuple)):
                return str(value[0]) if value else None
            return str(value)

        return cls(
            search_index=_get("qindex"),
            query_text=_get("query"),
            browse_point=_get("browsePoint"),
            filters_text=_get("filters"),
            sort_field=_get("sort"),
            selected_browse_result=_get("selectedBrowseResult"),
        )

    @property
    def is_selected_browse_result(self) -> bool:
        return self.selected_browse_result == "true"
