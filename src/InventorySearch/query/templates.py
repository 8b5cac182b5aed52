"""Query template resolution.

Turns a search index and the raw input of the search form into the CQL
fragment that query composition later fills in and combines with filters.

Rules by mode
- Free text     -> configured template for the index
- Identifier    -> configured template expanded per identifier type (ISBN/ISSN)
- Range browse  -> `field>="v" or field<"v"`, or the value itself when it is
                   already a relational expression (`callNumber < X`)
- Exact lookup  -> `field==/string "v"` (subject, call number; contributor only
                   when the query comes from a selected browse result)
- Raw CQL       -> configured template, run as written
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from InventorySearch.core.errors import UnknownIndexError
from InventorySearch.core.models import IdentifierType, IndexTemplate
from InventorySearch.core.query import (
    ExactLookup,
    FreeText,
    IdentifierLookup,
    QueryIndex,
    RangeBrowse,
    RawQueryLanguage,
    SearchMode,
    classify_index,
    is_field_comparison,
)
from InventorySearch.utils.log import log

IDENTIFIER_TYPE_PLACEHOLDER = "%{identifierTypeId}"


@dataclass(frozen=True, slots=True)
class TemplateResolution:
    """Resolved CQL fragment.

    Attributes:
        fragment: CQL text, possibly still holding `%{query.query}`.
        reset_selected_browse_result: Whether the caller must clear the
            persisted `selectedBrowseResult` flag.
    """

    fragment: str
    reset_selected_browse_result: bool = False


def strip_quotes(value: str) -> str:
    return value.replace('"', "")


def range_clause(value: str, field: str) -> str:
    """Build a two-sided browse clause around `value`.

    Relational input such as `callNumber < A 123` is returned verbatim.
    """
    if is_field_comparison(value):
        return value
    cleaned = strip_quotes(value)
    return f'{field}>="{cleaned}" or {field}<"{cleaned}"'


def contributor_clause(value: str) -> str:
    return f'contributors.name ==/string "{value}"'


def subject_clause(value: str) -> str:
    return f'subjects==/string "{strip_quotes(value)}"'


def call_number_clause(value: str) -> str:
    return f'itemEffectiveShelvingOrder==/string "{value}"'


def get_query_template(search_index: str, indexes: Mapping[str, IndexTemplate]) -> str:
    """Return the configured template for `search_index`.

    Raises:
        UnknownIndexError: If the index is not configured for the segment.
    """
    entry = indexes.get(search_index)
    if entry is None:
        raise UnknownIndexError(f"Unknown search index: {search_index}")
    return entry.query_template


def expand_identifier_template(
    template: str,
    identifier_types: Sequence[IdentifierType],
    family: str,
) -> str:
    """Qualify an identifier template with every matching identifier type.

    `isbn` matches both "ISBN" and "Invalid ISBN"; the resulting clauses are
    OR-ed. Templates without the placeholder, or with no matching identifier
    type, are returned unchanged.
    """
    if IDENTIFIER_TYPE_PLACEHOLDER not in template:
        return template
    type_ids = [t.id for t in identifier_types if family in t.name.casefold()]
    if not type_ids:
        log.warning("No identifier types match %s; template left unqualified", family)
        return template
    clauses = [template.replace(IDENTIFIER_TYPE_PLACEHOLDER, type_id) for type_id in type_ids]
    if len(clauses) == 1:
        return clauses[0]
    return "(" + " or ".join(clauses) + ")"


def resolve_query_template(
    search_index: str,
    query_text: str,
    browse_point: str | None,
    indexes: Mapping[str, IndexTemplate],
    identifier_types: Sequence[IdentifierType] = (),
    *,
    selected_browse_result: bool = False,
) -> TemplateResolution:
    """Resolve the CQL fragment for one search.

    Args:
        search_index: Index/mode name (`qindex`).
        query_text: Raw query text.
        browse_point: Browse anchor, preferred over `query_text` for browsing.
        indexes: Configured index templates of the current segment.
        identifier_types: Identifier type records for ISBN/ISSN lookups.
        selected_browse_result: Whether the query was picked from browse results.

    Returns:
        TemplateResolution with the fragment and the reset signal.

    Raises:
        UnknownIndexError: If `search_index` is not configured.
    """
    template = get_query_template(search_index, indexes)
    mode: SearchMode = classify_index(search_index)
    value = browse_point or query_text

    if isinstance(mode, IdentifierLookup):
        return TemplateResolution(expand_identifier_template(template, identifier_types, mode.family))

    if isinstance(mode, RangeBrowse):
        return TemplateResolution(range_clause(value, mode.field))

    if isinstance(mode, ExactLookup):
        if mode.kind == QueryIndex.SUBJECT:
            return TemplateResolution(subject_clause(query_text))
        if mode.kind == QueryIndex.CALL_NUMBER:
            return TemplateResolution(call_number_clause(query_text))
        if mode.kind == QueryIndex.CONTRIBUTOR and selected_browse_result:
            return TemplateResolution(contributor_clause(query_text), reset_selected_browse_result=True)
        return TemplateResolution(template)

    if isinstance(mode, (RawQueryLanguage, FreeText)):
        return TemplateResolution(template)

    raise TypeError(f"Unhandled search mode: {mode!r}")
