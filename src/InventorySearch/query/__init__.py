"""CQL query construction and fetch gating."""

from __future__ import annotations

from InventorySearch.query.compose import compose_query
from InventorySearch.query.fetch_gate import FetchGate, FetchGateState, evaluate_fetch, memoized_fetch
from InventorySearch.query.normalize import NormalizedRequest, build_query, normalize_request
from InventorySearch.query.templates import TemplateResolution, resolve_query_template

__all__ = [
    "FetchGate",
    "FetchGateState",
    "NormalizedRequest",
    "TemplateResolution",
    "build_query",
    "compose_query",
    "evaluate_fetch",
    "memoized_fetch",
    "normalize_request",
    "resolve_query_template",
]
