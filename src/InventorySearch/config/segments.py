"""Segment index/filter configuration.

Each segment (instances, holdings, items) declares the search indexes it
accepts, how sort keys map to backend fields, and which filter groups exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from InventorySearch.config.common import (
    expect_list,
    expect_mapping,
    expect_str,
    expect_str_map,
    get_required_value,
    get_section,
)
from InventorySearch.core.errors import UnknownSegmentError
from InventorySearch.core.models import FilterDefinition, IndexConfig, IndexTemplate
from InventorySearch.core.query import DEFAULT_INDEX

DEFAULT_SEGMENT = "instances"


@dataclass(frozen=True, slots=True)
class FilterConfigProvider:
    """Lookup of `IndexConfig` by segment name."""

    segments: Mapping[str, IndexConfig]
    default_segment: str = DEFAULT_SEGMENT

    def get_filter_config(self, segment: str | None = None) -> IndexConfig:
        """Return the index configuration for `segment`.

        Args:
            segment: Segment name; `None` selects the default segment.

        Raises:
            UnknownSegmentError: If the segment is not configured.
        """
        name = segment or self.default_segment
        config = self.segments.get(name)
        if config is None:
            raise UnknownSegmentError(f"Unknown segment: {name}")
        return config

    def segment_names(self) -> tuple[str, ...]:
        return tuple(self.segments.keys())


def load_segments(raw: Mapping[str, Any]) -> FilterConfigProvider:
    """Load the `segments` section into a provider.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "segments", required=True)
    segments: dict[str, IndexConfig] = {}
    for name, value in section.items():
        key = f"segments.{name}"
        segments[expect_str(name, "segments keys")] = _parse_segment(expect_mapping(value, key), key)
    default_segment = expect_str(raw.get("default_segment", DEFAULT_SEGMENT), "default_segment")
    return FilterConfigProvider(segments=segments, default_segment=default_segment)


def check_segments(provider: FilterConfigProvider) -> None:
    """Validate segment constraints.

    Raises:
        ValueError: If no segment is configured, the default segment is
            missing, or a segment lacks the default index.
    """
    if not provider.segments:
        raise ValueError("segments must include at least one segment")
    if provider.default_segment not in provider.segments:
        raise ValueError(f"default_segment is not configured: {provider.default_segment}")
    for name, config in provider.segments.items():
        if DEFAULT_INDEX not in config.indexes:
            raise ValueError(f"segments.{name}.indexes must include '{DEFAULT_INDEX}'")


def _parse_segment(section: Mapping[str, Any], config_key: str) -> IndexConfig:
    indexes_raw = expect_list(get_required_value(section, "indexes", f"{config_key}.indexes"), f"{config_key}.indexes")
    indexes: dict[str, IndexTemplate] = {}
    for idx, item in enumerate(indexes_raw):
        item_key = f"{config_key}.indexes[{idx}]"
        entry = expect_mapping(item, item_key)
        value = expect_str(get_required_value(entry, "value", f"{item_key}.value"), f"{item_key}.value").strip()
        if not value:
            raise ValueError(f"{item_key}.value must not be empty")
        if value in indexes:
            raise ValueError(f"{config_key}.indexes has duplicate index: {value}")
        template = expect_str(
            get_required_value(entry, "query_template", f"{item_key}.query_template"),
            f"{item_key}.query_template",
        )
        label = entry.get("label")
        indexes[value] = IndexTemplate(
            value=value,
            query_template=template,
            label=expect_str(label, f"{item_key}.label") if label is not None else None,
        )

    sort_map = expect_str_map(section.get("sort_map", {}), f"{config_key}.sort_map")

    filters: list[FilterDefinition] = []
    for idx, item in enumerate(expect_list(section.get("filters", []), f"{config_key}.filters")):
        item_key = f"{config_key}.filters[{idx}]"
        entry = expect_mapping(item, item_key)
        filters.append(
            FilterDefinition(
                name=expect_str(get_required_value(entry, "name", f"{item_key}.name"), f"{item_key}.name"),
                cql=expect_str(get_required_value(entry, "cql", f"{item_key}.cql"), f"{item_key}.cql"),
                values=expect_str_map(entry.get("values", {}), f"{item_key}.values"),
                operator=expect_str(entry.get("operator", "=="), f"{item_key}.operator"),
            )
        )

    return IndexConfig(indexes=indexes, sort_map=sort_map, filters=tuple(filters))
