"""Resource manifest settings (paging shape)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from InventorySearch.config.common import expect_int, get_section


@dataclass(frozen=True, slots=True)
class ManifestSettings:
    """Store validated paging settings for record resources."""

    per_request: int = 100
    initial_result_count: int = 100
    preceding_records_count: int = 5


def load_manifest_settings(raw: Mapping[str, Any]) -> ManifestSettings:
    """Load the optional `manifest` section, falling back to defaults."""
    section = get_section(raw, "manifest", required=False)
    defaults = ManifestSettings()
    return ManifestSettings(
        per_request=expect_int(section.get("per_request", defaults.per_request), "manifest.per_request"),
        initial_result_count=expect_int(
            section.get("initial_result_count", defaults.initial_result_count),
            "manifest.initial_result_count",
        ),
        preceding_records_count=expect_int(
            section.get("preceding_records_count", defaults.preceding_records_count),
            "manifest.preceding_records_count",
        ),
    )


def check_manifest_settings(config: ManifestSettings) -> None:
    if config.per_request <= 0:
        raise ValueError("manifest.per_request must be positive")
    if config.initial_result_count <= 0:
        raise ValueError("manifest.initial_result_count must be positive")
    if config.preceding_records_count < 0:
        raise ValueError("manifest.preceding_records_count must not be negative")
