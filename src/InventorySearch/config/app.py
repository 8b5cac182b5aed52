from __future__ import annotations

"""Application config orchestration and YAML loading entrypoints."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from InventorySearch.config.manifest import ManifestSettings, check_manifest_settings, load_manifest_settings
from InventorySearch.config.okapi import OkapiConfig, check_okapi, load_okapi
from InventorySearch.config.runtime import RuntimeConfig, check_runtime, load_runtime
from InventorySearch.config.segments import FilterConfigProvider, check_segments, load_segments

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "default.yml"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    okapi: OkapiConfig
    manifest: ManifestSettings
    segments: FilterConfigProvider


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse a normalized mapping into AppConfig."""
    runtime = load_runtime(raw)
    okapi = load_okapi(raw)
    manifest = load_manifest_settings(raw)
    segments = load_segments(raw)

    check_runtime(runtime)
    check_okapi(okapi)
    check_manifest_settings(manifest)
    check_segments(segments)

    return AppConfig(runtime=runtime, okapi=okapi, manifest=manifest, segments=segments)


def load_config(path: Path) -> AppConfig:
    """Load a YAML config file without default merge."""
    return load_config_with_defaults(path, default_path=path)


def load_config_with_defaults(config_path: Path, default_path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load config by merging defaults and an optional override file."""
    base = parse_yaml(default_path.read_text(encoding="utf-8"))
    if config_path == default_path:
        return parse_config_dict(base)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override))


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings; lists are replaced, not merged."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
