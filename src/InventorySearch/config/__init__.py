from __future__ import annotations

"""Public configuration API for InventorySearch."""

from InventorySearch.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config,
    load_config_with_defaults,
    parse_config_dict,
)
from InventorySearch.config.manifest import ManifestSettings
from InventorySearch.config.okapi import OkapiConfig
from InventorySearch.config.runtime import RuntimeConfig
from InventorySearch.config.segments import FilterConfigProvider

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AppConfig",
    "FilterConfigProvider",
    "ManifestSettings",
    "OkapiConfig",
    "RuntimeConfig",
    "load_config",
    "load_config_with_defaults",
    "parse_config_dict",
]
