"""Backend gateway configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from InventorySearch.config.common import (
    expect_float,
    expect_str,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class OkapiConfig:
    """Store validated gateway connection settings.

    Attributes:
        url: Gateway base URL.
        tenant: Tenant id sent as `X-Okapi-Tenant`.
        token_env: Environment variable holding the access token.
        timeout: Request timeout in seconds.
    """

    url: str
    tenant: str
    token_env: str
    timeout: float


def load_okapi(raw: Mapping[str, Any]) -> OkapiConfig:
    """Load the `okapi` section.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "okapi", required=True)
    return OkapiConfig(
        url=expect_str(get_required_value(section, "url", "okapi.url"), "okapi.url").rstrip("/"),
        tenant=expect_str(get_required_value(section, "tenant", "okapi.tenant"), "okapi.tenant"),
        token_env=expect_str(section.get("token_env", "OKAPI_TOKEN"), "okapi.token_env"),
        timeout=expect_float(section.get("timeout", 30), "okapi.timeout"),
    )


def check_okapi(config: OkapiConfig) -> None:
    if not config.url.startswith(("http://", "https://")):
        raise ValueError("okapi.url must start with http:// or https://")
    if not config.tenant.strip():
        raise ValueError("okapi.tenant must not be empty")
    if config.timeout <= 0:
        raise ValueError("okapi.timeout must be positive")
