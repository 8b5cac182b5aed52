"""Okapi gateway client.

Issues GET requests against the backend gateway with tenant/token headers and
retry/backoff on transient failures.
"""

from __future__ import annotations

import random
import time
from typing import Any, Mapping, Optional

import requests

from InventorySearch.utils.log import log

DEFAULT_TIMEOUT = 30.0
MAX_ATTEMPTS = 4
BASE_PAUSE = 0.5
MAX_SLEEP = 8.0
TOO_MANY_REQUESTS_BASE_PAUSE = 2.0
TOO_MANY_REQUESTS_MAX_SLEEP = 30.0

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class OkapiClient:
    """Low-level HTTP client for the Okapi gateway.

    Responsible only for making requests and returning decoded JSON. Query
    building and fetch decisions happen before a request gets here.
    """

    def __init__(
        self,
        base_url: str,
        *,
        tenant: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client with a reusable HTTP session.

        Args:
            base_url: Gateway base URL.
            tenant: Tenant id.
            token: Optional access token.
            timeout: Default request timeout in seconds.
            session: Optional pre-built session.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "X-Okapi-Tenant": tenant,
            "Accept": "application/json",
            "User-Agent": "inventory-search/0.1",
        }
        if token:
            self._headers["X-Okapi-Token"] = token

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> OkapiClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def get(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch `path` and return the JSON body.

        Args:
            path: Path relative to the gateway, e.g. `search/instances`.
            params: Query parameters; `None` values are dropped.

        Returns:
            Decoded JSON object.

        Raises:
            requests.RequestException: Last request error after retries.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        clean = {key: _param_str(value) for key, value in params.items() if value is not None}
        log.debug("Okapi GET %s params=%s", url, clean)
        resp = self._get_with_retry(url, params=clean)
        resp.raise_for_status()
        log.debug("Okapi response ok: status=%s bytes=%s", resp.status_code, len(resp.content))
        return resp.json()

    def _get_with_retry(self, url: str, *, params: dict[str, str]) -> requests.Response:
        """Issue GET with retry/backoff on timeouts, connection errors and retryable statuses."""
        last_err: Exception | None = None
        last_status_code: int | None = None

        for attempt in range(1, MAX_ATTEMPTS + 1):
            last_status_code = None
            try:
                resp = self._session.get(url, params=params, headers=self._headers, timeout=self.timeout)
                if resp.status_code in RETRYABLE_STATUS:
                    raise requests.exceptions.HTTPError(f"HTTP {resp.status_code}", response=resp)
                return resp
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                last_err = e
            except requests.exceptions.HTTPError as e:
                last_err = e
                status = getattr(e.response, "status_code", None)
                last_status_code = status if isinstance(status, int) else None

            if attempt < MAX_ATTEMPTS:
                log.debug("Okapi retrying after attempt %d (error=%s)", attempt, last_err)
                self._sleep_backoff(attempt, status_code=last_status_code)

        assert last_err is not None
        raise last_err

    @staticmethod
    def _sleep_backoff(attempt: int, *, status_code: int | None = None) -> None:
        if status_code == 429:
            time.sleep(min(TOO_MANY_REQUESTS_BASE_PAUSE * (2 ** (attempt - 1)), TOO_MANY_REQUESTS_MAX_SLEEP))
            return
        time.sleep(min(BASE_PAUSE * (2 ** (attempt - 1)) + random.uniform(0, 0.25), MAX_SLEEP))


def _param_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
