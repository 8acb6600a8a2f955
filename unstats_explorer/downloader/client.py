"""UN SDG API client with rate limiting and retry.

Design notes
------------
* API docs: https://unstats.un.org/sdgapi/swagger/
* One `SDGClient` owns its config, the timestamp of its last successful
  request and its metadata cache. Requests are strictly sequential; sharing
  one client between threads needs external locking around both.
* Every failed attempt (transport error *or* non-200 status) is handled the
  same way: warn, back off ``2 ** attempt`` seconds, retry. There is no
  special casing for 404 vs 429 vs 503.
* `sleep` / `clock` are injectable so tests never wait on the wall clock.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from ..config import SDGConfig
from .cache import MetadataCache

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Accept-Encoding": "gzip",
}


class RequestFailure(Exception):
    """Raised once every attempt for *endpoint* has failed."""

    def __init__(self, endpoint: str, last_error: object):
        self.endpoint = endpoint
        self.last_error = last_error
        super().__init__(f"Request to {endpoint} failed: {last_error}")


class SDGClient:
    """Main client for the UN SDG API.

    Parameters
    ----------
    config
        Endpoint / timeout / retry settings. Defaults to ``SDGConfig()``.
    session
        Optional pre-configured ``requests.Session``.
    sleep, clock
        Blocking delay and wall-clock functions (``time.sleep`` /
        ``time.time`` by default).
    show_progress
        Whether paginated fetches draw a progress bar.
    """

    def __init__(
        self,
        config: Optional[SDGConfig] = None,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        show_progress: bool = True,
    ):
        self.config = config or SDGConfig()
        self.last_request_time = 0.0
        self.cache = MetadataCache()
        self.headers: Dict[str, str] = dict(DEFAULT_HEADERS)
        self.show_progress = show_progress
        self._session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.execute("GET", endpoint, params=params)

    def post(self, endpoint: str, body: Mapping[str, Any]) -> Any:
        return self.execute("POST", endpoint, body=body)

    def execute(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Issue *method* against *endpoint* and return the decoded JSON body.

        Raises
        ------
        RequestFailure
            After ``config.max_retries`` failed attempts.
        """
        method = method.upper()
        if method not in ("GET", "POST"):
            raise ValueError(f"Unsupported HTTP method: {method}")

        url = self.url_for(endpoint)
        max_retries = self.config.max_retries
        last_error: object = None

        self._wait_for_rate_limit()
        for attempt in range(1, max_retries + 1):
            try:
                resp = self._send(method, url, params, body)
                if resp.status_code == 200:
                    payload = resp.json()
                    self.last_request_time = self._clock()
                    return payload
                last_error = f"HTTP {resp.status_code}"
            except requests.RequestException as exc:
                # JSON decode errors from requests also land here
                last_error = exc

            if attempt < max_retries:
                delay = 2**attempt
                logger.warning(
                    "Attempt %d/%d for %s failed (%s); retrying in %ds",
                    attempt,
                    max_retries,
                    endpoint,
                    last_error,
                    delay,
                )
                self._sleep(delay)

        logger.error(
            "Failed after %d attempts for %s: %s", max_retries, endpoint, last_error
        )
        raise RequestFailure(endpoint, last_error)

    def url_for(self, endpoint: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "SDGClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _wait_for_rate_limit(self) -> None:
        elapsed_ms = (self._clock() - self.last_request_time) * 1000
        if elapsed_ms < self.config.rate_limit_ms:
            remaining = (self.config.rate_limit_ms - elapsed_ms) / 1000
            logger.debug("Rate limit: sleeping %.3fs", remaining)
            self._sleep(remaining)

    def _send(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]],
        body: Optional[Mapping[str, Any]],
    ) -> requests.Response:
        if method == "GET":
            return self._session.get(
                url,
                params=dict(params or {}),
                headers=self.headers,
                timeout=self.config.timeout,
            )
        return self._session.post(
            url,
            json=dict(body or {}),
            headers=self.headers,
            timeout=self.config.timeout,
        )
