"""
app/connectors/base.py

Shared HTTP mechanics for outbound data connectors.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import requests

from app.config import ExternalHTTPSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data after retries.
    """


def _status_of(exc: requests.HTTPError) -> int | None:
    return exc.response.status_code if exc.response is not None else None


class BaseConnector:
    """
    GET-only HTTP client with bounded exponential backoff.

    Timeouts, connection errors and the statuses in
    ``RETRYABLE_STATUS_CODES`` are retried; any other HTTP error fails
    on the first attempt.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._settings = http_settings
        self._sleep = sleep

    def _backoff(self, attempt: int) -> float:
        return self._settings.backoff_initial_seconds * (self._settings.backoff_multiplier**attempt)

    def _get_bytes(self, url: str, *, accept: str = "*/*") -> bytes:
        """
        Fetch ``url`` and return the raw body.

        XML payloads declare their own encoding, so they are handed to the
        parser undecoded.
        """

        attempts = self._settings.max_retries + 1
        last_error: Exception | None = None
        for attempt in range(attempts):
            try:
                response = self._session.request(
                    method="GET",
                    url=url,
                    headers={"Accept": accept},
                    timeout=self._settings.timeout_seconds,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(f"Retryable HTTP status code: {response.status_code}", response=response)
                response.raise_for_status()
                return response.content
            except requests.HTTPError as exc:
                status_code = _status_of(exc)
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error("Connector request rejected source=%s status=%s url=%s", self.source, status_code, url)
                    raise ConnectorRequestError(f"{self.source}: request failed with status {status_code}.") from exc
                last_error = exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt + 1 < attempts:
                wait_seconds = self._backoff(attempt)
                logger.warning(
                    "Connector request retry source=%s attempt=%d/%d wait_seconds=%.2f error=%s",
                    self.source,
                    attempt + 1,
                    attempts,
                    wait_seconds,
                    last_error,
                )
                self._sleep(wait_seconds)

        logger.error("Connector request exhausted retries source=%s url=%s error=%s", self.source, url, last_error)
        raise ConnectorRequestError(f"{self.source}: request failed after retries.") from last_error
