"""
HTTP transport for the store API.

Every endpoint is a JSON POST answered by an envelope carrying ``code`` and
``msg``; a non-zero code is a server-side rejection. Response bodies are
parsed with arbitrary-precision numbers so records decode without loss.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from .config import ClientConfig
from .errors import DecodingError, ServerError, TransportError
from .records import dump_wire, parse_wire

logger = logging.getLogger(__name__)

SDK_VERSION = "vectordoc-0.1.0"

# Retry backoff
RETRY_BACKOFF_BASE = 1.0  # seconds
DEFAULT_RETRY_AFTER = 5.0
MAX_RETRY_AFTER = 60.0


def retry_after_seconds(value: str | None) -> float:
    """
    Delay requested by a Retry-After header, capped at MAX_RETRY_AFTER.

    Accepts delta-seconds or an HTTP date; anything else gives the default.
    """
    if not value:
        return DEFAULT_RETRY_AFTER
    try:
        delay = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return DEFAULT_RETRY_AFTER
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        delay = (when - datetime.now(timezone.utc)).total_seconds()
    if math.isnan(delay):
        return DEFAULT_RETRY_AFTER
    return min(max(delay, 0.0), MAX_RETRY_AFTER)


class HttpClient:
    """Sends request envelopes to the store over HTTP."""

    def __init__(self, config: ClientConfig):
        config.validate()
        self._config = config
        self._url = config.url.rstrip("/")
        self._debug = config.debug

        headers: dict[str, str] = {
            "Authorization": f"Bearer account={config.username}&api_key={config.key}",
            "Content-Type": "application/json",
            "Sdk-Version": SDK_VERSION,
        }
        self._client = httpx.Client(
            base_url=self._url,
            headers=headers,
            timeout=config.timeout,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def debug(self, enabled: bool) -> None:
        """Log request and response bodies at DEBUG level."""
        self._debug = enabled

    def request(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST ``payload`` to ``path`` and return the decoded response envelope.

        Retries up to ``max_retries`` times with exponential backoff on
        transient errors (5xx, timeouts, network and protocol errors) and honours
        Retry-After on 429.

        Raises:
            EncodingError: If the payload cannot be serialized
            ServerError: If the store answers with a non-zero code
            TransportError: On HTTP or network failure
        """
        body = dump_wire(payload)
        if self._debug:
            logger.debug("REQUEST POST %s %s", path, body)

        attempts = self._config.max_retries
        last_error: Exception | None = None
        for attempt in range(attempts):
            try:
                resp = self._client.post(path, content=body.encode("utf-8"))
                if resp.status_code == 429:
                    retry_after = retry_after_seconds(resp.headers.get("Retry-After"))
                    logger.info("Rate limited, retrying after %.1fs", retry_after)
                    last_error = TransportError(f"rate limited on {path}")
                    time.sleep(retry_after)
                    continue
                resp.raise_for_status()
                return self._handle_response(path, resp)
            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    raise TransportError(
                        f"response code is {e.response.status_code}, {e.response.text}"
                    ) from e
                last_error = e
            except httpx.TransportError as e:
                # timeouts, connection and protocol failures
                last_error = e
            except httpx.HTTPError as e:
                raise TransportError(f"Request to {path} failed: {e}") from e

            if attempt < attempts - 1:
                delay = RETRY_BACKOFF_BASE * (2 ** attempt)
                logger.info(
                    "Request to %s failed (attempt %d), retrying in %.1fs: %s",
                    path, attempt + 1, delay, last_error,
                )
                time.sleep(delay)

        raise TransportError(
            f"Request to {path} failed after {attempts} attempts: {last_error}"
        ) from last_error

    def _handle_response(self, path: str, resp: httpx.Response) -> dict[str, Any]:
        if self._debug:
            logger.debug("RESPONSE %s %d %s", path, resp.status_code, resp.text)
        try:
            data = parse_wire(resp.content)
        except DecodingError as e:
            raise TransportError(f"invalid response content: {resp.text}") from e
        if not isinstance(data, dict):
            raise TransportError(f"invalid response content: {resp.text}")
        code = int(data.get("code") or 0)
        if code != 0:
            raise ServerError(code, str(data.get("msg", "")))
        return data

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
