"""
Shared async HTTP client with automatic retry and backoff.

Two layers of retry:

- The transport retries connection failures (DNS, refused, reset).
- ``get_json`` retries 429/502/503/504 with tenacity (exponential backoff,
  1s, 2s, 4s by default) and maps the final status onto ``errors``.

All datasource clients should go through ``get_json`` instead of calling
``client.get`` directly.

Usage::

    from hotspot_planner.services.http import create_client, get_json

    async with create_client() as client:
        data = await get_json(client, "https://api.example.com/v1/data", params={"q": 1})
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from hotspot_planner import __version__
from hotspot_planner.errors import ApiError, InvalidApiKeyError, RateLimitedError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0  # seconds
DEFAULT_RETRIES = 3
BACKOFF_BASE = 1.0  # 1s, 2s, 4s

#: Statuses worth waiting out.
RETRY_STATUSES = frozenset({429, 502, 503, 504})
AUTH_STATUSES = frozenset({401, 403})

USER_AGENT = f"hotspot-planner/{__version__}"

Sleep = Callable[[float], Awaitable[None]]


def create_client(
    timeout: float = DEFAULT_TIMEOUT,
    retries: int = DEFAULT_RETRIES,
    headers: Mapping[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an ``httpx.AsyncClient`` with connection retries and a default timeout.

    Args:
        timeout: Default timeout applied to every request.
        retries: Connection-level retries for the transport.
        headers: Extra default headers (merged over the User-Agent).
        transport: Override the transport (tests pass ``httpx.MockTransport``).
    """
    merged = {"User-Agent": USER_AGENT, **(headers or {})}
    return httpx.AsyncClient(
        timeout=timeout,
        headers=merged,
        transport=transport or httpx.AsyncHTTPTransport(retries=retries),
        follow_redirects=True,
    )


def _should_retry(resp: httpx.Response) -> bool:
    return resp.status_code in RETRY_STATUSES


def _last_response(state: RetryCallState) -> httpx.Response:
    # Out of attempts: hand the final response to the status mapping
    return state.outcome.result()  # type: ignore[union-attr]


def _log_retry(url: str) -> Callable[[RetryCallState], None]:
    def log(state: RetryCallState) -> None:
        status = state.outcome.result().status_code  # type: ignore[union-attr]
        delay = state.next_action.sleep if state.next_action else 0.0
        logger.warning("HTTP %d from %s, retrying in %.0fs", status, url, delay)

    return log


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    retries: int = DEFAULT_RETRIES,
    sleep: Sleep = asyncio.sleep,
) -> Any:
    """
    GET ``url`` and decode the JSON body.

    Raises:
        InvalidApiKeyError: 401 or 403.
        RateLimitedError: Still 429 after ``retries`` backoff attempts.
        ApiError: Any other failure (status, transport, or undecodable body).
    """
    retrying = AsyncRetrying(
        retry=retry_if_result(_should_retry),
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=BACKOFF_BASE, min=BACKOFF_BASE),
        sleep=sleep,
        before_sleep=_log_retry(url),
        retry_error_callback=_last_response,
    )
    try:
        resp = await retrying(client.get, url, params=params, headers=headers)
    except httpx.HTTPError as exc:
        msg = f"Request to {url} failed: {exc}"
        raise ApiError(msg) from exc

    status = resp.status_code
    if status in AUTH_STATUSES:
        msg = f"Invalid API key for {url} (HTTP {status})"
        raise InvalidApiKeyError(msg, status_code=status)
    if status == 429:
        msg = f"Rate limited by {url} after {retries} retries"
        raise RateLimitedError(msg, status_code=status)
    if resp.is_error:
        msg = f"HTTP {status} from {url}"
        raise ApiError(msg, status_code=status)

    try:
        return resp.json()
    except ValueError as exc:
        msg = f"Malformed JSON from {url}"
        raise ApiError(msg, status_code=status) from exc
