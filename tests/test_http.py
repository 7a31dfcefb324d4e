"""Tests for the shared async HTTP client with retry logic."""

from __future__ import annotations

import logging

import httpx
import pytest

from hotspot_planner.errors import ApiError, InvalidApiKeyError, RateLimitedError
from hotspot_planner.services.http import (
    DEFAULT_TIMEOUT,
    RETRY_STATUSES,
    USER_AGENT,
    create_client,
    get_json,
)

URL = "https://api.example.com/data"


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _client(
    *responses: httpx.Response | Exception,
) -> tuple[httpx.AsyncClient, list[httpx.Request]]:
    """Client that answers each request with the next queued response."""
    queue = list(responses)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return create_client(transport=httpx.MockTransport(handler)), seen


class TestCreateClient:
    """Verify client factory defaults."""

    def test_returns_async_client(self) -> None:
        assert isinstance(create_client(), httpx.AsyncClient)

    def test_default_timeout(self) -> None:
        assert create_client().timeout.read == DEFAULT_TIMEOUT

    def test_user_agent(self) -> None:
        assert create_client().headers["User-Agent"] == USER_AGENT

    def test_extra_headers_merged(self) -> None:
        client = create_client(headers={"X-Test": "1"})
        assert client.headers["X-Test"] == "1"
        assert client.headers["User-Agent"] == USER_AGENT

    def test_retry_statuses(self) -> None:
        assert {429, 502, 503, 504} <= RETRY_STATUSES
        assert 500 not in RETRY_STATUSES


class TestGetJson:
    """Verify status mapping and backoff."""

    async def test_returns_decoded_body(self) -> None:
        client, seen = _client(httpx.Response(200, json={"ok": True}))
        async with client:
            data = await get_json(client, URL, params={"q": "x"}, headers={"X-Key": "k"})
        assert data == {"ok": True}
        assert seen[0].url.params["q"] == "x"
        assert seen[0].headers["X-Key"] == "k"

    async def test_backoff_then_success(self) -> None:
        sleep = SleepRecorder()
        client, seen = _client(
            httpx.Response(503),
            httpx.Response(429),
            httpx.Response(200, json=[1, 2]),
        )
        async with client:
            data = await get_json(client, URL, sleep=sleep)
        assert data == [1, 2]
        assert len(seen) == 3
        assert sleep.delays == [1.0, 2.0]

    async def test_rate_limited_after_retries(self) -> None:
        sleep = SleepRecorder()
        client, seen = _client(*(httpx.Response(429) for _ in range(4)))
        async with client:
            with pytest.raises(RateLimitedError) as exc_info:
                await get_json(client, URL, retries=3, sleep=sleep)
        assert exc_info.value.status_code == 429
        assert len(seen) == 4
        assert sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failure_not_retried(self, status: int) -> None:
        sleep = SleepRecorder()
        client, seen = _client(httpx.Response(status))
        async with client:
            with pytest.raises(InvalidApiKeyError):
                await get_json(client, URL, sleep=sleep)
        assert len(seen) == 1
        assert sleep.delays == []

    async def test_server_error(self) -> None:
        sleep = SleepRecorder()
        client, seen = _client(httpx.Response(500))
        async with client:
            with pytest.raises(ApiError) as exc_info:
                await get_json(client, URL, sleep=sleep)
        assert len(seen) == 1
        assert sleep.delays == []
        assert exc_info.value.status_code == 500
        assert not isinstance(exc_info.value, RateLimitedError)

    async def test_gateway_error_after_retries(self) -> None:
        client, _ = _client(*(httpx.Response(502) for _ in range(2)))
        async with client:
            with pytest.raises(ApiError) as exc_info:
                await get_json(client, URL, retries=1, sleep=SleepRecorder())
        assert exc_info.value.status_code == 502

    async def test_retries_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        client, _ = _client(httpx.Response(504), httpx.Response(200, json={}))
        caplog.set_level(logging.WARNING, logger="hotspot_planner.services.http")
        async with client:
            await get_json(client, URL, sleep=SleepRecorder())
        assert "HTTP 504 from https://api.example.com/data, retrying in 1s" in caplog.text

    async def test_malformed_json(self) -> None:
        client, _ = _client(httpx.Response(200, text="<html>oops</html>"))
        async with client:
            with pytest.raises(ApiError, match="Malformed JSON"):
                await get_json(client, URL)

    async def test_transport_error(self) -> None:
        client, _ = _client(httpx.ConnectError("refused"))
        async with client:
            with pytest.raises(ApiError, match="failed") as exc_info:
                await get_json(client, URL)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
