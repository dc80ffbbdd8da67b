"""Shared test fixtures for the Tencent Meeting toolkit.

Provides:
- Settings isolated from the environment and .env files
- FakeApi, an httpx.MockTransport handler that records requests and replays
  queued responses per (method, path)
- HttpTransport wired to FakeApi with retry backoff disabled
- A fresh ClientFactory per test
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from tenacity import wait_none

from src.tencent_meeting.clients.factory import ClientFactory
from src.tencent_meeting.config import Settings
from src.tencent_meeting.http.transport import HttpTransport

API_URL = "https://api.test.local"


class FakeApi:
    """Callable MockTransport handler.

    Responses queued for a route are served in order; the last one repeats.
    An exception instance in the queue is raised instead of answering.
    Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def add(self, method: str, path: str, status: int = 200, json: Any = None, text: str | None = None) -> None:
        self._routes.setdefault((method, path), []).append((status, json, text))

    def add_error(self, method: str, path: str, exc: Exception) -> None:
        self._routes.setdefault((method, path), []).append(exc)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "not found"})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(entry, Exception):
            raise entry
        status, json, text = entry
        if text is not None:
            return httpx.Response(status, text=text)
        if json is None:
            return httpx.Response(status)
        return httpx.Response(status, json=json)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore TENCENT_MEETING_* env vars from the host .env file."""
    return Settings(
        _env_file=None,
        API_URL=API_URL,
        TIMEOUT=30,
        RETRY_TIMES=2,
        AUTH_TOKEN=None,
        PROXY_HOST=None,
        PROXY_PORT=None,
    )


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def transport(settings, fake_api) -> HttpTransport:
    """HttpTransport backed by FakeApi with zero retry wait."""
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(fake_api),
        base_url=settings.API_URL,
    )
    http_transport = HttpTransport(settings, client=client)
    http_transport._wait = wait_none()
    return http_transport


@pytest.fixture
def factory(settings, transport) -> ClientFactory:
    """Fresh ClientFactory for each test."""
    return ClientFactory(settings, transport)
