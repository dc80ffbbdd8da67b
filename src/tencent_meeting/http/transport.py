"""Async HTTP transport shared by every Tencent Meeting API client.

Wraps a single httpx.AsyncClient and normalizes every response into a plain
dict so the API clients never touch httpx objects directly. Retry logic uses
tenacity (exponential backoff 1-10s) on 5xx responses, connection errors and
timeouts.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.tencent_meeting.config import Settings
from src.tencent_meeting.exceptions import NetworkError

logger = structlog.get_logger(__name__)

USER_AGENT = "tencent-meeting-python/1.0"

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": USER_AGENT,
}

RETRYABLE_STATUS_CODES = frozenset({500, 502, 503, 504})


class _RetryableStatusError(Exception):
    """Internal signal raised on a 5xx response so tenacity retries it."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "http.retrying",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


class HttpTransport:
    """Async transport for the Tencent Meeting REST API.

    Args:
        settings: Toolkit settings (base URL, timeout, retry count, auth token,
            proxy and SSL verification).
        client: Optional pre-built httpx.AsyncClient. When omitted, one is
            created from ``settings`` and owned by the transport.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client or self._build_client()
        self._wait = wait_exponential(multiplier=1, min=1, max=10)

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.API_URL,
            timeout=self._settings.TIMEOUT,
            headers=DEFAULT_HEADERS,
            verify=self._settings.VERIFY_SSL,
            proxy=self._settings.proxy_url(),
        )

    @property
    def retry_times(self) -> int:
        return self._settings.RETRY_TIMES

    def _with_authentication(self, headers: dict[str, str]) -> dict[str, str]:
        """Add the configured bearer token unless the caller set Authorization."""
        token = self._settings.AUTH_TOKEN
        if token and "Authorization" not in headers:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        retry_times: int | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the normalized response dict.

        Non-2xx responses are returned with ``success`` False rather than
        raised. 5xx responses are retried first.

        Args:
            method: HTTP method.
            url: Absolute URL or path relative to the API base URL.
            data: JSON body.
            headers: Extra request headers.
            timeout: Per-request timeout in seconds.
            retry_times: Extra attempts on retryable failures. Defaults to
                the configured RETRY_TIMES.

        Returns:
            Dict with success, status_code, headers, data and content_type.

        Raises:
            NetworkError: If the API could not be reached after all retries.
        """
        kwargs: dict[str, Any] = {}
        merged_headers = self._with_authentication(dict(headers or {}))
        if merged_headers:
            kwargs["headers"] = merged_headers
        if data is not None:
            kwargs["json"] = data
        if timeout is not None:
            kwargs["timeout"] = timeout

        attempts = (self.retry_times if retry_times is None else retry_times) + 1
        start_time = time.perf_counter()

        logger.info("http.request", method=method, url=url)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=self._wait,
                retry=retry_if_exception_type(
                    (_RetryableStatusError, httpx.ConnectError, httpx.TimeoutException)
                ),
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    response = await self._client.request(method, url, **kwargs)
                    if response.status_code in RETRYABLE_STATUS_CODES:
                        raise _RetryableStatusError(response)
        except _RetryableStatusError as exc:
            response = exc.response
        except httpx.TimeoutException as exc:
            self._log_failure(method, url, start_time, exc)
            raise NetworkError(f"Request timed out: {exc}", status_code=408) from exc
        except httpx.HTTPError as exc:
            self._log_failure(method, url, start_time, exc)
            raise NetworkError(f"Network connection failed: {exc}") from exc

        result = self._to_dict(response)
        log_method = logger.info if result["success"] else logger.warning
        log_method(
            "http.response",
            method=method,
            url=url,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    @staticmethod
    def _log_failure(method: str, url: str, start_time: float, exc: Exception) -> None:
        logger.error(
            "http.request_failed",
            method=method,
            url=url,
            error=str(exc),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

    @staticmethod
    def _to_dict(response: httpx.Response) -> dict[str, Any]:
        data: Any = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = response.text

        return {
            "success": 200 <= response.status_code < 300,
            "status_code": response.status_code,
            "headers": dict(response.headers),
            "data": data,
            "content_type": response.headers.get("content-type"),
        }

    async def get(self, url: str, headers: dict[str, str] | None = None, timeout: float | None = None) -> dict[str, Any]:
        return await self.request("GET", url, None, headers, timeout)

    async def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return await self.request("POST", url, data or {}, headers, timeout)

    async def put(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return await self.request("PUT", url, data or {}, headers, timeout)

    async def patch(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return await self.request("PATCH", url, data or {}, headers, timeout)

    async def delete(self, url: str, headers: dict[str, str] | None = None, timeout: float | None = None) -> dict[str, Any]:
        return await self.request("DELETE", url, None, headers, timeout)

    async def request_multiple(self, requests: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
        """Send several requests sequentially and key the responses like the input.

        Each request dict may hold ``method`` (default GET), ``url``, ``data``,
        ``headers`` and ``timeout``.
        """
        responses: dict[str, dict[str, Any]] = {}
        for key, entry in requests.items():
            responses[key] = await self.request(
                entry.get("method", "GET"),
                entry.get("url", ""),
                entry.get("data"),
                entry.get("headers"),
                entry.get("timeout"),
            )
        return responses

    async def check_availability(self) -> bool:
        """Return True when GET /health answers 200 within five seconds."""
        try:
            response = await self.get("/health", timeout=5)
        except NetworkError as exc:
            logger.error("http.availability_check_failed", error=str(exc))
            return False
        return response["success"] and response["status_code"] == 200

    def client_info(self) -> dict[str, Any]:
        return {
            "version": "1.0.0",
            "base_uri": self._settings.API_URL,
            "timeout": self._settings.TIMEOUT,
            "retry_times": self._settings.RETRY_TIMES,
        }

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
