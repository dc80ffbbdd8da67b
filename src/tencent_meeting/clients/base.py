"""Base class for every Tencent Meeting API client.

Handles URL building, default and authentication headers, per-client
request statistics, and conversion of transport failures into toolkit
errors. Resource clients subclass BaseClient and only add validation and
endpoint paths.
"""

from __future__ import annotations

import time
from typing import Any
from urllib.parse import quote, urlencode

import structlog

from src.tencent_meeting.config import Settings
from src.tencent_meeting.exceptions import (
    ApiError,
    AuthenticationError,
    NetworkError,
    TencentMeetingError,
)
from src.tencent_meeting.http.transport import DEFAULT_HEADERS, HttpTransport

logger = structlog.get_logger(__name__)


def _empty_stats() -> dict[str, float]:
    return {
        "total_requests": 0,
        "successful_requests": 0,
        "failed_requests": 0,
        "total_response_time": 0.0,
    }


class BaseClient:
    """Common request plumbing for the API clients.

    Args:
        settings: Toolkit settings; supplies the base URL and defaults.
        transport: Shared HttpTransport that performs the requests.
        timeout: Request timeout override in seconds.
        retry_times: Retry count override for retryable failures.
    """

    def __init__(
        self,
        settings: Settings,
        transport: HttpTransport,
        *,
        timeout: float | None = None,
        retry_times: int | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._base_url = settings.API_URL.rstrip("/")
        self._headers: dict[str, str] = dict(DEFAULT_HEADERS)
        self._authentication: dict[str, str] = {}
        self.timeout = timeout if timeout is not None else settings.TIMEOUT
        self.retry_times = retry_times if retry_times is not None else settings.RETRY_TIMES
        self._stats = _empty_stats()

    # ── Requests ─────────────────────────────────────────────────────────

    async def request(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request to ``path`` and return the normalized response.

        Raises:
            NetworkError: If the transport could not reach the API.
            ApiError: For any other unexpected transport failure.
        """
        url = self._build_url(path)
        start_time = time.perf_counter()
        self._stats["total_requests"] += 1

        try:
            response = await self._transport.request(
                method,
                url,
                data,
                self._request_headers(),
                self.timeout,
                self.retry_times,
            )
        except NetworkError:
            self._stats["failed_requests"] += 1
            logger.error(
                "client.request_failed",
                client=type(self).__name__,
                method=method,
                path=path,
            )
            raise
        except TencentMeetingError:
            self._stats["failed_requests"] += 1
            raise
        except Exception as exc:
            self._stats["failed_requests"] += 1
            logger.error(
                "client.request_failed",
                client=type(self).__name__,
                method=method,
                path=path,
                error=str(exc),
            )
            raise ApiError(f"API request failed: {exc}", status_code=500) from exc

        self._stats["total_response_time"] += (time.perf_counter() - start_time) * 1000
        if response.get("success"):
            self._stats["successful_requests"] += 1
        else:
            self._stats["failed_requests"] += 1
        return response

    async def get(self, path: str) -> dict[str, Any]:
        return await self.request("GET", path)

    async def post(self, path: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("POST", path, data or {})

    async def put(self, path: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("PUT", path, data or {})

    async def patch(self, path: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("PATCH", path, data or {})

    async def delete(self, path: str) -> dict[str, Any]:
        return await self.request("DELETE", path)

    # ── Headers & authentication ─────────────────────────────────────────

    def set_authentication(self, authentication: dict[str, str]) -> None:
        """Set authentication as ``{"type": ..., "token": ...}``."""
        self._authentication = dict(authentication)

    def set_auth_token(self, token: str) -> None:
        self._authentication = {"type": "Bearer", "token": token}

    def clear_authentication(self) -> None:
        self._authentication = {}

    def set_headers(self, headers: dict[str, Any]) -> None:
        for name, value in headers.items():
            if isinstance(value, str):
                self._headers[name] = value

    def add_header(self, name: str, value: str) -> None:
        self._headers[name] = value

    def remove_header(self, name: str) -> None:
        self._headers.pop(name, None)

    def set_base_url(self, base_url: str) -> None:
        self._base_url = base_url.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def _request_headers(self) -> dict[str, str]:
        headers = dict(self._headers)
        token = self._authentication.get("token")
        if token:
            auth_type = self._authentication.get("type", "Bearer")
            headers["Authorization"] = f"{auth_type} {token}"
        return headers

    def _build_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    # ── Stats ────────────────────────────────────────────────────────────

    def get_stats(self) -> dict[str, float]:
        return dict(self._stats)

    def reset_stats(self) -> None:
        self._stats = _empty_stats()

    def reset(self) -> None:
        """Restore headers, authentication, timeouts and stats to their defaults."""
        self._headers = dict(DEFAULT_HEADERS)
        self._authentication = {}
        self.timeout = self._settings.TIMEOUT
        self.retry_times = self._settings.RETRY_TIMES
        self.reset_stats()

    def success_rate(self) -> float:
        """Percentage of requests that returned a 2xx response."""
        total = self._stats["total_requests"]
        if total == 0:
            return 0.0
        return self._stats["successful_requests"] / total * 100

    def average_response_time(self) -> float:
        """Mean response time in milliseconds."""
        total = self._stats["total_requests"]
        if total == 0:
            return 0.0
        return self._stats["total_response_time"] / total

    # ── Helpers for subclasses ───────────────────────────────────────────

    @staticmethod
    def _quote(value: str) -> str:
        return quote(str(value), safe="")

    @staticmethod
    def _with_query(path: str, params: dict[str, Any]) -> str:
        if not params:
            return path
        return f"{path}?{urlencode(params)}"

    @staticmethod
    def _int_filters(filters: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
        """Keep the numeric ``keys`` of ``filters`` and cast them to int."""
        params: dict[str, Any] = {}
        for key in keys:
            value = filters.get(key)
            if value is None or isinstance(value, bool):
                continue
            try:
                params[key] = int(value)
            except (TypeError, ValueError):
                continue
        return params

    def _ensure_success(self, response: dict[str, Any], operation: str) -> dict[str, Any]:
        """Return the response body or raise when the call was unsuccessful.

        Raises:
            AuthenticationError: On 401 responses.
            ApiError: On any other unsuccessful response.
        """
        if response.get("success"):
            data = response.get("data")
            return data if isinstance(data, dict) else {"data": data}

        status_code = response.get("status_code", 0)
        logger.warning(
            "client.operation_failed",
            client=type(self).__name__,
            operation=operation,
            status_code=status_code,
        )
        if status_code == 401:
            raise AuthenticationError(api_response=response)
        raise ApiError(
            f"{operation} failed with status {status_code}",
            status_code=status_code,
            api_response=response,
        )
