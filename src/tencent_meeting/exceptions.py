"""Exception hierarchy for the Tencent Meeting toolkit.

Every error raised by the toolkit derives from TencentMeetingError so host
applications can catch the whole family with one clause. Errors that carry
an API payload expose it via ``api_response``.
"""

from __future__ import annotations

from typing import Any


class TencentMeetingError(Exception):
    """Base error carrying the (possibly empty) API response payload.

    Attributes:
        api_response: Normalized response dict, or empty when not applicable.
    """

    def __init__(self, message: str, api_response: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.api_response: dict[str, Any] = api_response or {}


class ConfigurationError(TencentMeetingError):
    """Raised when factory or sync options fail validation."""

    @classmethod
    def invalid_config_key(cls, key: str) -> ConfigurationError:
        return cls(f"Invalid configuration key: {key}")

    @classmethod
    def invalid_cache_ttl(cls) -> ConfigurationError:
        return cls("cache_ttl must be a non-negative number")

    @classmethod
    def invalid_retry_attempts(cls) -> ConfigurationError:
        return cls("retry_attempts must be a non-negative number")

    @classmethod
    def invalid_timeout(cls) -> ConfigurationError:
        return cls("timeout must be a positive number")


class UnknownClientKindError(ConfigurationError):
    """Raised when a client kind outside the fixed kind set is requested."""

    def __init__(self, kind: Any) -> None:
        super().__init__(f"Unknown client kind: {kind!r}")
        self.kind = kind


class ApiError(TencentMeetingError):
    """Raised when an API call fails or returns an unsuccessful response."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        api_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, api_response)
        self.status_code = status_code


class ValidationError(ApiError):
    """Raised when request input is rejected before it is sent."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class AuthenticationError(ApiError):
    """Raised when the API rejects the configured credentials."""

    def __init__(self, message: str = "Authentication failed", api_response: dict[str, Any] | None = None) -> None:
        super().__init__(message, status_code=401, api_response=api_response)


class NetworkError(TencentMeetingError):
    """Raised when the transport cannot reach the API (timeouts, refused connections)."""

    def __init__(self, message: str, status_code: int = 503) -> None:
        super().__init__(message)
        self.status_code = status_code
