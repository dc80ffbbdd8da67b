"""Client factory: builds, caches and tracks the toolkit's API clients.

The ClientFactory is the single entry point host applications use to obtain
API clients. It supports:
- Lazy construction of one client per ClientKind, cached while caching is on
- Per-kind convenience accessors typed to the concrete client class
- Runtime reconfiguration with strict option validation
- Batch creation that records per-kind failures instead of raising
- Creation statistics (creations, cache hits, configurations, resets)

The factory itself performs no I/O; clients only reach the network when one
of their request methods is awaited.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable

import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.clients.meeting import MeetingClient
from src.tencent_meeting.clients.recording import RecordingClient
from src.tencent_meeting.clients.room import RoomClient
from src.tencent_meeting.clients.user import UserClient
from src.tencent_meeting.clients.webhook import WebhookClient
from src.tencent_meeting.config import Settings
from src.tencent_meeting.exceptions import ConfigurationError, UnknownClientKindError
from src.tencent_meeting.http.transport import HttpTransport
from src.tencent_meeting.sync.service import SyncService

logger = structlog.get_logger(__name__)


class ClientKind(str, Enum):
    """The fixed set of clients the factory can build."""

    MEETING = "meeting"
    USER = "user"
    ROOM = "room"
    RECORDING = "recording"
    WEBHOOK = "webhook"
    SYNC = "sync"


class FactoryConfiguration(BaseModel):
    """Options accepted by ClientFactory.configure().

    ``timeout`` and ``retry_attempts`` are forwarded to every client built
    after the change. The remaining flags are carried for host applications.
    """

    model_config = ConfigDict(extra="forbid")

    cache_enabled: bool = True
    cache_ttl: int = Field(default=3600, ge=0)
    retry_attempts: int = Field(default=3, ge=0)
    timeout: float = Field(default=30, gt=0)
    debug_mode: bool = False
    log_level: str = "info"
    auto_refresh: bool = False


_VALUE_ERRORS: dict[str, Callable[[], ConfigurationError]] = {
    "cache_ttl": ConfigurationError.invalid_cache_ttl,
    "retry_attempts": ConfigurationError.invalid_retry_attempts,
    "timeout": ConfigurationError.invalid_timeout,
}


def _empty_stats() -> dict[str, int]:
    return {
        "total_creations": 0,
        "cache_hits": 0,
        "configurations": 0,
        "resets": 0,
    }


Client = BaseClient | SyncService


class ClientFactory:
    """Builds and caches API clients keyed by ClientKind.

    Every builder passes the factory's settings, the shared transport and
    the current timeout/retry options to the client it constructs. The sync
    service is composed from the factory's own meeting, user, room and
    recording clients.

    Thread safety note: The factory is meant to be owned by a single request
    or task. If concurrent mutation is needed, external synchronization
    should be added.

    Args:
        settings: Toolkit settings handed to every client.
        transport: Shared HTTP transport handed to every client.
    """

    def __init__(self, settings: Settings, transport: HttpTransport) -> None:
        self._settings = settings
        self._transport = transport
        self._config = FactoryConfiguration()
        self._clients: dict[ClientKind, Client] = {}
        self._stats = _empty_stats()
        self._builders: dict[ClientKind, Callable[[], Client]] = {
            ClientKind.MEETING: self._build_meeting_client,
            ClientKind.USER: self._build_user_client,
            ClientKind.ROOM: self._build_room_client,
            ClientKind.RECORDING: self._build_recording_client,
            ClientKind.WEBHOOK: self._build_webhook_client,
            ClientKind.SYNC: self._build_sync_service,
        }
        assert set(self._builders) == set(ClientKind), "every ClientKind needs a builder"

    # ── Creation ─────────────────────────────────────────────────────────

    def create(self, kind: ClientKind | str) -> Client:
        """Return the client for ``kind``, building it on a cache miss.

        Args:
            kind: A ClientKind or its string value (e.g. ``"meeting"``).

        Returns:
            The cached client when caching is enabled and one exists,
            otherwise a freshly built client.

        Raises:
            UnknownClientKindError: If ``kind`` is not a known client kind.
        """
        client_kind = self._resolve_kind(kind)

        if self._config.cache_enabled and client_kind in self._clients:
            self._stats["cache_hits"] += 1
            logger.debug("client_factory.cache_hit", kind=client_kind.value)
            return self._clients[client_kind]

        client = self._builders[client_kind]()
        if self._config.cache_enabled:
            self._clients[client_kind] = client
        self._stats["total_creations"] += 1
        logger.info(
            "client_factory.client_created",
            kind=client_kind.value,
            client=type(client).__name__,
            cached=self._config.cache_enabled,
        )
        return client

    def get(self, kind: ClientKind | str) -> Client:
        """Alias of create()."""
        return self.create(kind)

    def create_meeting_client(self) -> MeetingClient:
        return self.create(ClientKind.MEETING)  # type: ignore[return-value]

    def create_user_client(self) -> UserClient:
        return self.create(ClientKind.USER)  # type: ignore[return-value]

    def create_room_client(self) -> RoomClient:
        return self.create(ClientKind.ROOM)  # type: ignore[return-value]

    def create_recording_client(self) -> RecordingClient:
        return self.create(ClientKind.RECORDING)  # type: ignore[return-value]

    def create_webhook_client(self) -> WebhookClient:
        return self.create(ClientKind.WEBHOOK)  # type: ignore[return-value]

    def create_sync_service(self) -> SyncService:
        return self.create(ClientKind.SYNC)  # type: ignore[return-value]

    get_meeting_client = create_meeting_client
    get_user_client = create_user_client
    get_room_client = create_room_client
    get_recording_client = create_recording_client
    get_webhook_client = create_webhook_client
    get_sync_service = create_sync_service

    def batch_create(self, kinds: Iterable[ClientKind | str]) -> dict[str, Any]:
        """Create several clients, capturing failures per kind.

        Duplicates and unknown kinds are allowed. Each entry maps the kind's
        label to the client, or to ``{"error": message, "exception": exc}``
        when creation failed. Never raises.
        """
        results: dict[str, Any] = {}
        for kind in kinds:
            label = kind.value if isinstance(kind, ClientKind) else str(kind)
            try:
                results[label] = self.create(kind)
            except Exception as exc:
                logger.warning("client_factory.batch_create_failed", kind=label, error=str(exc))
                results[label] = {"error": str(exc), "exception": exc}
        return results

    # ── Cache inspection ─────────────────────────────────────────────────

    def is_created(self, kind: ClientKind | str) -> bool:
        """Return True if a client for ``kind`` is cached. Unknown kinds are False."""
        try:
            client_kind = self._resolve_kind(kind)
        except UnknownClientKindError:
            return False
        return client_kind in self._clients

    def created_kinds(self) -> list[ClientKind]:
        return list(self._clients)

    # ── Configuration ────────────────────────────────────────────────────

    @property
    def configuration(self) -> FactoryConfiguration:
        return self._config.model_copy()

    def configure(self, options: dict[str, Any]) -> None:
        """Merge ``options`` into the configuration and drop cached clients.

        Args:
            options: Subset of the FactoryConfiguration fields.

        Raises:
            ConfigurationError: If a key is not recognized or a value is
                invalid. Configuration, cache and stats are left untouched.
        """
        try:
            new_config = self._validate_options(options)
        except ConfigurationError as exc:
            logger.error("client_factory.configure_failed", options=list(options), error=str(exc))
            raise

        self._config = new_config
        self._stats["configurations"] += 1
        self._clients.clear()
        logger.info("client_factory.configured", options=list(options))

    def reset(self) -> None:
        """Drop cached clients and restore the default configuration.

        Clients already handed out stay usable. Cumulative counters are kept.
        """
        self._clients.clear()
        self._config = FactoryConfiguration()
        self._stats["resets"] += 1
        logger.info("client_factory.reset", resets=self._stats["resets"])

    # ── Stats ────────────────────────────────────────────────────────────

    def creation_stats(self) -> dict[str, Any]:
        """Return counters, cache hit rate, configuration and cached kinds.

        ``cache_hit_rate`` is hits / (hits + creations), 0.0 before any call.
        """
        hits = self._stats["cache_hits"]
        total = hits + self._stats["total_creations"]
        return {
            "stats": dict(self._stats),
            "cache_hit_rate": hits / total if total else 0.0,
            "configuration": self._config.model_dump(),
            "cached_clients": [kind.value for kind in self._clients],
        }

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _resolve_kind(kind: ClientKind | str) -> ClientKind:
        try:
            return ClientKind(kind)
        except ValueError:
            raise UnknownClientKindError(kind) from None

    def _validate_options(self, options: dict[str, Any]) -> FactoryConfiguration:
        for key in options:
            if key not in FactoryConfiguration.model_fields:
                raise ConfigurationError.invalid_config_key(key)

        merged = {**self._config.model_dump(), **options}
        try:
            return FactoryConfiguration.model_validate(merged)
        except pydantic.ValidationError as exc:
            field = str(exc.errors()[0]["loc"][0])
            if field in _VALUE_ERRORS:
                raise _VALUE_ERRORS[field]() from exc
            raise ConfigurationError(f"Invalid value for configuration key: {field}") from exc

    def _client_options(self) -> dict[str, Any]:
        return {
            "timeout": self._config.timeout,
            "retry_times": self._config.retry_attempts,
        }

    def _build_meeting_client(self) -> MeetingClient:
        return MeetingClient(self._settings, self._transport, **self._client_options())

    def _build_user_client(self) -> UserClient:
        return UserClient(self._settings, self._transport, **self._client_options())

    def _build_room_client(self) -> RoomClient:
        return RoomClient(self._settings, self._transport, **self._client_options())

    def _build_recording_client(self) -> RecordingClient:
        return RecordingClient(self._settings, self._transport, **self._client_options())

    def _build_webhook_client(self) -> WebhookClient:
        return WebhookClient(self._settings, self._transport, **self._client_options())

    def _build_sync_service(self) -> SyncService:
        return SyncService(
            self.create_meeting_client(),
            self.create_user_client(),
            self.create_room_client(),
            self.create_recording_client(),
        )
