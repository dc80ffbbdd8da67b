"""Data synchronization service.

Pulls meetings, users, rooms and recordings from the platform through the
API clients and tracks sync state, progress and statistics. Sync failures
are caught and reported as result dicts so a scheduler loop can keep
running.

State machine:
    idle ──► syncing ──► completed | completed_with_errors | failed
                │  ▲
                ▼  │
               paused
    syncing/paused ──► cancelled
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import structlog

from src.tencent_meeting.exceptions import TencentMeetingError
from src.tencent_meeting.sync.statistics import SyncStatisticsCalculator
from src.tencent_meeting.sync.validator import SyncConfigurationValidator

if TYPE_CHECKING:
    from src.tencent_meeting.clients.meeting import MeetingClient
    from src.tencent_meeting.clients.recording import RecordingClient
    from src.tencent_meeting.clients.room import RoomClient
    from src.tencent_meeting.clients.user import UserClient

logger = structlog.get_logger(__name__)

IDLE = "idle"
SYNCING = "syncing"
PAUSED = "paused"
CANCELLED = "cancelled"
COMPLETED = "completed"
COMPLETED_WITH_ERRORS = "completed_with_errors"
FAILED = "failed"

STARTABLE_STATES = frozenset({IDLE, COMPLETED, COMPLETED_WITH_ERRORS, FAILED, CANCELLED})

SyncResult = dict[str, Any]


def _default_configuration() -> dict[str, Any]:
    return {
        "auto_sync": False,
        "sync_interval": 3600,
        "sync_types": ["users", "rooms", "meetings", "recordings"],
        "batch_size": 100,
        "retry_attempts": 3,
        "timeout": 300,
        "parallel_sync": False,
    }


def _empty_stats() -> dict[str, Any]:
    return {
        "total_syncs": 0,
        "successful_syncs": 0,
        "failed_syncs": 0,
        "last_sync_duration": 0.0,
        "total_sync_duration": 0.0,
        "items_synced": 0,
        "errors_encountered": 0,
    }


class SyncService:
    """Synchronizes platform data through the meeting, user, room and recording clients.

    Args:
        meeting_client: Client used to list meetings.
        user_client: Client used to list users.
        room_client: Client used to list rooms.
        recording_client: Client used to search recordings.
        validator: Configuration validator; a default one is built if omitted.
        calculator: Statistics calculator; a default one is built if omitted.
    """

    def __init__(
        self,
        meeting_client: MeetingClient,
        user_client: UserClient,
        room_client: RoomClient,
        recording_client: RecordingClient,
        *,
        validator: SyncConfigurationValidator | None = None,
        calculator: SyncStatisticsCalculator | None = None,
    ) -> None:
        self.meeting_client = meeting_client
        self.user_client = user_client
        self.room_client = room_client
        self.recording_client = recording_client
        self._validator = validator or SyncConfigurationValidator()
        self._calculator = calculator or SyncStatisticsCalculator()

        self._status = IDLE
        self._progress = 0
        self._current_task: str | None = None
        self._paused = False
        self._cancelled = False
        self._started_at: float | None = None
        self._last_sync_time: float | None = None
        self._next_sync_time: float | None = None
        self._configuration = _default_configuration()
        self._stats = _empty_stats()
        # Set while the sync may proceed; cleared by pause_sync().
        self._unpaused = asyncio.Event()
        self._unpaused.set()

        self._tasks: dict[str, Callable[[], Awaitable[SyncResult]]] = {
            "users": self._sync_users_data,
            "rooms": self._sync_rooms_data,
            "meetings": self._sync_meetings_data,
            "recordings": self._sync_recordings_data,
        }

    # ── Sync operations ──────────────────────────────────────────────────

    async def sync_meetings(self) -> SyncResult:
        return await self._run("meetings", self._sync_meetings_data)

    async def sync_users(self) -> SyncResult:
        return await self._run("users", self._sync_users_data)

    async def sync_rooms(self) -> SyncResult:
        return await self._run("rooms", self._sync_rooms_data)

    async def sync_recordings(self) -> SyncResult:
        return await self._run("recordings", self._sync_recordings_data)

    async def sync_all(self) -> SyncResult:
        """Run every configured sync type in order.

        Waits between tasks while paused and stops early once cancelled.
        A failing task is recorded as an error and the remaining tasks run.
        """
        return await self._run("all", self._sync_all_data)

    async def _sync_all_data(self) -> SyncResult:
        items_synced = 0
        errors: list[Any] = []
        task_names = [name for name in self._configuration["sync_types"] if name in self._tasks]

        for index, name in enumerate(task_names):
            await self._unpaused.wait()
            if self._cancelled:
                break
            self._current_task = name
            try:
                result = await self._tasks[name]()
            except Exception as exc:
                logger.error("sync.task_failed", task=name, error=str(exc))
                errors.append({"task": name, "error": str(exc)})
                continue
            items_synced += result["items_synced"]
            errors.extend(result["errors"])
            self._update_progress(index + 1, len(task_names))

        return {"items_synced": items_synced, "errors": errors}

    async def _run(self, task: str, body: Callable[[], Awaitable[SyncResult]]) -> SyncResult:
        if not self.can_start_sync():
            # A sync is already running; leave its state alone.
            logger.warning("sync.rejected", task=task, status=self._status)
            return {
                "success": False,
                "error": f"Cannot start sync while status is {self._status}",
                "operation": f"sync_{task}",
                "status": self._status,
            }
        try:
            self._start(task)
            start = time.monotonic()
            result = await body()
            duration = time.monotonic() - start
            self._complete(duration, result["items_synced"], result["errors"])
            return {
                "success": True,
                "items_synced": result["items_synced"],
                "errors": result["errors"],
                "duration": duration,
                "status": self._status,
            }
        except Exception as exc:
            return self._fail(exc, f"sync_{task}")

    # ── Per-type bodies ──────────────────────────────────────────────────

    async def _sync_meetings_data(self) -> SyncResult:
        remote = await self.meeting_client.list_meetings()
        return self._process_items(remote.get("meetings"), "meeting_id", "meeting")

    async def _sync_users_data(self) -> SyncResult:
        remote = await self.user_client.list_users()
        return self._process_items(remote.get("users"), "user_id", "user")

    async def _sync_rooms_data(self) -> SyncResult:
        remote = await self.room_client.list_rooms()
        return self._process_items(remote.get("rooms"), "room_id", "room")

    async def _sync_recordings_data(self) -> SyncResult:
        try:
            remote = await self.recording_client.search_recordings({})
        except TencentMeetingError as exc:
            logger.error("sync.recordings_list_failed", error=str(exc))
            return {"items_synced": 0, "errors": [f"Failed to list recordings: {exc}"]}
        return self._process_items(remote.get("recordings"), "recording_id", "recording")

    def _process_items(self, items: Any, id_field: str, item_type: str) -> SyncResult:
        """Count the dict items of a listing, logging each by its id."""
        if not isinstance(items, list):
            items = []
        synced = 0
        for item in items:
            if not isinstance(item, dict):
                continue
            synced += 1
            logger.debug("sync.item_synced", item_type=item_type, item_id=item.get(id_field, "unknown"))
            self._update_progress(synced, len(items))
        return {"items_synced": synced, "errors": []}

    # ── Control ──────────────────────────────────────────────────────────

    def pause_sync(self) -> dict[str, Any]:
        if self._status != SYNCING:
            return self._control_result(False, "No sync in progress")
        self._paused = True
        self._status = PAUSED
        self._unpaused.clear()
        logger.info("sync.paused", task=self._current_task)
        return self._control_result(True, "Sync paused")

    def resume_sync(self) -> dict[str, Any]:
        if self._status != PAUSED:
            return self._control_result(False, "No paused sync")
        self._paused = False
        self._status = SYNCING
        self._unpaused.set()
        logger.info("sync.resumed", task=self._current_task)
        return self._control_result(True, "Sync resumed")

    def cancel_sync(self) -> dict[str, Any]:
        if self._status not in (SYNCING, PAUSED):
            return self._control_result(False, "No sync in progress")
        self._cancelled = True
        self._paused = False
        self._status = CANCELLED
        self._unpaused.set()
        logger.info("sync.cancelled", task=self._current_task)
        return self._control_result(True, "Sync cancelled")

    def _control_result(self, success: bool, message: str) -> dict[str, Any]:
        return {"success": success, "status": self._status, "message": message}

    # ── Configuration ────────────────────────────────────────────────────

    def configure_sync(self, configuration: dict[str, Any]) -> dict[str, Any]:
        """Validate and merge ``configuration``.

        Enabling auto_sync schedules the next sync one interval from now.

        Raises:
            ConfigurationError: If a key, the interval or a sync type is invalid.
        """
        self._validator.validate(configuration)
        self._configuration.update(configuration)
        if configuration.get("auto_sync") is True:
            self._schedule_next_sync()
        logger.info("sync.configured", options=list(configuration))
        return {
            "success": True,
            "configuration": dict(self._configuration),
            "next_sync_time": self._next_sync_time,
        }

    @property
    def configuration(self) -> dict[str, Any]:
        return dict(self._configuration)

    # ── State & stats ────────────────────────────────────────────────────

    def sync_status(self) -> dict[str, Any]:
        return {
            "status": self._status,
            "progress": self._progress,
            "current_task": self._current_task,
            "is_paused": self._paused,
            "is_cancelled": self._cancelled,
            "last_sync_time": self._last_sync_time,
            "next_sync_time": self._next_sync_time,
            "configuration": dict(self._configuration),
        }

    def sync_progress(self) -> dict[str, Any]:
        return {
            "progress": self._progress,
            "current_task": self._current_task,
            "estimated_remaining_time": self._calculator.estimated_remaining_time(
                self._progress, self._started_at
            ),
            "items_processed": self._stats["items_synced"],
        }

    def sync_stats(self) -> dict[str, Any]:
        return {
            "success": True,
            "stats": dict(self._stats),
            "average_sync_duration": self._calculator.average_sync_duration(self._stats),
            "success_rate": self._calculator.success_rate(self._stats),
        }

    @property
    def last_sync_time(self) -> float | None:
        return self._last_sync_time

    @property
    def next_sync_time(self) -> float | None:
        return self._next_sync_time

    def is_syncing(self) -> bool:
        return self._status == SYNCING

    def is_sync_paused(self) -> bool:
        return self._paused

    def is_sync_cancelled(self) -> bool:
        return self._cancelled

    def can_start_sync(self) -> bool:
        return self._status in STARTABLE_STATES

    # ── Internals ────────────────────────────────────────────────────────

    def _start(self, task: str) -> None:
        self._status = SYNCING
        self._progress = 0
        self._current_task = task
        self._paused = False
        self._cancelled = False
        self._started_at = time.time()
        self._unpaused.set()
        logger.info("sync.started", task=task)

    def _complete(self, duration: float, items_synced: int, errors: list[Any]) -> None:
        self._stats["total_syncs"] += 1
        self._stats["last_sync_duration"] = duration
        self._stats["items_synced"] += items_synced
        self._stats["errors_encountered"] += len(errors)
        self._current_task = None
        self._last_sync_time = time.time()

        if self._cancelled:
            logger.info("sync.stopped", items_synced=items_synced)
            return

        if errors:
            self._status = COMPLETED_WITH_ERRORS
            self._stats["failed_syncs"] += 1
        else:
            self._status = COMPLETED
            self._stats["successful_syncs"] += 1
            self._stats["total_sync_duration"] += duration
        self._progress = 100
        if self._configuration.get("auto_sync") is True:
            self._schedule_next_sync()
        logger.info(
            "sync.completed",
            duration=duration,
            items_synced=items_synced,
            errors=len(errors),
        )

    def _fail(self, exc: Exception, operation: str) -> dict[str, Any]:
        logger.error("sync.failed", operation=operation, error=str(exc))
        self._status = FAILED
        self._current_task = None
        self._stats["failed_syncs"] += 1
        return {
            "success": False,
            "error": str(exc),
            "operation": operation,
            "status": self._status,
        }

    def _update_progress(self, current: int, total: int) -> None:
        if total > 0:
            self._progress = int(current / total * 100)

    def _schedule_next_sync(self) -> None:
        self._next_sync_time = time.time() + int(self._configuration["sync_interval"])
