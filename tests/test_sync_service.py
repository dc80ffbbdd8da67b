"""Tests for SyncService state transitions, configuration and statistics.

The API clients are AsyncMocks; no HTTP traffic is involved.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.tencent_meeting.exceptions import ApiError, ConfigurationError
from src.tencent_meeting.sync import (
    SyncConfigurationValidator,
    SyncService,
    SyncStatisticsCalculator,
)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def clients():
    """Mock clients returning two items of each resource."""
    meeting = MagicMock()
    meeting.list_meetings = AsyncMock(
        return_value={"meetings": [{"meeting_id": "m1"}, {"meeting_id": "m2"}]}
    )
    user = MagicMock()
    user.list_users = AsyncMock(return_value={"users": [{"user_id": "u1"}, {"user_id": "u2"}]})
    room = MagicMock()
    room.list_rooms = AsyncMock(return_value={"rooms": [{"room_id": "r1"}, "not-a-room"]})
    recording = MagicMock()
    recording.search_recordings = AsyncMock(
        return_value={"recordings": [{"recording_id": "rec1"}]}
    )
    return meeting, user, room, recording


@pytest.fixture
def service(clients):
    return SyncService(*clients)


async def _let_run() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


# ── Single-type syncs ────────────────────────────────────────────────────────


class TestSingleSync:
    """Tests for sync_meetings/users/rooms/recordings."""

    @pytest.mark.asyncio
    async def test_sync_meetings_counts_items(self, service):
        result = await service.sync_meetings()

        assert result["success"] is True
        assert result["items_synced"] == 2
        assert result["errors"] == []
        assert result["status"] == "completed"
        stats = service.sync_stats()["stats"]
        assert stats["total_syncs"] == 1
        assert stats["successful_syncs"] == 1
        assert stats["items_synced"] == 2

    @pytest.mark.asyncio
    async def test_non_dict_items_skipped(self, service):
        result = await service.sync_rooms()
        assert result["items_synced"] == 1

    @pytest.mark.asyncio
    async def test_sync_recordings_uses_search(self, service, clients):
        result = await service.sync_recordings()

        clients[3].search_recordings.assert_awaited_once_with({})
        assert result["items_synced"] == 1

    @pytest.mark.asyncio
    async def test_recording_listing_failure_is_reported_as_error(self, service, clients):
        clients[3].search_recordings.side_effect = ApiError("boom", status_code=500)

        result = await service.sync_recordings()

        assert result["success"] is True
        assert result["status"] == "completed_with_errors"
        assert "boom" in result["errors"][0]
        assert service.sync_stats()["stats"]["failed_syncs"] == 1

    @pytest.mark.asyncio
    async def test_client_failure_returns_failure_dict(self, service, clients):
        """A raising client fails the sync without propagating."""
        clients[1].list_users.side_effect = ApiError("list failed", status_code=502)

        result = await service.sync_users()

        assert result == {
            "success": False,
            "error": "list failed",
            "operation": "sync_users",
            "status": "failed",
        }
        assert service.sync_stats()["stats"]["failed_syncs"] == 1
        assert service.can_start_sync()

    @pytest.mark.asyncio
    async def test_missing_listing_key_counts_zero(self, service, clients):
        clients[0].list_meetings.return_value = {}

        result = await service.sync_meetings()

        assert result["items_synced"] == 0
        assert result["status"] == "completed"


# ── Full sync ────────────────────────────────────────────────────────────────


class TestSyncAll:
    """Tests for sync_all()."""

    @pytest.mark.asyncio
    async def test_sync_all_sums_items(self, service):
        result = await service.sync_all()

        assert result["success"] is True
        assert result["items_synced"] == 2 + 2 + 1 + 1
        assert result["status"] == "completed"
        status = service.sync_status()
        assert status["progress"] == 100
        assert status["current_task"] is None
        assert status["last_sync_time"] is not None

    @pytest.mark.asyncio
    async def test_sync_all_runs_configured_types_in_order(self, service, clients):
        calls = []
        clients[0].list_meetings.side_effect = lambda: calls.append("meetings") or {"meetings": []}
        clients[1].list_users.side_effect = lambda: calls.append("users") or {"users": []}
        service.configure_sync({"sync_types": ["meetings", "users"]})

        await service.sync_all()

        assert calls == ["meetings", "users"]
        clients[2].list_rooms.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_task_recorded_and_others_run(self, service, clients):
        clients[2].list_rooms.side_effect = ApiError("rooms down", status_code=503)

        result = await service.sync_all()

        assert result["status"] == "completed_with_errors"
        assert {"task": "rooms", "error": "rooms down"} in result["errors"]
        clients[0].list_meetings.assert_awaited_once()
        clients[3].search_recordings.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancel_stops_remaining_tasks(self, service, clients):
        def cancel_during_users():
            service.cancel_sync()
            return {"users": [{"user_id": "u1"}]}

        clients[1].list_users.side_effect = cancel_during_users

        result = await service.sync_all()

        assert result["status"] == "cancelled"
        clients[2].list_rooms.assert_not_awaited()
        assert service.is_sync_cancelled()
        assert service.can_start_sync()

    @pytest.mark.asyncio
    async def test_pause_blocks_until_resume(self, service, clients):
        def pause_during_users():
            service.pause_sync()
            return {"users": []}

        clients[1].list_users.side_effect = pause_during_users

        task = asyncio.create_task(service.sync_all())
        await _let_run()

        assert service.sync_status()["status"] == "paused"
        assert service.is_sync_paused()
        clients[2].list_rooms.assert_not_awaited()

        rejected = await service.sync_meetings()
        assert rejected["success"] is False
        assert service.sync_status()["status"] == "paused"

        resumed = service.resume_sync()
        assert resumed == {"success": True, "status": "syncing", "message": "Sync resumed"}
        result = await asyncio.wait_for(task, timeout=1)

        assert result["status"] == "completed"
        clients[2].list_rooms.assert_awaited_once()


# ── Control operations ───────────────────────────────────────────────────────


class TestControl:
    """Tests for pause/resume/cancel outside a running sync."""

    def test_pause_when_idle(self, service):
        result = service.pause_sync()
        assert result["success"] is False
        assert result["status"] == "idle"

    def test_resume_when_not_paused(self, service):
        assert service.resume_sync()["success"] is False

    def test_cancel_when_idle(self, service):
        assert service.cancel_sync()["success"] is False

    def test_initial_state(self, service):
        assert service.can_start_sync()
        assert not service.is_syncing()
        assert service.last_sync_time is None
        assert service.next_sync_time is None
        assert service.sync_progress()["estimated_remaining_time"] == 0


# ── Configuration ────────────────────────────────────────────────────────────


class TestConfigureSync:
    """Tests for configure_sync()."""

    def test_merges_configuration(self, service):
        result = service.configure_sync({"batch_size": 50})

        assert result["success"] is True
        assert service.configuration["batch_size"] == 50
        assert service.configuration["sync_interval"] == 3600

    def test_auto_sync_schedules_next_sync(self, service):
        result = service.configure_sync({"auto_sync": True, "sync_interval": 120})
        assert result["next_sync_time"] is not None

    def test_invalid_configuration_raises_and_keeps_state(self, service):
        with pytest.raises(ConfigurationError):
            service.configure_sync({"sync_interval": 30})
        assert service.configuration["sync_interval"] == 3600


class TestSyncConfigurationValidator:
    """Tests for SyncConfigurationValidator."""

    @pytest.mark.parametrize(
        "configuration",
        [
            {"unknown": 1},
            {"sync_interval": 59},
            {"sync_interval": "often"},
            {"sync_types": "users"},
            {"sync_types": ["users", "webhooks"]},
        ],
    )
    def test_rejects(self, configuration):
        with pytest.raises(ConfigurationError):
            SyncConfigurationValidator().validate(configuration)

    def test_accepts_valid(self):
        SyncConfigurationValidator().validate(
            {"sync_interval": 60, "sync_types": ["rooms"], "parallel_sync": True}
        )


# ── Statistics ───────────────────────────────────────────────────────────────


class TestSyncStatisticsCalculator:
    """Tests for SyncStatisticsCalculator."""

    def test_success_rate_percent(self):
        calc = SyncStatisticsCalculator()
        assert calc.success_rate({"total_syncs": 4, "successful_syncs": 3}) == 75.0
        assert calc.success_rate({"total_syncs": 0, "successful_syncs": 0}) == 0.0

    def test_average_sync_duration(self):
        calc = SyncStatisticsCalculator()
        stats = {"successful_syncs": 4, "total_sync_duration": 10.0}
        assert calc.average_sync_duration(stats) == 2.5
        assert calc.average_sync_duration({"successful_syncs": 0}) == 0.0

    def test_estimated_remaining_time(self):
        calc = SyncStatisticsCalculator()
        assert calc.estimated_remaining_time(50, started_at=100.0, now=150.0) == 50
        assert calc.estimated_remaining_time(0, started_at=100.0, now=150.0) == 0
        assert calc.estimated_remaining_time(50, started_at=None) == 0

    @pytest.mark.asyncio
    async def test_service_stats_report(self, service, clients):
        await service.sync_meetings()
        clients[1].list_users.side_effect = ApiError("down")
        await service.sync_users()

        report = service.sync_stats()

        assert report["success_rate"] == 100.0
        assert report["stats"]["failed_syncs"] == 1
        assert report["average_sync_duration"] >= 0.0
