"""Meeting API client: scheduling, lifecycle, participants and settings."""

from __future__ import annotations

from typing import Any

import structlog

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.exceptions import ValidationError

logger = structlog.get_logger(__name__)

# 0: instant, 1: scheduled, 2: recurring
MEETING_TYPES = (0, 1, 2)

PARTICIPANT_ROLES = ("host", "cohost", "attendee")

MEETING_SETTINGS = (
    "mute_enable",
    "waiting_room_enable",
    "live_enable",
    "auto_record_enable",
    "watermark_enable",
    "screen_share_enable",
)

_MEETING_FIELDS = (
    "subject",
    "start_time",
    "end_time",
    "type",
    "password",
    "description",
    "location",
    "timezone",
    "settings",
    "participants",
)

_REQUIRED_FIELDS = ("subject", "start_time", "end_time", "type")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


class MeetingClient(BaseClient):
    """Client for /v1/meetings endpoints."""

    async def create_meeting(self, meeting_data: dict[str, Any]) -> dict[str, Any]:
        """Schedule a meeting.

        Args:
            meeting_data: Must contain subject, start_time, end_time (unix
                timestamps) and type (0 instant, 1 scheduled, 2 recurring).

        Returns:
            The created meeting as returned by the API.

        Raises:
            ValidationError: If required fields are missing or malformed.
        """
        self._validate_meeting_data(meeting_data)
        response = await self.post("/v1/meetings", self._build_meeting_params(meeting_data))
        result = self._ensure_success(response, "create_meeting")
        logger.info("meeting.created", meeting_id=result.get("meeting_id"))
        return result

    async def get_meeting(self, meeting_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/meetings/{self._quote(meeting_id)}")
        return self._ensure_success(response, "get_meeting")

    async def update_meeting(self, meeting_id: str, update_data: dict[str, Any]) -> dict[str, Any]:
        self._validate_meeting_data(update_data, is_update=True)
        response = await self.put(
            f"/v1/meetings/{self._quote(meeting_id)}",
            self._build_meeting_params(update_data),
        )
        return self._ensure_success(response, "update_meeting")

    async def delete_meeting(self, meeting_id: str) -> dict[str, Any]:
        response = await self.delete(f"/v1/meetings/{self._quote(meeting_id)}")
        return self._ensure_success(response, "delete_meeting")

    async def list_meetings(self, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        """List meetings.

        Supports integer filters page, page_size, type, start_time, end_time
        and a free-form status filter.
        """
        filters = filters or {}
        params = self._int_filters(filters, ("page", "page_size", "type", "start_time", "end_time"))
        if filters.get("status") is not None:
            params["status"] = filters["status"]
        response = await self.get(self._with_query("/v1/meetings", params))
        return self._ensure_success(response, "list_meetings")

    async def cancel_meeting(self, meeting_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/meetings/{self._quote(meeting_id)}/cancel")
        return self._ensure_success(response, "cancel_meeting")

    async def end_meeting(self, meeting_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/meetings/{self._quote(meeting_id)}/end")
        return self._ensure_success(response, "end_meeting")

    async def get_meeting_participants(self, meeting_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/meetings/{self._quote(meeting_id)}/participants")
        return self._ensure_success(response, "get_meeting_participants")

    async def add_meeting_participant(self, meeting_id: str, participant_data: dict[str, Any]) -> dict[str, Any]:
        """Invite a participant with role host, cohost or attendee."""
        self._validate_participant_data(participant_data)
        response = await self.post(
            f"/v1/meetings/{self._quote(meeting_id)}/participants",
            participant_data,
        )
        return self._ensure_success(response, "add_meeting_participant")

    async def remove_meeting_participant(self, meeting_id: str, user_id: str) -> dict[str, Any]:
        response = await self.delete(
            f"/v1/meetings/{self._quote(meeting_id)}/participants/{self._quote(user_id)}"
        )
        return self._ensure_success(response, "remove_meeting_participant")

    async def get_meeting_recordings(self, meeting_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/meetings/{self._quote(meeting_id)}/recordings")
        return self._ensure_success(response, "get_meeting_recordings")

    async def get_meeting_status(self, meeting_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/meetings/{self._quote(meeting_id)}/status")
        return self._ensure_success(response, "get_meeting_status")

    async def get_meeting_settings(self, meeting_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/meetings/{self._quote(meeting_id)}/settings")
        return self._ensure_success(response, "get_meeting_settings")

    async def update_meeting_settings(self, meeting_id: str, settings: dict[str, Any]) -> dict[str, Any]:
        self._validate_meeting_settings(settings)
        response = await self.put(f"/v1/meetings/{self._quote(meeting_id)}/settings", settings)
        return self._ensure_success(response, "update_meeting_settings")

    # ── Validation ───────────────────────────────────────────────────────

    @staticmethod
    def _validate_meeting_data(meeting_data: dict[str, Any], is_update: bool = False) -> None:
        if not is_update:
            for field in _REQUIRED_FIELDS:
                if _is_blank(meeting_data.get(field)):
                    raise ValidationError(f"Meeting data is missing required field: {field}")

        for field in ("start_time", "end_time"):
            value = meeting_data.get(field)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ValidationError(f"Meeting {field} must be a unix timestamp")

        if "type" in meeting_data:
            meeting_type = meeting_data["type"]
            if isinstance(meeting_type, bool) or meeting_type not in MEETING_TYPES:
                raise ValidationError(f"Invalid meeting type: {meeting_type!r}")

    @staticmethod
    def _validate_participant_data(participant_data: dict[str, Any]) -> None:
        for field in ("user_id", "role"):
            if _is_blank(participant_data.get(field)):
                raise ValidationError(f"Participant data is missing required field: {field}")
        if participant_data["role"] not in PARTICIPANT_ROLES:
            raise ValidationError(f"Invalid participant role: {participant_data['role']!r}")

    @staticmethod
    def _validate_meeting_settings(settings: dict[str, Any]) -> None:
        for name, value in settings.items():
            if name not in MEETING_SETTINGS:
                raise ValidationError(f"Invalid meeting setting: {name}")
            if not isinstance(value, bool):
                raise ValidationError(f"Meeting setting {name} must be a boolean")

    @staticmethod
    def _build_meeting_params(meeting_data: dict[str, Any]) -> dict[str, Any]:
        return {
            field: meeting_data[field]
            for field in _MEETING_FIELDS
            if meeting_data.get(field) is not None
        }
