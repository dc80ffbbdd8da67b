"""Recording API client: cloud recording control, retrieval and sharing."""

from __future__ import annotations

from typing import Any

import structlog

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.exceptions import ValidationError

logger = structlog.get_logger(__name__)

RECORDING_SETTINGS = (
    "auto_start",
    "auto_stop",
    "cloud_storage",
    "local_storage",
    "watermark",
    "transcription",
    "analytics",
)

SHARE_TYPES = ("public", "private", "password")

_LIST_FILTERS = ("page", "page_size", "start_time", "end_time")


class RecordingClient(BaseClient):
    """Client for /v1/recordings and per-meeting recording endpoints."""

    async def get_recording(self, recording_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/recordings/{self._quote(recording_id)}")
        return self._ensure_success(response, "get_recording")

    async def get_meeting_recordings(self, meeting_id: str, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        params = self._int_filters(filters or {}, _LIST_FILTERS)
        response = await self.get(
            self._with_query(f"/v1/meetings/{self._quote(meeting_id)}/recordings", params)
        )
        return self._ensure_success(response, "get_meeting_recordings")

    async def get_user_recordings(self, user_id: str, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        params = self._int_filters(filters or {}, _LIST_FILTERS)
        response = await self.get(
            self._with_query(f"/v1/users/{self._quote(user_id)}/recordings", params)
        )
        return self._ensure_success(response, "get_user_recordings")

    async def start_recording(self, meeting_id: str) -> dict[str, Any]:
        return await self._control(meeting_id, "start")

    async def stop_recording(self, meeting_id: str) -> dict[str, Any]:
        return await self._control(meeting_id, "stop")

    async def pause_recording(self, meeting_id: str) -> dict[str, Any]:
        return await self._control(meeting_id, "pause")

    async def resume_recording(self, meeting_id: str) -> dict[str, Any]:
        return await self._control(meeting_id, "resume")

    async def _control(self, meeting_id: str, action: str) -> dict[str, Any]:
        response = await self.post(f"/v1/meetings/{self._quote(meeting_id)}/recordings/{action}")
        result = self._ensure_success(response, f"{action}_recording")
        logger.info("recording.control", meeting_id=meeting_id, action=action)
        return result

    async def delete_recording(self, recording_id: str) -> dict[str, Any]:
        response = await self.delete(f"/v1/recordings/{self._quote(recording_id)}")
        return self._ensure_success(response, "delete_recording")

    async def get_recording_status(self, recording_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/recordings/{self._quote(recording_id)}/status")
        return self._ensure_success(response, "get_recording_status")

    async def get_recording_settings(self, meeting_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/meetings/{self._quote(meeting_id)}/recordings/settings")
        return self._ensure_success(response, "get_recording_settings")

    async def update_recording_settings(self, meeting_id: str, settings: dict[str, Any]) -> dict[str, Any]:
        for name, value in settings.items():
            if name not in RECORDING_SETTINGS:
                raise ValidationError(f"Invalid recording setting: {name}")
            if not isinstance(value, bool):
                raise ValidationError(f"Recording setting {name} must be a boolean")
        response = await self.put(f"/v1/meetings/{self._quote(meeting_id)}/recordings/settings", settings)
        return self._ensure_success(response, "update_recording_settings")

    async def download_recording(self, recording_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/recordings/{self._quote(recording_id)}/download")
        return self._ensure_success(response, "download_recording")

    async def share_recording(self, recording_id: str, share_data: dict[str, Any]) -> dict[str, Any]:
        """Share a recording.

        Args:
            recording_id: Recording identifier.
            share_data: share_type (public, private or password) and
                expire_time (unix timestamp).
        """
        for field in ("share_type", "expire_time"):
            if share_data.get(field) in (None, ""):
                raise ValidationError(f"Share data is missing required field: {field}")
        if share_data["share_type"] not in SHARE_TYPES:
            raise ValidationError(f"Invalid share type: {share_data['share_type']!r}")
        expire_time = share_data["expire_time"]
        if isinstance(expire_time, bool) or not isinstance(expire_time, (int, float)):
            raise ValidationError("expire_time must be a unix timestamp")

        response = await self.post(f"/v1/recordings/{self._quote(recording_id)}/share", share_data)
        return self._ensure_success(response, "share_recording")

    async def get_recording_transcription(self, recording_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/recordings/{self._quote(recording_id)}/transcription")
        return self._ensure_success(response, "get_recording_transcription")

    async def get_recording_analytics(self, recording_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/recordings/{self._quote(recording_id)}/analytics")
        return self._ensure_success(response, "get_recording_analytics")

    async def search_recordings(self, search_params: dict[str, Any]) -> dict[str, Any]:
        params = self._int_filters(search_params, _LIST_FILTERS)
        for key in ("keyword", "meeting_id", "user_id"):
            if search_params.get(key) is not None:
                params[key] = search_params[key]
        response = await self.get(self._with_query("/v1/recordings/search", params))
        return self._ensure_success(response, "search_recordings")
