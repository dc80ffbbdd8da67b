"""Meeting-room API client: room CRUD, availability and bookings."""

from __future__ import annotations

from typing import Any

import structlog

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.exceptions import ValidationError

logger = structlog.get_logger(__name__)

ROOM_SETTINGS = (
    "auto_book",
    "approval_required",
    "max_booking_duration",
    "advance_booking_days",
    "cancel_policy",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class RoomClient(BaseClient):
    """Client for /v1/rooms endpoints."""

    async def get_room(self, room_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/rooms/{self._quote(room_id)}")
        return self._ensure_success(response, "get_room")

    async def create_room(self, room_data: dict[str, Any]) -> dict[str, Any]:
        """Register a room. Requires name, location and a positive capacity."""
        self._validate_room_data(room_data)
        response = await self.post("/v1/rooms", room_data)
        result = self._ensure_success(response, "create_room")
        logger.info("room.created", room_id=result.get("room_id"))
        return result

    async def update_room(self, room_id: str, update_data: dict[str, Any]) -> dict[str, Any]:
        self._validate_room_data(update_data, is_update=True)
        response = await self.put(f"/v1/rooms/{self._quote(room_id)}", update_data)
        return self._ensure_success(response, "update_room")

    async def delete_room(self, room_id: str) -> dict[str, Any]:
        response = await self.delete(f"/v1/rooms/{self._quote(room_id)}")
        return self._ensure_success(response, "delete_room")

    async def list_rooms(self, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        filters = filters or {}
        params = self._int_filters(filters, ("page", "page_size", "min_capacity"))
        for key in ("status", "location"):
            if filters.get(key) is not None:
                params[key] = filters[key]
        response = await self.get(self._with_query("/v1/rooms", params))
        return self._ensure_success(response, "list_rooms")

    async def get_room_status(self, room_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/rooms/{self._quote(room_id)}/status")
        return self._ensure_success(response, "get_room_status")

    async def get_room_settings(self, room_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/rooms/{self._quote(room_id)}/settings")
        return self._ensure_success(response, "get_room_settings")

    async def update_room_settings(self, room_id: str, settings: dict[str, Any]) -> dict[str, Any]:
        for name in settings:
            if name not in ROOM_SETTINGS:
                raise ValidationError(f"Invalid room setting: {name}")
        response = await self.put(f"/v1/rooms/{self._quote(room_id)}/settings", settings)
        return self._ensure_success(response, "update_room_settings")

    async def get_room_meetings(self, room_id: str, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        params = self._int_filters(filters or {}, ("page", "page_size", "start_time", "end_time"))
        response = await self.get(self._with_query(f"/v1/rooms/{self._quote(room_id)}/meetings", params))
        return self._ensure_success(response, "get_room_meetings")

    async def check_room_availability(self, room_id: str, time_range: dict[str, Any]) -> dict[str, Any]:
        """Ask whether the room is free between start_time and end_time."""
        self._validate_time_range(time_range)
        response = await self.post(f"/v1/rooms/{self._quote(room_id)}/availability", time_range)
        return self._ensure_success(response, "check_room_availability")

    async def reserve_room(self, room_id: str, booking_data: dict[str, Any]) -> dict[str, Any]:
        """Book the room. Requires start_time, end_time and booked_by."""
        if booking_data.get("booked_by") in (None, ""):
            raise ValidationError("Booking data is missing required field: booked_by")
        self._validate_time_range(booking_data)
        response = await self.post(f"/v1/rooms/{self._quote(room_id)}/reserve", booking_data)
        result = self._ensure_success(response, "reserve_room")
        logger.info("room.reserved", room_id=room_id, booking_id=result.get("booking_id"))
        return result

    async def release_room(self, room_id: str, booking_id: str) -> dict[str, Any]:
        response = await self.post(
            f"/v1/rooms/{self._quote(room_id)}/release",
            {"booking_id": booking_id},
        )
        return self._ensure_success(response, "release_room")

    @staticmethod
    def _validate_room_data(room_data: dict[str, Any], is_update: bool = False) -> None:
        if not is_update:
            for field in ("name", "capacity", "location"):
                if room_data.get(field) in (None, ""):
                    raise ValidationError(f"Room data is missing required field: {field}")

        if "capacity" in room_data:
            capacity = room_data["capacity"]
            if not _is_number(capacity) or capacity <= 0:
                raise ValidationError("Room capacity must be a positive number")

        if "equipment" in room_data and not isinstance(room_data["equipment"], list):
            raise ValidationError("Room equipment must be a list")

    @staticmethod
    def _validate_time_range(time_range: dict[str, Any]) -> None:
        for field in ("start_time", "end_time"):
            if time_range.get(field) in (None, ""):
                raise ValidationError(f"Time range is missing required field: {field}")
        start, end = time_range["start_time"], time_range["end_time"]
        if not (_is_number(start) and _is_number(end)):
            raise ValidationError("Time range values must be unix timestamps")
        if start >= end:
            raise ValidationError("start_time must be earlier than end_time")
