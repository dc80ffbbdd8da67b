"""User API client: account CRUD, lifecycle, settings and related data."""

from __future__ import annotations

import re
from typing import Any

import structlog

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.exceptions import TencentMeetingError, ValidationError

logger = structlog.get_logger(__name__)

USER_ROLES = ("admin", "user", "guest")

USER_SETTINGS = (
    "email_notification",
    "sms_notification",
    "meeting_reminder",
    "auto_join_mic",
    "auto_join_camera",
    "waiting_room",
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# Mainland China mobile numbers
_PHONE_RE = re.compile(r"^1[3-9]\d{9}$")


class UserClient(BaseClient):
    """Client for /v1/users endpoints."""

    async def get_user(self, user_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/users/{self._quote(user_id)}")
        return self._ensure_success(response, "get_user")

    async def create_user(self, user_data: dict[str, Any]) -> dict[str, Any]:
        """Create a user.

        Args:
            user_data: Must contain username, email and phone. Optional role
                must be admin, user or guest.

        Raises:
            ValidationError: If required fields are missing or malformed.
        """
        self._validate_user_data(user_data)
        response = await self.post("/v1/users", user_data)
        result = self._ensure_success(response, "create_user")
        logger.info("user.created", user_id=result.get("user_id"))
        return result

    async def update_user(self, user_id: str, update_data: dict[str, Any]) -> dict[str, Any]:
        self._validate_user_data(update_data, is_update=True)
        response = await self.put(f"/v1/users/{self._quote(user_id)}", update_data)
        return self._ensure_success(response, "update_user")

    async def delete_user(self, user_id: str) -> dict[str, Any]:
        response = await self.delete(f"/v1/users/{self._quote(user_id)}")
        return self._ensure_success(response, "delete_user")

    async def list_users(self, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        filters = filters or {}
        params = self._int_filters(filters, ("page", "page_size"))
        for key in ("status", "role", "department_id"):
            if filters.get(key) is not None:
                params[key] = filters[key]
        response = await self.get(self._with_query("/v1/users", params))
        return self._ensure_success(response, "list_users")

    async def search_users(self, search_params: dict[str, Any]) -> dict[str, Any]:
        response = await self.post("/v1/users/search", search_params)
        return self._ensure_success(response, "search_users")

    async def batch_create_users(self, users_data: list[dict[str, Any]]) -> dict[str, Any]:
        """Create several users, collecting per-user failures.

        Returns:
            Dict with ``created`` (API results), ``failed`` (input plus error
            message) and ``total``.
        """
        created: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        for user_data in users_data:
            try:
                created.append(await self.create_user(user_data))
            except TencentMeetingError as exc:
                failed.append({"user": user_data, "error": str(exc)})
        logger.info("user.batch_created", created=len(created), failed=len(failed))
        return {"created": created, "failed": failed, "total": len(users_data)}

    async def activate_user(self, user_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/users/{self._quote(user_id)}/activate")
        return self._ensure_success(response, "activate_user")

    async def deactivate_user(self, user_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/users/{self._quote(user_id)}/deactivate")
        return self._ensure_success(response, "deactivate_user")

    async def reset_user_password(self, user_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/users/{self._quote(user_id)}/reset-password")
        return self._ensure_success(response, "reset_user_password")

    async def get_user_settings(self, user_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/users/{self._quote(user_id)}/settings")
        return self._ensure_success(response, "get_user_settings")

    async def update_user_settings(self, user_id: str, settings: dict[str, Any]) -> dict[str, Any]:
        for name, value in settings.items():
            if name not in USER_SETTINGS:
                raise ValidationError(f"Invalid user setting: {name}")
            if not isinstance(value, bool):
                raise ValidationError(f"User setting {name} must be a boolean")
        response = await self.put(f"/v1/users/{self._quote(user_id)}/settings", settings)
        return self._ensure_success(response, "update_user_settings")

    async def get_user_meetings(self, user_id: str, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        params = self._int_filters(filters or {}, ("page", "page_size", "start_time", "end_time"))
        response = await self.get(self._with_query(f"/v1/users/{self._quote(user_id)}/meetings", params))
        return self._ensure_success(response, "get_user_meetings")

    async def get_user_recordings(self, user_id: str, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        params = self._int_filters(filters or {}, ("page", "page_size", "start_time", "end_time"))
        response = await self.get(self._with_query(f"/v1/users/{self._quote(user_id)}/recordings", params))
        return self._ensure_success(response, "get_user_recordings")

    @staticmethod
    def _validate_user_data(user_data: dict[str, Any], is_update: bool = False) -> None:
        if not is_update:
            for field in ("username", "email", "phone"):
                if user_data.get(field) in (None, ""):
                    raise ValidationError(f"User data is missing required field: {field}")

        email = user_data.get("email")
        if email is not None and not (isinstance(email, str) and _EMAIL_RE.match(email)):
            raise ValidationError("Invalid email format")

        phone = user_data.get("phone")
        if phone is not None and not _PHONE_RE.match(str(phone)):
            raise ValidationError("Invalid phone number format")

        role = user_data.get("role")
        if role is not None and role not in USER_ROLES:
            raise ValidationError(f"Invalid user role: {role!r}")
