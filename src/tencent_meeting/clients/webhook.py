"""Webhook API client: subscription CRUD, delivery control and event queries.

Signature verification of incoming webhook calls is not handled here.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import structlog

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.exceptions import ValidationError

logger = structlog.get_logger(__name__)

WEBHOOK_EVENTS = (
    "meeting.created",
    "meeting.updated",
    "meeting.deleted",
    "meeting.started",
    "meeting.ended",
    "meeting.cancelled",
    "user.joined",
    "user.left",
    "recording.started",
    "recording.ended",
    "recording.ready",
)

MIN_SECRET_LENGTH = 8


class WebhookClient(BaseClient):
    """Client for /v1/webhooks endpoints."""

    async def get_webhook(self, webhook_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/webhooks/{self._quote(webhook_id)}")
        return self._ensure_success(response, "get_webhook")

    async def create_webhook(self, webhook_data: dict[str, Any]) -> dict[str, Any]:
        """Subscribe a URL to platform events.

        Args:
            webhook_data: url (http or https), events (non-empty list of
                supported event names) and an optional secret of at least
                eight characters.
        """
        self._validate_webhook_data(webhook_data)
        response = await self.post("/v1/webhooks", webhook_data)
        result = self._ensure_success(response, "create_webhook")
        logger.info("webhook.created", webhook_id=result.get("webhook_id"), events=webhook_data["events"])
        return result

    async def update_webhook(self, webhook_id: str, update_data: dict[str, Any]) -> dict[str, Any]:
        self._validate_webhook_data(update_data, is_update=True)
        response = await self.put(f"/v1/webhooks/{self._quote(webhook_id)}", update_data)
        return self._ensure_success(response, "update_webhook")

    async def delete_webhook(self, webhook_id: str) -> dict[str, Any]:
        response = await self.delete(f"/v1/webhooks/{self._quote(webhook_id)}")
        return self._ensure_success(response, "delete_webhook")

    async def list_webhooks(self, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        filters = filters or {}
        params = self._int_filters(filters, ("page", "page_size"))
        if filters.get("status") is not None:
            params["status"] = filters["status"]
        response = await self.get(self._with_query("/v1/webhooks", params))
        return self._ensure_success(response, "list_webhooks")

    async def test_webhook(self, webhook_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/webhooks/{self._quote(webhook_id)}/test")
        return self._ensure_success(response, "test_webhook")

    async def enable_webhook(self, webhook_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/webhooks/{self._quote(webhook_id)}/enable")
        return self._ensure_success(response, "enable_webhook")

    async def disable_webhook(self, webhook_id: str) -> dict[str, Any]:
        response = await self.post(f"/v1/webhooks/{self._quote(webhook_id)}/disable")
        return self._ensure_success(response, "disable_webhook")

    async def retry_webhook(self, webhook_id: str, event_id: str) -> dict[str, Any]:
        """Ask the platform to redeliver one event to the webhook."""
        response = await self.post(
            f"/v1/webhooks/{self._quote(webhook_id)}/retry",
            {"event_id": event_id},
        )
        return self._ensure_success(response, "retry_webhook")

    async def get_webhook_events(self, webhook_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/webhooks/{self._quote(webhook_id)}/events")
        return self._ensure_success(response, "get_webhook_events")

    async def get_webhook_status(self, webhook_id: str) -> dict[str, Any]:
        response = await self.get(f"/v1/webhooks/{self._quote(webhook_id)}/status")
        return self._ensure_success(response, "get_webhook_status")

    async def get_webhook_logs(self, webhook_id: str, filters: dict[str, Any] | None = None) -> dict[str, Any]:
        params = self._int_filters(filters or {}, ("page", "page_size", "start_time", "end_time"))
        response = await self.get(self._with_query(f"/v1/webhooks/{self._quote(webhook_id)}/logs", params))
        return self._ensure_success(response, "get_webhook_logs")

    @staticmethod
    def _validate_webhook_data(webhook_data: dict[str, Any], is_update: bool = False) -> None:
        if not is_update:
            for field in ("url", "events"):
                if webhook_data.get(field) in (None, "", []):
                    raise ValidationError(f"Webhook data is missing required field: {field}")

        if "url" in webhook_data:
            parsed = urlparse(str(webhook_data["url"]))
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValidationError("Invalid webhook URL")

        if "events" in webhook_data:
            events = webhook_data["events"]
            if not isinstance(events, list):
                raise ValidationError("Webhook events must be a list")
            for event in events:
                if event not in WEBHOOK_EVENTS:
                    raise ValidationError(f"Invalid webhook event: {event!r}")

        if "secret" in webhook_data:
            secret = webhook_data["secret"]
            if not isinstance(secret, str) or len(secret) < MIN_SECRET_LENGTH:
                raise ValidationError(
                    f"Webhook secret must be a string of at least {MIN_SECRET_LENGTH} characters"
                )
