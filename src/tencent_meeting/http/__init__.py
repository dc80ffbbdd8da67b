"""HTTP transport layer for the Tencent Meeting REST API."""

from src.tencent_meeting.http.transport import HttpTransport

__all__ = ["HttpTransport"]
