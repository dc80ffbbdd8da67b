"""API clients for the Tencent Meeting platform and the factory that builds them.

Each resource client wraps one family of REST endpoints on top of the
shared HttpTransport. ClientFactory constructs and caches them per
ClientKind.
"""

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.clients.meeting import MeetingClient
from src.tencent_meeting.clients.recording import RecordingClient
from src.tencent_meeting.clients.room import RoomClient
from src.tencent_meeting.clients.user import UserClient
from src.tencent_meeting.clients.webhook import WebhookClient
from src.tencent_meeting.clients.factory import (
    ClientFactory,
    ClientKind,
    FactoryConfiguration,
)

__all__ = [
    "BaseClient",
    "ClientFactory",
    "ClientKind",
    "FactoryConfiguration",
    "MeetingClient",
    "RecordingClient",
    "RoomClient",
    "UserClient",
    "WebhookClient",
]
