"""Data synchronization between the platform and the host application."""

from src.tencent_meeting.sync.service import SyncService
from src.tencent_meeting.sync.statistics import SyncStatisticsCalculator
from src.tencent_meeting.sync.validator import SyncConfigurationValidator

__all__ = [
    "SyncConfigurationValidator",
    "SyncService",
    "SyncStatisticsCalculator",
]
