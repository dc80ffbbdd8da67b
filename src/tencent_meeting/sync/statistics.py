"""Derived metrics over SyncService counters."""

from __future__ import annotations

import time
from typing import Any


class SyncStatisticsCalculator:
    """Pure calculations over a sync stats dict; holds no state."""

    def average_sync_duration(self, stats: dict[str, Any]) -> float:
        """Mean duration in seconds of successful syncs, 0.0 when there are none."""
        successful = stats.get("successful_syncs", 0)
        if not successful:
            return 0.0
        return stats.get("total_sync_duration", 0.0) / successful

    def success_rate(self, stats: dict[str, Any]) -> float:
        """Percentage of syncs that finished without errors."""
        total = stats.get("total_syncs", 0)
        if not total:
            return 0.0
        return stats.get("successful_syncs", 0) / total * 100

    def estimated_remaining_time(
        self,
        progress: int,
        started_at: float | None,
        now: float | None = None,
    ) -> int:
        """Extrapolate seconds left from progress (0-100) made since ``started_at``.

        Returns 0 when nothing has progressed yet or no time has elapsed.
        """
        if progress <= 0 or started_at is None:
            return 0
        now = time.time() if now is None else now
        elapsed = now - started_at
        if elapsed <= 0:
            return 0
        rate = progress / elapsed
        return int((100 - progress) / rate)
