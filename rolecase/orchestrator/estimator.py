"""Rolling estimate of how long a remote parse takes.

Only used to show progress for jobs still parsing; nothing in the
lifecycle depends on it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime

from rolecase.store.models import Job, JobStatus, Stats
from rolecase.store.repository import JobRepository

# Progress never reaches 100% before the job actually finishes
MAX_PROGRESS_PERCENT = 95.0


def update_stats(stats: Stats, duration_sec: float) -> Stats:
    """Fold one observed duration into the running average."""
    count = stats.count
    average = (stats.avg_time_sec * count + duration_sec) / (count + 1)
    return Stats(count=count + 1, avg_time_sec=average)


@dataclass(frozen=True)
class Progress:
    percent: float
    seconds_left: int


def estimate_progress(job: Job, stats: Stats, now: datetime | None = None) -> Progress | None:
    """Estimated progress of a parsing job, or None for any other status."""
    if job.status != JobStatus.PARSING:
        return None
    now = now or datetime.now(UTC)
    elapsed = max(0.0, (now - job.created_at).total_seconds())
    total = stats.avg_time_sec
    percent = min(elapsed / total * 100, MAX_PROGRESS_PERCENT) if total > 0 else 0.0
    seconds_left = max(0, math.ceil(total - elapsed))
    return Progress(percent=percent, seconds_left=seconds_left)


class RollingEstimator:
    """Keeps the stored average parse duration up to date."""

    def __init__(self, repository: JobRepository):
        self.repository = repository

    async def record(self, duration_sec: float) -> Stats:
        """Add one parse duration to the stored statistics."""
        return await self.repository.update_stats(
            lambda stats: update_stats(stats, duration_sec)
        )

    async def current(self) -> Stats:
        return await self.repository.get_stats()
