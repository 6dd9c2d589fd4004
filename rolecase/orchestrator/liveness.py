"""Keepalive signals for long-running remote work.

Hosts that suspend idle workers (browser service workers, serverless
runtimes) can reclaim a task that only awaits a slow HTTP response. While
remote work is in flight a small periodic ping keeps the host busy.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

PingCallback = Callable[[str], None | Awaitable[None]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _log_ping(job_id: str) -> None:
    logger.debug(f"[KeepAlive] Pinging for job {job_id}")


class LivenessRegistry:
    """Tracks one keepalive task per job id.

    Use :meth:`hold` as an async context manager around remote work; the
    ping task is cancelled when the block exits, whatever the outcome.
    """

    def __init__(self, interval: float = 20.0, ping: PingCallback | None = None):
        """Initialize the registry.

        Args:
            interval: Seconds between pings.
            ping: Called with the job id on every ping. Defaults to a debug log.
        """
        self.interval = interval
        self._ping = ping or _log_ping
        self._active: dict[str, asyncio.Task] = {}

    def active_count(self, job_id: str | None = None) -> int:
        """Number of running keepalives, overall or for one job."""
        if job_id is None:
            return len(self._active)
        return 1 if job_id in self._active else 0

    @contextlib.asynccontextmanager
    async def hold(self, job_id: str) -> AsyncIterator[None]:
        """Keep the host alive for ``job_id`` while the block runs.

        Raises:
            RuntimeError: If a keepalive is already held for the job.
        """
        if job_id in self._active:
            raise RuntimeError(f"Keepalive already held for job {job_id}")

        self._active[job_id] = asyncio.create_task(self._run(job_id))
        logger.debug(f"[KeepAlive] Started for job {job_id}")
        try:
            yield
        finally:
            await self._release(job_id)

    async def _run(self, job_id: str) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await _maybe_await(self._ping(job_id))
            except Exception as e:
                logger.warning(f"[KeepAlive] Ping failed for job {job_id}: {e}")

    async def _release(self, job_id: str) -> None:
        task = self._active.pop(job_id, None)
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug(f"[KeepAlive] Released for job {job_id}")

    async def release_all(self) -> None:
        """Cancel every keepalive (session teardown)."""
        for job_id in list(self._active):
            await self._release(job_id)
