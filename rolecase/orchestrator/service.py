"""Job lifecycle orchestration.

Drives one job from parsing to review or error:

    create (parsing) -> remote parse [-> poll ...] -> merge -> review
                                                   \\-> error

Every transition is written to the repository before the next step. All
failures are turned into a persisted error status; nothing escapes a job's
task.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from rolecase.config.settings import ParseMode, Settings, get_settings
from rolecase.errors import (
    RemoteError,
    RemoteTaskFailure,
    RemoteTaskLost,
    TimeoutFailure,
    TransientPollFailure,
)
from rolecase.extractor.models import ScrapedJobData
from rolecase.orchestrator.liveness import LivenessRegistry
from rolecase.orchestrator.merge import build_parsed_result
from rolecase.parser.client import ParseServiceClient
from rolecase.parser.models import RemoteTaskStatus
from rolecase.store.models import Job
from rolecase.store.repository import JobRepository

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class JobCancelled(Exception):
    """Raised inside a job's routine once its token is cancelled."""


class CancellationToken:
    """Cooperative stop flag for one job's orchestration.

    Cancelling does not interrupt a request already in flight; the routine
    stops at its next poll and discards whatever it would have persisted.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise JobCancelled()


class JobOrchestrator:
    """Owns the parsing state machine for queued jobs."""

    def __init__(
        self,
        *,
        repository: JobRepository,
        parse_client: ParseServiceClient,
        liveness: LivenessRegistry,
        settings: Settings | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.repository = repository
        self.parse_client = parse_client
        self.liveness = liveness
        self.settings = settings or get_settings()
        self._sleep = sleep

    async def create_job(self, scraped: ScrapedJobData) -> Job:
        """Persist a new parsing job for a scrape."""
        job = Job.from_scrape(scraped)
        await self.repository.insert_job(job)
        logger.info(f"Queued job {job.id} ({scraped.title or scraped.url})")
        return job

    async def process(self, job: Job, token: CancellationToken | None = None) -> Job | None:
        """Run the remote parse for ``job`` and persist the outcome.

        Returns:
            The job in its new status, or None when the job was cancelled or
            removed from the queue before it finished.
        """
        token = token or CancellationToken()
        try:
            async with self.liveness.hold(job.id):
                remote = await self._run_remote(job, token)
            token.raise_if_cancelled()
            result = build_parsed_result(remote, job.scraped_meta)
        except JobCancelled:
            logger.info(f"Job {job.id} cancelled; discarding its result")
            return None
        except RemoteError as e:
            logger.warning(f"Parsing failed for job {job.id}: {e}")
            return await self._fail(job, str(e), token)
        except Exception as e:
            logger.exception(f"Unexpected failure while parsing job {job.id}")
            return await self._fail(job, f"Unexpected error: {e}", token)

        try:
            reviewed = job.to_review(result)
            stored = await self.repository.mark_review(job.id, result)
        except Exception as e:
            logger.exception(f"Could not store the parsed result for job {job.id}")
            return await self._fail(job, f"Could not store parsed result: {e}", token)
        if not stored:
            logger.warning(f"Job {job.id} left the queue before review; result dropped")
            return None
        logger.info(f"Job {job.id} ready for review")
        return reviewed

    async def _fail(self, job: Job, message: str, token: CancellationToken) -> Job | None:
        if token.cancelled:
            logger.info(f"Job {job.id} cancelled; not recording failure")
            return None
        failed = job.to_error(message)
        try:
            stored = await self.repository.mark_error(job.id, message)
        except Exception:
            logger.exception(f"Could not record failure for job {job.id}")
            return None
        if not stored:
            logger.warning(f"Job {job.id} left the queue before its failure was saved")
            return None
        return failed

    async def _run_remote(self, job: Job, token: CancellationToken) -> dict[str, Any]:
        if self.settings.parse_mode is ParseMode.SYNC:
            return await self._parse_sync(job)
        return await self._parse_polled(job, token)

    async def _parse_sync(self, job: Job) -> dict[str, Any]:
        timeout = self.settings.parse_timeout
        logger.info(f"Parsing job {job.id} synchronously")
        try:
            return await asyncio.wait_for(
                self.parse_client.parse(job.original_text), timeout=timeout
            )
        except TimeoutError as e:
            raise TimeoutFailure(f"Parse did not finish within {timeout:g}s", e) from e

    async def _parse_polled(self, job: Job, token: CancellationToken) -> dict[str, Any]:
        task_id = await self.parse_client.start(job.original_text)
        job.remote_task_id = task_id
        await self.repository.set_remote_task_id(job.id, task_id)
        logger.info(f"Job {job.id} started remote task {task_id}")

        max_attempts = self.settings.poll_max_attempts
        for attempt in range(1, max_attempts + 1):
            await self._sleep(self.settings.poll_interval)
            token.raise_if_cancelled()

            try:
                response = await self.parse_client.status(task_id)
            except TransientPollFailure as e:
                logger.warning(
                    f"Poll {attempt}/{max_attempts} for job {job.id} failed, retrying: {e}"
                )
                continue

            if response.status is RemoteTaskStatus.FINISHED:
                if response.data is None:
                    raise RemoteTaskFailure("Remote task finished without a result")
                logger.info(f"Remote task {task_id} finished after {attempt} polls")
                return response.data
            if response.status is RemoteTaskStatus.FAILED:
                raise RemoteTaskFailure(response.error or "Remote task failed")
            if response.status is RemoteTaskStatus.NOT_FOUND:
                raise RemoteTaskLost(response.error or f"Remote task {task_id} not found")

            logger.debug(
                f"Remote task {task_id} {response.status.value} "
                f"(poll {attempt}/{max_attempts})"
            )

        raise TimeoutFailure(
            f"Remote task {task_id} did not finish after {max_attempts} polls"
        )
