"""Process-wide session wiring.

A :class:`RoleCaseSession` owns everything that outlives a single job: the
database connection, the HTTP clients, the keepalive registry and the set
of in-flight job tasks. Open it at start-up and close it on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from rolecase.backend.client import UpsertClient
from rolecase.backend.service import JobEdits, SaveService
from rolecase.config.settings import Settings, get_settings
from rolecase.extractor.models import ScrapedJobData
from rolecase.orchestrator.estimator import RollingEstimator
from rolecase.orchestrator.liveness import LivenessRegistry
from rolecase.orchestrator.service import CancellationToken, JobOrchestrator, SleepFunc
from rolecase.parser.client import ParseServiceClient
from rolecase.store.models import Job, Stats
from rolecase.store.repository import JobRepository

logger = logging.getLogger(__name__)


def create_http_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """httpx client for the RoleCase API, authenticated when a token is set."""
    headers = {"Content-Type": "application/json"}
    if settings.api_token:
        headers["Authorization"] = f"Bearer {settings.api_token}"
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        headers=headers,
        timeout=httpx.Timeout(30.0, read=settings.parse_timeout),
        transport=transport,
    )


class RoleCaseSession:
    """Lifecycle-managed container for the job queue and its workers."""

    def __init__(
        self,
        *,
        settings: Settings,
        repository: JobRepository,
        http: httpx.AsyncClient,
        liveness: LivenessRegistry | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.repository = repository
        self.http = http
        self.liveness = liveness or LivenessRegistry(settings.keepalive_interval)
        self.estimator = RollingEstimator(repository)
        self.orchestrator = JobOrchestrator(
            repository=repository,
            parse_client=ParseServiceClient(http, settings.parse_timeout),
            liveness=self.liveness,
            settings=settings,
            sleep=sleep,
        )
        self.save_service = SaveService(
            repository=repository,
            upsert_client=UpsertClient(http),
            estimator=self.estimator,
        )
        self._tasks: dict[str, asyncio.Task] = {}
        self._tokens: dict[str, CancellationToken] = {}
        self._closed = False

    @classmethod
    async def open(
        cls,
        settings: Settings | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> RoleCaseSession:
        """Create a session with an initialized database."""
        settings = settings or get_settings()
        repository = JobRepository(settings.db_path)
        await repository.initialize(default_avg_time_sec=settings.default_avg_time_sec)
        return cls(
            settings=settings,
            repository=repository,
            http=http or create_http_client(settings),
            **kwargs,
        )

    async def __aenter__(self) -> RoleCaseSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def enqueue(self, scraped: ScrapedJobData) -> Job:
        """Create a job for a scrape and start parsing it in the background."""
        if self._closed:
            raise RuntimeError("Session is closed")
        job = await self.orchestrator.create_job(scraped)
        token = CancellationToken()
        task = asyncio.create_task(
            self.orchestrator.process(job, token), name=f"rolecase-job-{job.id}"
        )
        self._tasks[job.id] = task
        self._tokens[job.id] = token
        task.add_done_callback(lambda _: self._forget(job.id))
        return job

    def _forget(self, job_id: str) -> None:
        self._tasks.pop(job_id, None)
        self._tokens.pop(job_id, None)

    async def wait_for(self, job_id: str) -> Job | None:
        """Wait for a job's background parse, then return its stored state."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return await self.repository.get_job(job_id)

    async def drain(self) -> None:
        """Wait until every in-flight job has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def list_jobs(self) -> list[Job]:
        return await self.repository.list_jobs()

    async def get_job(self, job_id: str) -> Job | None:
        return await self.repository.get_job(job_id)

    async def stats(self) -> Stats:
        return await self.estimator.current()

    async def save(self, job_id: str, edits: JobEdits | None = None) -> Job:
        """Save a job in review. See :meth:`SaveService.save`."""
        return await self.save_service.save(job_id, edits)

    async def clear_queue(self) -> int:
        """Empty the queue and stop in-flight jobs from writing results."""
        for token in self._tokens.values():
            token.cancel()
        removed = await self.repository.clear()
        logger.info(f"Cleared {removed} jobs ({len(self._tokens)} still winding down)")
        return removed

    async def close(self) -> None:
        """Drain in-flight jobs and release every resource."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.drain()
        finally:
            await self.liveness.release_all()
            await self.http.aclose()
            await self.repository.close()
