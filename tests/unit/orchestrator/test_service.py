"""Tests for the job lifecycle orchestrator."""

import asyncio
from unittest.mock import AsyncMock

import pytest

REMOTE_RESULT = {
    "title": "Senior Data Engineer",
    "company": "Acme Analytics",
    "features": [{"type": "hard_skill", "description": "Spark"}],
    "_meta": {"generation_time_sec": 42},
}


def _status(status, data=None, error=None):
    from rolecase.parser.models import StatusResponse

    return StatusResponse(status=status, data=data, error=error)


@pytest.fixture
def parse_client():
    client = AsyncMock()
    client.start.return_value = "task-1"
    return client


@pytest.fixture
def liveness():
    from rolecase.orchestrator.liveness import LivenessRegistry

    return LivenessRegistry(interval=10)


@pytest.fixture
def orchestrator(repository, parse_client, liveness, settings):
    from rolecase.orchestrator.service import JobOrchestrator

    return JobOrchestrator(
        repository=repository,
        parse_client=parse_client,
        liveness=liveness,
        settings=settings,
        sleep=AsyncMock(),
    )


class TestCreateJob:
    """Test job creation."""

    @pytest.mark.asyncio
    async def test_creates_parsing_job(self, orchestrator, repository, scraped):
        from rolecase.store.models import JobStatus

        job = await orchestrator.create_job(scraped)

        stored = await repository.get_job(job.id)
        assert stored.status is JobStatus.PARSING
        assert stored.original_text == scraped.description
        assert stored.scraped_meta == scraped


class TestPolledParse:
    """Test the start/poll contract."""

    @pytest.mark.asyncio
    async def test_finishes_after_status_sequence(
        self, orchestrator, parse_client, repository, liveness, scraped
    ):
        from rolecase.store.models import JobStatus

        parse_client.status.side_effect = [
            _status("queued"),
            _status("processing"),
            _status("processing"),
            _status("finished", data=REMOTE_RESULT),
        ]
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job)

        assert parse_client.status.await_count == 4
        parse_client.start.assert_awaited_once_with(scraped.description)
        assert result.status is JobStatus.REVIEW

        stored = await repository.get_job(job.id)
        assert stored.status is JobStatus.REVIEW
        assert stored.remote_task_id == "task-1"
        assert stored.parsed_result.title == "Senior Data Engineer"
        assert stored.parsed_result.location == scraped.location
        assert stored.parsed_result.description == scraped.description
        assert stored.parsed_result.generation_time_sec == 42.0
        assert liveness.active_count() == 0

    @pytest.mark.asyncio
    async def test_sleeps_poll_interval_before_each_status(
        self, orchestrator, parse_client, scraped
    ):
        parse_client.status.side_effect = [
            _status("processing"),
            _status("finished", data=REMOTE_RESULT),
        ]
        job = await orchestrator.create_job(scraped)

        await orchestrator.process(job)

        assert orchestrator._sleep.await_count == 2
        orchestrator._sleep.assert_awaited_with(0)

    @pytest.mark.asyncio
    async def test_times_out_after_max_attempts(
        self, orchestrator, parse_client, repository, liveness, scraped
    ):
        from rolecase.store.models import JobStatus

        parse_client.status.return_value = _status("processing")
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job)

        assert parse_client.status.await_count == 150
        assert result.status is JobStatus.ERROR
        assert "did not finish" in result.error_msg
        assert (await repository.get_job(job.id)).status is JobStatus.ERROR
        assert liveness.active_count() == 0

    @pytest.mark.asyncio
    async def test_remote_failure_message_is_recorded(
        self, orchestrator, parse_client, repository, scraped
    ):
        parse_client.status.side_effect = [
            _status("processing"),
            _status("failed", error="Model overloaded"),
        ]
        job = await orchestrator.create_job(scraped)

        await orchestrator.process(job)

        stored = await repository.get_job(job.id)
        assert stored.error_msg == "Model overloaded"
        assert stored.parsed_result is None

    @pytest.mark.asyncio
    async def test_lost_task_is_an_error(self, orchestrator, parse_client, scraped):
        from rolecase.store.models import JobStatus

        parse_client.status.return_value = _status("not_found")
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job)

        assert result.status is JobStatus.ERROR
        assert parse_client.status.await_count == 1

    @pytest.mark.asyncio
    async def test_transient_poll_failures_are_retried(
        self, orchestrator, parse_client, scraped
    ):
        from rolecase.errors import TransientPollFailure
        from rolecase.store.models import JobStatus

        parse_client.status.side_effect = [
            TransientPollFailure("Status request failed: 502"),
            TransientPollFailure("Status request failed: connection reset"),
            _status("finished", data=REMOTE_RESULT),
        ]
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job)

        assert result.status is JobStatus.REVIEW
        assert parse_client.status.await_count == 3

    @pytest.mark.asyncio
    async def test_start_failure_is_an_error(
        self, orchestrator, parse_client, liveness, scraped
    ):
        from rolecase.errors import AuthFailure
        from rolecase.store.models import JobStatus

        parse_client.start.side_effect = AuthFailure("Not authenticated. Please log in again.")
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job)

        assert result.status is JobStatus.ERROR
        assert result.error_msg == "Not authenticated. Please log in again."
        parse_client.status.assert_not_awaited()
        assert liveness.active_count() == 0

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error(
        self, orchestrator, parse_client, scraped
    ):
        from rolecase.store.models import JobStatus

        parse_client.status.side_effect = KeyError("data")
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job)

        assert result.status is JobStatus.ERROR
        assert result.error_msg.startswith("Unexpected error")

    @pytest.mark.asyncio
    async def test_keepalive_held_during_remote_work(
        self, orchestrator, parse_client, liveness, scraped
    ):
        observed = []

        async def status(task_id):
            observed.append(liveness.active_count(job.id))
            return _status("finished", data=REMOTE_RESULT)

        parse_client.status.side_effect = status
        job = await orchestrator.create_job(scraped)

        await orchestrator.process(job)

        assert observed == [1]
        assert liveness.active_count() == 0

    @pytest.mark.asyncio
    async def test_store_failure_on_review_becomes_error(
        self, orchestrator, parse_client, repository, scraped
    ):
        import sqlite3

        from rolecase.store.models import JobStatus

        parse_client.status.return_value = _status("finished", data=REMOTE_RESULT)
        job = await orchestrator.create_job(scraped)
        repository.mark_review = AsyncMock(
            side_effect=sqlite3.OperationalError("database is locked")
        )

        result = await orchestrator.process(job)

        assert result.status is JobStatus.ERROR
        assert "database is locked" in result.error_msg
        stored = await repository.get_job(job.id)
        assert stored.status is JobStatus.ERROR

    @pytest.mark.asyncio
    async def test_store_failure_on_error_does_not_escape(
        self, orchestrator, parse_client, repository, liveness, scraped
    ):
        import sqlite3

        from rolecase.errors import RemoteTaskFailure

        parse_client.start.side_effect = RemoteTaskFailure("boom")
        job = await orchestrator.create_job(scraped)
        repository.mark_error = AsyncMock(
            side_effect=sqlite3.OperationalError("database is locked")
        )

        result = await orchestrator.process(job)

        assert result is None
        repository.mark_error.assert_awaited_once()
        assert liveness.active_count() == 0


class TestSyncParse:
    """Test the single-call contract."""

    @pytest.fixture
    def sync_orchestrator(self, repository, parse_client, liveness, settings):
        from rolecase.config.settings import ParseMode
        from rolecase.orchestrator.service import JobOrchestrator

        return JobOrchestrator(
            repository=repository,
            parse_client=parse_client,
            liveness=liveness,
            settings=settings.model_copy(
                update={"parse_mode": ParseMode.SYNC, "parse_timeout": 0.05}
            ),
        )

    @pytest.mark.asyncio
    async def test_sync_parse_goes_to_review(
        self, sync_orchestrator, parse_client, repository, scraped
    ):
        from rolecase.store.models import JobStatus

        parse_client.parse.return_value = REMOTE_RESULT
        job = await sync_orchestrator.create_job(scraped)

        result = await sync_orchestrator.process(job)

        assert result.status is JobStatus.REVIEW
        parse_client.parse.assert_awaited_once_with(scraped.description)
        parse_client.start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sync_parse_timeout(
        self, sync_orchestrator, parse_client, liveness, scraped
    ):
        from rolecase.store.models import JobStatus

        async def slow_parse(text):
            await asyncio.sleep(1)
            return REMOTE_RESULT

        parse_client.parse.side_effect = slow_parse
        job = await sync_orchestrator.create_job(scraped)

        result = await sync_orchestrator.process(job)

        assert result.status is JobStatus.ERROR
        assert "did not finish" in result.error_msg
        assert liveness.active_count() == 0

    @pytest.mark.asyncio
    async def test_server_error_recorded(self, sync_orchestrator, parse_client, scraped):
        from rolecase.errors import ServerFailure

        parse_client.parse.side_effect = ServerFailure("Server Error: 500", status_code=500)
        job = await sync_orchestrator.create_job(scraped)

        result = await sync_orchestrator.process(job)

        assert result.error_msg == "Server Error: 500"


class TestCancellation:
    """Test cancelling and clearing in-flight jobs."""

    @pytest.mark.asyncio
    async def test_cancelled_job_writes_nothing(
        self, orchestrator, parse_client, repository, scraped
    ):
        from rolecase.orchestrator.service import CancellationToken
        from rolecase.store.models import JobStatus

        token = CancellationToken()

        async def status(task_id):
            token.cancel()
            return _status("processing")

        parse_client.status.side_effect = status
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job, token)

        assert result is None
        assert parse_client.status.await_count == 1
        assert (await repository.get_job(job.id)).status is JobStatus.PARSING

    @pytest.mark.asyncio
    async def test_clear_during_poll_leaves_no_phantom(
        self, orchestrator, parse_client, repository, liveness, scraped
    ):
        async def status(task_id):
            await repository.clear()
            return _status("finished", data=REMOTE_RESULT)

        parse_client.status.side_effect = status
        job = await orchestrator.create_job(scraped)

        result = await orchestrator.process(job)

        assert result is None
        assert await repository.list_jobs() == []
        assert liveness.active_count() == 0

    @pytest.mark.asyncio
    async def test_cancelled_failure_is_not_recorded(
        self, orchestrator, parse_client, repository, scraped
    ):
        from rolecase.orchestrator.service import CancellationToken
        from rolecase.store.models import JobStatus

        token = CancellationToken()

        async def status(task_id):
            token.cancel()
            return _status("failed", error="boom")

        parse_client.status.side_effect = status
        job = await orchestrator.create_job(scraped)

        assert await orchestrator.process(job, token) is None
        assert (await repository.get_job(job.id)).status is JobStatus.PARSING


class TestConcurrentJobs:
    """Test several jobs in flight at once."""

    @pytest.mark.asyncio
    async def test_interleaved_jobs_keep_their_own_outcomes(
        self, orchestrator, parse_client, repository, scraped
    ):
        from rolecase.store.models import JobStatus

        outcomes = {
            "task-a": [_status("processing"), _status("finished", data=REMOTE_RESULT)],
            "task-b": [_status("failed", error="Remote task failed")],
        }
        parse_client.start.side_effect = ["task-a", "task-b"]

        async def status(task_id):
            await asyncio.sleep(0)
            return outcomes[task_id].pop(0)

        parse_client.status.side_effect = status
        first = await orchestrator.create_job(scraped)
        second = await orchestrator.create_job(scraped)

        await asyncio.gather(orchestrator.process(first), orchestrator.process(second))

        assert (await repository.get_job(first.id)).status is JobStatus.REVIEW
        stored_second = await repository.get_job(second.id)
        assert stored_second.status is JobStatus.ERROR
        assert stored_second.error_msg == "Remote task failed"
