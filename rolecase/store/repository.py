"""Database repository for the job queue.

This module provides async SQLite storage for queued jobs and the
process-wide parse statistics. Every write touches a single key and is
serialised through one lock, so two jobs finishing together cannot
overwrite each other's state.
"""

import asyncio
import json
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import aiosqlite

from rolecase.extractor.models import ScrapedJobData
from rolecase.store.models import Job, JobStatus, ParsedResult, Stats

# SQL schema for the job queue
CREATE_JOBS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    status TEXT NOT NULL,
    original_text TEXT NOT NULL,
    scraped_meta TEXT NOT NULL,
    parsed_result TEXT,
    created_at TEXT NOT NULL,
    error_msg TEXT,
    remote_task_id TEXT
)
"""

CREATE_STATS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS stats (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    count INTEGER NOT NULL,
    avg_time_sec REAL NOT NULL
)
"""

CREATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_created_at ON jobs(created_at);
"""


class JobRepository:
    """Async SQLite repository for queued jobs.

    Reads may happen at any time; writes are key-scoped UPDATEs guarded by
    the expected current status, so a transition never resurrects a job
    that was cleared in the meantime.
    """

    def __init__(self, db_path: Path | str):
        """Initialize the repository.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def _get_connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a database connection.

        Yields:
            An aiosqlite connection.
        """
        if self._connection is None:
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
        yield self._connection

    async def initialize(self, default_avg_time_sec: float = 60.0) -> None:
        """Create tables if needed and seed the statistics row.

        Args:
            default_avg_time_sec: Initial average parse duration.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        async with self._get_connection() as conn:
            await conn.execute(CREATE_JOBS_TABLE_SQL)
            await conn.execute(CREATE_STATS_TABLE_SQL)
            await conn.executescript(CREATE_INDEX_SQL)
            await conn.execute(
                "INSERT OR IGNORE INTO stats (id, count, avg_time_sec) VALUES (1, 0, ?)",
                (default_avg_time_sec,),
            )
            await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def _write(self, sql: str, params: tuple) -> int:
        """Run one write statement under the lock; return affected rows."""
        async with self._write_lock:
            async with self._get_connection() as conn:
                cursor = await conn.execute(sql, params)
                await conn.commit()
                return cursor.rowcount

    async def insert_job(self, job: Job) -> None:
        """Insert a new job.

        Raises:
            sqlite3.IntegrityError: If a job with the same id exists.
        """
        await self._write(
            """
            INSERT INTO jobs (
                id, status, original_text, scraped_meta, parsed_result,
                created_at, error_msg, remote_task_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                job.id,
                job.status.value,
                job.original_text,
                job.scraped_meta.model_dump_json(),
                job.parsed_result.model_dump_json() if job.parsed_result else None,
                job.created_at.isoformat(),
                job.error_msg,
                job.remote_task_id,
            ),
        )

    async def get_job(self, job_id: str) -> Job | None:
        """Get a job by id, or None if not found."""
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,))
            row = await cursor.fetchone()

        if row is None:
            return None
        return self._row_to_job(row)

    async def list_jobs(self, status_filter: JobStatus | None = None) -> list[Job]:
        """List jobs, newest first.

        Args:
            status_filter: Optional status to filter by.
        """
        async with self._get_connection() as conn:
            if status_filter is not None:
                cursor = await conn.execute(
                    "SELECT * FROM jobs WHERE status = ? ORDER BY created_at DESC",
                    (status_filter.value,),
                )
            else:
                cursor = await conn.execute(
                    "SELECT * FROM jobs ORDER BY created_at DESC"
                )
            rows = await cursor.fetchall()

        return [self._row_to_job(row) for row in rows]

    async def set_remote_task_id(self, job_id: str, task_id: str) -> bool:
        """Record the remote task id of a parsing job."""
        updated = await self._write(
            "UPDATE jobs SET remote_task_id = ? WHERE id = ? AND status = ?",
            (task_id, job_id, JobStatus.PARSING.value),
        )
        return updated > 0

    async def mark_review(self, job_id: str, result: ParsedResult) -> bool:
        """Move a parsing job to review with its parsed result.

        Returns:
            False if the job no longer exists or is not parsing.
        """
        updated = await self._write(
            """
            UPDATE jobs SET status = ?, parsed_result = ?, error_msg = NULL
            WHERE id = ? AND status = ?
            """,
            (
                JobStatus.REVIEW.value,
                result.model_dump_json(),
                job_id,
                JobStatus.PARSING.value,
            ),
        )
        return updated > 0

    async def mark_error(self, job_id: str, message: str) -> bool:
        """Move a parsing job to error.

        Returns:
            False if the job no longer exists or is not parsing.
        """
        updated = await self._write(
            """
            UPDATE jobs SET status = ?, error_msg = ?, parsed_result = NULL
            WHERE id = ? AND status = ?
            """,
            (JobStatus.ERROR.value, message, job_id, JobStatus.PARSING.value),
        )
        return updated > 0

    async def mark_saved(self, job_id: str) -> bool:
        """Move a job from review to saved.

        Returns:
            False if the job no longer exists or is not in review.
        """
        updated = await self._write(
            "UPDATE jobs SET status = ? WHERE id = ? AND status = ?",
            (JobStatus.SAVED.value, job_id, JobStatus.REVIEW.value),
        )
        return updated > 0

    async def clear(self) -> int:
        """Delete every job. Statistics are kept.

        Returns:
            Number of jobs removed.
        """
        return await self._write("DELETE FROM jobs", ())

    async def get_stats(self) -> Stats:
        """Return the parse duration statistics."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT count, avg_time_sec FROM stats WHERE id = 1"
            )
            row = await cursor.fetchone()

        if row is None:
            return Stats()
        return Stats(count=row["count"], avg_time_sec=row["avg_time_sec"])

    async def update_stats(self, update: Callable[[Stats], Stats]) -> Stats:
        """Apply ``update`` to the statistics atomically.

        The read and the write happen under the write lock, so concurrent
        updates are applied one after the other.
        """
        async with self._write_lock:
            current = await self.get_stats()
            new = update(current)
            async with self._get_connection() as conn:
                await conn.execute(
                    """
                    INSERT INTO stats (id, count, avg_time_sec) VALUES (1, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        count = excluded.count,
                        avg_time_sec = excluded.avg_time_sec
                    """,
                    (new.count, new.avg_time_sec),
                )
                await conn.commit()
        return new

    def _row_to_job(self, row: aiosqlite.Row) -> Job:
        """Convert a database row to a Job."""
        parsed_result = row["parsed_result"]
        return Job(
            id=row["id"],
            status=JobStatus(row["status"]),
            original_text=row["original_text"],
            scraped_meta=ScrapedJobData.model_validate(json.loads(row["scraped_meta"])),
            parsed_result=ParsedResult.model_validate(json.loads(parsed_result))
            if parsed_result
            else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            error_msg=row["error_msg"],
            remote_task_id=row["remote_task_id"],
        )
