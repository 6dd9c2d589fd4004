"""Save reviewed jobs to the backend.

The user amends a job in review; the amended record is upserted to the
backend and the job is marked saved. A rejected upsert leaves the job in
review so the user can retry.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from rolecase.backend.client import UpsertClient
from rolecase.errors import AuthFailure, SaveFailure, ServerFailure
from rolecase.orchestrator.estimator import RollingEstimator
from rolecase.store.models import Feature, FeatureType, Job, JobStatus, ParsedResult
from rolecase.store.repository import JobRepository

logger = logging.getLogger(__name__)


class FeatureEdit(BaseModel):
    """A feature row as edited by the user; blank rows are dropped."""

    type: str = FeatureType.OTHER.value
    description: str = ""


class JobEdits(BaseModel):
    """User changes to a parsed job. Fields left as None keep their value."""

    title: str | None = None
    company: str | None = None
    location: str | None = None
    salary_range: str | None = None
    job_url: str | None = None
    date_posted: str | None = None
    date_closing: str | None = None
    date_extracted: str | None = None
    features: list[FeatureEdit] | None = Field(
        default=None, description="Replaces the feature list when given"
    )


def _date_only(value: str | None) -> str | None:
    if not value or not value.strip():
        return None
    return value.strip().split("T")[0]


def _edited_features(edits: list[FeatureEdit]) -> list[Feature]:
    return [
        Feature(type=edit.type, description=edit.description)
        for edit in edits
        if edit.description.strip()
    ]


def build_payload(result: ParsedResult, edits: JobEdits | None = None) -> dict[str, Any]:
    """Compose the upsert payload from a parsed result and user edits.

    Descriptions are never editable and always come from the parsed result.
    """
    edits = edits or JobEdits()

    def value(name: str) -> Any:
        edited = getattr(edits, name)
        return edited if edited is not None else getattr(result, name)

    features = (
        _edited_features(edits.features) if edits.features is not None else result.features
    )
    return {
        "title": value("title") or "",
        "company": value("company") or "",
        "location": value("location") or "",
        "salary_range": value("salary_range") or "",
        "job_url": value("job_url") or "",
        "date_posted": _date_only(value("date_posted")),
        "date_closing": _date_only(value("date_closing")),
        "date_extracted": _date_only(value("date_extracted")),
        "description": result.description,
        "displayed_description": result.displayed_description,
        "features": [feature.model_dump(mode="json") for feature in features],
    }


class SaveService:
    """Submit reviewed jobs and record their parse durations."""

    def __init__(
        self,
        *,
        repository: JobRepository,
        upsert_client: UpsertClient,
        estimator: RollingEstimator | None = None,
    ) -> None:
        self.repository = repository
        self.upsert_client = upsert_client
        self.estimator = estimator or RollingEstimator(repository)

    async def save(self, job_id: str, edits: JobEdits | None = None) -> Job:
        """Upsert a job in review and mark it saved.

        Raises:
            SaveFailure: If the job cannot be saved; it stays in review. Also
                raised when another save of the same job got there first.
        """
        job = await self.repository.get_job(job_id)
        if job is None:
            raise SaveFailure(f"Job {job_id} not found")
        if job.status != JobStatus.REVIEW or job.parsed_result is None:
            raise SaveFailure(
                f"Job {job_id} is {job.status.value}; only jobs in review can be saved"
            )

        payload = build_payload(job.parsed_result, edits)
        try:
            await self.upsert_client.upsert(payload)
        except AuthFailure as e:
            raise SaveFailure("Session expired. Please re-login.", e) from e
        except ServerFailure as e:
            message = f"Backend Error {e.status_code}" if e.status_code else str(e)
            raise SaveFailure(message, e) from e

        if not await self.repository.mark_saved(job_id):
            logger.warning(f"Job {job_id} was no longer in review when the upsert returned")
            raise SaveFailure(f"Job {job_id} was already saved or removed from the queue")
        saved = job.to_saved()

        duration = job.parsed_result.generation_time_sec
        if duration is not None:
            stats = await self.estimator.record(duration)
            logger.debug(
                f"Average parse time now {stats.avg_time_sec:.1f}s over {stats.count} jobs"
            )
        logger.info(f"Job {job_id} saved")
        return saved
