"""Data models for the job queue."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from rolecase.errors import InvalidTransition
from rolecase.extractor.models import ScrapedJobData


class JobStatus(str, Enum):
    """Lifecycle status of a queued job."""

    PARSING = "parsing"
    REVIEW = "review"
    SAVED = "saved"
    ERROR = "error"


# Statuses in which a job carries a parsed result
RESULT_STATUSES = frozenset({JobStatus.REVIEW, JobStatus.SAVED})


class FeatureType(str, Enum):
    """Category of a job feature. Unknown categories map to OTHER."""

    RESPONSIBILITY = "responsibility"
    HARD_SKILL = "hard_skill"
    SOFT_SKILL = "soft_skill"
    QUALIFICATION = "qualification"
    REQUIREMENT = "requirement"
    BENEFIT = "benefit"
    EMPLOYER_MISSION = "employer_mission"
    EMPLOYER_CULTURE = "employer_culture"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value: object) -> FeatureType:
        return cls.OTHER


class Feature(BaseModel):
    """One categorised statement about the job."""

    type: FeatureType = Field(default=FeatureType.OTHER, description="Category")
    description: str = Field(..., min_length=1, description="Statement text")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> FeatureType:
        if isinstance(v, FeatureType):
            return v
        return FeatureType(str(v).strip().lower()) if v else FeatureType.OTHER

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class ParsedResult(BaseModel):
    """Enriched job record ready for review and saving.

    Attributes:
        title: Job title.
        company: Hiring organisation.
        location: Job location.
        salary_range: Salary text.
        date_posted: Posting date.
        date_closing: Closing date.
        date_extracted: Scrape date.
        description: Plain-text description, always from the scrape.
        displayed_description: Displayed description, always from the scrape.
        job_url: Page address, always from the scrape.
        features: Categorised statements from the parse service.
        meta: Diagnostics from the parse service (``generation_time_sec``).
    """

    title: str | None = None
    company: str | None = None
    location: str | None = None
    salary_range: str | None = None
    date_posted: str | None = None
    date_closing: str | None = None
    date_extracted: str | None = None
    description: str | None = None
    displayed_description: str | None = None
    job_url: str | None = None
    features: list[Feature] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def generation_time_sec(self) -> float | None:
        """Parse duration reported by the service, if it is a number."""
        value = self.meta.get("generation_time_sec")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)


def new_job_id() -> str:
    return uuid.uuid4().hex


class Job(BaseModel):
    """One tracked extraction and its lifecycle.

    A job always satisfies: ``parsed_result`` is set exactly when the status
    is review or saved, and ``error_msg`` is set exactly when the status is
    error. Status changes go through the ``to_*`` methods, which return a
    new job.
    """

    id: str = Field(default_factory=new_job_id)
    status: JobStatus = JobStatus.PARSING
    original_text: str
    scraped_meta: ScrapedJobData
    parsed_result: ParsedResult | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    error_msg: str | None = None
    remote_task_id: str | None = None

    @model_validator(mode="after")
    def check_status_invariants(self) -> Job:
        has_result = self.parsed_result is not None
        if has_result != (self.status in RESULT_STATUSES):
            raise ValueError(
                f"parsed_result must be set exactly when status is review or saved "
                f"(status={self.status.value})"
            )
        if (self.error_msg is not None) != (self.status == JobStatus.ERROR):
            raise ValueError(
                f"error_msg must be set exactly when status is error "
                f"(status={self.status.value})"
            )
        return self

    @classmethod
    def from_scrape(cls, scraped: ScrapedJobData) -> Job:
        """Create a parsing job for a fresh extraction."""
        return cls(original_text=scraped.description, scraped_meta=scraped)

    @property
    def is_terminal(self) -> bool:
        return self.status in {JobStatus.SAVED, JobStatus.ERROR}

    def _moved(self, **changes: Any) -> Job:
        return Job.model_validate({**dict(self), **changes})

    def to_review(self, result: ParsedResult) -> Job:
        if self.status != JobStatus.PARSING:
            raise InvalidTransition(f"Cannot review a job in {self.status.value}")
        return self._moved(status=JobStatus.REVIEW, parsed_result=result)

    def to_error(self, message: str) -> Job:
        if self.status != JobStatus.PARSING:
            raise InvalidTransition(f"Cannot fail a job in {self.status.value}")
        return self._moved(status=JobStatus.ERROR, error_msg=message or "Failed")

    def to_saved(self) -> Job:
        if self.status != JobStatus.REVIEW:
            raise InvalidTransition(f"Cannot save a job in {self.status.value}")
        return self._moved(status=JobStatus.SAVED)


class Stats(BaseModel):
    """Process-wide parse duration statistics."""

    count: int = Field(default=0, ge=0)
    avg_time_sec: float = 60.0
