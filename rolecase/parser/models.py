"""Wire models for the remote parse service."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RemoteTaskStatus(str, Enum):
    """Status reported by the parse service for a started task."""

    QUEUED = "queued"
    PROCESSING = "processing"
    FINISHED = "finished"
    FAILED = "failed"
    NOT_FOUND = "not_found"


class StartResponse(BaseModel):
    """Response of the start endpoint."""

    model_config = ConfigDict(extra="ignore")

    job_id: str = Field(..., min_length=1, description="Remote task identifier")


class StatusResponse(BaseModel):
    """Response of the status endpoint."""

    model_config = ConfigDict(extra="ignore")

    status: RemoteTaskStatus
    data: dict[str, Any] | None = None
    error: str | None = None
