"""Durable job queue.

Public API:
- JobRepository: Async SQLite repository for queued jobs and statistics
- Job: A tracked extraction and its lifecycle status
- JobStatus: Enum for job status values
- ParsedResult, Feature, FeatureType: Enriched job record
- Stats: Parse duration statistics
"""

from rolecase.store.models import (
    Feature,
    FeatureType,
    Job,
    JobStatus,
    ParsedResult,
    Stats,
)
from rolecase.store.repository import JobRepository

__all__ = [
    "JobRepository",
    "Job",
    "JobStatus",
    "ParsedResult",
    "Feature",
    "FeatureType",
    "Stats",
]
