"""Backend save flow."""

from rolecase.backend.client import UpsertClient
from rolecase.backend.service import FeatureEdit, JobEdits, SaveService, build_payload

__all__ = ["UpsertClient", "SaveService", "JobEdits", "FeatureEdit", "build_payload"]
