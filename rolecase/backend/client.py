"""HTTP client for the backend upsert endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from rolecase.errors import ServerFailure
from rolecase.parser.client import raise_for_status

logger = logging.getLogger(__name__)

UPSERT_PATH = "/job/upsert"


class UpsertClient:
    """Sends reviewed jobs to the backend store."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def upsert(self, payload: dict[str, Any]) -> None:
        """Create or update a job record in the backend.

        Raises:
            AuthFailure: On 401.
            ServerFailure: On any other failure.
        """
        logger.info(f"Upserting job {payload.get('job_url')}")
        try:
            response = await self.http.post(UPSERT_PATH, json=payload)
        except httpx.HTTPError as e:
            raise ServerFailure(f"Upsert request failed: {e}", original_error=e) from e
        raise_for_status(response)
