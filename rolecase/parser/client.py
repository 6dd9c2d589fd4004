"""HTTP client for the remote parse service.

Two contracts exist. The synchronous one posts the text and waits for the
enrichment in the response body. The start/poll one posts the text to a
start endpoint, gets a task id back and asks a status endpoint until the
task settles. Both map HTTP failures onto the same exceptions.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from rolecase.errors import (
    AuthFailure,
    ServerFailure,
    TimeoutFailure,
    TransientPollFailure,
)
from rolecase.parser.models import StartResponse, StatusResponse

logger = logging.getLogger(__name__)

PARSE_PATH = "/job/parse"
START_PATH = "/job/parse/start"
STATUS_PATH = "/job/parse/status/{task_id}"


def raise_for_status(response: httpx.Response) -> None:
    """Translate an unsuccessful response into a RoleCase exception.

    Raises:
        AuthFailure: On 401.
        ServerFailure: On any other non-success status.
    """
    if response.is_success:
        return
    if response.status_code == 401:
        raise AuthFailure("Not authenticated. Please log in again.")
    raise ServerFailure(
        f"Server Error: {response.status_code}", status_code=response.status_code
    )


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ServerFailure(
            "Server returned a body that is not JSON",
            status_code=response.status_code,
            original_error=e,
        ) from e


class ParseServiceClient:
    """Async client for the parse endpoints.

    Attributes:
        http: The underlying httpx client, whose ``base_url`` points at the
            API root.
    """

    def __init__(self, http: httpx.AsyncClient, parse_timeout: float = 300.0):
        """Initialize the client.

        Args:
            http: Configured httpx client (base URL, auth headers).
            parse_timeout: Read timeout for the synchronous parse call.
        """
        self.http = http
        self.parse_timeout = parse_timeout

    async def parse(self, text: str) -> dict[str, Any]:
        """Synchronous contract: submit text and return the enrichment.

        Raises:
            AuthFailure, ServerFailure: On unsuccessful responses.
            TimeoutFailure: If the service does not answer in time.
        """
        logger.info(f"Sending {len(text)} characters to {PARSE_PATH}")
        try:
            response = await self.http.post(
                PARSE_PATH, json={"text": text}, timeout=self.parse_timeout
            )
        except httpx.TimeoutException as e:
            raise TimeoutFailure(
                f"Parse request timed out after {self.parse_timeout:g}s", e
            ) from e
        except httpx.HTTPError as e:
            raise ServerFailure(f"Parse request failed: {e}", original_error=e) from e

        raise_for_status(response)
        body = _json_body(response)
        if not isinstance(body, dict):
            raise ServerFailure("Parse response is not an object")
        return body

    async def start(self, text: str) -> str:
        """Start a remote parse task and return its id.

        Raises:
            AuthFailure, ServerFailure: On unsuccessful responses.
        """
        logger.info(f"Starting remote parse of {len(text)} characters")
        try:
            response = await self.http.post(START_PATH, json={"text": text})
        except httpx.HTTPError as e:
            raise ServerFailure(f"Start request failed: {e}", original_error=e) from e

        raise_for_status(response)
        try:
            return StartResponse.model_validate(_json_body(response)).job_id
        except ValidationError as e:
            raise ServerFailure("Start response has no job_id", original_error=e) from e

    async def status(self, task_id: str) -> StatusResponse:
        """Fetch the status of a remote parse task.

        Raises:
            AuthFailure: On 401, which retrying cannot fix.
            TransientPollFailure: On any other failed request.
        """
        try:
            response = await self.http.get(STATUS_PATH.format(task_id=task_id))
            raise_for_status(response)
            return StatusResponse.model_validate(_json_body(response))
        except AuthFailure:
            raise
        except (httpx.HTTPError, ServerFailure, ValidationError) as e:
            raise TransientPollFailure(f"Status request failed: {e}", e) from e
