"""Exception taxonomy for extraction, remote parsing and saving."""

from __future__ import annotations


class RoleCaseError(Exception):
    """Base class for RoleCase failures."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ExtractionFailure(RoleCaseError):
    """The page did not yield a usable job description."""


class InvalidTransition(RoleCaseError):
    """A job status change not permitted by the lifecycle."""


class RemoteError(RoleCaseError):
    """A call to a remote service failed."""


class AuthFailure(RemoteError):
    """The remote service rejected the request as unauthenticated."""


class ServerFailure(RemoteError):
    """The remote service answered with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error)
        self.status_code = status_code


class TimeoutFailure(RemoteError):
    """The remote work did not finish within its time or attempt budget."""


class TransientPollFailure(RemoteError):
    """A single status request failed; the poll loop retries."""


class RemoteTaskFailure(RemoteError):
    """The remote task reported that it failed."""


class RemoteTaskLost(RemoteError):
    """The remote service no longer knows the task."""


class SaveFailure(RoleCaseError):
    """The backend did not accept the edited job. The job stays in review."""
