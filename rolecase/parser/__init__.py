"""Remote parse service boundary."""

from rolecase.parser.client import ParseServiceClient
from rolecase.parser.models import RemoteTaskStatus, StartResponse, StatusResponse

__all__ = [
    "ParseServiceClient",
    "RemoteTaskStatus",
    "StartResponse",
    "StatusResponse",
]
