"""
Domain entities for graceful error handling.

Entities are immutable dataclasses and plain enums.
They carry no behavior beyond simple derived views.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorCategory(Enum):
    """How an error status is treated by the handler.

    CLIENT_ERROR and MAINTENANCE are recoverable: the service keeps
    serving. SERVER_ERROR leaves the process in an unknown state and
    always leads to a shutdown.
    """

    CLIENT_ERROR = "client_error"
    MAINTENANCE = "maintenance"
    SERVER_ERROR = "server_error"


class Framework(Enum):
    """Calling convention the error handler is invoked with.

    ERROR_FIRST: handler(error, request, transport, call_next)
    ERROR_LAST: handler(request, transport, route, error)
    """

    ERROR_FIRST = "error_first"
    ERROR_LAST = "error_last"


class ShutdownState(Enum):
    IDLE = "idle"
    DRAINING = "draining"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class ErrorContext:
    """A single failed request, as seen by the error handler.

    Attributes:
        status: HTTP status derived from the error, or None if unknown.
        message: Human readable message for the response body.
        raw_error: The original error object.
        request: The request the error surfaced in, if any.
    """

    status: Optional[int]
    message: str
    raw_error: Any = None
    request: Any = None

    def as_template_data(self) -> dict[str, Any]:
        """Return the context as data for a view template."""
        return {
            "status": self.status,
            "message": self.message,
            "error": self.raw_error,
            "request": self.request,
        }
