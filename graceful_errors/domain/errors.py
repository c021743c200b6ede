"""
Errors for the graceful error handling domain.

HttpError and its subclasses are raised by application code to carry a
status to the error handler. ConfigurationError and its subclasses signal
integrator mistakes and are never turned into responses.
No framework imports allowed.
"""

from http import HTTPStatus
from typing import Optional


class GracefulErrorsError(Exception):
    """Base error for all errors raised by this package."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class HttpError(GracefulErrorsError):
    """Raised to abort a request with a specific HTTP status."""

    def __init__(self, status: int, message: Optional[str] = None) -> None:
        if message is None:
            try:
                message = HTTPStatus(status).phrase
            except ValueError:
                message = f"HTTP {status}"
        super().__init__(message)
        self.status = int(status)


class ServiceUnavailableError(HttpError):
    """Synthetic 503 produced while the service is in maintenance mode."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(HTTPStatus.SERVICE_UNAVAILABLE, message)


class ConfigurationError(GracefulErrorsError):
    """Raised when the error handler is configured or driven incorrectly."""


class MaintenancePolicyConflictError(ConfigurationError):
    """Raised when the built-in maintenance setter is used under an override.

    An override enabled predicate means maintenance state is managed
    elsewhere; forcing it here as well would be silently ignored.
    """

    def __init__(self) -> None:
        super().__init__(
            "Maintenance state is controlled by an override predicate; "
            "change it at its source instead of calling set_enabled()"
        )


class TransportCapabilityError(GracefulErrorsError):
    """Raised when a transport cannot perform a requested operation."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Transport does not support {operation}()")
        self.operation = operation


class MaintenanceModeError(ServiceUnavailableError):
    """The synthetic 503 raised for every request while maintenance is on."""

    def __init__(self) -> None:
        super().__init__("Service is down for maintenance")
