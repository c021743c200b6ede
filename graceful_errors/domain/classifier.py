"""
Status classification.

Maps a numeric HTTP status to an ErrorCategory. Client errors are never
fatal: shutting down on them would let anyone restart the service by
sending malformed requests.
"""

from typing import Any

from graceful_errors.domain.entities import ErrorCategory

SERVICE_UNAVAILABLE = 503


def classify(status: Any, maintenance_enabled: bool = False) -> ErrorCategory:
    """Classify an error status.

    Args:
        status: The error status. None or non-integer values are unknown.
        maintenance_enabled: Whether maintenance mode is currently on.

    Returns:
        CLIENT_ERROR for 400-499, MAINTENANCE for 503 while maintenance is
        enabled, SERVER_ERROR for everything else.
    """
    if isinstance(status, bool) or not isinstance(status, int):
        return ErrorCategory.SERVER_ERROR
    if 400 <= status <= 499:
        return ErrorCategory.CLIENT_ERROR
    if status == SERVICE_UNAVAILABLE and maintenance_enabled:
        return ErrorCategory.MAINTENANCE
    return ErrorCategory.SERVER_ERROR


def is_recoverable(category: ErrorCategory) -> bool:
    """Return True when the service should keep serving after this error."""
    return category in (ErrorCategory.CLIENT_ERROR, ErrorCategory.MAINTENANCE)
