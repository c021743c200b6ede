"""
Error handler.

The single entry point for every error that reaches the edge of the
service. Build one per process and reuse it: it holds nothing but its
configuration, the maintenance state it reads and its shutdown
coordinator.
"""

import logging
from typing import Any, Callable, Optional

from graceful_errors.application.default_responder import DefaultResponder
from graceful_errors.application.dtos import ErrorHandlerConfig
from graceful_errors.application.resolver import ResponseResolver
from graceful_errors.application.shutdown import ShutdownCoordinator
from graceful_errors.domain.classifier import classify
from graceful_errors.domain.entities import ErrorCategory, ErrorContext, Framework
from graceful_errors.domain.errors import HttpError, MaintenanceModeError
from graceful_errors.domain.maintenance import (
    RETRY_AFTER_HEADER,
    MaintenanceState,
    maintenance_state,
)
from graceful_errors.domain.ports import Transport

logger = logging.getLogger(__name__)


def error_status(error: Any) -> Optional[int]:
    """Return the HTTP status carried by an error, if any."""
    for attribute in ("status", "status_code"):
        value = getattr(error, attribute, None)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return int(value)
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
    return None


def error_message(error: Any) -> str:
    """Return the client-safe message of an error.

    Only errors that describe an HTTP failure expose their text; the
    message of an unexpected exception stays in the logs.
    """
    detail = getattr(error, "detail", None)
    if isinstance(detail, str):
        return detail
    if isinstance(error, HttpError):
        return error.message
    if error_status(error) is not None:
        message = getattr(error, "message", None)
        return message if isinstance(message, str) else str(error)
    return ""


class ErrorHandler:
    """Classifies an error, responds to it, and shuts down when needed."""

    def __init__(
        self,
        config: Optional[ErrorHandlerConfig] = None,
        maintenance: Optional[MaintenanceState] = None,
        coordinator: Optional[ShutdownCoordinator] = None,
    ) -> None:
        self._config = config if config is not None else ErrorHandlerConfig()
        self._maintenance = maintenance if maintenance is not None else maintenance_state
        self._coordinator = (
            coordinator if coordinator is not None else ShutdownCoordinator(self._config)
        )
        self._resolver = ResponseResolver(
            self._config, DefaultResponder(self._config), self._coordinator
        )

    @property
    def config(self) -> ErrorHandlerConfig:
        return self._config

    @property
    def maintenance(self) -> MaintenanceState:
        return self._maintenance

    @property
    def coordinator(self) -> ShutdownCoordinator:
        return self._coordinator

    def __call__(self, *args: Any) -> str:
        """Handle an error using the configured calling convention."""
        if self._config.framework is Framework.ERROR_LAST:
            return self.handle_error_last(*args)
        return self.handle(*args)

    def handle(
        self,
        error: Any,
        request: Any = None,
        transport: Optional[Transport] = None,
        call_next: Optional[Callable[..., Any]] = None,
    ) -> str:
        """Resolve one error. Never raises.

        Args:
            error: The error that surfaced while serving the request.
            request: The request, passed through to handlers and views.
            transport: Response channel, or None if there is none.
            call_next: Accepted for middleware signature compatibility;
                the error is always fully handled here and it is not called.

        Returns:
            Name of the response strategy that was used.
        """
        context = self._build_context(error, request, transport)
        maintenance_enabled = isinstance(error, MaintenanceModeError) or (
            context.status == 503 and self._maintenance.status()
        )
        category = classify(context.status, maintenance_enabled)
        self._log(context, category)

        if category is ErrorCategory.MAINTENANCE and transport is not None:
            if transport.get_header(RETRY_AFTER_HEADER) is None:
                transport.set_header(
                    RETRY_AFTER_HEADER, str(self._maintenance.retry_after())
                )

        return self._resolver.resolve(context, transport, category)

    def handle_error_last(
        self,
        request: Any,
        transport: Optional[Transport],
        route: Any,
        error: Any,
    ) -> str:
        """Adapter for frameworks that pass (request, response, route, error)."""
        return self.handle(error, request, transport)

    def _build_context(
        self, error: Any, request: Any, transport: Optional[Transport]
    ) -> ErrorContext:
        status = error_status(error)
        if status is None and transport is not None:
            existing = transport.status_code
            if isinstance(existing, int) and existing >= 400:
                status = existing
        return ErrorContext(
            status=status,
            message=error_message(error),
            raw_error=error,
            request=request,
        )

    def _log(self, context: ErrorContext, category: ErrorCategory) -> None:
        if category is ErrorCategory.SERVER_ERROR:
            error = context.raw_error
            exc_info = error if isinstance(error, BaseException) else None
            logger.error(
                "Server error (status %s): %s",
                context.status,
                type(error).__name__,
                exc_info=exc_info,
            )
        elif category is ErrorCategory.MAINTENANCE:
            logger.info("Maintenance response (status %s)", context.status)
        else:
            logger.warning("Client error (status %s): %s", context.status, context.message)


def create_handler(
    maintenance: Optional[MaintenanceState] = None,
    coordinator: Optional[ShutdownCoordinator] = None,
    **options: Any,
) -> ErrorHandler:
    """Build an ErrorHandler from ErrorHandlerConfig keyword options."""
    return ErrorHandler(
        ErrorHandlerConfig(**options),
        maintenance=maintenance,
        coordinator=coordinator,
    )
