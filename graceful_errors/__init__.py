"""
graceful-errors: request error handling and graceful degradation for ASGI services.

Package root. Layered the same way as a modular monolith:

Layers:
    - domain: Status classification, maintenance policy, entities, ports, errors.
    - application: Response resolution, default responder, shutdown, orchestration.
    - infrastructure: Server handles that know how to drain a running server.
    - interfaces: Starlette transport, maintenance middleware, health router.
    - shared: Cross-cutting concerns (logging, error handler registration).
"""

from graceful_errors.application.dtos import ErrorHandlerConfig
from graceful_errors.application.error_handler import ErrorHandler, create_handler
from graceful_errors.domain.classifier import classify
from graceful_errors.domain.entities import ErrorCategory, ErrorContext, Framework
from graceful_errors.domain.errors import (
    ConfigurationError,
    HttpError,
    MaintenancePolicyConflictError,
    ServiceUnavailableError,
)
from graceful_errors.domain.maintenance import (
    MaintenanceState,
    create_maintenance_interceptor,
    http_error,
    maintenance_state,
)

__all__ = [
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorHandler",
    "ErrorHandlerConfig",
    "Framework",
    "HttpError",
    "MaintenancePolicyConflictError",
    "MaintenanceState",
    "ServiceUnavailableError",
    "classify",
    "create_handler",
    "create_maintenance_interceptor",
    "http_error",
    "maintenance_state",
]
