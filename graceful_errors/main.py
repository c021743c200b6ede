"""
Application entry point.

Creates a FastAPI application and wires together:
- Logging configuration
- The error handler (classification, responses, graceful shutdown)
- Maintenance mode middleware
- The health router

No business logic belongs here. Services embedding this package do the
same wiring around their own routers.
"""

import asyncio
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI

from graceful_errors.application.dtos import ErrorHandlerConfig
from graceful_errors.application.error_handler import ErrorHandler
from graceful_errors.core.config import settings
from graceful_errors.domain.maintenance import MaintenanceState, maintenance_state
from graceful_errors.infrastructure.uvicorn_server import UvicornServerHandle
from graceful_errors.interfaces.health import router as health_router
from graceful_errors.interfaces.middleware import add_maintenance_middleware
from graceful_errors.shared.errors.handlers import register_error_handlers
from graceful_errors.shared.logging import configure_logging


def create_app(
    error_handler: Optional[ErrorHandler] = None,
    maintenance: Optional[MaintenanceState] = None,
    templates: Any = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    This is the composition root of the application.

    Args:
        error_handler: Handler to use. Defaults to one built from settings.
        maintenance: Maintenance state shared by middleware, handler and
            health route. Defaults to the process-wide state.
        templates: Optional template engine for configured error views.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    maintenance = maintenance if maintenance is not None else maintenance_state
    if error_handler is None:
        error_handler = ErrorHandler(
            ErrorHandlerConfig(
                timeout=settings.shutdown_timeout,
                exit_status=settings.exit_status,
            ),
            maintenance=maintenance,
        )

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.maintenance = maintenance
    app.state.error_handler = error_handler

    # --- Maintenance Mode ---
    add_maintenance_middleware(
        app, error_handler, state=maintenance, templates=templates
    )

    # --- Error Handlers ---
    register_error_handlers(app, error_handler, templates=templates)

    # --- Routers ---
    app.include_router(health_router)

    return app


def run() -> None:
    """Serve the application with uvicorn, draining it on fatal errors."""
    handle = UvicornServerHandle()
    error_handler = ErrorHandler(
        ErrorHandlerConfig(
            timeout=settings.shutdown_timeout,
            exit_status=settings.exit_status,
            server=handle,
        )
    )
    app = create_app(error_handler=error_handler)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=max(int(settings.shutdown_timeout), 1),
    )
    handle.bind(uvicorn.Server(config))
    asyncio.run(handle.serve())


if __name__ == "__main__":
    run()
