"""
Centralized error handler registration for FastAPI.

Routes every HTTP exception and every unexpected exception through one
ErrorHandler. Request validation errors keep FastAPI's own 422 handler.
No stack traces or internal details are exposed to clients.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from graceful_errors.application.error_handler import ErrorHandler
from graceful_errors.domain.errors import HttpError
from graceful_errors.interfaces.transport import StarletteTransport

logger = logging.getLogger(__name__)


def register_error_handlers(
    app: FastAPI, error_handler: ErrorHandler, templates: Any = None
) -> None:
    """Register the graceful error handler on the FastAPI application.

    Args:
        app: The FastAPI application instance.
        error_handler: The handler every error is resolved by.
        templates: Optional template engine for configured views.
    """

    def respond(request: Request, exc: Exception) -> Response:
        transport = StarletteTransport(request, templates)
        strategy = error_handler.handle(exc, request, transport)
        logger.debug("Error on %s resolved by %s", request.url.path, strategy)
        return transport.build_response()

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        """Handle errors raised with an explicit HTTP status."""
        response = respond(request, exc)
        if exc.headers:
            for name, value in exc.headers.items():
                response.headers.setdefault(name, value)
        return response

    @app.exception_handler(HttpError)
    async def handle_http_error(request: Request, exc: HttpError) -> Response:
        """Handle HttpError raised by routes and interceptors."""
        return respond(request, exc)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> Response:
        """Catch-all for unexpected errors. Never exposes internals."""
        return respond(request, exc)
