"""
Maintenance mode middleware.

While maintenance is on, every request is answered by the error handler
with a 503 and a Retry-After header; the rest of the middleware stack and
the route never run. While it is off the middleware is a pass-through.
"""

from typing import Any, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from graceful_errors.application.error_handler import ErrorHandler
from graceful_errors.domain.maintenance import (
    EnabledPredicate,
    MaintenanceState,
    RetryAfterSource,
    create_maintenance_interceptor,
)
from graceful_errors.interfaces.transport import StarletteTransport


class MaintenanceMiddleware(BaseHTTPMiddleware):
    """Middleware that short-circuits requests while in maintenance.

    Unless install_policy is False, building the middleware installs its
    maintenance policy into the state, replacing the previous one. Starlette
    builds middleware on the first request; add_maintenance_middleware()
    installs at setup time instead and leaves the state alone afterwards.
    """

    def __init__(
        self,
        app: ASGIApp,
        error_handler: ErrorHandler,
        state: Optional[MaintenanceState] = None,
        enabled: Optional[EnabledPredicate] = None,
        retry_after: Optional[RetryAfterSource] = None,
        templates: Any = None,
        install_policy: bool = True,
    ) -> None:
        super().__init__(app)
        self._templates = templates
        self._intercept = create_maintenance_interceptor(
            error_handler,
            state=state if state is not None else error_handler.maintenance,
            enabled=enabled,
            retry_after=retry_after,
            install=install_policy,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Answer with the maintenance response or pass the request on."""
        transport = StarletteTransport(request, self._templates)
        downstream = self._intercept(request, transport, lambda: call_next(request))
        if downstream is not None:
            return await downstream
        return transport.build_response()


def add_maintenance_middleware(
    app: Any,
    error_handler: ErrorHandler,
    state: Optional[MaintenanceState] = None,
    enabled: Optional[EnabledPredicate] = None,
    retry_after: Optional[RetryAfterSource] = None,
    templates: Any = None,
) -> None:
    """Add MaintenanceMiddleware to an app and install its policy now.

    The policy is installed immediately so maintenance status queries are
    answered by it before the first request arrives. Policies installed into
    the state later are kept: the middleware does not reinstall its own.
    """
    state = state if state is not None else error_handler.maintenance
    state.install(enabled=enabled, retry_after=retry_after)
    app.add_middleware(
        MaintenanceMiddleware,
        error_handler=error_handler,
        state=state,
        enabled=enabled,
        retry_after=retry_after,
        templates=templates,
        install_policy=False,
    )
