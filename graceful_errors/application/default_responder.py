"""
Default responder.

Last resort for any error no custom handler, view or static file claimed.
Renders the default view or static file when configured. Otherwise, or
when that page cannot be rendered or sent, it writes a content-negotiated
body: {"status", "message"} as JSON, or the bare message as text or HTML.
"""

import html
import logging
from http import HTTPStatus
from typing import Any, Callable, Optional

from graceful_errors.application.dtos import ErrorHandlerConfig
from graceful_errors.domain.entities import ErrorContext
from graceful_errors.domain.ports import Transport

logger = logging.getLogger(__name__)

FALLBACK_REASON = "Internal Server Error"


def reason_phrase(status: Optional[int]) -> str:
    """Return the standard reason phrase for a status."""
    try:
        return HTTPStatus(status).phrase
    except (TypeError, ValueError):
        return FALLBACK_REASON


class DefaultResponder:
    """Renders the built-in error response."""

    def __init__(self, config: ErrorHandlerConfig) -> None:
        self._config = config

    def render(
        self,
        status: int,
        context: ErrorContext,
        transport: Transport,
        on_complete: Callable[[], None],
    ) -> None:
        """Send the default response and report completion.

        Args:
            status: Status to respond with. Set before any body is written.
            context: The failed request.
            transport: Where to send the response.
            on_complete: Called once the response is out. Deferred to the
                end of the stream when a default static file is sent.
        """
        transport.status_code = status

        try:
            if self._config.default_view:
                transport.render(self._config.default_view, context.as_template_data())
                on_complete()
                return

            if self._config.default_static:
                transport.send_file(self._config.default_static, on_end=on_complete)
                return
        except Exception:
            logger.exception(
                "Default error page failed for status %s; sending the plain body", status
            )

        message = context.message or reason_phrase(status)
        transport.format(
            {
                "json": lambda: self._json_body(status, message),
                "text": lambda: message,
                "html": lambda: html.escape(message),
            }
        )
        on_complete()

    def _json_body(self, status: int, message: str) -> Any:
        body = {"status": status, "message": message}
        if self._config.serializer is None:
            return body
        return self._config.serializer(body)
