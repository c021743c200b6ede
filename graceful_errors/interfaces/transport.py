"""
Starlette transport adapter.

Implements the Transport port on top of a Starlette request. The error
handler writes status, headers and a body into it; build_response() then
turns that into the Starlette Response the exception handler returns.
Headers and status are applied when the response is built, so a header
set after the body (or a body chosen before the status) still lands.
Templates are rendered and error pages checked when they are chosen, so
their failures surface inside the error handler.
"""

import logging
import os
from os import PathLike
from typing import Any, Callable, Optional, Union

from starlette.requests import Request
from starlette.responses import (
    FileResponse,
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    Response,
)
from starlette.types import Receive, Scope, Send

from graceful_errors.domain.errors import TransportCapabilityError
from graceful_errors.domain.ports import Representations, Transport
from graceful_errors.interfaces.negotiation import negotiate

logger = logging.getLogger(__name__)

DEFAULT_STATUS = 500

RESPONSE_CLASSES: dict[str, type[Response]] = {
    "json": JSONResponse,
    "text": PlainTextResponse,
    "html": HTMLResponse,
}


class StreamedFileResponse(FileResponse):
    """FileResponse that calls on_end once streaming stops.

    on_end runs whether the file was fully sent or the stream failed,
    for example on a client disconnect or a file removed after the check.
    """

    def __init__(
        self, path: Union[str, PathLike], on_end: Callable[[], None], **kwargs: Any
    ) -> None:
        super().__init__(path, **kwargs)
        self.on_end = on_end

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.on_end()


def _with_status(response: Response, status: int) -> Response:
    response.status_code = status
    return response


class StarletteTransport(Transport):
    """Collects an error response for a Starlette request.

    Args:
        request: The request that failed.
        templates: Optional template engine exposing
            TemplateResponse(request, name, context, status_code=...),
            such as starlette.templating.Jinja2Templates.
    """

    def __init__(self, request: Optional[Request], templates: Any = None) -> None:
        self.request = request
        self._templates = templates
        self._status_code: Optional[int] = None
        self._headers: dict[str, str] = {}
        self._build: Optional[Callable[[int], Response]] = None

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @status_code.setter
    def status_code(self, value: int) -> None:
        self._status_code = int(value)

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def has_body(self) -> bool:
        return self._build is not None

    def set_header(self, name: str, value: str) -> None:
        for existing in list(self._headers):
            if existing.lower() == name.lower():
                del self._headers[existing]
        self._headers[name] = str(value)

    def get_header(self, name: str) -> Optional[str]:
        for existing, value in self._headers.items():
            if existing.lower() == name.lower():
                return value
        return None

    def send(self, body: Union[bytes, str]) -> None:
        if isinstance(body, str):
            self._build = lambda status: PlainTextResponse(body, status_code=status)
        else:
            self._build = lambda status: Response(body, status_code=status)

    def format(self, representations: Representations) -> None:
        accept = self.request.headers.get("accept") if self.request is not None else None
        token = negotiate(accept, representations.keys())
        if token is None:
            # Nothing acceptable: fall back to the first representation
            token = next(iter(representations))
            logger.debug("No acceptable error representation for %r; using %s", accept, token)
        content = representations[token]()
        if token == "json" and isinstance(content, (str, bytes)):
            # Already serialized
            self._build = lambda status: Response(
                content, status_code=status, media_type="application/json"
            )
            return
        response_class = RESPONSE_CLASSES.get(token, PlainTextResponse)
        self._build = lambda status: response_class(content, status_code=status)

    def render(self, view: str, data: dict[str, Any]) -> None:
        if self._templates is None:
            raise TransportCapabilityError("render")
        context = dict(data)
        context.setdefault("request", self.request)
        # Built now so a missing or broken template fails inside the handler
        response = self._templates.TemplateResponse(
            self.request, view, context, status_code=self._status_code or DEFAULT_STATUS
        )
        self._build = lambda status: _with_status(response, status)

    def send_file(
        self, path: Union[str, PathLike], on_end: Callable[[], None]
    ) -> None:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Error page not found: {path}")
        self._build = lambda status: StreamedFileResponse(
            path, on_end=on_end, status_code=status
        )

    def build_response(self) -> Response:
        """Return the Starlette response collected so far."""
        status = self._status_code or DEFAULT_STATUS
        if self._build is None:
            response = Response(status_code=status)
        else:
            response = self._build(status)
        for name, value in self._headers.items():
            response.headers[name] = value
        return response
