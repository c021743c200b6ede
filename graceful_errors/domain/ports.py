"""
Port interfaces (ABCs) for graceful error handling.

Ports define what the error handler needs from the transport layer
and from the running server. Interface and infrastructure adapters
implement these interfaces. The domain never depends on Starlette.
"""

from abc import ABC, abstractmethod
from os import PathLike
from typing import Any, Callable, Mapping, Optional, Union

from graceful_errors.domain.errors import TransportCapabilityError

Representations = Mapping[str, Callable[[], Any]]


class Transport(ABC):
    """Port for the response side of a failed request.

    Required: status code, headers, a raw body send and a negotiated
    send. Optional: view rendering and file streaming; adapters that
    cannot do either inherit the defaults, which raise
    TransportCapabilityError.
    """

    @property
    @abstractmethod
    def status_code(self) -> Optional[int]:
        """Return the response status set so far, or None."""
        raise NotImplementedError

    @status_code.setter
    @abstractmethod
    def status_code(self, value: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_header(self, name: str, value: str) -> None:
        """Set a response header, replacing any previous value."""
        raise NotImplementedError

    @abstractmethod
    def get_header(self, name: str) -> Optional[str]:
        """Return a response header previously set, or None."""
        raise NotImplementedError

    @abstractmethod
    def send(self, body: Union[bytes, str]) -> None:
        """Send a raw body with the current status code."""
        raise NotImplementedError

    @abstractmethod
    def format(self, representations: Representations) -> None:
        """Send exactly one representation chosen by content negotiation.

        Args:
            representations: Callables keyed by content-type token
                ("json", "text" or "html"), each returning the body.
        """
        raise NotImplementedError

    def render(self, view: str, data: dict[str, Any]) -> None:
        """Render a named view with the given template data."""
        raise TransportCapabilityError("render")

    def send_file(
        self, path: Union[str, PathLike], on_end: Callable[[], None]
    ) -> None:
        """Stream a file and call on_end once the stream stops, even on failure."""
        raise TransportCapabilityError("send_file")


class DrainableServer(ABC):
    """Port for a running server that can stop accepting work."""

    @abstractmethod
    def drain(self, callback: Callable[[], None]) -> None:
        """Stop accepting new connections; call back when existing ones end.

        Must not block. The callback may never fire if a connection hangs.
        """
        raise NotImplementedError
