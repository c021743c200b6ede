"""
Shared fixtures for the graceful error handling tests.

Provides an in-memory Transport, a fresh MaintenanceState per test, and
an environment without maintenance switches.
"""

from typing import Any, Callable, Optional, Union
from unittest.mock import MagicMock

import pytest

from graceful_errors.application.shutdown import ShutdownCoordinator
from graceful_errors.domain.maintenance import MaintenanceState
from graceful_errors.domain.ports import Representations, Transport


class FakeTransport(Transport):
    """Records everything the error handler does to a response."""

    def __init__(self, accept: Optional[str] = "json") -> None:
        self.accept = accept
        self._status_code: Optional[int] = None
        self.headers: dict[str, str] = {}
        self.sent: list[Union[bytes, str]] = []
        self.format_token: Optional[str] = None
        self.body: Any = None
        self.rendered: list[tuple[str, dict[str, Any]]] = []
        self.files: list[str] = []
        self.on_end: Optional[Callable[[], None]] = None
        self.status_at_first_write: Optional[int] = None

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @status_code.setter
    def status_code(self, value: int) -> None:
        self._status_code = value

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def _record_write(self) -> None:
        if self.status_at_first_write is None:
            self.status_at_first_write = self._status_code

    def send(self, body: Union[bytes, str]) -> None:
        self._record_write()
        self.sent.append(body)

    def format(self, representations: Representations) -> None:
        self._record_write()
        token = self.accept if self.accept in representations else next(iter(representations))
        self.format_token = token
        self.body = representations[token]()

    def render(self, view: str, data: dict[str, Any]) -> None:
        self._record_write()
        self.rendered.append((view, data))

    def send_file(self, path: Any, on_end: Callable[[], None]) -> None:
        self._record_write()
        self.files.append(str(path))
        self.on_end = on_end

    def finish_stream(self) -> None:
        """Simulate the end of a streamed file."""
        assert self.on_end is not None
        self.on_end()


class BareTransport(FakeTransport):
    """A transport that can neither render views nor stream files."""

    def render(self, view: str, data: dict[str, Any]) -> None:
        Transport.render(self, view, data)

    def send_file(self, path: Any, on_end: Callable[[], None]) -> None:
        Transport.send_file(self, path, on_end)


@pytest.fixture(autouse=True)
def clean_maintenance_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no maintenance switch leaks in from the environment."""
    monkeypatch.delenv("MAINT_FLAG", raising=False)
    monkeypatch.delenv("MAINT_RETRYAFTER", raising=False)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def maintenance() -> MaintenanceState:
    return MaintenanceState()


@pytest.fixture
def coordinator() -> MagicMock:
    return MagicMock(spec=ShutdownCoordinator)


@pytest.fixture
def bare_transport() -> BareTransport:
    return BareTransport()


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    return FakeTransport
