"""
Data Transfer Objects for the error handling application layer.

ErrorHandlerConfig is the only configuration an ErrorHandler holds.
It is frozen: reconfiguring means building a new handler.
"""

from dataclasses import dataclass, field
from os import PathLike
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union

from graceful_errors.domain.entities import ErrorContext, Framework
from graceful_errors.domain.errors import ConfigurationError

DEFAULT_KEY = "default"

StatusKey = Union[int, str]
CustomHandler = Callable[[ErrorContext, Any], Any]


def _normalize_key(key: StatusKey) -> StatusKey:
    """Turn "404" into 404; keep the reserved "default" key."""
    if isinstance(key, bool):
        raise ConfigurationError(f"Invalid status key: {key!r}")
    if isinstance(key, int):
        return key
    text = str(key).strip()
    if text == DEFAULT_KEY:
        return DEFAULT_KEY
    if text.isdigit():
        return int(text)
    raise ConfigurationError(f"Invalid status key: {key!r}")


def _freeze(mapping: Optional[Mapping[StatusKey, Any]]) -> Mapping[StatusKey, Any]:
    normalized = {_normalize_key(key): value for key, value in (mapping or {}).items()}
    return MappingProxyType(normalized)


@dataclass(frozen=True)
class ErrorHandlerConfig:
    """Configuration for one ErrorHandler.

    Attributes:
        handlers: Custom handler per status, called as handler(context, transport).
        views: View name per status. The "default" key is used when no
            status-specific view or static file exists.
        static: File path per status, with the same "default" key.
        timeout: Seconds to wait for a graceful drain before forcing exit.
        exit_status: Process exit status on shutdown.
        server: Server handle exposing drain(callback), if any.
        shutdown: Replacement for the built-in shutdown. Called with this
            config and fully owns termination.
        serializer: Transform applied to the default JSON body.
        framework: Calling convention of the handler when called directly.
    """

    handlers: Mapping[StatusKey, CustomHandler] = field(default_factory=dict)
    views: Mapping[StatusKey, str] = field(default_factory=dict)
    static: Mapping[StatusKey, Union[str, PathLike]] = field(default_factory=dict)
    timeout: float = 3.0
    exit_status: int = 1
    server: Any = None
    shutdown: Optional[Callable[["ErrorHandlerConfig"], Any]] = None
    serializer: Optional[Callable[[dict[str, Any]], Any]] = None
    framework: Framework = Framework.ERROR_FIRST

    def __post_init__(self) -> None:
        for name in ("handlers", "views", "static"):
            object.__setattr__(self, name, _freeze(getattr(self, name)))
        for status, handler in self.handlers.items():
            if not callable(handler):
                raise ConfigurationError(f"Handler for {status} is not callable")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigurationError(f"Invalid shutdown timeout: {self.timeout!r}")
        if self.timeout < 0:
            raise ConfigurationError("Shutdown timeout must not be negative")
        if not isinstance(self.framework, Framework):
            try:
                framework = Framework(self.framework)
            except ValueError as exc:
                raise ConfigurationError(f"Unknown framework: {self.framework!r}") from exc
            object.__setattr__(self, "framework", framework)

    @property
    def default_view(self) -> Optional[str]:
        return self.views.get(DEFAULT_KEY)

    @property
    def default_static(self) -> Optional[Union[str, PathLike]]:
        return self.static.get(DEFAULT_KEY)
