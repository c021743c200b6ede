"""
Maintenance mode policy.

A maintenance policy is a pair of callables: one answering "is the service
in maintenance?" and one returning the Retry-After hint. By default both
read MAINT_FLAG / MAINT_RETRYAFTER from the environment on every call, so
an operator can flip maintenance without a restart. Deployments that keep
this switch elsewhere (a feature flag service, a database row) install
override callables instead.

Exactly one policy is active per MaintenanceState. Installing a new one
replaces the old one. The module-level ``maintenance_state`` is the shared
default instance; pass your own to keep state out of module globals.
"""

import logging
import re
import threading
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Optional, Union

from dateutil.parser import isoparse

from graceful_errors.core.config import read_maintenance_settings
from graceful_errors.domain.errors import (
    HttpError,
    MaintenanceModeError,
    MaintenancePolicyConflictError,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 3600
RETRY_AFTER_HEADER = "Retry-After"

_INTEGER = re.compile(r"[+-]?\d+")

RetryAfter = Union[int, str]
EnabledPredicate = Callable[[], Any]
RetryAfterSource = Callable[[], Any]


def _is_http_date(text: str) -> bool:
    """Return True if text is an RFC 7231 HTTP-date or an ISO-8601 date."""
    if not text:
        return False
    try:
        if parsedate_to_datetime(text) is not None:
            return True
    except (TypeError, ValueError, IndexError):
        pass
    try:
        isoparse(text)
    except (ValueError, OverflowError):
        return False
    return True


def parse_retry_after(value: Any) -> RetryAfter:
    """Normalize a Retry-After source value.

    Args:
        value: Seconds (int or numeric string) or an HTTP/ISO date string.

    Returns:
        Positive integer seconds, the date string unchanged, or
        DEFAULT_RETRY_AFTER when the value is absent, not positive,
        or cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_RETRY_AFTER
    if isinstance(value, (int, float)):
        seconds = int(value)
        return seconds if seconds > 0 else DEFAULT_RETRY_AFTER

    text = str(value).strip()
    if _INTEGER.fullmatch(text):
        seconds = int(text)
        return seconds if seconds > 0 else DEFAULT_RETRY_AFTER
    if _is_http_date(text):
        return text
    return DEFAULT_RETRY_AFTER


def env_enabled() -> bool:
    """Default enabled predicate: MAINT_FLAG equals "true", any case."""
    flag = read_maintenance_settings().maint_flag
    return flag is not None and flag.strip().lower() == "true"


def env_retry_after() -> RetryAfter:
    """Default Retry-After source: MAINT_RETRYAFTER, normalized."""
    return parse_retry_after(read_maintenance_settings().maint_retryafter)


@dataclass(frozen=True)
class MaintenancePolicy:
    """The active pair of maintenance callables.

    Attributes:
        enabled: Returns a truthy value while maintenance is on.
        retry_after: Returns the Retry-After source value.
        overrides_enabled: True when enabled was supplied by the caller.
    """

    enabled: EnabledPredicate
    retry_after: RetryAfterSource
    overrides_enabled: bool = False


class MaintenanceState:
    """Process-wide maintenance switch shared by middleware and handlers.

    Reads may happen concurrently from any number of requests. Writes
    (install, set_enabled, reset) are serialized by a lock; the last
    writer wins.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._policy: Optional[MaintenancePolicy] = None
        self._forced: Optional[bool] = None

    @property
    def installed(self) -> bool:
        return self._policy is not None

    def install(
        self,
        enabled: Optional[EnabledPredicate] = None,
        retry_after: Optional[RetryAfterSource] = None,
    ) -> MaintenancePolicy:
        """Replace the active policy.

        Args:
            enabled: Override predicate. Defaults to the built-in switch,
                which honours set_enabled() and then MAINT_FLAG.
            retry_after: Override Retry-After source. Defaults to
                MAINT_RETRYAFTER.

        Returns:
            The newly active policy.
        """
        policy = MaintenancePolicy(
            enabled=enabled if enabled is not None else self._builtin_enabled,
            retry_after=retry_after if retry_after is not None else env_retry_after,
            overrides_enabled=enabled is not None,
        )
        with self._lock:
            replaced = self._policy is not None
            self._policy = policy
        logger.info(
            "Maintenance policy %s (enabled=%s, retry_after=%s)",
            "replaced" if replaced else "installed",
            "override" if enabled is not None else "builtin",
            "override" if retry_after is not None else "builtin",
        )
        return policy

    def set_enabled(self, value: bool) -> None:
        """Force maintenance on or off through the built-in switch.

        Raises:
            MaintenancePolicyConflictError: An override enabled predicate
                is active, so this switch would have no effect.
        """
        with self._lock:
            if self._policy is not None and self._policy.overrides_enabled:
                raise MaintenancePolicyConflictError()
            self._forced = bool(value)
        logger.warning("Maintenance mode %s", "enabled" if value else "disabled")

    def status(self) -> bool:
        """Return True while maintenance is on.

        Always False until a policy has been installed.
        """
        policy = self._policy
        if policy is None:
            return False
        try:
            return bool(policy.enabled())
        except Exception:
            logger.exception("Maintenance enabled predicate failed; assuming off")
            return False

    def retry_after(self) -> RetryAfter:
        """Return the normalized Retry-After value of the active policy."""
        policy = self._policy
        source = policy.retry_after if policy is not None else env_retry_after
        try:
            return parse_retry_after(source())
        except Exception:
            logger.exception("Retry-After source failed; using %d", DEFAULT_RETRY_AFTER)
            return DEFAULT_RETRY_AFTER

    def reset(self) -> None:
        """Drop the active policy and any forced value."""
        with self._lock:
            self._policy = None
            self._forced = None

    def _builtin_enabled(self) -> bool:
        forced = self._forced
        if forced is not None:
            return forced
        return env_enabled()


maintenance_state = MaintenanceState()


def create_maintenance_interceptor(
    error_handler: Any,
    state: Optional[MaintenanceState] = None,
    enabled: Optional[EnabledPredicate] = None,
    retry_after: Optional[RetryAfterSource] = None,
    install: bool = True,
) -> Callable[[Any, Any, Callable[[], Any]], Any]:
    """Build the maintenance interceptor and install its policy.

    The policy is installed immediately, replacing whatever policy the
    state held before, unless install is False.

    Args:
        error_handler: Object with a handle(error, request, transport)
            method, normally an ErrorHandler.
        state: Maintenance state to install into. Defaults to the shared
            ``maintenance_state``.
        enabled: Optional override enabled predicate.
        retry_after: Optional override Retry-After source.
        install: Install the policy. Pass False when it is already installed
            and only the interceptor is needed.

    Returns:
        An interceptor(request, transport, call_next). While maintenance is
        on it sets Retry-After, hands a synthetic 503 to the error handler
        and returns None without calling call_next. Otherwise it returns
        call_next().
    """
    state = state if state is not None else maintenance_state
    if install:
        state.install(enabled=enabled, retry_after=retry_after)

    def intercept(request: Any, transport: Any, call_next: Callable[[], Any]) -> Any:
        if not state.status():
            return call_next()
        transport.set_header(RETRY_AFTER_HEADER, str(state.retry_after()))
        error_handler.handle(MaintenanceModeError(), request, transport)
        return None

    return intercept


def http_error(status: int, message: Optional[str] = None) -> HttpError:
    """Build an HttpError for the given status."""
    return HttpError(status, message)


def create_http_error_interceptor(
    status: int, message: Optional[str] = None
) -> Callable[[Any, Any, Callable[[], Any]], Any]:
    """Build an interceptor that fails every request with the given status."""

    def intercept(request: Any, transport: Any, call_next: Callable[[], Any]) -> Any:
        raise http_error(status, message)

    return intercept
