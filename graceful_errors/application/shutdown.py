"""
Graceful shutdown.

After a server error the process is in an unknown state and must die so a
supervisor (systemd, Kubernetes, supervisord...) can restart it. Before
dying, the server gets a chance to finish in-flight requests:

    IDLE -> DRAINING -> TERMINATED

Two completions race to terminate the process: the server's drain
callback and a timeout timer. Both go through one TerminationGate, so the
first one exits and the second is a no-op. The timer guarantees exit even
when a connection never closes.
"""

import logging
import os
import threading
from typing import Callable, Optional

from graceful_errors.application.dtos import ErrorHandlerConfig
from graceful_errors.domain.entities import ShutdownState
from graceful_errors.shared.logging import flush_logging

logger = logging.getLogger(__name__)

ExitFunc = Callable[[int], None]


def terminate_process(status: int) -> None:
    """Exit the whole process immediately, from any thread."""
    flush_logging()
    os._exit(status)


class TerminationGate:
    """Lets exactly one caller terminate the process."""

    def __init__(self, exit_func: ExitFunc = terminate_process) -> None:
        self._exit_func = exit_func
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def terminate(self, status: int) -> bool:
        """Terminate with status unless already terminated.

        Returns:
            True if this call terminated, False if it was a no-op.
        """
        with self._lock:
            if self._fired:
                return False
            self._fired = True
        logger.critical("Terminating process with exit status %d", status)
        self._exit_func(status)
        return True


class ShutdownCoordinator:
    """Drains the server, then exits; exits anyway after the timeout."""

    def __init__(
        self,
        config: ErrorHandlerConfig,
        exit_func: ExitFunc = terminate_process,
    ) -> None:
        self._config = config
        self._gate = TerminationGate(exit_func)
        self._lock = threading.Lock()
        self._state = ShutdownState.IDLE
        self._timer: Optional[threading.Timer] = None

    @property
    def state(self) -> ShutdownState:
        if self._gate.fired:
            return ShutdownState.TERMINATED
        return self._state

    @property
    def gate(self) -> TerminationGate:
        return self._gate

    def shutdown(self) -> None:
        """Start the graceful shutdown. Never blocks.

        A configured shutdown override takes over entirely. Otherwise the
        first call arms the timeout and starts the drain; later calls
        are ignored.
        """
        config = self._config
        if config.shutdown is not None:
            logger.info("Delegating shutdown to the configured override")
            config.shutdown(config)
            return

        with self._lock:
            if self._state is not ShutdownState.IDLE:
                logger.info("Shutdown already in progress (%s)", self._state.value)
                return
            self._state = ShutdownState.DRAINING

        logger.warning(
            "Shutting down: draining server, forced exit in %.1fs", config.timeout
        )
        self._arm_timeout()
        self._start_drain()

    def _terminate(self) -> None:
        if self._gate.terminate(self._config.exit_status):
            self._state = ShutdownState.TERMINATED

    def _on_timeout(self) -> None:
        if not self._gate.fired:
            logger.error(
                "Server did not drain within %.1fs; forcing exit", self._config.timeout
            )
        self._terminate()

    def _on_drained(self) -> None:
        logger.info("Server drained")
        self._terminate()

    def _arm_timeout(self) -> None:
        self._timer = threading.Timer(self._config.timeout, self._on_timeout)
        self._timer.daemon = True
        self._timer.start()

    def _start_drain(self) -> None:
        drain = getattr(self._config.server, "drain", None)
        if not callable(drain):
            return
        try:
            drain(self._on_drained)
        except Exception:
            logger.exception("Server drain failed; waiting for the timeout")
