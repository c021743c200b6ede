"""
Response resolution.

Picks exactly one way to answer a failed request, in order:

    no transport > custom handler > custom view > custom static file
    > default response (client errors, maintenance)
    > 500 default response followed by shutdown (everything else)

A custom handler is assumed to own the response completely, so it wins
over everything; the default response makes the most assumptions, so it
comes last. After responding, client errors and maintenance keep the
service up; anything else shuts it down.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from graceful_errors.application.default_responder import DefaultResponder
from graceful_errors.application.dtos import ErrorHandlerConfig
from graceful_errors.application.shutdown import ShutdownCoordinator
from graceful_errors.domain.classifier import is_recoverable
from graceful_errors.domain.entities import ErrorCategory, ErrorContext
from graceful_errors.domain.ports import Transport

logger = logging.getLogger(__name__)

INTERNAL_SERVER_ERROR = 500

Completion = Callable[[], None]


@dataclass(frozen=True)
class Strategy:
    """One entry of the precedence chain.

    Attributes:
        name: Strategy name, reported back by resolve().
        matches: Predicate over (context, transport, category).
        run: Produces the response and calls the completion when done.
        custom: True for strategies driven by user configuration.
    """

    name: str
    matches: Callable[[ErrorContext, Optional[Transport], ErrorCategory], bool]
    run: Callable[[ErrorContext, Optional[Transport], Completion], None]
    custom: bool = False


def _completion(func: Completion) -> Completion:
    """Wrap func so it runs at most once and never raises.

    Exceptions from func are logged and never reach the response strategy.
    """
    lock = threading.Lock()
    called = False

    def wrapper() -> None:
        nonlocal called
        with lock:
            if called:
                return
            called = True
        try:
            func()
        except Exception:
            logger.exception("Post-response completion failed")

    return wrapper


class ResponseResolver:
    """Runs the first matching response strategy for an error."""

    def __init__(
        self,
        config: ErrorHandlerConfig,
        responder: DefaultResponder,
        coordinator: ShutdownCoordinator,
    ) -> None:
        self._config = config
        self._responder = responder
        self._coordinator = coordinator
        self._default = Strategy(
            "default",
            lambda context, transport, category: is_recoverable(category),
            self._run_default,
        )
        self._fatal = Strategy(
            "fatal", lambda context, transport, category: True, self._run_fatal
        )
        self._strategies: tuple[Strategy, ...] = (
            Strategy(
                "no_transport",
                lambda context, transport, category: transport is None,
                self._run_no_transport,
            ),
            Strategy(
                "handler",
                lambda context, transport, category: context.status in config.handlers,
                self._run_handler,
                custom=True,
            ),
            Strategy(
                "view",
                lambda context, transport, category: context.status in config.views,
                self._run_view,
                custom=True,
            ),
            Strategy(
                "static",
                lambda context, transport, category: context.status in config.static,
                self._run_static,
                custom=True,
            ),
            self._default,
            self._fatal,
        )

    @property
    def strategies(self) -> tuple[Strategy, ...]:
        return self._strategies

    def resolve(
        self,
        context: ErrorContext,
        transport: Optional[Transport],
        category: ErrorCategory,
    ) -> str:
        """Respond to one failed request and decide whether to shut down.

        Args:
            context: The failed request.
            transport: Response channel, or None when there is none.
            category: Classification of context.status.

        Returns:
            The name of the strategy that handled the error.
        """
        strategy = next(
            s for s in self._strategies if s.matches(context, transport, category)
        )
        if strategy is self._fatal:
            finish = _completion(self._coordinator.shutdown)
        else:
            finish = _completion(lambda: self._decide(category))

        try:
            strategy.run(context, transport, finish)
        except Exception:
            logger.exception(
                "Error response strategy %r failed for status %s",
                strategy.name,
                context.status,
            )
            self._recover(strategy, context, transport, category, finish)
        return strategy.name

    def _recover(
        self,
        failed: Strategy,
        context: ErrorContext,
        transport: Optional[Transport],
        category: ErrorCategory,
        finish: Completion,
    ) -> None:
        if failed.custom:
            fallback = self._default if is_recoverable(category) else self._fatal
            try:
                fallback.run(context, transport, finish)
                return
            except Exception:
                logger.exception("Default error response failed for status %s", context.status)
        finish()

    def _decide(self, category: ErrorCategory) -> None:
        if is_recoverable(category):
            return
        self._coordinator.shutdown()

    def _response_status(self, context: ErrorContext) -> int:
        if isinstance(context.status, int):
            return context.status
        return INTERNAL_SERVER_ERROR

    def _run_no_transport(
        self, context: ErrorContext, transport: Optional[Transport], finish: Completion
    ) -> None:
        logger.debug("No response channel for status %s", context.status)
        finish()

    def _run_handler(
        self, context: ErrorContext, transport: Transport, finish: Completion
    ) -> None:
        self._config.handlers[context.status](context, transport)
        finish()

    def _run_view(
        self, context: ErrorContext, transport: Transport, finish: Completion
    ) -> None:
        transport.status_code = self._response_status(context)
        transport.render(self._config.views[context.status], context.as_template_data())
        finish()

    def _run_static(
        self, context: ErrorContext, transport: Transport, finish: Completion
    ) -> None:
        transport.status_code = self._response_status(context)
        transport.send_file(self._config.static[context.status], on_end=finish)

    def _run_default(
        self, context: ErrorContext, transport: Transport, finish: Completion
    ) -> None:
        self._responder.render(self._response_status(context), context, transport, finish)

    def _run_fatal(
        self, context: ErrorContext, transport: Transport, finish: Completion
    ) -> None:
        self._responder.render(INTERNAL_SERVER_ERROR, context, transport, finish)
