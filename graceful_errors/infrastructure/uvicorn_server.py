"""
uvicorn server handle.

Implements the DrainableServer port for a uvicorn.Server. Draining asks
uvicorn to exit; uvicorn then stops accepting connections and waits for
in-flight requests before serve() returns, at which point the drain
callbacks fire.
"""

import logging
import threading
from typing import Callable, Optional

import uvicorn

from graceful_errors.domain.ports import DrainableServer

logger = logging.getLogger(__name__)


class UvicornServerHandle(DrainableServer):
    """Wraps a uvicorn.Server so the shutdown coordinator can drain it.

    The handle can be created before the server exists (the server needs
    the app, the app's error handler needs the handle) and bound later.

    Usage:
        handle = UvicornServerHandle()
        app = create_app(ErrorHandler(ErrorHandlerConfig(server=handle)))
        handle.bind(uvicorn.Server(uvicorn.Config(app)))
        asyncio.run(handle.serve())
    """

    def __init__(self, server: Optional[uvicorn.Server] = None) -> None:
        self._server = server
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._stopped = False

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server

    def bind(self, server: uvicorn.Server) -> None:
        self._server = server

    async def serve(self) -> None:
        """Run the server until it exits, then fire pending drain callbacks."""
        if self._server is None:
            raise RuntimeError("No uvicorn server bound to this handle")
        try:
            await self._server.serve()
        finally:
            with self._lock:
                self._stopped = True
                callbacks, self._callbacks = self._callbacks, []
            for callback in callbacks:
                callback()

    def drain(self, callback: Callable[[], None]) -> None:
        """Ask uvicorn to shut down gracefully; call back once it has.

        Calls back at once when there is no running server to drain.
        """
        with self._lock:
            if self._server is not None and not self._stopped:
                self._callbacks.append(callback)
                self._server.should_exit = True
                logger.info("Draining uvicorn server")
                return
        callback()
