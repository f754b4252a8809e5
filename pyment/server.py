from __future__ import annotations

import enum
import logging
import socket
import threading
import time
from typing import Optional

import uvicorn
from fastapi import Request

from .config import Configuration
from .errors import BindError, ServerStateError, ShutdownError
from .routes import RouteTable, create_app


# The bind ignores Configuration.endpoint: it is only reported, never used to
# pick an interface.
BIND_HOST = "0.0.0.0"
BACKLOG = 2048

SHUTDOWN_TIMEOUT = 5.0
STARTUP_TIMEOUT = 5.0
# uvicorn polls should_exit every 0.1s and runs lifespan shutdown after the
# grace window, so the serving thread gets a little longer than the window.
SHUTDOWN_MARGIN = 2.0


class ServerState(str, enum.Enum):
    CONSTRUCTED = "constructed"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting-down"
    STOPPED = "stopped"


class Server:
    """One start/shutdown cycle of the HTTP service.

    The app is built and routed at construction; the socket is bound in
    start() and uvicorn serves it from a background thread. shutdown() gives
    in-flight requests ``shutdown_timeout`` seconds before they are cancelled.
    Failures are raised, not exited on; the caller decides what is fatal.
    """

    def __init__(
        self,
        config: Configuration,
        routes: RouteTable,
        logger: Optional[logging.Logger] = None,
        shutdown_timeout: float = SHUTDOWN_TIMEOUT,
    ) -> None:
        self.config = config
        self.shutdown_timeout = shutdown_timeout
        self.log = logger or logging.getLogger(__name__)
        self.app = create_app(config, routes)
        self.app.middleware("http")(self._log_request)
        self._uvicorn = uvicorn.Server(
            uvicorn.Config(
                self.app,
                log_config=None,
                access_log=False,
                timeout_graceful_shutdown=shutdown_timeout,
            )
        )
        self._state = ServerState.CONSTRUCTED
        self._socket: Optional[socket.socket] = None
        self._bound_port: Optional[int] = None
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None
        # Set once the serving thread returns, for whatever reason.
        self.finished = threading.Event()

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, or None before start()."""
        return self._bound_port

    async def _log_request(self, request: Request, call_next):
        response = await call_next(request)
        self.log.info("%s %s %s", request.method, request.url.path, response.status_code)
        return response

    # === Lifecycle ===

    def start(self) -> None:
        if self._state is not ServerState.CONSTRUCTED:
            raise ServerStateError(f"start() is only valid once, server is {self._state.value}")

        self.log.info(
            "Server starting on %s (Environment: %s)", self.config.address, self.config.environment
        )
        try:
            self._socket = self._bind()
        except (OSError, ValueError, OverflowError) as exc:
            self._state = ServerState.STOPPED
            self.log.error("Error starting server: %s", exc)
            raise BindError(f"cannot bind port {self.config.port!r}: {exc}") from exc
        self._bound_port = self._socket.getsockname()[1]

        self._thread = threading.Thread(target=self._serve, name="pyment-server", daemon=True)
        self._thread.start()
        self._state = ServerState.LISTENING
        self._wait_started()

    def shutdown(self) -> None:
        if self._state is not ServerState.LISTENING:
            raise ServerStateError(f"shutdown() needs a listening server, server is {self._state.value}")

        self._state = ServerState.SHUTTING_DOWN
        self.log.info("Shutting down server...")
        self._uvicorn.should_exit = True
        self._thread.join(self.shutdown_timeout + SHUTDOWN_MARGIN)
        stuck = self._thread.is_alive()
        if stuck:
            self._uvicorn.force_exit = True
        self._socket.close()
        self._state = ServerState.STOPPED

        if stuck:
            self.log.error("Server shutdown failed: still serving after %.1fs", self.shutdown_timeout)
            raise ShutdownError(f"server still running after {self.shutdown_timeout}s grace window")
        if self._error is not None:
            self.log.error("Server shutdown failed: %s", self._error)
            raise ShutdownError(f"server stopped with an error: {self._error}") from self._error
        self.log.info("Server shutdown gracefully")

    # === Internals ===

    def _bind(self) -> socket.socket:
        port = int(self.config.port)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((BIND_HOST, port))
            sock.listen(BACKLOG)
        except (OSError, OverflowError):
            sock.close()
            raise
        return sock

    def _serve(self) -> None:
        try:
            self._uvicorn.run(sockets=[self._socket])
        except Exception as exc:
            # Surfaced by shutdown().
            self._error = exc
            self.log.exception("Server crashed while serving")
        finally:
            self.finished.set()

    def _wait_started(self) -> None:
        deadline = time.monotonic() + STARTUP_TIMEOUT
        while not self._uvicorn.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self._uvicorn.should_exit = True
                self._socket.close()
                self._state = ServerState.STOPPED
                self.log.error("Error starting server: listener did not come up")
                raise BindError("server did not start serving") from self._error
            time.sleep(0.01)
