"""
Mango API — Failure & Shutdown Handler
========================================

What:  Owns the process lifecycle once the listener is up: reacts to
       termination signals and unrecoverable faults, drains the server, and
       releases the database connection before the process exits.
Why:   The process must never leave the socket or the connection pool
       dangling, and must never hang forever on a stuck connection.

State Machine:
    RUNNING
        → SIGINT / SIGTERM             : DRAINING, exit code 0
        → unhandled async exception    : DRAINING, exit code 1
        → uncaught fault in a thread   : DRAINING, exit code 1
        → server task crashed          : DRAINING, exit code 1
    DRAINING
        → listener closed              : TERMINATED
        → grace period elapsed         : force-close, TERMINATED
    TERMINATED
        database disposed; run() returns the exit code

    Further triggers while DRAINING only raise the exit code (a fault during
    a signal-initiated drain still ends non-zero); they never restart the
    drain or extend the grace period.

Request failures never reach this handler: the app's exception handlers
answer them with an envelope.
"""

import asyncio
import contextlib
import logging
import signal
import threading
from typing import Any, Dict, Optional

import uvicorn

from mango_api.context import AppContext
from mango_api.exceptions import UnhandledFault

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Time given to uvicorn to close connections after force_exit is set
FORCE_CLOSE_TIMEOUT = 1.0


class ManagedServer(uvicorn.Server):
    """
    uvicorn server whose signals are owned by ShutdownHandler.

    uvicorn installs its own SIGINT/SIGTERM handlers inside serve(); both
    hooks are disabled so a signal reaches exactly one handler.
    """

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class ShutdownHandler:
    """
    RUNNING → DRAINING → TERMINATED, driven by signals and faults.

    Args:
        server:        object with async serve() and should_exit/force_exit
                       flags (uvicorn.Server in production)
        context:       AppContext whose connection is released on the way out
        grace_period:  seconds DRAINING may last before the listener is
                       forcibly closed
    """

    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"

    def __init__(self, server: Any, context: AppContext, grace_period: float):
        self.server = server
        self.context = context
        self.grace_period = grace_period
        self.state = self.RUNNING
        self.exit_code = 0
        self.reason: Optional[str] = None
        self.forced = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._drain_requested: Optional[asyncio.Event] = None
        self._installed_signals: list = []
        self._previous_thread_hook = None

    # ── Triggers ──────────────────────────────────────────────────────────

    def request_shutdown(self, reason: str, exit_code: int = 0) -> None:
        """Begin draining. Idempotent; a later fault only raises the exit code."""
        if self.state != self.RUNNING:
            if exit_code > self.exit_code:
                self.exit_code = exit_code
            logger.warning("Shutdown already in progress (%s); ignoring: %s", self.state, reason)
            return

        self.state = self.DRAINING
        self.reason = reason
        self.exit_code = exit_code
        logger.info(
            "Shutdown requested (%s): draining for up to %.1fs",
            reason,
            self.grace_period,
        )
        # Stops the accept loop; in-flight requests keep running
        self.server.should_exit = True
        if self._drain_requested is not None:
            self._drain_requested.set()

    def handle_signal(self, signum: int) -> None:
        name = signal.Signals(signum).name
        self.request_shutdown(f"received {name}", exit_code=0)

    def handle_fault(self, exc: BaseException, origin: str) -> None:
        fault = UnhandledFault(
            message=f"Unhandled fault in {origin}: {exc!r}",
            context={"origin": origin, "error_type": type(exc).__name__},
        )
        logger.critical(fault.message, exc_info=(type(exc), exc, exc.__traceback__))
        self.request_shutdown(fault.message, exit_code=1)

    def handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        """asyncio exception handler: unretrieved task exceptions and callback errors."""
        exc = context.get("exception")
        if exc is None:
            logger.error("Event loop error: %s", context.get("message"))
            return
        self.handle_fault(exc, "event loop")

    def _handle_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if self._loop is None or args.exc_value is None:
            return
        self._loop.call_soon_threadsafe(
            self.handle_fault, args.exc_value, f"thread {getattr(args.thread, 'name', '?')}"
        )

    # ── Installation ──────────────────────────────────────────────────────

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._drain_requested = asyncio.Event()
        for sig in HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.handle_signal, sig)
                self._installed_signals.append(sig)
            except (NotImplementedError, RuntimeError):
                # Windows or a non-main thread: fall back to signal.signal
                signal.signal(
                    sig,
                    lambda signum, frame: loop.call_soon_threadsafe(self.handle_signal, signum),
                )
        loop.set_exception_handler(self.handle_loop_exception)
        self._previous_thread_hook = threading.excepthook
        threading.excepthook = self._handle_thread_exception

    def uninstall(self) -> None:
        if self._loop is not None:
            for sig in self._installed_signals:
                self._loop.remove_signal_handler(sig)
            self._loop.set_exception_handler(None)
        self._installed_signals = []
        if self._previous_thread_hook is not None:
            threading.excepthook = self._previous_thread_hook
            self._previous_thread_hook = None

    # ── Run ───────────────────────────────────────────────────────────────

    async def run(self) -> int:
        """
        Serve until the state machine reaches TERMINATED; return the exit code.
        """
        self.install(asyncio.get_running_loop())
        serve_task = asyncio.create_task(self.server.serve(), name="http-server")
        drain_task = asyncio.create_task(self._drain_requested.wait(), name="drain-trigger")
        try:
            await asyncio.wait({serve_task, drain_task}, return_when=asyncio.FIRST_COMPLETED)

            if serve_task.done():
                self._server_stopped(serve_task)
            else:
                await self._drain(serve_task)
        finally:
            drain_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await drain_task
            await self.context.disconnect()
            self.uninstall()
            self.state = self.TERMINATED
            logger.info("Terminated with exit code %d (%s)", self.exit_code, self.reason)
        return self.exit_code

    def _server_stopped(self, serve_task: asyncio.Task) -> None:
        """The server returned without a shutdown request."""
        exc = serve_task.exception() if not serve_task.cancelled() else None
        if exc is not None:
            self.handle_fault(exc, "server")
        elif not getattr(self.server, "started", True):
            self.request_shutdown("server failed to start", exit_code=1)
        else:
            self.request_shutdown("server stopped", exit_code=self.exit_code)

    async def _drain(self, serve_task: asyncio.Task) -> None:
        try:
            await asyncio.wait_for(asyncio.shield(serve_task), timeout=self.grace_period)
            logger.info("Listener closed; all in-flight requests finished")
        except asyncio.TimeoutError:
            self.forced = True
            logger.error(
                "Grace period of %.1fs elapsed with connections still open; forcing shutdown",
                self.grace_period,
            )
            self.server.force_exit = True
            try:
                await asyncio.wait_for(asyncio.shield(serve_task), timeout=FORCE_CLOSE_TIMEOUT)
            except asyncio.TimeoutError:
                serve_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await serve_task
            except Exception as e:
                self.handle_fault(e, "server")
        except Exception as e:
            self.handle_fault(e, "server")
