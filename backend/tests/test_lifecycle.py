"""
Mango API — Shutdown & Startup Tests
======================================

What:  The RUNNING → DRAINING → TERMINATED state machine and the startup
       abort paths of the server runner.
How:   A FakeServer stands in for uvicorn: it exposes the same
       should_exit / force_exit flags and an async serve(). The AppContext is
       a mock whose disconnect() is awaited on every exit path.

What we test:
    ✅ SIGTERM (handler call and a real signal) → exit 0
    ✅ unhandled async exception → exit 1
    ✅ uncaught exception in a thread → exit 1
    ✅ server crash / failed start → exit 1
    ✅ grace period elapsed → forced close, server cancelled if it ignores it
    ✅ a fault during a signal drain raises the exit code
    ✅ unreachable database or missing config → runner returns 1 before binding
"""

import asyncio
import os
import signal
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mango_api import lifecycle
from mango_api.config import Settings, get_settings
from mango_api.lifecycle import ShutdownHandler
from mango_api.server import run_server


class FakeServer:
    """
    Minimal uvicorn.Server stand-in.

    mode:
        graceful      returns as soon as should_exit is set
        hung          returns only once force_exit is set
        stubborn      ignores both flags
        crash         raises right away
        never_started returns immediately with started=False
    """

    def __init__(self, mode: str = "graceful"):
        self.mode = mode
        self.should_exit = False
        self.force_exit = False
        self.started = mode != "never_started"
        self.serving = False

    async def serve(self):
        self.serving = True
        if self.mode == "crash":
            raise RuntimeError("address already in use")
        if self.mode == "never_started":
            return
        while True:
            if self.mode == "graceful" and self.should_exit:
                return
            if self.mode == "hung" and self.force_exit:
                return
            await asyncio.sleep(0.01)


def make_context():
    context = MagicMock()
    context.disconnect = AsyncMock()
    return context


def make_handler(mode: str = "graceful", grace: float = 1.0):
    server = FakeServer(mode)
    context = make_context()
    return ShutdownHandler(server, context, grace), server, context


async def start(handler: ShutdownHandler) -> asyncio.Task:
    task = asyncio.create_task(handler.run())
    await asyncio.sleep(0.05)
    assert handler.state == ShutdownHandler.RUNNING
    return task


class TestSignals:

    @pytest.mark.asyncio
    async def test_sigterm_exits_zero(self):
        handler, server, context = make_handler()
        task = await start(handler)

        handler.handle_signal(signal.SIGTERM)
        exit_code = await asyncio.wait_for(task, timeout=5)

        assert exit_code == 0
        assert server.should_exit is True
        assert handler.state == ShutdownHandler.TERMINATED
        assert handler.reason == "received SIGTERM"
        assert handler.forced is False
        context.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_real_signal_delivered_to_process(self):
        handler, _, context = make_handler()
        task = await start(handler)

        os.kill(os.getpid(), signal.SIGTERM)
        exit_code = await asyncio.wait_for(task, timeout=5)

        assert exit_code == 0
        context.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_signal_does_not_restart_drain(self):
        handler, _, _ = make_handler("hung", grace=0.2)
        task = await start(handler)

        handler.handle_signal(signal.SIGTERM)
        handler.handle_signal(signal.SIGINT)

        assert await asyncio.wait_for(task, timeout=5) == 0
        assert handler.reason == "received SIGTERM"


class TestFaults:

    @pytest.mark.asyncio
    async def test_unhandled_async_exception_exits_one(self):
        handler, _, context = make_handler()
        task = await start(handler)

        def explode():
            raise ValueError("boom")

        asyncio.get_running_loop().call_soon(explode)
        exit_code = await asyncio.wait_for(task, timeout=5)

        assert exit_code == 1
        assert "ValueError" in handler.reason
        context.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_thread_exception_exits_one(self):
        handler, _, _ = make_handler()
        task = await start(handler)

        def explode():
            raise KeyError("worker")

        worker = threading.Thread(target=explode, name="worker-1")
        worker.start()
        worker.join()
        exit_code = await asyncio.wait_for(task, timeout=5)

        assert exit_code == 1
        assert "worker-1" in handler.reason

    @pytest.mark.asyncio
    async def test_fault_during_drain_raises_exit_code(self):
        handler, _, _ = make_handler("hung", grace=0.3)
        task = await start(handler)

        handler.handle_signal(signal.SIGTERM)
        handler.handle_fault(RuntimeError("late"), "event loop")

        assert await asyncio.wait_for(task, timeout=5) == 1
        assert handler.reason == "received SIGTERM"

    @pytest.mark.asyncio
    async def test_server_crash_exits_one(self):
        handler, _, context = make_handler("crash")

        exit_code = await asyncio.wait_for(handler.run(), timeout=5)

        assert exit_code == 1
        assert handler.state == ShutdownHandler.TERMINATED
        context.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_server_that_never_started_exits_one(self):
        handler, _, _ = make_handler("never_started")
        assert await asyncio.wait_for(handler.run(), timeout=5) == 1

    @pytest.mark.asyncio
    async def test_hooks_removed_after_termination(self):
        previous_hook = threading.excepthook
        handler, _, _ = make_handler()
        task = await start(handler)
        handler.handle_signal(signal.SIGTERM)
        await asyncio.wait_for(task, timeout=5)

        assert threading.excepthook is previous_hook
        assert asyncio.get_running_loop().get_exception_handler() is None


class TestGracePeriod:

    @pytest.mark.asyncio
    async def test_hung_connections_force_closed(self):
        handler, server, context = make_handler("hung", grace=0.1)
        task = await start(handler)

        handler.handle_signal(signal.SIGTERM)
        exit_code = await asyncio.wait_for(task, timeout=5)

        assert exit_code == 0
        assert handler.forced is True
        assert server.force_exit is True
        context.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_server_ignoring_force_exit_is_cancelled(self, monkeypatch):
        monkeypatch.setattr(lifecycle, "FORCE_CLOSE_TIMEOUT", 0.1)
        handler, _, context = make_handler("stubborn", grace=0.1)
        task = await start(handler)

        handler.handle_signal(signal.SIGTERM)
        exit_code = await asyncio.wait_for(task, timeout=5)

        assert exit_code == 0
        assert handler.forced is True
        assert handler.state == ShutdownHandler.TERMINATED
        context.disconnect.assert_awaited_once()


class TestHealthWhileDraining:

    @pytest.mark.asyncio
    async def test_draining_instance_reports_unhealthy(self, client, context):
        context.shutdown_handler = MagicMock(state=ShutdownHandler.DRAINING)

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["error"]["details"]["lifecycle"] == "draining"


class TestRunServer:

    @pytest.mark.asyncio
    async def test_unreachable_database_aborts_before_binding(self):
        settings = Settings(
            _env_file=None,
            port=8000,
            app_env="test",
            database_url="sqlite+aiosqlite:////nonexistent-dir/mango/db.sqlite",
            db_connect_attempts=2,
            db_connect_wait=0,
        )
        with patch("mango_api.server.ManagedServer") as server_cls, \
                patch("mango_api.server.setup_logging"):
            exit_code = await run_server(settings)

        assert exit_code == 1
        server_cls.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("database_url", [
        "nosuchdb+nodriver://user@host/db",
        "not a database url",
    ])
    async def test_unusable_database_url_exits_one(self, database_url, caplog):
        settings = Settings(
            _env_file=None, port=8000, app_env="test", database_url=database_url
        )
        with patch("mango_api.server.ManagedServer") as server_cls, \
                patch("mango_api.server.setup_logging"):
            exit_code = await run_server(settings)

        assert exit_code == 1
        server_cls.assert_not_called()
        assert any(
            r.levelname == "CRITICAL" and "Startup aborted" in r.getMessage()
            for r in caplog.records
        )

    @pytest.mark.asyncio
    async def test_missing_configuration_exits_one(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("DB_NAME", raising=False)
        monkeypatch.delenv("PORT", raising=False)
        get_settings.cache_clear()
        try:
            with patch("mango_api.server.ManagedServer") as server_cls, \
                    patch("mango_api.server.setup_logging"):
                exit_code = await run_server()
        finally:
            get_settings.cache_clear()

        assert exit_code == 1
        server_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_serves_until_signalled(self, settings):
        """Connect succeeds, the server runs, SIGTERM ends it with exit 0."""
        fake = FakeServer()

        async def stop_soon():
            # Signal handlers are installed before serve() is called
            while not fake.serving:
                await asyncio.sleep(0.01)
            os.kill(os.getpid(), signal.SIGTERM)

        with patch("mango_api.server.ManagedServer", return_value=fake), \
                patch("mango_api.server.setup_logging"):
            stopper = asyncio.create_task(stop_soon())
            exit_code = await asyncio.wait_for(run_server(settings), timeout=5)
            await stopper

        assert exit_code == 0
        assert fake.should_exit is True
