from __future__ import annotations
import asyncio
import contextlib
import uvicorn
from fastapi import FastAPI
from typing import Optional
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


class APIServerWrapper:
    """
    Runs Uvicorn inside an asyncio task without Uvicorn's own signal handlers,
    so termination signals reach the ShutdownCoordinator instead.

    Behaviour:
      - start() launches uvicorn.Server.serve() as a background task and blocks
        until stop() is called. If the server exits on its own first, start()
        raises so the task registry records a critical failure.
      - stop() unblocks start(), shuts the server down with a timeout and
        cancels the serve task if it is still around.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str = "0.0.0.0",
        port: int = 8081,
    ):
        self.app = app
        self.host = host
        self.port = port
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._stop_event: asyncio.Event = asyncio.Event()

    def _create_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
        )
        server = uvicorn.Server(config)
        # Older uvicorn installs handlers here, newer ones in capture_signals()
        server.install_signal_handlers = lambda: None  # type: ignore
        server.capture_signals = contextlib.nullcontext  # type: ignore
        return server

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    async def start(self, *, wait_started_timeout: float = 5.0) -> None:
        """
        Start uvicorn in the background and wait until stop() is called.

        Schedule it with create_tracked_task() for a non-blocking start.
        """
        if self._serve_task is not None and not self._serve_task.done():
            raise RuntimeError("API server already started")

        self._server = self._create_server()
        self._stop_event.clear()

        log.info(f"🌐 Launching API server on http://{self.host}:{self.port}")
        self._serve_task = asyncio.create_task(self._server.serve(), name="UvicornServeInternal")

        stop_waiter = asyncio.ensure_future(self._stop_event.wait())
        try:
            await self._wait_started(wait_started_timeout)
            await asyncio.wait({self._serve_task, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            log.debug("start() cancelled externally, invoking stop()")
            stop_waiter.cancel()
            await self.stop()
            raise

        if not self._stop_event.is_set():
            stop_waiter.cancel()
            serve_task = self._serve_task
            self._server = None
            self._serve_task = None
            error = None if serve_task.cancelled() else serve_task.exception()
            raise RuntimeError(f"API server exited unexpectedly: {error or 'serve() returned'}")

        log.debug("APIServerWrapper.start() exiting (stop_event set)")

    async def _wait_started(self, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline and not self._serve_task.done():
            if getattr(self._server, "started", False):
                log.info("🌐 API server reported started")
                return
            await asyncio.sleep(0.05)

    async def stop(self, *, shutdown_timeout: float = 2.0) -> None:
        """
        Stop the API server and release the port.

        Steps:
          1. set stop_event so start() unblocks
          2. set server.force_exit so open connections do not hold us
          3. call server.shutdown() with timeout
          4. cancel the serve task if still running
        """
        self._stop_event.set()

        if self._server is None:
            log.debug("API server stop() called but server was not running")
            return

        log.info("🌐 Stopping API server...")
        server, self._server = self._server, None
        server.should_exit = True
        server.force_exit = True

        try:
            await asyncio.wait_for(server.shutdown(), timeout=shutdown_timeout)
        except asyncio.TimeoutError:
            log.warn("🌐 API server shutdown timeout; cancelling serve task")
        except Exception as e:
            log.error(f"Error during API server.shutdown(): {e}", exc_info=True)

        serve_task, self._serve_task = self._serve_task, None
        if serve_task and not serve_task.done():
            serve_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(serve_task, timeout=1.0)

        log.info("🌐 API server stopped and port released")

    # ----------------------------------------------------------------------
    # PROPERTIES
    # ----------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        """Return whether a uvicorn serve task is active."""
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._serve_task

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
