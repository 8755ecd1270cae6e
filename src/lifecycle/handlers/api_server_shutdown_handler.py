from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from lifecycle.api_server_wrapper import APIServerWrapper

log = get_logger().for_category(LogCategory.SHUTDOWN)


class APIServerShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the HTTP API server (FastAPI + Uvicorn).

    Stops the server and releases the port once the catalog withdrawals are
    done, so the API stays reachable while catalogs drop the entry.

    Priority: 50
    """

    def __init__(self, api_wrapper: "APIServerWrapper"):
        """
        Args:
            api_wrapper: APIServerWrapper instance managing the API server
        """
        self.api_wrapper = api_wrapper

    @property
    def shutdown_priority(self) -> int:
        return 50

    @property
    def name(self) -> str:
        return "API server"

    async def shutdown(self) -> None:
        log.info("Stopping API server...")

        if not self.api_wrapper.is_running:
            log.debug("API server not running")
            return

        await self.api_wrapper.stop()
