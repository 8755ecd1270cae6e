from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.keepalive_registrar import KeepaliveRegistrar

log = get_logger().for_category(LogCategory.SHUTDOWN)


class RegistrationShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for one keepalive registrar.

    Sends the one-shot stop signal and waits until the registrar has made its
    deregistration attempt and closed its handle. The coordinator's grace
    period bounds the wait; an unreachable catalog is simply abandoned.

    Priority: 100 (withdraw before anything else stops)
    """

    def __init__(self, registrar: "KeepaliveRegistrar"):
        self.registrar = registrar

    @property
    def shutdown_priority(self) -> int:
        return 100

    @property
    def name(self) -> str:
        return f"Registration({self.registrar.name})"

    async def shutdown(self) -> None:
        handle = self.registrar.handle
        if handle.closed:
            log.debug(f"Registrar already stopped: {self.registrar.name}")
            return

        handle.stop()
        await handle.wait_closed()
