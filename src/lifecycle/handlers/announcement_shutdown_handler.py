from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.discovery_announcer import DiscoveryAnnouncer

log = get_logger().for_category(LogCategory.SHUTDOWN)


class AnnouncementShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the DNS-SD announcement.

    Revokes the announcement so no stale record is left on the network.
    Runs concurrently with the registration handlers.

    Priority: 100
    """

    def __init__(self, announcer: "DiscoveryAnnouncer"):
        self.announcer = announcer

    @property
    def shutdown_priority(self) -> int:
        return 100

    @property
    def name(self) -> str:
        return "DNS-SD announcement"

    async def shutdown(self) -> None:
        if self.announcer.handle is None:
            log.debug("No DNS-SD announcement to revoke")
            return
        await self.announcer.revoke()
