"""
Discovery announcer - DNS-SD (mDNS) announcement of the device catalog

Publishes "<description>._device-catalog._tcp.local." with the bind port and a
TXT record uri=<api location>, so peers on the LAN can find the API without
configuration. Failing to announce is never fatal: the service keeps running
without local discoverability.
"""

from __future__ import annotations

import asyncio
import socket
from typing import Callable, Dict, List, Optional

import zeroconf
from zeroconf import ServiceInfo
from zeroconf.asyncio import AsyncZeroconf

from models.errors import AnnouncementError
from models.registration import DNSSD_SERVICE_TYPE
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.DISCOVERY)

MAX_INSTANCE_NAME_BYTES = 63
WILDCARD_ADDRESSES = ("", "0.0.0.0", "::")


def resolve_local_ipv4() -> str:
    """Return the primary local IPv4 used for outbound LAN traffic."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # UDP connect sends nothing; it only selects the outgoing interface
        probe.connect(("10.255.255.255", 1))
        return probe.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        probe.close()


def instance_name(description: str) -> str:
    """DNS-SD instance label: no dots, at most 63 bytes of UTF-8"""
    label = description.replace(".", "-").strip() or "Device Catalog"
    encoded = label.encode("utf-8")[:MAX_INSTANCE_NAME_BYTES]
    return encoded.decode("utf-8", errors="ignore")


class AnnouncementHandle:
    """
    Live DNS-SD announcement.

    revoke() sends the goodbye packets and closes the responder. It is safe
    to call more than once; only the first call does anything.
    """

    def __init__(self, aiozc: AsyncZeroconf, info: ServiceInfo):
        self._aiozc: Optional[AsyncZeroconf] = aiozc
        self.info = info

    @property
    def active(self) -> bool:
        return self._aiozc is not None

    @property
    def name(self) -> str:
        return self.info.name

    async def revoke(self) -> None:
        aiozc, self._aiozc = self._aiozc, None
        if aiozc is None:
            log.debug("Announcement already revoked")
            return

        try:
            unregister = await aiozc.async_unregister_service(self.info)
            await unregister
            log.info("Revoked DNS-SD announcement", name=self.info.name)
        except (zeroconf.Error, OSError) as e:
            log.warn(f"Failed to revoke DNS-SD announcement: {e}")
        finally:
            await aiozc.async_close()


class DiscoveryAnnouncer:
    """
    Announces the service once via DNS-SD.

    Args:
        description: Human readable instance name
        port: Port the HTTP API listens on
        api_location: API base path, published as TXT uri=
        bind_addr: Address the API is bound to; wildcard means "primary LAN IP"
        service_type: DNS-SD service type
        zeroconf_factory: Callable returning AsyncZeroconf (injectable for tests)

    Example:
        announcer = DiscoveryAnnouncer("Lab devices", 8081, "/dc")
        handle = await announcer.start()   # None if announcing failed
        ...
        await announcer.revoke()
    """

    def __init__(
        self,
        description: str,
        port: int,
        api_location: str,
        bind_addr: str = "0.0.0.0",
        service_type: str = DNSSD_SERVICE_TYPE,
        zeroconf_factory: Callable[[], AsyncZeroconf] = AsyncZeroconf,
    ):
        self.description = description
        self.port = port
        self.api_location = api_location
        self.bind_addr = bind_addr
        self.service_type = service_type
        self._zeroconf_factory = zeroconf_factory
        self.handle: Optional[AnnouncementHandle] = None
        self.last_error: Optional[str] = None

    def _addresses(self) -> List[bytes]:
        host = self.bind_addr
        if host in WILDCARD_ADDRESSES:
            host = resolve_local_ipv4()
        return [socket.inet_aton(host)]

    def build_service_info(self) -> ServiceInfo:
        properties: Dict[str, str] = {"uri": self.api_location}
        return ServiceInfo(
            type_=self.service_type,
            name=f"{instance_name(self.description)}.{self.service_type}",
            addresses=self._addresses(),
            port=self.port,
            properties=properties,
            server=f"{socket.gethostname()}.local.",
        )

    async def start(self) -> Optional[AnnouncementHandle]:
        """
        Publish the announcement.

        Returns:
            AnnouncementHandle, or None when announcing failed (logged)
        """
        if self.handle is not None:
            raise RuntimeError("Announcement already started")

        try:
            self.handle = await self._announce()
        except AnnouncementError as e:
            self.last_error = str(e)
            log.warn(f"Failed to register DNS-SD service: {e}")
            return None

        log.info(f"Registered service via DNS-SD using type {self.service_type}", name=self.handle.name)
        return self.handle

    async def _announce(self) -> AnnouncementHandle:
        try:
            info = self.build_service_info()
            aiozc = self._zeroconf_factory()
        except (zeroconf.Error, OSError, ValueError) as e:
            raise AnnouncementError(f"{type(e).__name__}: {e}") from e

        try:
            register = await aiozc.async_register_service(info)
            await register
        except (zeroconf.Error, OSError, ValueError) as e:
            await aiozc.async_close()
            raise AnnouncementError(f"{type(e).__name__}: {e}") from e

        return AnnouncementHandle(aiozc, info)

    async def revoke(self, timeout: Optional[float] = None) -> bool:
        """
        Revoke the announcement if one is live.

        Returns:
            False if the revocation did not finish within timeout
        """
        if self.handle is None:
            return True
        try:
            await asyncio.wait_for(self.handle.revoke(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            log.warn(f"DNS-SD revocation did not finish within {timeout}s")
            return False

    def status(self) -> Dict[str, object]:
        return {
            "enabled": True,
            "service_type": self.service_type,
            "name": self.handle.name if self.handle else None,
            "active": bool(self.handle and self.handle.active),
            "last_error": self.last_error,
        }
