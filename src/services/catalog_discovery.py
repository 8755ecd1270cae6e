"""
Catalog discovery - find a service catalog on the local network via DNS-SD

Used by registrars whose target has discover: true. Service catalogs
announce themselves as _service-catalog._tcp with a TXT record uri=<api path>.
"""

from __future__ import annotations

import asyncio
import ipaddress
from typing import Callable, Optional

from zeroconf import ServiceStateChange
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from models.errors import RegistrationError
from models.registration import DNSSD_CATALOG_SERVICE_TYPE
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.DISCOVERY)

DEFAULT_BROWSE_TIMEOUT = 5.0
INFO_REQUEST_TIMEOUT_MS = 3000


def endpoint_from_info(info: AsyncServiceInfo) -> Optional[str]:
    """Build http://host:port/uri from a resolved service record"""
    addresses = info.parsed_addresses()
    if not addresses or not info.port:
        return None

    host = addresses[0]
    if ipaddress.ip_address(host).version == 6:
        host = f"[{host}]"

    uri = b""
    if info.properties:
        uri = info.properties.get(b"uri") or b""
    path = uri.decode("utf-8", errors="replace").rstrip("/")
    return f"http://{host}:{info.port}{path}"


class CatalogEndpointResolver:
    """
    Resolves the endpoint of the first service catalog found on the network.

    Called before each registration attempt, so a catalog that moved is picked
    up on the next renewal. A fresh zeroconf instance is used per lookup and
    closed afterwards.

    Args:
        service_type: DNS-SD type to browse
        timeout: Seconds to wait for a usable record
        zeroconf_factory: Callable returning an AsyncZeroconf (injectable for tests)
    """

    def __init__(
        self,
        service_type: str = DNSSD_CATALOG_SERVICE_TYPE,
        timeout: float = DEFAULT_BROWSE_TIMEOUT,
        zeroconf_factory: Callable[[], AsyncZeroconf] = AsyncZeroconf,
    ):
        self.service_type = service_type
        self.timeout = timeout
        self._zeroconf_factory = zeroconf_factory

    async def __call__(self) -> str:
        return await self.resolve()

    async def resolve(self) -> str:
        """
        Returns:
            Catalog endpoint URL

        Raises:
            RegistrationError: nothing usable found within the timeout
        """
        try:
            aiozc = self._zeroconf_factory()
        except OSError as e:
            raise RegistrationError(f"DNS-SD unavailable: {e}") from e

        found: asyncio.Queue = asyncio.Queue()

        def on_service_state_change(zeroconf, service_type: str, name: str,
                                    state_change: ServiceStateChange) -> None:
            if state_change is ServiceStateChange.Added:
                found.put_nowait(name)

        browser = AsyncServiceBrowser(
            aiozc.zeroconf, [self.service_type], handlers=[on_service_state_change]
        )
        try:
            return await asyncio.wait_for(self._first_endpoint(aiozc, found), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise RegistrationError(
                f"No service catalog of type {self.service_type} found within {self.timeout}s"
            )
        finally:
            await browser.async_cancel()
            await aiozc.async_close()

    async def _first_endpoint(self, aiozc: AsyncZeroconf, found: asyncio.Queue) -> str:
        while True:
            name = await found.get()
            info = AsyncServiceInfo(self.service_type, name)
            if not await info.async_request(aiozc.zeroconf, INFO_REQUEST_TIMEOUT_MS):
                log.debug("Service record did not resolve", name=name)
                continue

            endpoint = endpoint_from_info(info)
            if endpoint:
                log.info("Discovered service catalog", name=name, endpoint=endpoint)
                return endpoint
