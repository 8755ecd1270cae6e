"""Service Container - Dependency injection container for the catalog service"""

from dataclasses import dataclass, field
from typing import List, Optional

from models.config import CatalogConfig
from models.registration import RegistrationDescriptor
from services.discovery_announcer import DiscoveryAnnouncer
from services.keepalive_registrar import KeepaliveRegistrar


@dataclass
class ServiceContainer:
    """
    Everything the API routes may look at, assembled once in main_asyncio.py.

    - config: validated configuration (read-only)
    - descriptor: this service's registration descriptor (TTL unset)
    - registrars: one KeepaliveRegistrar per configured catalog
    - announcer: DNS-SD announcer, None when dnssd_enabled is false

    Usage:
        services = ServiceContainer(config=config, descriptor=descriptor)
        set_service_container(services)

        @router.get("/system/registrations")
        async def registrations(services: ServiceContainer = Depends(get_service_container)):
            return [r.status() for r in services.registrars]
    """

    config: CatalogConfig
    descriptor: RegistrationDescriptor
    registrars: List[KeepaliveRegistrar] = field(default_factory=list)
    announcer: Optional[DiscoveryAnnouncer] = None
