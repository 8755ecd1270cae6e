"""Services layer"""

from .catalog_client import CatalogClient
from .catalog_discovery import CatalogEndpointResolver
from .descriptor_builder import registration_from_config
from .discovery_announcer import AnnouncementHandle, DiscoveryAnnouncer
from .keepalive_registrar import KeepaliveRegistrar, RegistrationHandle
from .service_container import ServiceContainer

__all__ = [
    "CatalogClient",
    "CatalogEndpointResolver",
    "registration_from_config",
    "AnnouncementHandle",
    "DiscoveryAnnouncer",
    "KeepaliveRegistrar",
    "RegistrationHandle",
    "ServiceContainer",
]
