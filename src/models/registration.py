"""
Registration descriptor - what this service publishes about itself

Built once per process by services.descriptor_builder and sent to every
configured service catalog. The only per-target difference is the TTL, so
registrars receive a copy made with with_ttl() and never touch the original.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List


SERVICE_CATALOG_ENTRY_TYPE = "Service"
API_COLLECTION_TYPE = "DeviceCatalog"
API_VERSION = "1.0.0"
DEFAULT_MIME_TYPE = "application/ld+json"

DNSSD_SERVICE_TYPE = "_device-catalog._tcp.local."
DNSSD_CATALOG_SERVICE_TYPE = "_service-catalog._tcp.local."


@dataclass(frozen=True)
class ServiceProtocol:
    """One way of talking to the service (REST endpoint, methods, media types)"""
    type: str
    url: str
    methods: List[str] = field(default_factory=list)
    content_types: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "endpoint": {"url": self.url},
            "methods": list(self.methods),
            "content-types": list(self.content_types),
        }


@dataclass(frozen=True)
class RegistrationDescriptor:
    """Immutable self-description sent to remote service catalogs"""
    id: str
    name: str
    description: str
    meta: Dict[str, Any] = field(default_factory=dict)
    protocols: List[ServiceProtocol] = field(default_factory=list)
    representation: Dict[str, Any] = field(default_factory=dict)
    ttl: int = 0
    type: str = SERVICE_CATALOG_ENTRY_TYPE

    def with_ttl(self, ttl: int) -> "RegistrationDescriptor":
        """Per-target copy with the catalog's TTL"""
        return replace(self, ttl=ttl)

    @property
    def url(self) -> str:
        """Endpoint URL of the first protocol (empty if none)"""
        return self.protocols[0].url if self.protocols else ""

    def to_dict(self) -> Dict[str, Any]:
        """JSON wire form accepted by service catalogs"""
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "meta": dict(self.meta),
            "protocols": [p.to_dict() for p in self.protocols],
            "representation": dict(self.representation),
            "ttl": self.ttl,
        }
