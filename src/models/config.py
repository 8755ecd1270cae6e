"""
Configuration models - typed view of conf/device-catalog.yaml

Loaded and validated by managers.config_manager.ConfigManager. Nothing here
is mutated after startup.
"""

from dataclasses import dataclass, field
from typing import List

from models.enums import StorageType


DEFAULT_SHUTDOWN_GRACE_PERIOD = 3.0
DEFAULT_RENEWAL_FRACTION = 1 / 3


@dataclass(frozen=True)
class StorageConfig:
    type: StorageType = StorageType.MEMORY


@dataclass(frozen=True)
class CatalogTarget:
    """
    One remote service catalog to register with.

    When discover is set, endpoint may be empty: the registrar resolves the
    catalog location through DNS-SD before every attempt.
    """
    endpoint: str = ""
    discover: bool = False
    ttl: int = 120


@dataclass(frozen=True)
class CatalogConfig:
    description: str
    public_addr: str
    bind_addr: str = "0.0.0.0"
    bind_port: int = 8081
    api_location: str = "/dc"
    static_dir: str = "static"
    dnssd_enabled: bool = False
    storage: StorageConfig = field(default_factory=StorageConfig)
    service_catalog: List[CatalogTarget] = field(default_factory=list)

    # Lifecycle tuning
    shutdown_grace_period: float = DEFAULT_SHUTDOWN_GRACE_PERIOD
    renewal_fraction: float = DEFAULT_RENEWAL_FRACTION
