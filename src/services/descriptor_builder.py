"""Registration descriptor builder - derives this service's catalog entry from config"""

from models.config import CatalogConfig
from models.errors import ConfigError
from models.registration import (
    API_COLLECTION_TYPE,
    API_VERSION,
    DEFAULT_MIME_TYPE,
    DNSSD_SERVICE_TYPE,
    RegistrationDescriptor,
    ServiceProtocol,
)


REST_METHODS = ["GET", "POST", "PUT", "DELETE"]


def registration_from_config(config: CatalogConfig) -> RegistrationDescriptor:
    """
    Build the RegistrationDescriptor published to remote service catalogs.

    Pure function: no I/O. The identity is "<public_addr>/DeviceCatalog" so a
    restart on the same host overwrites (rather than duplicates) the entry.
    TTL is left at 0; each registrar sets its own with with_ttl().

    Raises:
        ConfigError: public address, API location or port unusable
    """
    host = (config.public_addr or "").strip()
    if not host or "/" in host or " " in host:
        raise ConfigError(f"invalid public address {config.public_addr!r}", field="public_addr")
    if not config.api_location or not config.api_location.startswith("/"):
        raise ConfigError(f"invalid API location {config.api_location!r}", field="api_location")
    if not isinstance(config.bind_port, int) or not 0 < config.bind_port < 65536:
        raise ConfigError(f"invalid port {config.bind_port!r}", field="bind_port")

    url = f"http://{host}:{config.bind_port}{config.api_location}"
    protocol = ServiceProtocol(
        type="REST",
        url=url,
        methods=list(REST_METHODS),
        content_types=[DEFAULT_MIME_TYPE],
    )

    return RegistrationDescriptor(
        id=f"{host}/{API_COLLECTION_TYPE}",
        name=API_COLLECTION_TYPE,
        description=config.description,
        meta={
            "serviceType": DNSSD_SERVICE_TYPE.removesuffix(".local."),
            "apiVersion": API_VERSION,
        },
        protocols=[protocol],
        representation={DEFAULT_MIME_TYPE: {}},
    )
