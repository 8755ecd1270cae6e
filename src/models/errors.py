"""
Error taxonomy for the device catalog service.

Only ConfigError is fatal: it is raised before any registrar starts and the
entry point exits non-zero. Everything else is contained inside the component
that raised it and logged.
"""

from typing import Optional


class CatalogServiceError(Exception):
    """Base class for all service errors"""


class ConfigError(CatalogServiceError):
    """Configuration missing, unreadable or invalid"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(f"{field}: {message}" if field else message)


class RegistrationError(CatalogServiceError):
    """A single register/renew/deregister attempt against a catalog failed"""

    def __init__(self, message: str, endpoint: Optional[str] = None, status_code: Optional[int] = None):
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class AnnouncementError(CatalogServiceError):
    """DNS-SD announcement could not be published or revoked"""


class ShutdownTimeout(CatalogServiceError):
    """Grace period elapsed before every withdrawal confirmed"""

    def __init__(self, grace_period: float, pending: list):
        self.grace_period = grace_period
        self.pending = pending
        super().__init__(
            f"Grace period of {grace_period}s elapsed with {len(pending)} handler(s) pending"
        )
