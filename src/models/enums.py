"""
Enums for the device catalog service
"""

from enum import Enum, auto


class RegistrationState(Enum):
    """
    Keepalive registrar lifecycle

    UNREGISTERED: no confirmed registration with the remote catalog yet
    REGISTERED: last register/renew call succeeded (or remote TTL still counts)
    RENEWING: renewal request in flight
    STOPPING: stop signal received, deregistration in progress
    STOPPED: loop exited, handle closed
    """
    UNREGISTERED = auto()
    REGISTERED = auto()
    RENEWING = auto()
    STOPPING = auto()
    STOPPED = auto()


class StorageType(Enum):
    """Catalog storage backends"""
    MEMORY = "memory"


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()        # Configuration loading, validation
    SYSTEM = auto()        # Startup, exit, fatal errors
    API = auto()           # HTTP server and routes
    REGISTRATION = auto()  # Remote catalog register/renew/deregister
    DISCOVERY = auto()     # DNS-SD announce, revoke, browse

    SHUTDOWN = auto()
    LIFECYCLE = auto()
    TASK = auto()

    GENERAL = auto()       # Default general category
