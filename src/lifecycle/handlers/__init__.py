from .announcement_shutdown_handler import AnnouncementShutdownHandler
from .api_server_shutdown_handler import APIServerShutdownHandler
from .registration_shutdown_handler import RegistrationShutdownHandler

__all__ = [
    "AnnouncementShutdownHandler",
    "APIServerShutdownHandler",
    "RegistrationShutdownHandler",
]
