"""
Models package - Data models for the device catalog service
"""

from .enums import RegistrationState, StorageType, LogLevel, LogCategory
from .config import CatalogConfig, CatalogTarget, StorageConfig
from .errors import (
    CatalogServiceError,
    ConfigError,
    RegistrationError,
    AnnouncementError,
    ShutdownTimeout,
)
from .registration import RegistrationDescriptor, ServiceProtocol

__all__ = [
    'RegistrationState',
    'StorageType',
    'LogLevel',
    'LogCategory',
    'CatalogConfig',
    'CatalogTarget',
    'StorageConfig',
    'CatalogServiceError',
    'ConfigError',
    'RegistrationError',
    'AnnouncementError',
    'ShutdownTimeout',
    'RegistrationDescriptor',
    'ServiceProtocol',
]
