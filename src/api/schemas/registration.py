"""
Registration schemas - Pydantic models for the service introspection routes
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class RegistrationStatusResponse(BaseModel):
    """State of one keepalive registrar"""
    catalog: str = Field(description="Configured catalog endpoint, or 'dns-sd' in discover mode")
    endpoint: Optional[str] = Field(None, description="Endpoint used by the last successful call")
    discover: bool
    ttl: int = Field(description="Registration time-to-live (seconds)")
    renewal_interval: float = Field(description="Seconds between renewals (always < ttl)")
    state: str = Field(description="UNREGISTERED, REGISTERED, RENEWING, STOPPING or STOPPED")
    attempts: int
    failures: int
    last_error: Optional[str] = None
    last_success: Optional[float] = Field(None, description="Unix time of the last accepted register/renew")
    closed: bool


class RegistrationListResponse(BaseModel):
    service_id: str
    count: int
    registrations: List[RegistrationStatusResponse]


class AnnouncementStatusResponse(BaseModel):
    enabled: bool
    service_type: Optional[str] = None
    name: Optional[str] = None
    active: bool = False
    last_error: Optional[str] = None


class CatalogIndexResponse(BaseModel):
    """Self-description served at the API location"""
    name: str
    description: str
    api_version: str
    api_location: str
    registration: Dict[str, Any] = Field(description="Descriptor sent to service catalogs")
