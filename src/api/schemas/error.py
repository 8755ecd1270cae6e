"""
Error schemas - Pydantic models for error responses

Every non-2xx JSON body produced by the API has the ErrorResponse shape,
except request validation failures, which add the per-field list.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorDetail(BaseModel):
    """Detailed error information"""
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional context (identifiers, valid values, etc.)"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the error occurred"
    )


class ErrorResponse(BaseModel):
    """API error response - standardized format"""
    error: ErrorDetail = Field(description="Error information")
    request_id: Optional[str] = Field(None, description="Request ID for logging/debugging")

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": {
                    "code": "REGISTRATION_NOT_FOUND",
                    "message": "No registrar for catalog 'http://catalog:8082/sc'",
                    "details": {"catalog": "http://catalog:8082/sc"},
                    "timestamp": "2025-11-26T10:30:00Z"
                },
                "request_id": "req-12345"
            }
        }
    }


class ValidationErrorResponse(BaseModel):
    """Validation error - when request parameters are invalid"""
    error: ErrorDetail = Field(description="Error information")
    validation_errors: list[Dict[str, Any]] = Field(
        description="Per-field validation errors"
    )
    request_id: Optional[str] = Field(None, description="Request ID for logging/debugging")
