"""
Error handling for the API

Turns exceptions raised while handling a request into JSON bodies shaped
like api.schemas.error.ErrorResponse:
- Validation errors (bad path/query parameters)
- Domain errors (unknown registrar, ...)
- Anything else becomes a 500; the server keeps running
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import json
import uuid
from typing import Optional

from api.schemas.error import ErrorResponse, ErrorDetail, ValidationErrorResponse
from utils.logger import get_logger
from models.enums import LogCategory

log = get_logger().for_category(LogCategory.API)


class DomainError(Exception):
    """Base class for errors that map to a specific HTTP status"""
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
        status_code: int = 400
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message)


class RegistrationNotFoundError(DomainError):
    """No registrar at that position"""
    def __init__(self, index: int, count: int):
        super().__init__(
            code="REGISTRATION_NOT_FOUND",
            message=f"No registration with index {index}",
            details={"index": index, "count": count},
            status_code=404
        )


class ServiceNotReadyError(DomainError):
    """Routes hit before main_asyncio.py finished wiring"""
    def __init__(self):
        super().__init__(
            code="SERVICE_NOT_READY",
            message="Service container not initialized. The service may still be starting.",
            status_code=503
        )


def _json(response) -> dict:
    return json.loads(response.model_dump_json())


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app"""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = str(uuid.uuid4())
        errors = exc.errors()

        log.warn(f"Validation error ({request_id}): {len(errors)} errors", path=request.url.path)

        validation_errors = []
        for error in errors:
            field = ".".join(str(x) for x in error["loc"][1:])
            validation_errors.append({
                "field": field,
                "message": error["msg"],
                "type": error["type"]
            })

        response = ValidationErrorResponse(
            error=ErrorDetail(
                code="VALIDATION_ERROR",
                message="Request validation failed",
                details={"error_count": len(errors)},
            ),
            validation_errors=validation_errors,
            request_id=request_id
        )
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=_json(response))

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        request_id = str(uuid.uuid4())

        log.warn(f"Domain error ({request_id}): {exc.code} - {exc.message}")

        response = ErrorResponse(
            error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details),
            request_id=request_id
        )
        return JSONResponse(status_code=exc.status_code, content=_json(response))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        request_id = str(uuid.uuid4())

        log.error(
            f"Unexpected error ({request_id}): {type(exc).__name__}: {exc}",
            path=request.url.path,
        )

        response = ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred. Please try again.",
                details={"request_id": request_id},
            ),
            request_id=request_id
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_json(response))
