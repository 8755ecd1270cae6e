"""
API Middleware - Request/response processing

Order matters: middleware registered first runs first for requests,
but runs last for responses (like a stack).
"""

from .error_handler import register_exception_handlers, DomainError
from .request_logger import register_request_logger

__all__ = [
    "register_exception_handlers",
    "register_request_logger",
    "DomainError",
]
