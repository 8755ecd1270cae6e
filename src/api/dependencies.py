"""
API Dependencies - Service container access for FastAPI endpoints

Pattern:
1. main_asyncio.py builds the ServiceContainer once config is validated
2. main_asyncio.py calls set_service_container() before the server starts
3. Endpoints receive it through Depends(get_service_container)

Example:
    @router.get("/registrations")
    async def registrations(services: ServiceContainer = Depends(get_service_container)):
        return [r.status() for r in services.registrars]
"""

from typing import Optional

from api.middleware.error_handler import ServiceNotReadyError
from services.service_container import ServiceContainer


# Set by main_asyncio.py (or create_app) during initialization
_service_container: Optional[ServiceContainer] = None


def set_service_container(services: Optional[ServiceContainer]) -> None:
    """
    Store the service container for API access.

    Passing None clears it (tests do this between apps).
    """
    global _service_container
    _service_container = services


async def get_service_container() -> ServiceContainer:
    """
    FastAPI dependency for accessing the service container.

    Raises:
        ServiceNotReadyError: 503 if services are not initialized yet
    """
    if _service_container is None:
        raise ServiceNotReadyError()
    return _service_container
