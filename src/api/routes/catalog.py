"""
Catalog index - self-description served at the configured API location
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_service_container
from api.schemas.registration import CatalogIndexResponse
from models.registration import API_COLLECTION_TYPE, API_VERSION
from services.service_container import ServiceContainer


def build_router(api_location: str) -> APIRouter:
    """
    Router for GET {api_location}.

    The path comes from configuration, so the router is built per app
    instead of at import time.
    """
    router = APIRouter(tags=["Catalog"])

    @router.get(api_location, response_model=CatalogIndexResponse, summary="Service index")
    async def catalog_index(
        services: ServiceContainer = Depends(get_service_container)
    ) -> CatalogIndexResponse:
        return CatalogIndexResponse(
            name=API_COLLECTION_TYPE,
            description=services.config.description,
            api_version=API_VERSION,
            api_location=services.config.api_location,
            registration=services.descriptor.to_dict(),
        )

    return router
