"""
FastAPI Application Factory

Assembles the read-only HTTP surface of the device catalog:
- Service index at the configured API location
- /system routes (registrations, announcement, tasks)
- /health and / (links)
- Static files from static_dir, when that directory exists

The factory takes the ServiceContainer so tests can build an app around
fake registrars without starting anything.
"""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api.dependencies import set_service_container
from api.middleware import register_exception_handlers, register_request_logger
from api.routes import catalog, system
from lifecycle.task_registry import TaskRegistry
from models.registration import API_VERSION
from services.service_container import ServiceContainer
from utils.logger import get_logger
from models.enums import LogCategory

log = get_logger().for_category(LogCategory.API)


def create_app(
    services: ServiceContainer,
    docs_enabled: bool = True,
    cors_origins: Optional[list[str]] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Container with config, descriptor, registrars and announcer
        docs_enabled: Enable /docs and /redoc
        cors_origins: CORS allowed origins (default: any, GET only)

    Returns:
        Configured FastAPI application ready to run
    """
    config = services.config
    set_service_container(services)

    app = FastAPI(
        title="Device Catalog",
        description=config.description,
        version=API_VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None
    )

    # =========================================================================
    # Middleware
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else ["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    register_request_logger(app)

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    register_exception_handlers(app)

    # =========================================================================
    # Routes
    # =========================================================================

    app.include_router(catalog.build_router(config.api_location))
    app.include_router(system.router)

    log.debug(f"Routes registered: index ({config.api_location}), system (/system)")

    @app.get(
        "/health",
        tags=["System"],
        summary="Health check",
    )
    async def health_check():
        """Healthy unless a tracked background task has failed"""
        registry = TaskRegistry.instance()
        failed = registry.failed()
        return {
            "status": "degraded" if failed else "healthy",
            "reason": f"{len(failed)} background task(s) have failed" if failed else None,
            "service": services.descriptor.id,
            "version": API_VERSION,
        }

    @app.get("/", include_in_schema=False)
    async def root():
        return JSONResponse(
            {
                "message": config.description,
                "index": config.api_location,
                "docs": "/docs" if docs_enabled else None,
                "health": "/health",
                "registrations": "/system/registrations",
            }
        )

    # =========================================================================
    # Static Files
    # =========================================================================

    static_dir = Path(config.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
        log.debug(f"Serving static files from {static_dir} at /static")
    else:
        log.debug(f"Static directory {static_dir} not found, /static disabled")

    log.info(f"FastAPI app created: {config.description}")

    return app
