"""
System endpoints - Registration state, announcement state and task introspection
"""

from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime, timezone

from lifecycle.task_registry import TaskRegistry
from utils.logger import get_logger, LogCategory
from api.dependencies import get_service_container
from api.middleware.error_handler import RegistrationNotFoundError
from api.schemas.registration import (
    RegistrationStatusResponse,
    RegistrationListResponse,
    AnnouncementStatusResponse,
)
from services.service_container import ServiceContainer

log = get_logger().for_category(LogCategory.API)

router = APIRouter(prefix="/system", tags=["System"])


# ============================================================================
# REGISTRATION ENDPOINTS
# ============================================================================

@router.get(
    "/registrations",
    response_model=RegistrationListResponse,
    summary="List catalog registrations",
)
async def list_registrations(
    services: ServiceContainer = Depends(get_service_container)
) -> RegistrationListResponse:
    """
    State of every keepalive registrar, in configuration order.

    Each entry reports the registration state, TTL, renewal interval and
    attempt/failure counters for one service catalog.
    """
    items = [RegistrationStatusResponse(**r.status()) for r in services.registrars]
    return RegistrationListResponse(
        service_id=services.descriptor.id,
        count=len(items),
        registrations=items,
    )


@router.get(
    "/registrations/{index}",
    response_model=RegistrationStatusResponse,
    summary="Get one catalog registration",
)
async def get_registration(
    index: int,
    services: ServiceContainer = Depends(get_service_container)
) -> RegistrationStatusResponse:
    """
    **Errors:**
    - 404: no registrar at that index
    """
    if index < 0 or index >= len(services.registrars):
        raise RegistrationNotFoundError(index, len(services.registrars))
    return RegistrationStatusResponse(**services.registrars[index].status())


@router.get(
    "/announcement",
    response_model=AnnouncementStatusResponse,
    summary="DNS-SD announcement state",
)
async def get_announcement(
    services: ServiceContainer = Depends(get_service_container)
) -> AnnouncementStatusResponse:
    if services.announcer is None:
        return AnnouncementStatusResponse(enabled=False)
    return AnnouncementStatusResponse(**services.announcer.status())


# ============================================================================
# TASK ENDPOINTS
# ============================================================================

@router.get("/tasks/summary")
async def get_task_summary() -> Dict[str, Any]:
    """
    Get high-level task summary.

    Returns:
        - summary: Human-readable summary string
        - total: Total tasks tracked (all time)
        - active: Currently running tasks
        - failed: Tasks that ended with exceptions
        - cancelled: Tasks that were cancelled
    """
    registry = TaskRegistry.instance()
    return {
        "summary": registry.summary(),
        "total": len(registry.list_all()),
        "active": len(registry.active()),
        "failed": len(registry.failed()),
        "cancelled": len(registry.cancelled())
    }


@router.get("/tasks")
async def get_all_tasks() -> Dict[str, Any]:
    """
    Get detailed information about all tracked tasks.

    Returns:
        - count: Total number of tasks
        - tasks: ID, category, description, status and error of each task
    """
    registry = TaskRegistry.instance()

    tasks = [
        {
            "id": r.info.id,
            "category": r.info.category.name,
            "description": r.info.description,
            "created_at": r.info.created_at,
            "created_by": r.info.created_by,
            "status": r.status,
            "error": str(r.finished_with_error) if r.finished_with_error else None,
        }
        for r in registry.list_all()
    ]

    return {
        "count": len(tasks),
        "tasks": tasks
    }


@router.get("/tasks/active")
async def get_active_tasks() -> Dict[str, Any]:
    """
    Get only currently running tasks.

    Useful for finding what is still holding up shutdown.
    """
    registry = TaskRegistry.instance()
    now = datetime.now(timezone.utc).timestamp()

    tasks = [
        {
            "id": r.info.id,
            "category": r.info.category.name,
            "description": r.info.description,
            "created_at": r.info.created_at,
            "running_for_seconds": round(now - r.info.created_timestamp, 2),
        }
        for r in registry.active()
    ]

    # Oldest first
    tasks.sort(key=lambda t: t["created_at"])

    return {
        "count": len(tasks),
        "tasks": tasks
    }
