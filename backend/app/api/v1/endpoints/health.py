from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.dependencies import get_directory, get_employee_store, get_notifier
from app.core.protocols import HealthCheckable
from app.services.directory_service import DirectoryService
from app.services.employee_store import CosmosEmployeeStore
from app.services.notification_service import SmtpNotifier

router = APIRouter(prefix="/health", tags=["health"])


async def _service_status(service: HealthCheckable) -> str:
    if not service.initialized:
        return "not_configured"
    try:
        return "ok" if await service.check_connection() else "error"
    except Exception:
        return "error"


@router.get("")
async def health_check(
    store: CosmosEmployeeStore = Depends(get_employee_store),  # noqa: B008
    directory: DirectoryService = Depends(get_directory),  # noqa: B008
    notifier: SmtpNotifier = Depends(get_notifier),  # noqa: B008
):
    services: dict[str, str] = {
        "cosmos_db": await _service_status(store),
        "directory": await _service_status(directory),
        "smtp": await _service_status(notifier),
    }

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/ready")
async def readiness_check():
    return {"ready": True}
