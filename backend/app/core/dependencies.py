from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, Request, status
from jose.exceptions import JOSEError

from app.core.auth import extract_roles, validate_access_token
from app.core.config import settings
from app.models.auth import UserInfo
from app.services.directory_service import DirectoryService
from app.services.employee_store import CosmosEmployeeStore
from app.services.notification_service import SmtpNotifier
from app.services.password_reset_service import PasswordResetService
from app.services.upload_service import EmployeeUploadService

logger = logging.getLogger(__name__)


async def get_current_user(authorization: str | None = Header(None)) -> UserInfo:  # noqa: B008
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.split(" ", 1)[1]
    try:
        payload = await validate_access_token(token, settings.AZURE_AD_TENANT_ID, settings.AZURE_AD_CLIENT_ID)
    except JOSEError as e:
        logger.error("Token validation error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return UserInfo(
        id=payload.get("oid"),
        name=payload.get("name"),
        email=payload.get("preferred_username"),
        roles=extract_roles(payload),
    )


def require_role(*roles: str):
    async def _check_role(user: UserInfo = Depends(get_current_user)) -> UserInfo:  # noqa: B008
        if not user.has_any_role(*roles):
            logger.warning("User %s denied, required role: %s", user.email, ", ".join(roles))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(roles)}",
            )
        return user

    return _check_role


require_admin = require_role(settings.ADMIN_ROLE)


def _service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        logger.error("Service %s requested before application startup", name)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not available",
        )
    return service


def get_upload_service(request: Request) -> EmployeeUploadService:
    return _service(request, "upload_service")


def get_password_reset_service(request: Request) -> PasswordResetService:
    return _service(request, "password_reset_service")


def get_notifier(request: Request) -> SmtpNotifier:
    return _service(request, "notifier")


def get_employee_store(request: Request) -> CosmosEmployeeStore:
    return _service(request, "employee_store")


def get_directory(request: Request) -> DirectoryService:
    return _service(request, "directory")
