from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.dependencies import get_notifier, get_password_reset_service, require_admin
from app.core.exceptions import ResetTokenError, StorageError
from app.models.auth import UserInfo
from app.models.notification import (
    NotificationReport,
    ResetLinkEmailRequest,
    ResetPasswordRequest,
    ResetPasswordToken,
    TokenValidationResponse,
)
from app.services.notification_service import SmtpNotifier
from app.services.password_reset_service import PasswordResetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/password", tags=["password"])


@router.post("/reset-link", response_model=NotificationReport)
async def email_reset_password_link(
    request: ResetLinkEmailRequest,
    notifier: SmtpNotifier = Depends(get_notifier),  # noqa: B008
    user: UserInfo = Depends(require_admin),  # noqa: B008
):
    report = await notifier.send_reset_links(
        request.recipient_addresses,
        request.subject or notifier.subject,
        request.text,
    )
    logger.info("Reset links requested by user=%s for %d recipients", user.name, len(request.recipient_addresses))
    if not report.sent:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Reset emails could not be sent",
        )
    return report


@router.post("/validate-token", response_model=TokenValidationResponse)
async def validate_reset_token(
    request: ResetPasswordToken,
    service: PasswordResetService = Depends(get_password_reset_service),  # noqa: B008
):
    try:
        valid = await service.validate_token(request.email, request.token)
    except StorageError as err:
        logger.exception("Token validation failed for %s", request.email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to validate token",
        ) from err
    return TokenValidationResponse(email=request.email, valid=valid)


@router.post("/reset")
async def reset_password(
    request: ResetPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),  # noqa: B008
):
    try:
        await service.reset_password(request)
    except ResetTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except StorageError as err:
        logger.exception("Password reset failed for %s", request.email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reset password",
        ) from err
    return {"message": "password reset successfully"}
