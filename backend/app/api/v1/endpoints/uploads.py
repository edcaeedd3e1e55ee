from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.dependencies import get_upload_service, require_admin
from app.core.exceptions import DirectoryLookupError
from app.models.auth import UserInfo
from app.models.employee import UploadOutcome, UploadResult
from app.services.upload_service import EmployeeUploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])

OUTCOME_STATUS: dict[UploadOutcome, int] = {
    UploadOutcome.SUCCESS: status.HTTP_200_OK,
    UploadOutcome.EMPTY_INPUT: status.HTTP_400_BAD_REQUEST,
    UploadOutcome.INVALID_ROW: status.HTTP_400_BAD_REQUEST,
    UploadOutcome.DUPLICATE_ENTRY: status.HTTP_409_CONFLICT,
    UploadOutcome.STORAGE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UploadOutcome.NOTIFICATION_FAILED: status.HTTP_207_MULTI_STATUS,
}

SUPPORTED_CONTENT_TYPES = {"text/csv", "text/plain", "application/vnd.ms-excel", "application/octet-stream"}


@router.post("/admins", response_model=UploadResult)
async def upload_admin_list(
    request: Request,
    file: UploadFile,
    service: EmployeeUploadService = Depends(get_upload_service),  # noqa: B008
    user: UserInfo = Depends(require_admin),  # noqa: B008
):
    if file.content_type not in SUPPORTED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type: {file.content_type}. Allowed: CSV",
        )

    file_bytes = await file.read()

    if len(file_bytes) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large: {len(file_bytes)} bytes. Maximum: {settings.MAX_UPLOAD_SIZE} bytes",
        )

    try:
        raw_text = file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is not UTF-8 encoded text",
        ) from e

    try:
        result = await service.upload(raw_text)
    except DirectoryLookupError as e:
        logger.error("Directory lookup failed during upload of %s: %s", file.filename, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Employee directory unavailable: {e}",
        ) from e

    logger.info(
        "Upload of %s finished: outcome=%s uploaded=%d user=%s",
        file.filename,
        result.outcome.value,
        result.uploaded,
        user.name,
    )
    return JSONResponse(
        status_code=OUTCOME_STATUS[result.outcome],
        content=result.model_dump(mode="json"),
        headers={"Location": f"{request.base_url}employee/"},
    )
