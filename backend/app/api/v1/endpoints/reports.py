from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.core.dependencies import require_admin
from app.models.auth import UserInfo
from app.models.report import UtilizationReportRequest
from app.services.utilization_report import XLSX_MEDIA_TYPE, PeriodUtilizationReport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/utilization", response_class=Response)
async def export_utilization_report(
    request: UtilizationReportRequest,
    user: UserInfo = Depends(require_admin),  # noqa: B008
):
    report = PeriodUtilizationReport(request)
    content = report.generate_report()
    logger.info("Utilization report exported: %s (%d bytes) user=%s", report.file_name, len(content), user.name)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{report.file_name}"'},
    )
