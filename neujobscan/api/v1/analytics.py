import asyncio

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from neujobscan.core.errors import ValidationError
from neujobscan.core.rate_limit import rate_limit
from neujobscan.schemas.analytics import Analytics
from neujobscan.schemas.api import ApiResponse, ExportRequest
from neujobscan.services.analytics_service import build_analytics
from neujobscan.services.reports import content_type_for, render_report, report_filename
from neujobscan.services.scan_service import ScanService

from .dependencies import get_scan_service

router = APIRouter()


@router.get("/analytics/dashboard", response_model=ApiResponse[Analytics])
async def dashboard(
    user_id: str | None = Query(default=None, alias="userId"),
    service: ScanService = Depends(get_scan_service),
):
    if not user_id:
        raise ValidationError("Missing required parameter: userId")
    scans = await asyncio.to_thread(service.get_scan_history, user_id)
    return ApiResponse[Analytics](data=build_analytics(user_id, scans))


@router.post("/reports/export")
@rate_limit()
async def export_report(
    request: Request,
    payload: ExportRequest,
    service: ScanService = Depends(get_scan_service),
):
    _ = request
    media_type = content_type_for(payload.format)
    scans = await asyncio.to_thread(service.get_scan_history, payload.user_id, payload.limit)
    return Response(
        content=render_report(scans, payload.format),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{report_filename(payload.format)}"'},
    )
