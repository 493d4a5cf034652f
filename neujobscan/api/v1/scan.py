import asyncio

from fastapi import APIRouter, Depends, Query, Request

from neujobscan.core.errors import ValidationError
from neujobscan.core.rate_limit import rate_limit
from neujobscan.schemas.api import ApiResponse, ScanRequest
from neujobscan.schemas.scan import ATSResponse
from neujobscan.services.scan_service import ScanService

from .dependencies import get_scan_service

router = APIRouter()


@router.post("/scan", response_model=ApiResponse[ATSResponse])
@rate_limit()
async def create_scan(
    request: Request,
    payload: ScanRequest,
    service: ScanService = Depends(get_scan_service),
):
    _ = request
    result = await asyncio.to_thread(
        service.perform_scan,
        payload.resume_text,
        payload.job_text,
        payload.user_id,
        payload.file_name,
    )
    return ApiResponse[ATSResponse](data=result, message="Scan completed")


@router.get("/scan", response_model=ApiResponse[list[ATSResponse]])
async def scan_history(
    user_id: str | None = Query(default=None, alias="userId"),
    limit: int | None = Query(default=None, ge=1, le=500),
    service: ScanService = Depends(get_scan_service),
):
    if not user_id:
        raise ValidationError("Missing required parameter: userId")
    scans = await asyncio.to_thread(service.get_scan_history, user_id, limit)
    return ApiResponse[list[ATSResponse]](data=scans)
