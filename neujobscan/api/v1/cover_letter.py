import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response

from neujobscan.core.errors import NeuJobScanError, PipelineStageError
from neujobscan.core.rate_limit import rate_limit
from neujobscan.schemas.api import ApiResponse
from neujobscan.schemas.cover_letter import CoverLetter, CoverLetterExportRequest, CoverLetterRequest
from neujobscan.services.cover_letter import generate_cover_letter
from neujobscan.services.llm import llm_enabled
from neujobscan.services.reports import render_cover_letter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/cover-letter", response_model=ApiResponse[CoverLetter])
@rate_limit()
async def cover_letter(request: Request, payload: CoverLetterRequest):
    _ = request
    try:
        letter = generate_cover_letter(
            payload.resume_data,
            payload.job_data,
            payload.template,
            hiring_manager=payload.hiring_manager,
            use_llm=llm_enabled(),
        )
    except NeuJobScanError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("cover_letter_failed template=%s", payload.template)
        raise PipelineStageError("cover_letter") from exc
    return ApiResponse[CoverLetter](data=letter, message="Cover letter generated successfully")


@router.post("/cover-letter/export")
@rate_limit()
async def export_cover_letter(request: Request, payload: CoverLetterExportRequest):
    _ = request
    body, media_type, filename = render_cover_letter(payload.content, payload.format)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
