import logging

from fastapi import APIRouter, Request

from neujobscan.core.errors import NeuJobScanError, PipelineStageError
from neujobscan.core.rate_limit import rate_limit
from neujobscan.schemas.api import ApiResponse, MatchRequest, RewriteRequest
from neujobscan.schemas.match import MatchResult
from neujobscan.schemas.rewrite import RewriteSuggestions
from neujobscan.scoring.matcher import create_match
from neujobscan.scoring.rewrite import generate_suggestions

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/match", response_model=ApiResponse[MatchResult])
@rate_limit()
async def match(request: Request, payload: MatchRequest):
    _ = request
    try:
        result = create_match(payload.resume_data, payload.job_data)
    except NeuJobScanError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("match_failed")
        raise PipelineStageError("match") from exc
    return ApiResponse[MatchResult](data=result)


@router.post("/rewrite", response_model=ApiResponse[RewriteSuggestions])
@rate_limit()
async def rewrite(request: Request, payload: RewriteRequest):
    _ = request
    try:
        result = generate_suggestions(payload.resume_data, payload.job_data, payload.skill_gaps)
    except NeuJobScanError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("rewrite_failed")
        raise PipelineStageError("rewrite") from exc
    return ApiResponse[RewriteSuggestions](data=result)
