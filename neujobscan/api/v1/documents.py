import logging

from fastapi import APIRouter, File, Request, UploadFile

from neujobscan.core.config import settings
from neujobscan.core.errors import ValidationError
from neujobscan.core.rate_limit import rate_limit
from neujobscan.features.job_analyzer import analyze_job
from neujobscan.features.resume_analyzer import analyze_resume
from neujobscan.normalize.job_parser import parse_job
from neujobscan.normalize.resume_parser import parse_resume
from neujobscan.parsing.extract import extract_document_text, source_type_for
from neujobscan.schemas.analysis import JobAnalysis, ResumeAnalysis
from neujobscan.schemas.api import (
    ApiResponse,
    JobParseResult,
    ParseRequest,
    ResumeParseResult,
    UploadResult,
)
from neujobscan.schemas.job import ParsedJobData
from neujobscan.schemas.resume import ParsedResumeData

logger = logging.getLogger(__name__)

router = APIRouter()

READ_CHUNK_BYTES = 64 * 1024


def _resume_analysis(parsed: ParsedResumeData, raw_text: str) -> ResumeAnalysis | None:
    try:
        return analyze_resume(parsed, raw_text)
    except Exception as exc:  # noqa: BLE001 - analysis is optional in parse responses
        logger.warning("resume_analysis_failed error=%s", exc)
        return None


def _job_analysis(parsed: ParsedJobData) -> JobAnalysis | None:
    try:
        return analyze_job(parsed)
    except Exception as exc:  # noqa: BLE001 - analysis is optional in parse responses
        logger.warning("job_analysis_failed error=%s", exc)
        return None


@router.post("/job/parse", response_model=ApiResponse[JobParseResult])
@rate_limit()
async def parse_job_posting(request: Request, payload: ParseRequest):
    _ = request
    parsed = parse_job(payload.content)
    return ApiResponse[JobParseResult](
        data=JobParseResult(parsed_data=parsed, analysis=_job_analysis(parsed)),
        message="Job description parsed",
    )


@router.post("/resume/parse", response_model=ApiResponse[ResumeParseResult])
@rate_limit()
async def parse_resume_text(request: Request, payload: ParseRequest):
    _ = request
    parsed = parse_resume(payload.content)
    return ApiResponse[ResumeParseResult](
        data=ResumeParseResult(parsed_data=parsed, analysis=_resume_analysis(parsed, payload.content)),
        message="Resume parsed",
    )


@router.post("/resume/upload", response_model=ApiResponse[UploadResult])
@rate_limit()
async def upload_resume(request: Request, file: UploadFile = File(...)):
    _ = request
    filename = file.filename or "uploaded-file"
    file_type = source_type_for(filename, file.content_type)

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.upload_max_bytes:
            raise ValidationError(
                f"File too large. Maximum allowed size is {settings.upload_max_bytes // (1024 * 1024)} MB."
            )
        chunks.append(chunk)
    if total == 0:
        raise ValidationError("Uploaded file is empty.")

    document = extract_document_text(filename, b"".join(chunks), file.content_type)
    parsed = parse_resume(document.text)
    logger.info("resume_uploaded file_type=%s size=%s warnings=%s", file_type, total, len(document.parsing_warnings))
    return ApiResponse[UploadResult](
        data=UploadResult(
            file_name=document.file_name,
            file_type=document.source_type,
            file_size=total,
            content=document.text,
            parsed_data=parsed,
            analysis=_resume_analysis(parsed, document.text),
            parsing_warnings=document.parsing_warnings,
        ),
        message="Resume uploaded",
    )
