from __future__ import annotations

from typing import Generic, Literal, TypeVar

from pydantic import Field

from .base import CamelModel
from .gaps import SkillGaps
from .job import ParsedJobData
from .analysis import JobAnalysis, ResumeAnalysis
from .resume import ParsedResumeData

T = TypeVar("T")

ReportFormat = Literal["json", "csv", "html"]

MAX_DOCUMENT_CHARS = 50000


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T
    message: str = ""
    status: int = 200


class ScanRequest(CamelModel):
    resume_text: str = Field(min_length=1, max_length=MAX_DOCUMENT_CHARS)
    job_text: str = Field(min_length=1, max_length=MAX_DOCUMENT_CHARS)
    file_name: str | None = Field(default=None, max_length=255)
    user_id: str = Field(min_length=1, max_length=200)


class MatchRequest(CamelModel):
    resume_data: ParsedResumeData
    job_data: ParsedJobData


class ParseRequest(CamelModel):
    content: str = Field(min_length=1, max_length=MAX_DOCUMENT_CHARS)


class ResumeParseResult(CamelModel):
    parsed_data: ParsedResumeData
    analysis: ResumeAnalysis | None = None


class JobParseResult(CamelModel):
    parsed_data: ParsedJobData
    analysis: JobAnalysis | None = None


class UploadResult(CamelModel):
    file_name: str
    file_type: str
    file_size: int = Field(ge=0)
    content: str
    parsed_data: ParsedResumeData
    analysis: ResumeAnalysis | None = None
    parsing_warnings: list[str] = Field(default_factory=list)


class RewriteRequest(CamelModel):
    resume_data: ParsedResumeData
    job_data: ParsedJobData
    skill_gaps: SkillGaps


class CheckoutRequest(CamelModel):
    plan: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CheckoutResult(CamelModel):
    checkout_url: str
    session_id: str
    provider: str


class ExportRequest(CamelModel):
    user_id: str = Field(min_length=1, max_length=200)
    format: ReportFormat = "json"
    limit: int | None = Field(default=None, ge=1, le=500)


class DestroyResult(CamelModel):
    destroyed: bool
