from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, computed_field

from .base import CamelModel, FrozenCamelModel
from .job import ParsedJobData
from .resume import ParsedResumeData

CoverLetterTemplate = Literal["professional", "modern", "creative", "executive"]
CoverLetterFormat = Literal["txt", "html", "word"]
GenerationMode = Literal["heuristic", "llm"]

MAX_LETTER_CHARS = 20000


class CoverLetter(FrozenCamelModel):
    template: CoverLetterTemplate
    job_title: str = ""
    company: str = ""
    greeting: str
    paragraphs: list[str] = Field(default_factory=list)
    closing: str
    signoff: str
    signature: str
    highlighted_skills: list[str] = Field(default_factory=list)
    generation_mode: GenerationMode = "heuristic"
    generated_at: datetime

    @computed_field(alias="content")
    @property
    def content(self) -> str:
        blocks = [self.greeting, *self.paragraphs, self.closing, f"{self.signoff}\n{self.signature}"]
        return "\n\n".join(block for block in blocks if block)

    @computed_field(alias="wordCount")
    @property
    def word_count(self) -> int:
        return len(self.content.split())


class CoverLetterRequest(CamelModel):
    resume_data: ParsedResumeData
    job_data: ParsedJobData
    template: CoverLetterTemplate = "professional"
    hiring_manager: str | None = Field(default=None, max_length=200)


class CoverLetterExportRequest(CamelModel):
    content: str = Field(min_length=1, max_length=MAX_LETTER_CHARS)
    format: CoverLetterFormat = "html"
