from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from .base import FrozenCamelModel, Score

Difficulty = Literal["easy", "medium", "hard"]
SeniorityLevel = Literal["entry", "mid", "senior", "lead", "executive"]
Competitiveness = Literal["low", "medium", "high"]


class ResumeAnalysis(FrozenCamelModel):
    id: str
    resume_id: str
    overall_score: Score
    ats_score: Score
    keyword_score: Score
    structure_score: Score
    content_score: Score
    domain: str = "other"
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    format_issues: list[str] = Field(default_factory=list)
    created_at: datetime


class JobAnalysis(FrozenCamelModel):
    id: str
    job_id: str
    difficulty: Difficulty
    seniority_level: SeniorityLevel
    clarity_score: Score
    domain: str = "other"
    key_requirements: list[str] = Field(default_factory=list)
    preferred_qualifications: list[str] = Field(default_factory=list)
    company_culture: list[str] | None = None
    growth_opportunities: list[str] = Field(default_factory=list)
    market_competitiveness: Competitiveness = "medium"
    created_at: datetime
