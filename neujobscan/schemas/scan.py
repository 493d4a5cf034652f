from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .analysis import JobAnalysis, ResumeAnalysis
from .base import CamelModel, Score
from .explanation import Explanation
from .gaps import SkillGaps
from .match import KeywordMatchResult, ScoreWeights
from .rewrite import RewriteSuggestions


class ScoreBreakdown(CamelModel):
    keyword_match: Score
    skill_alignment: Score
    experience_relevance: Score
    education_match: Score
    ats_compliance: Score


class ATSResponse(CamelModel):
    scan_id: str
    timestamp: datetime
    user_id: str
    file_name: str | None = None
    resume_id: str
    job_id: str
    job_title: str = ""
    company: str = ""
    overall_score: Score
    ats_score: Score
    keyword_score: Score
    experience_score: Score
    education_score: Score
    skill_score: Score
    format_score: Score
    match_percentage: int = Field(ge=0, le=100)
    weights: ScoreWeights
    breakdown: ScoreBreakdown
    keyword_matches: KeywordMatchResult
    skill_gaps: SkillGaps
    rewrite_suggestions: RewriteSuggestions
    explanation: Explanation
    resume_analysis: ResumeAnalysis | None = None
    job_analysis: JobAnalysis | None = None
    recommendations: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
