from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from .base import CamelModel, Score

ActivityType = Literal["resume_upload", "job_analysis", "match_created", "optimization_applied"]


class Activity(CamelModel):
    id: str
    type: ActivityType
    description: str
    timestamp: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class Trend(CamelModel):
    period: str
    match_scores: list[float] = Field(default_factory=list)
    resume_count: int = Field(default=0, ge=0)
    job_count: int = Field(default=0, ge=0)


class Analytics(CamelModel):
    user_id: str
    total_resumes: int = Field(default=0, ge=0)
    total_jobs: int = Field(default=0, ge=0)
    total_matches: int = Field(default=0, ge=0)
    average_match_score: Score = 0.0
    top_skills: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    recent_activity: list[Activity] = Field(default_factory=list)
    trends: list[Trend] = Field(default_factory=list)
