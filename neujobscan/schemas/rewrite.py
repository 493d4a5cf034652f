from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from .base import CamelModel, Score

ResumeSection = Literal["summary", "experience", "skills", "education", "projects"]
Effort = Literal["low", "medium", "high"]


class ScoreDelta(CamelModel):
    before: Score
    after: Score
    improvement: Score

    @model_validator(mode="after")
    def _validate_delta(self) -> "ScoreDelta":
        if self.after < self.before:
            raise ValueError("a rewrite must not lower the projected score")
        if abs((self.after - self.before) - self.improvement) > 0.01:
            raise ValueError("improvement must equal after - before")
        return self


class RewriteSuggestion(CamelModel):
    id: str
    section: ResumeSection
    original_text: str = ""
    rewritten_text: str
    reason: str = ""
    effort: Effort = "medium"
    ats_score: ScoreDelta
    keywords_added: list[str] = Field(default_factory=list)
    action_verbs_added: list[str] = Field(default_factory=list)
    metrics_added: list[str] = Field(default_factory=list)


class OverallImprovement(CamelModel):
    ats_score: Score = 0.0
    readability_score: Score = 0.0
    impact_score: Score = 0.0


class SectionAnalysis(CamelModel):
    score: Score = 0.0
    suggestions: int = Field(default=0, ge=0)


class RewriteSuggestions(CamelModel):
    suggestions: list[RewriteSuggestion] = Field(default_factory=list)
    overall_improvement: OverallImprovement = Field(default_factory=OverallImprovement)
    priority_rewrites: list[RewriteSuggestion] = Field(default_factory=list)
    quick_wins: list[RewriteSuggestion] = Field(default_factory=list)
    section_analysis: dict[str, SectionAnalysis] = Field(default_factory=dict)
