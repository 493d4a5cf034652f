from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import CamelModel, Score

SectionStatus = Literal["excellent", "good", "needs-improvement", "critical"]
InsightCategory = Literal["immediate", "short-term", "long-term"]
Level = Literal["high", "medium", "low"]


class ScoreExplanation(CamelModel):
    what_it_means: str
    is_good: bool
    benchmark: str
    next_steps: list[str] = Field(default_factory=list)


class BreakdownEntry(CamelModel):
    section: str
    score: Score
    status: SectionStatus
    explanation: str
    recommendations: list[str] = Field(default_factory=list)


class KeywordAnalysis(CamelModel):
    matched_keywords: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    additional_keywords: list[str] = Field(default_factory=list)
    impact_on_score: str = ""


class SkillGapSummary(CamelModel):
    critical_gaps: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    learning_path: list[str] = Field(default_factory=list)


class ActionableInsight(CamelModel):
    priority: Level
    category: InsightCategory
    action: str
    expected_impact: str
    effort: Level


class NextSteps(CamelModel):
    immediate: list[str] = Field(default_factory=list)
    this_week: list[str] = Field(default_factory=list)
    this_month: list[str] = Field(default_factory=list)


class CompetitiveAnalysis(CamelModel):
    how_you_compare: str
    market_position: str
    improvement_potential: str


class Explanation(CamelModel):
    scan_id: str
    overall_score: Score
    score_explanation: ScoreExplanation
    detailed_breakdown: list[BreakdownEntry] = Field(default_factory=list)
    keyword_analysis: KeywordAnalysis = Field(default_factory=KeywordAnalysis)
    skill_gap_summary: SkillGapSummary = Field(default_factory=SkillGapSummary)
    actionable_insights: list[ActionableInsight] = Field(default_factory=list)
    next_steps: NextSteps = Field(default_factory=NextSteps)
    competitive_analysis: CompetitiveAnalysis
