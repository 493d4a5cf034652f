from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import CamelModel, Score
from .resume import SkillCategory

Importance = Literal["critical", "important", "nice-to-have"]
ResourceType = Literal["course", "certification", "tutorial", "book"]
GrowthPotential = Literal["high", "medium", "low"]


class LearningResource(CamelModel):
    type: ResourceType
    title: str
    provider: str
    url: str | None = None
    estimated_time: str


class MissingSkill(CamelModel):
    skill: str
    importance: Importance
    category: SkillCategory = "technical"
    reason: str = ""
    learning_resources: list[LearningResource] = Field(default_factory=list)


class SkillStrength(CamelModel):
    skill: str
    level: str
    relevance: Score
    evidence: str = ""


class ImprovementArea(CamelModel):
    area: str
    current_level: Score
    target_level: Score
    gap: str
    action_items: list[str] = Field(default_factory=list)


class CareerAdvice(CamelModel):
    short_term: list[str] = Field(default_factory=list)
    medium_term: list[str] = Field(default_factory=list)
    long_term: list[str] = Field(default_factory=list)


class MarketAlignment(CamelModel):
    demand_level: Score
    salary_impact: Score
    growth_potential: GrowthPotential = "medium"


class SkillGaps(CamelModel):
    missing_skills: list[MissingSkill] = Field(default_factory=list)
    skill_strengths: list[SkillStrength] = Field(default_factory=list)
    improvement_areas: list[ImprovementArea] = Field(default_factory=list)
    career_advice: CareerAdvice = Field(default_factory=CareerAdvice)
    market_alignment: MarketAlignment = Field(
        default_factory=lambda: MarketAlignment(demand_level=50.0, salary_impact=50.0)
    )
