from __future__ import annotations

from pydantic import ConfigDict, Field, computed_field, model_validator

from .base import CamelModel, FrozenCamelModel, Score
from .resume import SkillCategory

CATEGORY_KEYS: tuple[str, ...] = ("keyword", "skill", "experience", "education", "ats")


def weighted_overall(scores: dict[str, float], weights: dict[str, float]) -> float:
    total = sum(float(weights.get(key, 0.0)) * float(scores.get(key, 0.0)) for key in CATEGORY_KEYS)
    return round(max(0.0, min(100.0, total)), 2)


class ScoreWeights(FrozenCamelModel):
    model_config = ConfigDict(extra="forbid")

    keyword: float = Field(ge=0.0)
    skill: float = Field(ge=0.0)
    experience: float = Field(ge=0.0)
    education: float = Field(ge=0.0)
    ats: float = Field(ge=0.0)

    @model_validator(mode="after")
    def _validate_total(self) -> "ScoreWeights":
        if abs(sum(self.as_dict().values()) - 1.0) > 1e-6:
            raise ValueError("weights must sum to 1")
        return self

    def as_dict(self) -> dict[str, float]:
        return {key: getattr(self, key) for key in CATEGORY_KEYS}


class MatchResult(FrozenCamelModel):
    id: str
    resume_id: str
    job_id: str
    ats_score: Score
    keyword_score: Score
    experience_score: Score
    education_score: Score
    skill_score: Score
    weights: ScoreWeights
    strengths: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)

    def category_scores(self) -> dict[str, float]:
        return {
            "keyword": self.keyword_score,
            "skill": self.skill_score,
            "experience": self.experience_score,
            "education": self.education_score,
            "ats": self.ats_score,
        }

    @computed_field(alias="overallScore")
    @property
    def overall_score(self) -> float:
        return weighted_overall(self.category_scores(), self.weights.as_dict())

    @computed_field(alias="matchPercentage")
    @property
    def match_percentage(self) -> int:
        return int(round(self.overall_score))


class ExactMatch(CamelModel):
    keyword: str
    found: bool
    confidence: Score


class SemanticMatch(CamelModel):
    resume_term: str
    job_term: str
    similarity: Score
    category: SkillCategory = "technical"


class CategoryScores(CamelModel):
    technical: Score = 100.0
    soft: Score = 100.0
    language: Score = 100.0
    tool: Score = 100.0


class KeywordMatchResult(CamelModel):
    exact_matches: list[ExactMatch] = Field(default_factory=list)
    semantic_matches: list[SemanticMatch] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    additional_keywords: list[str] = Field(default_factory=list)
    match_score: Score = 100.0
    category_scores: CategoryScores = Field(default_factory=CategoryScores)
