from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from .base import FrozenCamelModel
from .resume import SkillCategory

EmploymentType = Literal["full-time", "part-time", "contract", "internship", "temporary"]
ExperienceLevel = Literal["entry", "junior", "mid", "senior", "lead", "executive"]
JobSkillLevel = Literal["junior", "intermediate", "senior", "expert"]


class SalaryRange(FrozenCamelModel):
    min: float = Field(ge=0)
    max: float = Field(ge=0)
    currency: str = "USD"

    @model_validator(mode="after")
    def _validate_bounds(self) -> "SalaryRange":
        if self.max < self.min:
            raise ValueError("salary max must be greater than or equal to min")
        return self


class JobSkill(FrozenCamelModel):
    name: str = Field(min_length=1)
    required: bool = True
    level: JobSkillLevel | None = None
    category: SkillCategory = "technical"


class ParsedJobData(FrozenCamelModel):
    id: str | None = None
    title: str = ""
    company: str = ""
    location: str | None = None
    employment_type: EmploymentType | None = None
    experience_level: ExperienceLevel | None = None
    salary: SalaryRange | None = None
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    preferred_qualifications: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    skills: list[JobSkill] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
