from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import FrozenCamelModel

SkillCategory = Literal["technical", "soft", "language", "tool"]
SkillLevel = Literal["beginner", "intermediate", "advanced", "expert"]
LanguageProficiency = Literal["basic", "conversational", "professional", "native"]


class PersonalInfo(FrozenCamelModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str | None = None
    github: str | None = None
    portfolio: str | None = None


class WorkExperience(FrozenCamelModel):
    id: str
    company: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str | None = None
    current: bool = False
    description: str = ""
    achievements: list[str] = Field(default_factory=list)


class Education(FrozenCamelModel):
    id: str
    institution: str = ""
    degree: str = ""
    field: str = ""
    start_date: str = ""
    end_date: str | None = None
    current: bool = False
    gpa: float | None = None


class Skill(FrozenCamelModel):
    id: str
    name: str = Field(min_length=1)
    category: SkillCategory = "technical"
    level: SkillLevel = "intermediate"
    years_of_experience: float | None = Field(default=None, ge=0)


class Certification(FrozenCamelModel):
    id: str
    name: str
    issuer: str = ""
    date: str = ""
    expiry_date: str | None = None
    credential_id: str | None = None
    credential_url: str | None = None


class Language(FrozenCamelModel):
    id: str
    name: str
    proficiency: LanguageProficiency = "conversational"


class Project(FrozenCamelModel):
    id: str
    name: str
    description: str = ""
    technologies: list[str] = Field(default_factory=list)
    url: str | None = None
    github: str | None = None
    start_date: str = ""
    end_date: str | None = None


class ParsedResumeData(FrozenCamelModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    summary: str | None = None
    experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    certifications: list[Certification] | None = None
    languages: list[Language] | None = None
    projects: list[Project] | None = None
