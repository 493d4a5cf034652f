from .analysis import JobAnalysis, ResumeAnalysis
from .analytics import Activity, Analytics, Trend
from .cover_letter import CoverLetter, CoverLetterExportRequest, CoverLetterRequest
from .explanation import Explanation
from .gaps import LearningResource, MissingSkill, SkillGaps, SkillStrength
from .job import JobSkill, ParsedJobData, SalaryRange
from .match import CATEGORY_KEYS, KeywordMatchResult, MatchResult, ScoreWeights, weighted_overall
from .payment import CheckoutSession
from .resume import (
    Certification,
    Education,
    Language,
    ParsedResumeData,
    PersonalInfo,
    Project,
    Skill,
    WorkExperience,
)
from .rewrite import RewriteSuggestion, RewriteSuggestions, ScoreDelta
from .scan import ATSResponse, ScoreBreakdown

__all__ = [
    "ATSResponse",
    "Activity",
    "Analytics",
    "CATEGORY_KEYS",
    "Certification",
    "CoverLetter",
    "CoverLetterExportRequest",
    "CoverLetterRequest",
    "CheckoutSession",
    "Education",
    "Explanation",
    "JobAnalysis",
    "JobSkill",
    "KeywordMatchResult",
    "Language",
    "LearningResource",
    "MatchResult",
    "MissingSkill",
    "ParsedJobData",
    "ParsedResumeData",
    "PersonalInfo",
    "Project",
    "ResumeAnalysis",
    "RewriteSuggestion",
    "RewriteSuggestions",
    "SalaryRange",
    "ScoreBreakdown",
    "ScoreDelta",
    "ScoreWeights",
    "Skill",
    "SkillGaps",
    "SkillStrength",
    "Trend",
    "WorkExperience",
    "weighted_overall",
]
