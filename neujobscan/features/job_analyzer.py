from __future__ import annotations

import re
from datetime import datetime, timezone

from neujobscan.normalize.job_parser import max_years_required
from neujobscan.normalize.utils import document_id
from neujobscan.schemas.analysis import JobAnalysis
from neujobscan.schemas.base import clamp_score
from neujobscan.schemas.job import ParsedJobData
from neujobscan.taxonomy import get_default_taxonomy_provider
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy

from .domain_classifier import classify_domain_from_job

VAGUE_PHRASES = (
    "fast-paced",
    "fast paced",
    "rockstar",
    "rock star",
    "ninja",
    "guru",
    "wear many hats",
    "self-starter",
    "self starter",
    "team player",
    "go-getter",
    "other duties as assigned",
    "synergy",
    "dynamic environment",
    "various tasks",
    "as needed",
    "etc",
)
_CULTURE_MARKERS = (
    "remote", "hybrid", "flexible", "collaborative", "inclusive", "diverse", "diversity",
    "work-life", "work life", "autonomy", "ownership", "transparent", "mission", "values",
)
_GROWTH_MARKERS = (
    "learning", "growth", "career", "training", "mentorship", "mentoring", "promotion",
    "development budget", "conference", "certification", "education stipend",
)
_SENIORITY_BY_LEVEL = {
    "entry": "entry",
    "junior": "entry",
    "mid": "mid",
    "senior": "senior",
    "lead": "lead",
    "executive": "executive",
}
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def _sentences(job: ParsedJobData) -> list[str]:
    sentences = [part for part in _SENTENCE_SPLIT_RE.split(job.description) if part.strip()]
    sentences.extend(job.requirements + job.preferred_qualifications + job.responsibilities)
    return sentences


def clarity_score(job: ParsedJobData) -> float:
    sentences = _sentences(job)
    if not sentences:
        return 0.0
    vague_hits = 0
    for sentence in sentences:
        lowered = sentence.lower()
        vague_hits += sum(
            len(re.findall(rf"(?<![a-z]){re.escape(phrase)}(?![a-z])", lowered)) for phrase in VAGUE_PHRASES
        )
    density = min(1.0, vague_hits / len(sentences))
    return clamp_score(100 * (1 - density))


def _seniority(job: ParsedJobData, years: int | None) -> str:
    if job.experience_level:
        return _SENIORITY_BY_LEVEL[job.experience_level]
    if years is None:
        return "mid"
    if years >= 8:
        return "lead"
    if years >= 5:
        return "senior"
    if years >= 2:
        return "mid"
    return "entry"


def _difficulty(required_count: int, years: int | None, seniority: str) -> str:
    points = 0
    if required_count >= 8:
        points += 2
    elif required_count >= 4:
        points += 1
    if years is not None and years >= 7:
        points += 2
    elif years is not None and years >= 3:
        points += 1
    if seniority in {"senior", "lead", "executive"}:
        points += 2
    elif seniority == "mid":
        points += 1
    if points >= 4:
        return "hard"
    if points >= 2:
        return "medium"
    return "easy"


def _lines_with(lines: list[str], markers: tuple[str, ...]) -> list[str]:
    return [line for line in lines if any(marker in line.lower() for marker in markers)]


def _competitiveness(job: ParsedJobData, difficulty: str, taxonomy: LocalTaxonomy) -> str:
    in_demand = 0
    for skill in job.skills:
        normalized, canonical_id = taxonomy.normalize_skill(skill.name)
        if taxonomy.is_high_demand(canonical_id or normalized):
            in_demand += 1
    demand_share = in_demand / len(job.skills) if job.skills else 0.0
    midpoint = (job.salary.min + job.salary.max) / 2 if job.salary else 0.0
    if midpoint >= 120_000 or demand_share >= 0.5 or difficulty == "hard":
        return "high"
    if difficulty == "easy" and demand_share < 0.25:
        return "low"
    return "medium"


def analyze_job(
    parsed: ParsedJobData,
    *,
    now: datetime | None = None,
    taxonomy: LocalTaxonomy | None = None,
) -> JobAnalysis:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    years = max_years_required(parsed.requirements + parsed.preferred_qualifications)
    seniority = _seniority(parsed, years)
    required = [skill.name for skill in parsed.skills if skill.required]
    optional = [skill.name for skill in parsed.skills if not skill.required]
    difficulty = _difficulty(len(required), years, seniority)

    key_requirements = list(dict.fromkeys(required + parsed.requirements))[:10]
    preferred = parsed.preferred_qualifications or optional
    culture_source = [part for part in _SENTENCE_SPLIT_RE.split(parsed.description) if part.strip()]
    culture = _lines_with(culture_source + parsed.benefits, _CULTURE_MARKERS)

    job_id = parsed.id or document_id("job", parsed.model_dump_json())
    return JobAnalysis(
        id=document_id("ja", job_id),
        job_id=job_id,
        difficulty=difficulty,
        seniority_level=seniority,
        clarity_score=clarity_score(parsed),
        domain=classify_domain_from_job(parsed).domain_primary,
        key_requirements=key_requirements,
        preferred_qualifications=list(preferred)[:10],
        company_culture=culture[:5] or None,
        growth_opportunities=_lines_with(parsed.benefits + parsed.responsibilities, _GROWTH_MARKERS)[:5],
        market_competitiveness=_competitiveness(parsed, difficulty, taxonomy),
        created_at=now or datetime.now(timezone.utc),
    )
