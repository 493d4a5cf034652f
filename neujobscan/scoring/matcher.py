from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from neujobscan.core.errors import ValidationError
from neujobscan.core.scoring import get_scoring_value
from neujobscan.normalize.degrees import degree_level, field_families, find_fields, mentions_degree
from neujobscan.normalize.utils import YEAR_RE, document_id
from neujobscan.schemas.base import clamp_score
from neujobscan.schemas.job import JobSkill, ParsedJobData
from neujobscan.schemas.match import (
    CATEGORY_KEYS,
    CategoryScores,
    ExactMatch,
    KeywordMatchResult,
    MatchResult,
    SemanticMatch,
)
from neujobscan.schemas.resume import ParsedResumeData, WorkExperience
from neujobscan.semantic.embeddings import EmbeddingProvider
from neujobscan.semantic.evidence import ResumeIndex, SkillEvidence
from neujobscan.semantic.similarity import content_tokens
from neujobscan.taxonomy import get_default_taxonomy_provider
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy, clean_term

from .ats import ats_compliance

_DEFAULT_WEIGHTS = {"keyword": 0.30, "skill": 0.25, "experience": 0.25, "education": 0.10, "ats": 0.10}
_MAX_ADDITIONAL_KEYWORDS = 15


@dataclass(slots=True)
class CategoryScore:
    score: float
    applicable: bool = True


def semantic_threshold() -> float:
    return float(get_scoring_value("matching.similarity_thresholds.semantic_match", 0.6))


def base_weights() -> dict[str, float]:
    configured = get_scoring_value("matching.weights", None) or {}
    weights = {key: float(configured.get(key, _DEFAULT_WEIGHTS[key])) for key in CATEGORY_KEYS}
    total = sum(weights.values())
    if total <= 0:
        raise RuntimeError("Invalid scoring config: matching.weights must sum to a positive value.")
    return {key: value / total for key, value in weights.items()}


def redistribute_weights(applicable: dict[str, bool]) -> dict[str, float]:
    """Spread the weight of categories without data proportionally over the rest."""
    weights = base_weights()
    active = {key: weight for key, weight in weights.items() if applicable.get(key, True)}
    total = sum(active.values())
    if total <= 0:
        return weights
    return {key: (active[key] / total if key in active else 0.0) for key in CATEGORY_KEYS}


def skill_weight(skill: JobSkill) -> float:
    if skill.required:
        return float(get_scoring_value("matching.skill_weights.required", 2.0))
    return float(get_scoring_value("matching.skill_weights.optional", 1.0))


def unique_job_skills(job: ParsedJobData, taxonomy: LocalTaxonomy) -> list[JobSkill]:
    """Job skills deduplicated by canonical name; a required duplicate wins."""
    unique: dict[str, JobSkill] = {}
    for skill in job.skills:
        normalized, canonical_id = taxonomy.normalize_skill(skill.name)
        key = canonical_id or normalized
        if not key:
            continue
        existing = unique.get(key)
        if existing is None:
            unique[key] = skill
        elif skill.required and not existing.required:
            unique[key] = existing.model_copy(update={"required": True})
    return list(unique.values())


def _unique_keywords(job: ParsedJobData, taxonomy: LocalTaxonomy) -> list[str]:
    seen: set[str] = set()
    keywords: list[str] = []
    for keyword in job.keywords:
        normalized, canonical_id = taxonomy.normalize_skill(keyword)
        key = canonical_id or normalized
        if key and key not in seen:
            seen.add(key)
            keywords.append(keyword)
    return keywords


def _require_inputs(resume: ParsedResumeData | None, job: ParsedJobData | None) -> None:
    if resume is None:
        raise ValidationError("Resume data is required.")
    if job is None:
        raise ValidationError("Job data is required.")


def match_keywords(
    resume: ParsedResumeData,
    job: ParsedJobData,
    *,
    index: ResumeIndex | None = None,
    taxonomy: LocalTaxonomy | None = None,
    embedder: EmbeddingProvider | None = None,
) -> KeywordMatchResult:
    _require_inputs(resume, job)
    taxonomy = taxonomy or get_default_taxonomy_provider()
    index = index or ResumeIndex(resume, taxonomy, embedder)
    threshold = semantic_threshold()

    exact: list[ExactMatch] = []
    semantic: list[SemanticMatch] = []
    missing: list[str] = []
    credit = 0.0
    keywords = _unique_keywords(job, taxonomy)
    for keyword in keywords:
        evidence = index.evidence_for(keyword)
        if evidence.exact:
            credit += 1.0
            exact.append(ExactMatch(keyword=keyword, found=True, confidence=100.0))
        elif evidence.confidence >= threshold:
            credit += evidence.confidence
            semantic.append(
                SemanticMatch(
                    resume_term=evidence.matched_term or keyword,
                    job_term=keyword,
                    similarity=clamp_score(evidence.confidence * 100),
                    category=taxonomy.categorize(keyword),
                )
            )
        else:
            missing.append(keyword)
            exact.append(ExactMatch(keyword=keyword, found=False, confidence=0.0))

    match_score = clamp_score(credit / len(keywords) * 100) if keywords else 100.0

    job_keys = set()
    for term in keywords + [skill.name for skill in job.skills]:
        normalized, canonical_id = taxonomy.normalize_skill(term)
        job_keys.add(canonical_id or normalized)
    additional: list[str] = []
    for skill in resume.skills:
        normalized, canonical_id = taxonomy.normalize_skill(skill.name)
        if (canonical_id or normalized) not in job_keys and skill.name not in additional:
            additional.append(skill.name)

    return KeywordMatchResult(
        exact_matches=exact,
        semantic_matches=semantic,
        missing_keywords=missing,
        additional_keywords=additional[:_MAX_ADDITIONAL_KEYWORDS],
        match_score=match_score,
        category_scores=_category_scores(unique_job_skills(job, taxonomy), index, threshold),
    )


def _category_scores(skills: list[JobSkill], index: ResumeIndex, threshold: float) -> CategoryScores:
    totals: Counter[str] = Counter()
    found: Counter[str] = Counter()
    for skill in skills:
        totals[skill.category] += 1
        if index.evidence_for(skill.name).confidence >= threshold:
            found[skill.category] += 1
    values = {
        category: clamp_score(found[category] / totals[category] * 100)
        for category in totals
    }
    return CategoryScores(**values)


def skill_score(
    skills: list[JobSkill],
    evidence: dict[str, SkillEvidence],
    threshold: float,
) -> CategoryScore:
    if not skills:
        return CategoryScore(100.0, applicable=False)
    total = sum(skill_weight(skill) for skill in skills)
    satisfied = sum(skill_weight(skill) for skill in skills if evidence[skill.name].confidence >= threshold)
    return CategoryScore(clamp_score(satisfied / total * 100))


def _role_text(role: WorkExperience) -> str:
    return "\n".join(chunk for chunk in (role.position, role.description, *role.achievements) if chunk)


def _role_recency(role: WorkExperience) -> tuple[int, int]:
    end_years = [int(year) for year in YEAR_RE.findall(role.end_date or "")]
    start_years = [int(year) for year in YEAR_RE.findall(role.start_date or "")]
    end = 9999 if role.current else (max(end_years) if end_years else (max(start_years) if start_years else 0))
    return end, max(start_years) if start_years else 0


def _focus_terms(job: ParsedJobData, skills: list[JobSkill], taxonomy: LocalTaxonomy) -> list[str]:
    limit = int(get_scoring_value("matching.experience.focus_terms", 20))
    terms: list[str] = []
    seen: set[str] = set()
    for term in [skill.name for skill in skills] + list(job.keywords):
        normalized, canonical_id = taxonomy.normalize_skill(term)
        key = canonical_id or normalized
        if key and key not in seen:
            seen.add(key)
            terms.append(term)
    if not terms:
        counts = Counter(
            token
            for line in job.requirements + job.responsibilities
            for token in content_tokens(line)
            if len(token) > 2 and not token.isdigit()
        )
        terms = [token for token, _ in counts.most_common(limit)]
    return terms[:limit]


def _mentioned(term: str, text: str, found_ids: set[str], taxonomy: LocalTaxonomy) -> bool:
    normalized, canonical_id = taxonomy.normalize_skill(term)
    if canonical_id and canonical_id in found_ids:
        return True
    if not normalized or taxonomy.is_ambiguous(canonical_id or normalized):
        return False
    return re.search(rf"(?<![a-z0-9]){re.escape(normalized)}(?![a-z0-9\+#])", text) is not None


def experience_score(
    resume: ParsedResumeData,
    job: ParsedJobData,
    skills: list[JobSkill],
    taxonomy: LocalTaxonomy,
) -> CategoryScore:
    if not job.requirements and not job.responsibilities:
        return CategoryScore(100.0, applicable=False)
    if not resume.experience:
        return CategoryScore(0.0)

    decay = float(get_scoring_value("matching.experience.recency_decay", 0.6))
    saturation = float(get_scoring_value("matching.experience.coverage_saturation", 0.5))
    focus = _focus_terms(job, skills, taxonomy)
    total_skill_weight = sum(skill_weight(skill) for skill in skills)

    roles = sorted(resume.experience, key=_role_recency, reverse=True)
    weighted = 0.0
    weight_sum = 0.0
    for position, role in enumerate(roles):
        raw_text = _role_text(role)
        text = clean_term(raw_text.replace("\n", " . "))
        found_ids = set(taxonomy.find_skills(raw_text))

        coverage = sum(1 for term in focus if _mentioned(term, text, found_ids, taxonomy)) / len(focus) if focus else 0.0
        coverage_part = min(1.0, coverage / saturation) if saturation > 0 else coverage
        if total_skill_weight > 0:
            satisfied = sum(skill_weight(skill) for skill in skills if _mentioned(skill.name, text, found_ids, taxonomy))
            relevance = 0.5 * coverage_part + 0.5 * (satisfied / total_skill_weight)
        else:
            relevance = coverage_part

        recency_weight = decay**position
        weighted += recency_weight * relevance
        weight_sum += recency_weight
    return CategoryScore(clamp_score(weighted / weight_sum * 100))


def education_requirement(job: ParsedJobData) -> tuple[int | None, list[str]]:
    """Lowest degree level the job names (None when it names none) and the fields it asks for."""
    lines = [line for line in job.requirements + job.preferred_qualifications if mentions_degree(line)]
    if not lines:
        lines = [line for line in re.split(r"(?<=[.!?])\s+", job.description) if mentions_degree(line)]
    if not lines:
        return None, []
    levels = [level for level in (degree_level(line, strict=True) for line in lines) if level is not None]
    required_level = min(levels) if levels else 2
    fields: list[str] = []
    for line in lines:
        for field in find_fields(line):
            if field not in fields:
                fields.append(field)
    return required_level, fields


def _field_credit(resume: ParsedResumeData, job_fields: list[str]) -> float:
    best = 0.0
    for entry in resume.education:
        resume_fields = find_fields(f"{entry.field} {entry.degree}") or ([entry.field.lower()] if entry.field else [])
        for job_field in job_fields:
            for resume_field in resume_fields:
                if resume_field == job_field or job_field in resume_field or resume_field in job_field:
                    credit = float(get_scoring_value("matching.education.field_exact", 1.0))
                elif field_families(resume_field) & field_families(job_field):
                    credit = float(get_scoring_value("matching.education.field_related", 0.6))
                else:
                    credit = float(get_scoring_value("matching.education.field_other", 0.3))
                best = max(best, credit)
        if not resume_fields:
            best = max(best, float(get_scoring_value("matching.education.field_other", 0.3)))
    return best


def education_score(resume: ParsedResumeData, job: ParsedJobData) -> CategoryScore:
    required_level, job_fields = education_requirement(job)
    if required_level is None:
        return CategoryScore(100.0, applicable=False)
    if not resume.education:
        return CategoryScore(0.0)

    levels = [degree_level(f"{entry.degree} {entry.field}") for entry in resume.education]
    candidate_level = max((level for level in levels if level is not None), default=None)
    if candidate_level is not None and candidate_level >= required_level:
        degree_credit = float(get_scoring_value("matching.education.meets_level", 1.0))
    elif candidate_level is not None and candidate_level == required_level - 1:
        degree_credit = float(get_scoring_value("matching.education.one_level_below", 0.5))
    else:
        degree_credit = float(get_scoring_value("matching.education.below", 0.2))

    if not job_fields:
        return CategoryScore(clamp_score(degree_credit * 100))
    degree_weight = float(get_scoring_value("matching.education.degree_weight", 0.6))
    field_weight = float(get_scoring_value("matching.education.field_weight", 0.4))
    combined = degree_weight * degree_credit + field_weight * _field_credit(resume, job_fields)
    return CategoryScore(clamp_score(combined / (degree_weight + field_weight) * 100))


def _narrative(
    scores: dict[str, float],
    job: ParsedJobData,
    skills: list[JobSkill],
    evidence: dict[str, SkillEvidence],
    threshold: float,
    missing_keywords: list[str],
) -> tuple[list[str], list[str], list[str]]:
    strengths: list[str] = []
    gaps: list[str] = []
    recommendations: list[str] = []

    matched_required = [skill.name for skill in skills if skill.required and evidence[skill.name].confidence >= threshold]
    missing_required = [skill.name for skill in skills if skill.required and evidence[skill.name].confidence < threshold]
    if matched_required:
        strengths.append(f"Matches required skills: {', '.join(matched_required[:6])}")
    if scores["keyword"] >= 80:
        strengths.append("Strong keyword alignment with the job description")
    if scores["experience"] >= 70:
        strengths.append("Relevant, recent work experience")
    if scores["education"] >= 100 and education_requirement(job)[0] is not None:
        strengths.append("Meets the stated education requirement")
    if scores["ats"] >= 80:
        strengths.append("Resume structure is ATS friendly")

    if missing_required:
        gaps.append(f"Missing required skills: {', '.join(missing_required[:6])}")
        recommendations.append(
            f"Add evidence of {', '.join(missing_required[:3])} to your skills and experience sections"
        )
    if scores["keyword"] < 60 and missing_keywords:
        gaps.append("Low keyword overlap with the job description")
        recommendations.append(f"Work these keywords into your resume: {', '.join(missing_keywords[:5])}")
    if scores["experience"] < 50:
        gaps.append("Experience does not clearly reflect the role's responsibilities")
        recommendations.append("Describe recent roles with the tools and outcomes this job asks for")
    if scores["education"] < 50:
        gaps.append("Education does not meet the stated requirement")
        recommendations.append("Highlight relevant certifications or coursework to offset the education gap")
    if scores["ats"] < 70:
        gaps.append("Resume structure may not parse cleanly in ATS systems")
        recommendations.append("Use standard section headings and include full contact details")
    return strengths, gaps, recommendations


def create_match(
    resume: ParsedResumeData,
    job: ParsedJobData,
    *,
    resume_text: str | None = None,
    taxonomy: LocalTaxonomy | None = None,
    embedder: EmbeddingProvider | None = None,
    index: ResumeIndex | None = None,
    keyword_result: KeywordMatchResult | None = None,
) -> MatchResult:
    """Score a parsed resume against a parsed job.

    Deterministic: the same inputs always produce the same result, including its id.
    A caller that already holds the resume index or keyword result for this pair
    can pass them in to avoid recomputing.
    """
    _require_inputs(resume, job)
    taxonomy = taxonomy or get_default_taxonomy_provider()
    index = index or ResumeIndex(resume, taxonomy, embedder)
    threshold = semantic_threshold()

    if keyword_result is None:
        keyword_result = match_keywords(resume, job, index=index, taxonomy=taxonomy)
    skills = unique_job_skills(job, taxonomy)
    evidence = {skill.name: index.evidence_for(skill.name) for skill in skills}

    categories = {
        "keyword": CategoryScore(keyword_result.match_score, applicable=bool(job.keywords)),
        "skill": skill_score(skills, evidence, threshold),
        "experience": experience_score(resume, job, skills, taxonomy),
        "education": education_score(resume, job),
        "ats": CategoryScore(ats_compliance(resume, resume_text)),
    }
    weights = redistribute_weights({key: value.applicable for key, value in categories.items()})
    scores = {key: value.score for key, value in categories.items()}
    strengths, gaps, recommendations = _narrative(
        scores, job, skills, evidence, threshold, keyword_result.missing_keywords
    )

    resume_id = document_id("resume", resume.model_dump_json())
    job_id = job.id or document_id("job", job.model_dump_json())
    return MatchResult(
        id=document_id("match", f"{resume_id}:{job_id}"),
        resume_id=resume_id,
        job_id=job_id,
        ats_score=scores["ats"],
        keyword_score=scores["keyword"],
        experience_score=scores["experience"],
        education_score=scores["education"],
        skill_score=scores["skill"],
        weights=weights,
        strengths=strengths,
        gaps=gaps,
        recommendations=recommendations,
        missing_keywords=keyword_result.missing_keywords,
    )
