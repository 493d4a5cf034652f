from __future__ import annotations

import re
from datetime import datetime, timezone

from neujobscan.core.scoring import get_scoring_value
from neujobscan.normalize.job_parser import max_years_required
from neujobscan.normalize.utils import YEAR_RE
from neujobscan.schemas.gaps import (
    CareerAdvice,
    ImprovementArea,
    LearningResource,
    MarketAlignment,
    MissingSkill,
    SkillGaps,
    SkillStrength,
)
from neujobscan.schemas.job import JobSkill, ParsedJobData
from neujobscan.schemas.resume import ParsedResumeData
from neujobscan.semantic.embeddings import EmbeddingProvider
from neujobscan.semantic.evidence import ResumeIndex, SkillEvidence, job_text
from neujobscan.taxonomy import get_default_taxonomy_provider
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy

from .matcher import semantic_threshold, unique_job_skills

_CATEGORY_LABELS = {"technical": "Technical", "soft": "Soft", "language": "Language", "tool": "Tool"}

_LEARNING_RESOURCES: dict[str, list[dict[str, str]]] = {
    "aws": [
        {"type": "certification", "title": "AWS Certified Cloud Practitioner", "provider": "Amazon Web Services",
         "url": "https://aws.amazon.com/certification/certified-cloud-practitioner/", "estimated_time": "4-6 weeks"},
        {"type": "course", "title": "AWS Fundamentals", "provider": "Coursera", "estimated_time": "4 weeks"},
    ],
    "azure": [
        {"type": "certification", "title": "Microsoft Azure Fundamentals (AZ-900)", "provider": "Microsoft",
         "url": "https://learn.microsoft.com/credentials/certifications/azure-fundamentals/", "estimated_time": "3-4 weeks"},
    ],
    "gcp": [
        {"type": "certification", "title": "Google Cloud Digital Leader", "provider": "Google Cloud",
         "estimated_time": "3-4 weeks"},
    ],
    "python": [
        {"type": "tutorial", "title": "The Python Tutorial", "provider": "Python Software Foundation",
         "url": "https://docs.python.org/3/tutorial/", "estimated_time": "2-3 weeks"},
    ],
    "typescript": [
        {"type": "tutorial", "title": "TypeScript Handbook", "provider": "Microsoft",
         "url": "https://www.typescriptlang.org/docs/handbook/", "estimated_time": "1-2 weeks"},
    ],
    "react": [
        {"type": "tutorial", "title": "Learn React", "provider": "react.dev", "url": "https://react.dev/learn",
         "estimated_time": "2-3 weeks"},
    ],
    "docker": [
        {"type": "tutorial", "title": "Docker Getting Started", "provider": "Docker",
         "url": "https://docs.docker.com/get-started/", "estimated_time": "1 week"},
    ],
    "kubernetes": [
        {"type": "certification", "title": "Certified Kubernetes Application Developer (CKAD)",
         "provider": "Cloud Native Computing Foundation", "estimated_time": "6-8 weeks"},
    ],
    "sql": [
        {"type": "course", "title": "SQL for Data Analysis", "provider": "Udacity", "estimated_time": "4 weeks"},
    ],
    "project management": [
        {"type": "certification", "title": "Project Management Professional (PMP)",
         "provider": "Project Management Institute", "estimated_time": "3-6 months"},
    ],
    "agile": [
        {"type": "certification", "title": "Professional Scrum Master I", "provider": "Scrum.org",
         "estimated_time": "2-4 weeks"},
    ],
}


def learning_resources(skill_name: str, category: str, taxonomy: LocalTaxonomy) -> list[LearningResource]:
    normalized, canonical_id = taxonomy.normalize_skill(skill_name)
    entries = _LEARNING_RESOURCES.get(canonical_id or normalized)
    if entries:
        return [LearningResource(**entry) for entry in entries]
    if category == "soft":
        return [
            LearningResource(
                type="book",
                title=f"Developing {skill_name} skills at work",
                provider="O'Reilly Media",
                estimated_time="2-3 weeks",
            )
        ]
    return [
        LearningResource(
            type="course",
            title=f"{skill_name} fundamentals",
            provider="Coursera",
            estimated_time="4-6 weeks",
        ),
        LearningResource(
            type="tutorial",
            title=f"Official {skill_name} documentation and getting-started guide",
            provider="Vendor documentation",
            estimated_time="1-2 weeks",
        ),
    ]


def _mention_count(skill: JobSkill, text: str, taxonomy: LocalTaxonomy) -> int:
    normalized, canonical_id = taxonomy.normalize_skill(skill.name)
    terms = {normalized, canonical_id or normalized}
    counts = [len(re.findall(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9\+#])", text)) for term in terms if term]
    return max(counts, default=0)


def _importance(skill: JobSkill, job: ParsedJobData, text: str, taxonomy: LocalTaxonomy) -> str:
    if skill.required:
        return "critical"
    threshold = int(get_scoring_value("skill_gaps.important_frequency_threshold", 2))
    in_title = _mention_count(skill, job.title.lower(), taxonomy) > 0
    if in_title or _mention_count(skill, text, taxonomy) >= threshold:
        return "important"
    return "nice-to-have"


def _missing_reason(skill: JobSkill, importance: str, job: ParsedJobData) -> str:
    role = job.title or "this role"
    if importance == "critical":
        return f"{skill.name} is listed as a requirement for {role}."
    if importance == "important":
        return f"{skill.name} is emphasised throughout the posting for {role}."
    return f"{skill.name} is a nice-to-have for {role} and would strengthen your application."


def _strength_evidence(evidence: SkillEvidence) -> str:
    if evidence.source == "skills":
        return f"Listed in skills section as {evidence.matched_term}"
    if evidence.source == "projects":
        return f"Used in projects ({evidence.matched_term})"
    if evidence.source == "text":
        return "Mentioned in experience or summary"
    return f"Related experience with {evidence.matched_term}"


def _declared_level(resume: ParsedResumeData, evidence: SkillEvidence) -> str:
    for skill in resume.skills:
        if skill.name == evidence.matched_term:
            return skill.level
    return "demonstrated"


def total_years_experience(resume: ParsedResumeData, *, current_year: int | None = None) -> float:
    current_year = current_year or datetime.now(timezone.utc).year
    total = 0
    for role in resume.experience:
        starts = [int(year) for year in YEAR_RE.findall(role.start_date or "")]
        if not starts:
            continue
        ends = [int(year) for year in YEAR_RE.findall(role.end_date or "")]
        end = current_year if role.current or not ends else max(ends)
        total += max(0, end - min(starts))
    return float(total)


def _improvement_areas(
    resume: ParsedResumeData,
    job: ParsedJobData,
    skills: list[JobSkill],
    found: dict[str, bool],
) -> list[ImprovementArea]:
    areas: list[ImprovementArea] = []
    for category, label in _CATEGORY_LABELS.items():
        in_category = [skill for skill in skills if skill.category == category]
        if not in_category:
            continue
        missing = [skill.name for skill in in_category if not found[skill.name]]
        if not missing:
            continue
        current = (len(in_category) - len(missing)) / len(in_category) * 100
        areas.append(
            ImprovementArea(
                area=f"{label} skills",
                current_level=round(current, 2),
                target_level=100.0,
                gap=f"{len(missing)} of {len(in_category)} {category} skills are not evidenced",
                action_items=[f"Build and document hands-on experience with {name}" for name in missing[:3]],
            )
        )

    stated_years = max_years_required(job.requirements + job.preferred_qualifications)
    if stated_years:
        years = total_years_experience(resume)
        if years < stated_years:
            areas.append(
                ImprovementArea(
                    area="Experience",
                    current_level=round(min(100.0, years / stated_years * 100), 2),
                    target_level=100.0,
                    gap=f"The job asks for {stated_years}+ years; the resume shows about {years:g}",
                    action_items=[
                        "Quantify the scope and duration of each role",
                        "Include relevant freelance, open-source or volunteer work",
                    ],
                )
            )
    return areas


def _career_advice(job: ParsedJobData, missing: list[MissingSkill]) -> CareerAdvice:
    critical = [entry.skill for entry in missing if entry.importance == "critical"]
    important = [entry.skill for entry in missing if entry.importance != "critical"]
    role = job.title or "the target role"

    short_term = [f"Learn the fundamentals of {skill}" for skill in critical[:3]]
    short_term.append(f"Tailor your resume keywords to the {role} posting")
    medium_term = [f"Build a portfolio project that uses {skill}" for skill in (critical + important)[:2]]
    medium_term.append("Earn a certification that validates your strongest job-relevant skill")
    long_term = [
        f"Grow toward senior responsibilities in {role}",
        "Mentor others and lead cross-functional initiatives",
    ]
    return CareerAdvice(short_term=short_term, medium_term=medium_term, long_term=long_term)


def _market_alignment(job: ParsedJobData, skills: list[JobSkill], taxonomy: LocalTaxonomy) -> MarketAlignment:
    if skills:
        in_demand = 0
        for skill in skills:
            normalized, canonical_id = taxonomy.normalize_skill(skill.name)
            if taxonomy.is_high_demand(canonical_id or normalized):
                in_demand += 1
        demand = 30 + 70 * in_demand / len(skills)
    else:
        demand = 50.0

    salary_impact = 50.0
    if job.salary is not None:
        midpoint = (job.salary.min + job.salary.max) / 2
        if midpoint >= 150_000:
            salary_impact = 90.0
        elif midpoint >= 100_000:
            salary_impact = 75.0
        elif midpoint >= 60_000:
            salary_impact = 55.0
        else:
            salary_impact = 35.0

    level = job.experience_level or "mid"
    if level in {"entry", "junior", "mid"}:
        growth = "high"
    elif level == "senior":
        growth = "medium"
    else:
        growth = "low"
    return MarketAlignment(demand_level=round(demand, 2), salary_impact=salary_impact, growth_potential=growth)


def compute_skill_gaps(
    resume: ParsedResumeData,
    job: ParsedJobData,
    *,
    taxonomy: LocalTaxonomy | None = None,
    embedder: EmbeddingProvider | None = None,
    index: ResumeIndex | None = None,
) -> SkillGaps:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    index = index or ResumeIndex(resume, taxonomy, embedder)
    threshold = semantic_threshold()
    strong = float(get_scoring_value("skill_gaps.strength_confidence", 0.8))
    text = job_text(job).lower()

    skills = unique_job_skills(job, taxonomy)
    missing: list[MissingSkill] = []
    strengths: list[SkillStrength] = []
    found: dict[str, bool] = {}
    for skill in skills:
        evidence = index.evidence_for(skill.name)
        found[skill.name] = evidence.confidence >= threshold
        if not found[skill.name]:
            importance = _importance(skill, job, text, taxonomy)
            missing.append(
                MissingSkill(
                    skill=skill.name,
                    importance=importance,
                    category=skill.category,
                    reason=_missing_reason(skill, importance, job),
                    learning_resources=learning_resources(skill.name, skill.category, taxonomy),
                )
            )
        elif evidence.confidence >= strong:
            strengths.append(
                SkillStrength(
                    skill=skill.name,
                    level=_declared_level(resume, evidence),
                    relevance=round((100.0 if skill.required else 70.0) * evidence.confidence, 2),
                    evidence=_strength_evidence(evidence),
                )
            )

    missing_names = {entry.skill.lower() for entry in missing}
    strengths = [entry for entry in strengths if entry.skill.lower() not in missing_names]
    strengths.sort(key=lambda entry: (-entry.relevance, entry.skill.lower()))

    return SkillGaps(
        missing_skills=missing,
        skill_strengths=strengths,
        improvement_areas=_improvement_areas(resume, job, skills, found),
        career_advice=_career_advice(job, missing),
        market_alignment=_market_alignment(job, skills, taxonomy),
    )
