from __future__ import annotations

import re

from neujobscan.core.scoring import get_scoring_value
from neujobscan.normalize.utils import has_metric, starts_with_action_verb, strip_bullet_prefix, weak_opener
from neujobscan.schemas.base import clamp_score
from neujobscan.schemas.gaps import SkillGaps
from neujobscan.schemas.job import ParsedJobData
from neujobscan.schemas.resume import ParsedResumeData
from neujobscan.schemas.rewrite import (
    OverallImprovement,
    RewriteSuggestion,
    RewriteSuggestions,
    ScoreDelta,
    SectionAnalysis,
)
from neujobscan.semantic.embeddings import EmbeddingProvider
from neujobscan.semantic.evidence import ResumeIndex
from neujobscan.taxonomy import get_default_taxonomy_provider
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy, clean_term

from .matcher import semantic_threshold

SECTIONS = ("summary", "experience", "skills", "education", "projects")
BASE_POINTS = 40.0
KEYWORD_POINTS = 30.0
VERB_POINTS = 15.0
METRIC_POINTS = 15.0

_TARGET_KEYWORDS = 5
_LOW_RELEVANCE = 85.0
_MAX_BULLETS = 8
_METRIC_PLACEHOLDER = "[X]%"
_VERB_FOR_OPENER = {
    "responsible for": "Owned",
    "worked on": "Developed",
    "helped with": "Supported",
    "helped": "Supported",
    "assisted with": "Supported",
    "assisted in": "Supported",
    "involved in": "Delivered",
    "participated in": "Delivered",
    "duties included": "Managed",
    "tasked with": "Delivered",
}
_DEFAULT_VERB = "Delivered"


def _contains(text: str, keyword: str) -> bool:
    needle = clean_term(keyword)
    if not needle:
        return False
    return re.search(rf"(?<![a-z0-9]){re.escape(needle)}(?![a-z0-9\+#])", clean_term(text)) is not None


def section_score(text: str, keywords: list[str]) -> float:
    """40 base points plus keyword coverage (30), a leading action verb (15) and a metric (15)."""
    if not text.strip():
        return 0.0
    coverage = sum(1 for keyword in keywords if _contains(text, keyword)) / len(keywords) if keywords else 0.0
    score = BASE_POINTS + KEYWORD_POINTS * coverage
    if starts_with_action_verb(text):
        score += VERB_POINTS
    if has_metric(text):
        score += METRIC_POINTS
    return clamp_score(score)


def _target_keywords(
    job: ParsedJobData,
    skill_gaps: SkillGaps,
    index: ResumeIndex,
    taxonomy: LocalTaxonomy,
) -> list[str]:
    """Job terms the candidate can honestly claim, strongest evidence first."""
    threshold = semantic_threshold()
    candidates = [entry.skill for entry in skill_gaps.skill_strengths]
    candidates += [skill.name for skill in job.skills] + list(job.keywords)
    missing = {clean_term(entry.skill) for entry in skill_gaps.missing_skills}

    targets: list[str] = []
    seen: set[str] = set()
    for term in candidates:
        normalized, canonical_id = taxonomy.normalize_skill(term)
        key = canonical_id or normalized
        if not key or key in seen or normalized in missing:
            continue
        seen.add(key)
        if index.evidence_for(term).confidence >= threshold:
            targets.append(term)
    return targets[:_TARGET_KEYWORDS]


def _rewrite_line(text: str, keywords: list[str], used: set[str]) -> tuple[str, list[str], list[str], list[str]]:
    body = strip_bullet_prefix(text).rstrip(" .;")
    verbs_added: list[str] = []
    keywords_added: list[str] = []
    metrics_added: list[str] = []

    opener = weak_opener(body)
    if opener:
        verb = _VERB_FOR_OPENER.get(opener, _DEFAULT_VERB)
        body = f"{verb} {body[len(opener):].strip()}"
        verbs_added.append(verb)
    elif not starts_with_action_verb(body):
        body = f"{_DEFAULT_VERB} {body[:1].lower()}{body[1:]}"
        verbs_added.append(_DEFAULT_VERB)

    missing = [keyword for keyword in keywords if not _contains(body, keyword)]
    fresh = [keyword for keyword in missing if keyword not in used] or missing
    if fresh:
        body = f"{body} using {fresh[0]}"
        keywords_added.append(fresh[0])
        used.add(fresh[0])

    if not has_metric(body):
        body = f"{body}, improving key results by {_METRIC_PLACEHOLDER}"
        metrics_added.append(_METRIC_PLACEHOLDER)
    return f"{body}.", keywords_added, verbs_added, metrics_added


def _suggestion(
    suggestion_id: str,
    section: str,
    original: str,
    rewritten: str,
    keywords: list[str],
    reason: str,
    effort: str,
    keywords_added: list[str],
    verbs_added: list[str],
    metrics_added: list[str],
) -> RewriteSuggestion | None:
    before = section_score(original, keywords)
    after = section_score(rewritten, keywords)
    improvement = round(after - before, 2)
    if improvement <= 0:
        return None
    return RewriteSuggestion(
        id=suggestion_id,
        section=section,
        original_text=original,
        rewritten_text=rewritten,
        reason=reason,
        effort=effort,
        ats_score=ScoreDelta(before=before, after=after, improvement=improvement),
        keywords_added=keywords_added,
        action_verbs_added=verbs_added,
        metrics_added=metrics_added,
    )


def _line_effort(keywords_added: list[str], metrics_added: list[str]) -> str:
    return "medium" if keywords_added or metrics_added else "low"


def _line_reason(verbs_added: list[str], keywords_added: list[str], metrics_added: list[str]) -> str:
    parts: list[str] = []
    if verbs_added:
        parts.append("opens with a strong action verb")
    if keywords_added:
        parts.append(f"adds the job keyword {keywords_added[0]}")
    if metrics_added:
        parts.append("quantifies the impact (replace the placeholder with your real figure)")
    return "Rewrite " + " and ".join(parts) + "."


def _summary_suggestion(
    resume: ParsedResumeData,
    job: ParsedJobData,
    keywords: list[str],
    skill_gaps: SkillGaps,
) -> RewriteSuggestion | None:
    original = resume.summary or ""
    if section_score(original, keywords) >= _LOW_RELEVANCE:
        return None
    role = job.title or (resume.experience[0].position if resume.experience else "professional")
    expertise = ", ".join(keywords[:3]) or "the core requirements of the role"
    rewritten = (
        f"Delivered measurable results as a {role} with hands-on expertise in {expertise}, "
        f"improving team outcomes by {_METRIC_PLACEHOLDER}."
    )
    critical = [entry.skill for entry in skill_gaps.missing_skills if entry.importance == "critical"]
    reason = "A targeted summary puts your strongest matching keywords where recruiters look first."
    if critical:
        reason += f" Address {', '.join(critical[:2])} in your experience once you have evidence for it."
    return _suggestion(
        "rw-summary-1",
        "summary",
        original,
        rewritten,
        keywords,
        reason,
        "low" if original else "medium",
        [keyword for keyword in keywords[:3] if not _contains(original, keyword)],
        ["Delivered"] if not starts_with_action_verb(original) else [],
        [_METRIC_PLACEHOLDER] if not has_metric(original) else [],
    )


def _experience_suggestions(resume: ParsedResumeData, keywords: list[str]) -> list[RewriteSuggestion]:
    suggestions: list[RewriteSuggestion] = []
    used: set[str] = set()
    counter = 0
    for role in resume.experience:
        lines = list(role.achievements) or ([role.description] if role.description else [])
        for line in lines:
            if counter >= _MAX_BULLETS:
                return suggestions
            if section_score(line, keywords) >= _LOW_RELEVANCE:
                continue
            rewritten, keywords_added, verbs_added, metrics_added = _rewrite_line(line, keywords, used)
            suggestion = _suggestion(
                f"rw-experience-{counter + 1}",
                "experience",
                line,
                rewritten,
                keywords,
                _line_reason(verbs_added, keywords_added, metrics_added),
                _line_effort(keywords_added, metrics_added),
                keywords_added,
                verbs_added,
                metrics_added,
            )
            if suggestion is not None:
                counter += 1
                suggestions.append(suggestion)
    return suggestions


def _skills_suggestion(resume: ParsedResumeData, keywords: list[str]) -> RewriteSuggestion | None:
    names = [skill.name for skill in resume.skills]
    original = ", ".join(names)
    to_add = [keyword for keyword in keywords if not any(_contains(name, keyword) for name in names)]
    if not to_add:
        return None
    relevant = [name for name in names if any(_contains(name, keyword) for keyword in keywords)]
    others = [name for name in names if name not in relevant]
    rewritten = ", ".join(relevant + to_add + others)
    return _suggestion(
        "rw-skills-1",
        "skills",
        original,
        rewritten,
        keywords,
        "List job-relevant skills you already demonstrate first so ATS keyword filters find them.",
        "low",
        to_add,
        [],
        [],
    )


def _education_suggestions(resume: ParsedResumeData, keywords: list[str]) -> list[RewriteSuggestion]:
    suggestions: list[RewriteSuggestion] = []
    for position, entry in enumerate(resume.education, start=1):
        degree = f"{entry.degree} in {entry.field}" if entry.degree and entry.field else entry.degree or entry.field
        original = ", ".join(part for part in (degree, entry.institution) if part)
        if not original or section_score(original, keywords) >= _LOW_RELEVANCE:
            continue
        coursework = [keyword for keyword in keywords if not _contains(original, keyword)][:3]
        if not coursework:
            continue
        suggestion = _suggestion(
            f"rw-education-{position}",
            "education",
            original,
            f"{original}. Relevant coursework: {', '.join(coursework)}",
            keywords,
            "Relevant coursework connects your education to the job's requirements.",
            "low",
            coursework,
            [],
            [],
        )
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions


def _project_suggestions(resume: ParsedResumeData, keywords: list[str]) -> list[RewriteSuggestion]:
    suggestions: list[RewriteSuggestion] = []
    used: set[str] = set()
    for position, project in enumerate(resume.projects or [], start=1):
        original = project.description
        if not original or section_score(original, keywords) >= _LOW_RELEVANCE:
            continue
        rewritten, keywords_added, verbs_added, metrics_added = _rewrite_line(original, keywords, used)
        suggestion = _suggestion(
            f"rw-projects-{position}",
            "projects",
            original,
            rewritten,
            keywords,
            _line_reason(verbs_added, keywords_added, metrics_added),
            "medium",
            keywords_added,
            verbs_added,
            metrics_added,
        )
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions


def _section_texts(resume: ParsedResumeData) -> dict[str, list[str]]:
    experience_lines: list[str] = []
    for role in resume.experience:
        experience_lines.extend(role.achievements or ([role.description] if role.description else []))
    return {
        "summary": [resume.summary] if resume.summary else [],
        "experience": experience_lines,
        "skills": [", ".join(skill.name for skill in resume.skills)] if resume.skills else [],
        "education": [f"{entry.degree} {entry.field} {entry.institution}".strip() for entry in resume.education],
        "projects": [project.description for project in resume.projects or [] if project.description],
    }


def _ranked(suggestions: list[RewriteSuggestion]) -> list[RewriteSuggestion]:
    return sorted(suggestions, key=lambda item: (-item.ats_score.improvement, item.id))


def generate_suggestions(
    resume: ParsedResumeData,
    job: ParsedJobData,
    skill_gaps: SkillGaps,
    *,
    taxonomy: LocalTaxonomy | None = None,
    embedder: EmbeddingProvider | None = None,
    index: ResumeIndex | None = None,
) -> RewriteSuggestions:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    index = index or ResumeIndex(resume, taxonomy, embedder)
    keywords = _target_keywords(job, skill_gaps, index, taxonomy)

    suggestions: list[RewriteSuggestion] = []
    summary = _summary_suggestion(resume, job, keywords, skill_gaps)
    if summary is not None:
        suggestions.append(summary)
    suggestions.extend(_experience_suggestions(resume, keywords))
    skills = _skills_suggestion(resume, keywords)
    if skills is not None:
        suggestions.append(skills)
    suggestions.extend(_education_suggestions(resume, keywords))
    suggestions.extend(_project_suggestions(resume, keywords))

    min_improvement = float(get_scoring_value("rewrite.priority_min_improvement", 10))
    max_priority = int(get_scoring_value("rewrite.max_priority_rewrites", 3))
    max_quick = int(get_scoring_value("rewrite.max_quick_wins", 5))

    ranked = _ranked(suggestions)
    priority = [item for item in ranked if item.ats_score.improvement >= min_improvement][:max_priority]
    priority_ids = {item.id for item in priority}
    quick_wins = [item for item in ranked if item.effort == "low" and item.id not in priority_ids][:max_quick]

    section_analysis: dict[str, SectionAnalysis] = {}
    for section, texts in _section_texts(resume).items():
        count = sum(1 for item in suggestions if item.section == section)
        score = sum(section_score(text, keywords) for text in texts) / len(texts) if texts else 0.0
        section_analysis[section] = SectionAnalysis(score=clamp_score(score), suggestions=count)

    if suggestions:
        overall = OverallImprovement(
            ats_score=clamp_score(sum(item.ats_score.improvement for item in suggestions) / len(suggestions)),
            readability_score=clamp_score(
                sum(1 for item in suggestions if item.action_verbs_added) / len(suggestions) * 100
            ),
            impact_score=clamp_score(sum(1 for item in suggestions if item.metrics_added) / len(suggestions) * 100),
        )
    else:
        overall = OverallImprovement()

    return RewriteSuggestions(
        suggestions=suggestions,
        overall_improvement=overall,
        priority_rewrites=priority,
        quick_wins=quick_wins,
        section_analysis=section_analysis,
    )
