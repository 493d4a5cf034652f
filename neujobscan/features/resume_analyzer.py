from __future__ import annotations

from datetime import datetime, timezone

from neujobscan.core.scoring import get_scoring_value
from neujobscan.normalize.utils import document_id, has_metric, starts_with_action_verb, weak_opener
from neujobscan.schemas.analysis import ResumeAnalysis
from neujobscan.schemas.base import clamp_score
from neujobscan.schemas.resume import ParsedResumeData
from neujobscan.scoring.ats import ats_report
from neujobscan.semantic.evidence import resume_text
from neujobscan.taxonomy import get_default_taxonomy_provider
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy

from .domain_classifier import classify_domain, missing_domain_keywords

_DEFAULT_WEIGHTS = {"ats": 0.30, "keyword": 0.20, "structure": 0.25, "content": 0.25}


def _content_lines(parsed: ParsedResumeData) -> list[str]:
    lines: list[str] = []
    for role in parsed.experience:
        lines.extend(role.achievements)
        if role.description and not role.achievements:
            lines.append(role.description)
    for project in parsed.projects or []:
        if project.description:
            lines.append(project.description)
    return lines


def keyword_richness(parsed: ParsedResumeData, raw_text: str, taxonomy: LocalTaxonomy) -> float:
    saturation = float(get_scoring_value("analysis.keyword_saturation", 15))
    found = set(taxonomy.find_skills(raw_text))
    for skill in parsed.skills:
        normalized, canonical_id = taxonomy.normalize_skill(skill.name)
        found.add(canonical_id or normalized)
    return clamp_score(len(found) / saturation * 100) if saturation > 0 else 0.0


def structure_score(parsed: ParsedResumeData) -> float:
    score = 0.0
    if parsed.personal_info.email or parsed.personal_info.phone:
        score += 15
    if parsed.summary:
        score += 15
    if parsed.experience:
        score += 25
    if parsed.education:
        score += 15
    if parsed.skills:
        score += 20
    if parsed.projects or parsed.certifications or parsed.languages:
        score += 10
    return clamp_score(score)


def content_score(lines: list[str]) -> float:
    if not lines:
        return 20.0
    total = len(lines)
    verb_share = sum(1 for line in lines if starts_with_action_verb(line)) / total
    metric_share = sum(1 for line in lines if has_metric(line)) / total
    weak_share = sum(1 for line in lines if weak_opener(line)) / total
    return clamp_score(40 + 30 * verb_share + 30 * metric_share - 20 * weak_share)


def _feedback(
    parsed: ParsedResumeData,
    scores: dict[str, float],
    lines: list[str],
    format_issues: list[str],
    missing_keywords: list[str],
) -> tuple[list[str], list[str], list[str]]:
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []

    if scores["ats"] >= 80:
        strengths.append("Clean, ATS-friendly structure")
    if scores["keyword"] >= 70:
        strengths.append("Rich set of industry keywords")
    if scores["content"] >= 70:
        strengths.append("Achievements use action verbs and measurable results")
    if len(parsed.experience) >= 3:
        strengths.append("Substantial work history")

    weak_lines = [line for line in lines if weak_opener(line)]
    if weak_lines:
        weaknesses.append(f"{len(weak_lines)} bullet(s) start with passive phrases like \"responsible for\"")
        recommendations.append("Start each bullet with an action verb such as Led, Built or Improved")
    if lines and sum(1 for line in lines if has_metric(line)) / len(lines) < 0.3:
        weaknesses.append("Few achievements are quantified")
        recommendations.append("Add numbers to achievements: percentages, revenue, time saved, team size")
    if not parsed.summary:
        weaknesses.append("No professional summary")
        recommendations.append("Add a two to three sentence summary tailored to your target role")
    if scores["keyword"] < 50:
        weaknesses.append("Limited keyword coverage")
        if missing_keywords:
            recommendations.append(f"Consider adding relevant terms such as {', '.join(missing_keywords[:4])}")
    if format_issues:
        weaknesses.append("Formatting may confuse ATS parsers")
        recommendations.append(format_issues[0])
    return strengths, weaknesses, recommendations


def analyze_resume(
    parsed: ParsedResumeData,
    raw_text: str | None = None,
    *,
    now: datetime | None = None,
    taxonomy: LocalTaxonomy | None = None,
) -> ResumeAnalysis:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    text = raw_text or resume_text(parsed)
    weights = get_scoring_value("analysis.resume_weights", None) or _DEFAULT_WEIGHTS

    report = ats_report(parsed, raw_text)
    lines = _content_lines(parsed)
    scores = {
        "ats": report.score,
        "keyword": keyword_richness(parsed, text, taxonomy),
        "structure": structure_score(parsed),
        "content": content_score(lines),
    }
    overall = sum(float(weights.get(key, _DEFAULT_WEIGHTS[key])) * value for key, value in scores.items())

    domain = classify_domain(text).domain_primary
    missing_keywords = missing_domain_keywords(domain, text)
    strengths, weaknesses, recommendations = _feedback(parsed, scores, lines, report.issues, missing_keywords)

    resume_id = document_id("resume", parsed.model_dump_json())
    return ResumeAnalysis(
        id=document_id("ra", f"{resume_id}:{raw_text or ''}"),
        resume_id=resume_id,
        overall_score=clamp_score(overall),
        ats_score=scores["ats"],
        keyword_score=scores["keyword"],
        structure_score=scores["structure"],
        content_score=scores["content"],
        domain=domain,
        strengths=strengths,
        weaknesses=weaknesses,
        recommendations=recommendations,
        missing_keywords=missing_keywords,
        format_issues=report.issues,
        created_at=now or datetime.now(timezone.utc),
    )
