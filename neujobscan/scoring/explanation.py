from __future__ import annotations

from neujobscan.core.scoring import get_scoring_value
from neujobscan.schemas.explanation import (
    ActionableInsight,
    BreakdownEntry,
    CompetitiveAnalysis,
    Explanation,
    KeywordAnalysis,
    NextSteps,
    ScoreExplanation,
    SkillGapSummary,
)
from neujobscan.schemas.gaps import SkillGaps
from neujobscan.schemas.job import ParsedJobData
from neujobscan.schemas.match import KeywordMatchResult, MatchResult
from neujobscan.schemas.rewrite import RewriteSuggestions
from neujobscan.services.llm import json_completion

_SECTION_LABELS = {
    "keyword": "Keyword Match",
    "skill": "Skill Alignment",
    "experience": "Experience Relevance",
    "education": "Education Match",
    "ats": "ATS Compliance",
}
_SECTION_HINTS = {
    "keyword": "Mirror the job description's wording for skills you already have.",
    "skill": "Close the gaps on required skills and list them explicitly.",
    "experience": "Describe recent roles with the tools and outcomes this job asks for.",
    "education": "Highlight degrees, certifications or coursework that match the requirement.",
    "ats": "Use standard section headings, plain layout and complete contact details.",
}
_EXPLANATION_SYSTEM_PROMPT = (
    "You explain resume-to-job match scores to candidates in plain, encouraging language. "
    'Return JSON with keys "whatItMeans" (two sentences) and "benchmark" (one short phrase).'
)


def status_for(score: float) -> str:
    thresholds = get_scoring_value("explanation.thresholds", None) or {}
    if score >= float(thresholds.get("excellent", 80)):
        return "excellent"
    if score >= float(thresholds.get("good", 60)):
        return "good"
    if score >= float(thresholds.get("average", 40)):
        return "needs-improvement"
    return "critical"


def _what_it_means(score: float, job: ParsedJobData) -> str:
    role = job.title or "this role"
    status = status_for(score)
    if status == "excellent":
        return f"Your resume is a strong match for {role}. ATS filters are likely to rank you near the top."
    if status == "good":
        return f"Your resume matches most of what {role} asks for. A few targeted edits should move you higher."
    if status == "needs-improvement":
        return f"Your resume covers part of what {role} needs. Important keywords or skills are missing."
    return f"Your resume is unlikely to pass ATS screening for {role} as written. Significant gaps need attention."


def _benchmark(score: float) -> str:
    if score >= 80:
        return "Top 25% of candidates"
    if score >= 60:
        return "Above average range"
    if score >= 40:
        return "Average range"
    return "Below average range"


def _score_explanation(
    match: MatchResult,
    job: ParsedJobData,
    next_steps: list[str],
    *,
    use_llm: bool,
) -> ScoreExplanation:
    score = match.overall_score
    what_it_means = _what_it_means(score, job)
    benchmark = _benchmark(score)
    if use_llm:
        payload = json_completion(
            system_prompt=_EXPLANATION_SYSTEM_PROMPT,
            user_prompt=(
                f"Overall score: {score}/100\nJob: {job.title} at {job.company}\n"
                f"Strengths: {'; '.join(match.strengths)}\nGaps: {'; '.join(match.gaps)}"
            ),
            purpose="score_explanation",
        )
        if payload:
            what_it_means = str(payload.get("whatItMeans") or what_it_means).strip()[:600]
            benchmark = str(payload.get("benchmark") or benchmark).strip()[:120]
    return ScoreExplanation(
        what_it_means=what_it_means,
        is_good=score >= float(get_scoring_value("explanation.is_good", 70)),
        benchmark=benchmark,
        next_steps=next_steps[:3],
    )


def _breakdown(match: MatchResult) -> list[BreakdownEntry]:
    entries: list[BreakdownEntry] = []
    for key, score in match.category_scores().items():
        status = status_for(score)
        weight = getattr(match.weights, key)
        if weight <= 0:
            explanation = f"{_SECTION_LABELS[key]} does not apply to this job and carries no weight."
        else:
            explanation = f"{_SECTION_LABELS[key]} scored {score:g}/100 and counts for {weight * 100:.0f}% of the total."
        entries.append(
            BreakdownEntry(
                section=_SECTION_LABELS[key],
                score=score,
                status=status,
                explanation=explanation,
                recommendations=[] if status == "excellent" else [_SECTION_HINTS[key]],
            )
        )
    return entries


def _keyword_analysis(keywords: KeywordMatchResult) -> KeywordAnalysis:
    matched = [item.keyword for item in keywords.exact_matches if item.found]
    matched += [item.job_term for item in keywords.semantic_matches]
    missing = keywords.missing_keywords
    total = len(matched) + len(missing)
    if total == 0:
        impact = "The job description lists no specific keywords, so this category does not affect your score."
    elif missing:
        impact = (
            f"You match {len(matched)} of {total} job keywords. "
            f"Adding {', '.join(missing[:3])} where truthful would raise your keyword score."
        )
    else:
        impact = f"You match all {total} job keywords."
    return KeywordAnalysis(
        matched_keywords=matched,
        missing_keywords=missing,
        additional_keywords=keywords.additional_keywords,
        impact_on_score=impact,
    )


def _skill_gap_summary(skill_gaps: SkillGaps) -> SkillGapSummary:
    critical = [entry.skill for entry in skill_gaps.missing_skills if entry.importance == "critical"]
    learning_path: list[str] = []
    for entry in skill_gaps.missing_skills[:3]:
        if entry.learning_resources:
            resource = entry.learning_resources[0]
            learning_path.append(f"{entry.skill}: {resource.title} ({resource.provider}, {resource.estimated_time})")
    return SkillGapSummary(
        critical_gaps=critical,
        improvement_areas=[area.area for area in skill_gaps.improvement_areas],
        strengths=[entry.skill for entry in skill_gaps.skill_strengths],
        learning_path=learning_path,
    )


def _insights(match: MatchResult, skill_gaps: SkillGaps, rewrites: RewriteSuggestions) -> list[ActionableInsight]:
    insights: list[ActionableInsight] = []
    for item in rewrites.priority_rewrites:
        insights.append(
            ActionableInsight(
                priority="high",
                category="immediate",
                action=f"Apply the {item.section} rewrite: {item.rewritten_text[:160]}",
                expected_impact=f"+{item.ats_score.improvement:g} points for that section",
                effort=item.effort,
            )
        )
    critical = [entry.skill for entry in skill_gaps.missing_skills if entry.importance == "critical"]
    if critical:
        insights.append(
            ActionableInsight(
                priority="high",
                category="short-term",
                action=f"Build verifiable experience with {', '.join(critical[:3])}",
                expected_impact="Unlocks the required-skill share of the score",
                effort="high",
            )
        )
    if match.ats_score < 80:
        insights.append(
            ActionableInsight(
                priority="medium",
                category="immediate",
                action="Fix resume structure: standard headings, contact details, one-column layout",
                expected_impact="Improves how reliably ATS software parses your resume",
                effort="low",
            )
        )
    for area in skill_gaps.improvement_areas[:2]:
        insights.append(
            ActionableInsight(
                priority="low",
                category="long-term",
                action=area.action_items[0] if area.action_items else f"Develop {area.area.lower()}",
                expected_impact=area.gap,
                effort="medium",
            )
        )
    return insights


def _next_steps(match: MatchResult, skill_gaps: SkillGaps, rewrites: RewriteSuggestions) -> NextSteps:
    immediate = [f"Apply quick win: {item.rewritten_text[:120]}" for item in rewrites.quick_wins[:2]]
    if match.missing_keywords:
        immediate.append(f"Add missing keywords you can support: {', '.join(match.missing_keywords[:4])}")
    this_week = [f"Rewrite your {item.section} section" for item in rewrites.priority_rewrites[:2]]
    this_week.extend(skill_gaps.career_advice.short_term[:2])
    this_month = list(skill_gaps.career_advice.medium_term[:2])
    if not immediate:
        immediate.append("Review the tailored resume and submit your application")
    return NextSteps(immediate=immediate, this_week=this_week, this_month=this_month)


def _competitive_analysis(match: MatchResult, rewrites: RewriteSuggestions) -> CompetitiveAnalysis:
    score = match.overall_score
    potential = sum(item.ats_score.improvement for item in rewrites.priority_rewrites)
    if score >= 80:
        compare = "Your profile compares favourably with most applicants for this role."
        position = "Strong contender"
    elif score >= 60:
        compare = "Your profile is competitive but not yet standout for this role."
        position = "Competitive candidate with room to grow"
    elif score >= 40:
        compare = "Many applicants will match this job more closely as your resume stands."
        position = "Mid-range candidate"
    else:
        compare = "Your resume currently trails typical applicants for this role."
        position = "Below the typical shortlist"
    if potential > 0:
        improvement = f"Priority rewrites alone add up to {potential:g} section points."
    else:
        improvement = "Further gains depend on building the missing skills."
    return CompetitiveAnalysis(how_you_compare=compare, market_position=position, improvement_potential=improvement)


def build_explanation(
    scan_id: str,
    match: MatchResult,
    keywords: KeywordMatchResult,
    skill_gaps: SkillGaps,
    rewrites: RewriteSuggestions,
    job: ParsedJobData,
    *,
    use_llm: bool = True,
) -> Explanation:
    """Narrative summary of a scan.

    Deterministic unless the LLM is enabled, in which case only the headline
    wording may change. An LLM timeout propagates as LLMTimeoutError.
    """
    next_steps = _next_steps(match, skill_gaps, rewrites)
    return Explanation(
        scan_id=scan_id,
        overall_score=match.overall_score,
        score_explanation=_score_explanation(match, job, next_steps.immediate, use_llm=use_llm),
        detailed_breakdown=_breakdown(match),
        keyword_analysis=_keyword_analysis(keywords),
        skill_gap_summary=_skill_gap_summary(skill_gaps),
        actionable_insights=_insights(match, skill_gaps, rewrites),
        next_steps=next_steps,
        competitive_analysis=_competitive_analysis(match, rewrites),
    )
