from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from neujobscan.core.errors import ValidationError
from neujobscan.normalize.utils import has_metric, starts_with_action_verb, strip_bullet_prefix
from neujobscan.schemas.cover_letter import CoverLetter
from neujobscan.schemas.job import ParsedJobData
from neujobscan.schemas.resume import ParsedResumeData, WorkExperience
from neujobscan.scoring.matcher import semantic_threshold, unique_job_skills
from neujobscan.semantic.embeddings import EmbeddingProvider
from neujobscan.semantic.evidence import TEXT_CONFIDENCE, ResumeIndex
from neujobscan.services.llm import json_completion
from neujobscan.taxonomy import get_default_taxonomy_provider
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy

logger = logging.getLogger(__name__)

MAX_HIGHLIGHTED_SKILLS = 4
MAX_LEARNING_SKILLS = 2
MAX_LLM_PARAGRAPH_CHARS = 1200

_COVER_LETTER_SYSTEM_PROMPT = (
    "You write concise, personalized job application cover letters. "
    "Reference only skills, roles and achievements that appear in the resume facts. "
    "Never invent companies, years, certifications or metrics. "
    'Return strict JSON: {"paragraphs": ["...", "..."]} with 2 to 4 body paragraphs and no greeting or sign-off.'
)


@dataclass(frozen=True)
class _Template:
    greeting: str
    default_addressee: str
    introduction: str
    closing: str
    signoff: str
    tone: str


TEMPLATES: dict[str, _Template] = {
    "professional": _Template(
        greeting="Dear {addressee},",
        default_addressee="Hiring Manager",
        introduction="I am writing to express my strong interest in the {title} position at {company}.",
        closing=(
            "Thank you for considering my application. I look forward to discussing how my skills "
            "and experience align with your needs."
        ),
        signoff="Sincerely,",
        tone="formal and measured",
    ),
    "modern": _Template(
        greeting="Hi {addressee},",
        default_addressee="there",
        introduction="I was excited to see your opening for a {title} at {company}!",
        closing="I'm eager to learn more about this opportunity and discuss how I can contribute to your team.",
        signoff="Best regards,",
        tone="warm, direct and conversational",
    ),
    "creative": _Template(
        greeting="Hello {addressee},",
        default_addressee="there",
        introduction="When I came across your {title} opportunity at {company}, I knew I had to apply!",
        closing="I'd love the chance to discuss how my approach could benefit your projects.",
        signoff="Cheers,",
        tone="energetic with vivid wording",
    ),
    "executive": _Template(
        greeting="Dear {addressee},",
        default_addressee="Hiring Manager",
        introduction="I am writing to express my strong interest in the {title} position at {company}.",
        closing=(
            "I am confident that my leadership experience and strategic focus would make me a valuable "
            "asset to your organization."
        ),
        signoff="Respectfully,",
        tone="strategic, concise and leadership-focused",
    ),
}


@dataclass
class _Facts:
    title: str
    company: str
    matched: list[str] = field(default_factory=list)
    learning: list[str] = field(default_factory=list)
    role: WorkExperience | None = None
    achievement: str | None = None
    responsibility: str | None = None


def _join(items: list[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return f"{', '.join(items[:-1])} and {items[-1]}"


def _latest_role(resume: ParsedResumeData) -> WorkExperience | None:
    for role in resume.experience:
        if role.current:
            return role
    return resume.experience[0] if resume.experience else None


def _best_achievement(resume: ParsedResumeData) -> str | None:
    lines = [
        strip_bullet_prefix(line).strip().rstrip(".")
        for role in resume.experience
        for line in role.achievements
        if line.strip()
    ]
    lines = [line for line in lines if line]
    for line in lines:
        if has_metric(line):
            return line
    for line in lines:
        if starts_with_action_verb(line):
            return line
    return None


def _lower_first(text: str) -> str:
    if len(text) > 1 and text[1].isupper():
        return text
    return text[:1].lower() + text[1:]


def collect_facts(
    resume: ParsedResumeData,
    job: ParsedJobData,
    taxonomy: LocalTaxonomy,
    index: ResumeIndex,
) -> _Facts:
    """Resume evidence the letter may cite; nothing here is invented."""
    threshold = semantic_threshold()
    skills = sorted(unique_job_skills(job, taxonomy), key=lambda skill: not skill.required)
    matched: list[str] = []
    learning: list[str] = []
    for skill in skills:
        evidence = index.evidence_for(skill.name)
        if evidence.confidence >= TEXT_CONFIDENCE:
            matched.append(skill.name)
        elif skill.required and evidence.confidence < threshold:
            learning.append(skill.name)
    responsibility = job.responsibilities[0].strip().rstrip(".") if job.responsibilities else None
    return _Facts(
        title=job.title.strip() or "open role",
        company=job.company.strip() or "your company",
        matched=matched[:MAX_HIGHLIGHTED_SKILLS],
        learning=learning[:MAX_LEARNING_SKILLS],
        role=_latest_role(resume),
        achievement=_best_achievement(resume),
        responsibility=responsibility or None,
    )


def _role_phrase(role: WorkExperience) -> str:
    if role.position and role.company:
        return f"{role.position} at {role.company}"
    return role.position or role.company


def _professional_body(facts: _Facts) -> list[str]:
    paragraphs = []
    if facts.role is not None and facts.matched:
        when = "current" if facts.role.current else "most recent"
        paragraphs.append(
            f"In my {when} role as {_role_phrase(facts.role)}, I have worked extensively with "
            f"{_join(facts.matched)}, which maps directly to the core requirements of this position."
        )
    elif facts.matched:
        paragraphs.append(f"My background in {_join(facts.matched)} maps directly to the core requirements of this position.")
    if facts.achievement:
        paragraphs.append(f"A representative result from my work: {_lower_first(facts.achievement)}.")
    if facts.learning:
        paragraphs.append(
            f"I am also actively developing expertise in {_join(facts.learning)} to ensure full "
            "alignment with your team's needs."
        )
    return paragraphs


def _modern_body(facts: _Facts) -> list[str]:
    paragraphs = []
    if facts.matched:
        paragraphs.append(
            f"I work with {_join(facts.matched)} every day, so I could contribute to {facts.company} from day one."
        )
    if facts.role is not None:
        detail = f" Highlights include: {_lower_first(facts.achievement)}." if facts.achievement else ""
        paragraphs.append(f"Most recently I have been working as {_role_phrase(facts.role)}.{detail}")
    if facts.responsibility:
        paragraphs.append(f"I'm especially keen to {_lower_first(facts.responsibility)}.")
    return paragraphs


def _creative_body(facts: _Facts) -> list[str]:
    paragraphs = []
    if facts.matched:
        paragraphs.append(
            f"I reach for {_join(facts.matched)} when turning ideas into working results, "
            "and those skills sit at the heart of this role."
        )
    if facts.achievement:
        paragraphs.append(f"One project I'm proud of: {_lower_first(facts.achievement)}.")
    if facts.responsibility:
        paragraphs.append(f"I'd love to bring that same energy as your team works to {_lower_first(facts.responsibility)}.")
    return paragraphs


def _executive_body(facts: _Facts) -> list[str]:
    paragraphs = []
    if facts.role is not None:
        paragraphs.append(
            f"As {_role_phrase(facts.role)}, I have owned outcomes end to end"
            + (f" across {_join(facts.matched)}." if facts.matched else ".")
        )
    elif facts.matched:
        paragraphs.append(f"My career has been built on deep expertise in {_join(facts.matched)}.")
    if facts.achievement:
        paragraphs.append(f"Most notably: {_lower_first(facts.achievement)}.")
    if facts.responsibility:
        paragraphs.append(
            f"The opportunity to {_lower_first(facts.responsibility)} at {facts.company} aligns with "
            "my leadership philosophy and career objectives."
        )
    return paragraphs


_BODIES: dict[str, Callable[[_Facts], list[str]]] = {
    "professional": _professional_body,
    "modern": _modern_body,
    "creative": _creative_body,
    "executive": _executive_body,
}


def _llm_paragraphs(
    resume: ParsedResumeData,
    job: ParsedJobData,
    facts: _Facts,
    template: _Template,
) -> list[str] | None:
    role = _role_phrase(facts.role) if facts.role is not None else "none listed"
    payload = json_completion(
        system_prompt=_COVER_LETTER_SYSTEM_PROMPT,
        user_prompt=(
            f"Tone: {template.tone}\nJob: {facts.title} at {facts.company}\n"
            f"Job description:\n{job.description[:2500]}\n\n"
            f"Candidate: {resume.personal_info.name or 'unnamed'}\nLatest role: {role}\n"
            f"Summary: {resume.summary or 'none'}\n"
            f"Matched skills: {', '.join(facts.matched) or 'none'}\n"
            f"Skills being developed: {', '.join(facts.learning) or 'none'}\n"
            f"Best achievement: {facts.achievement or 'none'}\n"
        ),
        temperature=0.25,
        max_output_tokens=900,
        purpose="cover_letter",
    )
    if not payload:
        return None
    raw = payload.get("paragraphs")
    if not isinstance(raw, list):
        return None
    paragraphs = [str(item).strip()[:MAX_LLM_PARAGRAPH_CHARS] for item in raw if str(item).strip()]
    return paragraphs if 2 <= len(paragraphs) <= 4 else None


def generate_cover_letter(
    resume: ParsedResumeData,
    job: ParsedJobData,
    template: str = "professional",
    *,
    hiring_manager: str | None = None,
    taxonomy: LocalTaxonomy | None = None,
    embedder: EmbeddingProvider | None = None,
    use_llm: bool = False,
    now: datetime | None = None,
) -> CoverLetter:
    """Build a cover letter in one of four templates from parsed resume and job data.

    The body only cites skills the resume evidences and achievements it states.
    Required skills with no evidence are framed as being developed. With
    ``use_llm`` the body paragraphs may be rewritten by the model; any failure
    keeps the deterministic body.
    """
    if resume is None or job is None:
        raise ValidationError("Job data and resume data are required")
    selected = TEMPLATES.get(template)
    if selected is None:
        raise ValidationError(f"Unsupported cover letter template '{template}'. Allowed: {', '.join(TEMPLATES)}.")

    taxonomy = taxonomy or get_default_taxonomy_provider()
    index = ResumeIndex(resume, taxonomy, embedder)
    facts = collect_facts(resume, job, taxonomy, index)

    introduction = selected.introduction.format(title=facts.title, company=facts.company)
    body = _BODIES[template](facts)
    mode = "heuristic"
    if use_llm:
        rewritten = _llm_paragraphs(resume, job, facts, selected)
        if rewritten:
            body = rewritten
            mode = "llm"

    letter = CoverLetter(
        template=template,
        job_title=job.title,
        company=job.company,
        greeting=selected.greeting.format(addressee=(hiring_manager or "").strip() or selected.default_addressee),
        paragraphs=[introduction, *body],
        closing=selected.closing,
        signoff=selected.signoff,
        signature=resume.personal_info.name.strip() or "Your Name",
        highlighted_skills=facts.matched,
        generation_mode=mode,
        generated_at=now or datetime.now(timezone.utc),
    )
    logger.info(
        "cover_letter_generated template=%s mode=%s highlighted=%s words=%s",
        template,
        mode,
        len(facts.matched),
        letter.word_count,
    )
    return letter
