from __future__ import annotations

import re
from dataclasses import dataclass

from neujobscan.schemas.job import ParsedJobData
from neujobscan.schemas.resume import ParsedResumeData
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy, clean_term

from .embeddings import EmbeddingProvider, HashedNgramEmbeddingProvider
from .similarity import term_similarity

SKILL_CONFIDENCE = 1.0
TEXT_CONFIDENCE = 0.9


@dataclass(slots=True)
class SkillEvidence:
    confidence: float = 0.0
    matched_term: str | None = None
    source: str | None = None
    exact: bool = False

    @property
    def found(self) -> bool:
        return self.confidence > 0.0


def resume_text(resume: ParsedResumeData) -> str:
    """Flatten the parsed resume into a single searchable block of text."""
    chunks: list[str] = []
    if resume.summary:
        chunks.append(resume.summary)
    for role in resume.experience:
        chunks.extend([role.position, role.company, role.description, *role.achievements])
    for entry in resume.education:
        chunks.extend([entry.degree, entry.field, entry.institution])
    chunks.extend(skill.name for skill in resume.skills)
    for project in resume.projects or []:
        chunks.extend([project.name, project.description, *project.technologies])
    for certification in resume.certifications or []:
        chunks.extend([certification.name, certification.issuer])
    for language in resume.languages or []:
        chunks.append(language.name)
    return "\n".join(chunk for chunk in chunks if chunk)


class ResumeIndex:
    """Looks up how strongly a resume evidences a skill or keyword."""

    def __init__(
        self,
        resume: ParsedResumeData,
        taxonomy: LocalTaxonomy,
        embedder: EmbeddingProvider | None = None,
        *,
        extra_text: str | None = None,
    ) -> None:
        self._taxonomy = taxonomy
        self._embedder = embedder or HashedNgramEmbeddingProvider()

        self._declared: dict[str, tuple[str, str]] = {}
        for skill in resume.skills:
            self._register(skill.name, "skills")
        for project in resume.projects or []:
            for technology in project.technologies:
                self._register(technology, "projects")

        text = resume_text(resume)
        if extra_text:
            text = f"{text}\n{extra_text}"
        self._text = clean_term(text.replace("\n", " . "))
        self._mentioned = set(taxonomy.find_skills(text))

    def _register(self, raw: str, source: str) -> None:
        normalized, canonical_id = self._taxonomy.normalize_skill(raw)
        if not normalized:
            return
        self._declared.setdefault(normalized, (raw, source))
        if canonical_id:
            self._declared.setdefault(canonical_id, (raw, source))

    @property
    def declared_terms(self) -> list[str]:
        return [raw for raw, _ in dict.fromkeys(self._declared.values())]

    def mentions(self, phrase: str) -> bool:
        normalized = clean_term(phrase)
        if not normalized:
            return False
        pattern = rf"(?<![a-z0-9]){re.escape(normalized)}(?![a-z0-9\+#])"
        return re.search(pattern, self._text) is not None

    def evidence_for(self, term: str) -> SkillEvidence:
        normalized, canonical_id = self._taxonomy.normalize_skill(term)
        if not normalized:
            return SkillEvidence()

        for key in (canonical_id, normalized):
            if key and key in self._declared:
                raw, source = self._declared[key]
                return SkillEvidence(SKILL_CONFIDENCE, raw, source, True)

        # Short ambiguous terms ("Go", "R") only count when declared.
        ambiguous = self._taxonomy.is_ambiguous(canonical_id or normalized)
        if not ambiguous:
            if canonical_id and canonical_id in self._mentioned:
                return SkillEvidence(TEXT_CONFIDENCE, term, "text", True)
            if self.mentions(normalized):
                return SkillEvidence(TEXT_CONFIDENCE, term, "text", True)

        best = SkillEvidence()
        for candidate in self.declared_terms:
            similarity = term_similarity(term, candidate, self._taxonomy, self._embedder)
            if similarity > best.confidence:
                best = SkillEvidence(similarity, candidate, "semantic", False)
        return best


def job_text(job: ParsedJobData) -> str:
    """Posting prose only; the extracted skill list is not part of it."""
    chunks = [job.title, job.description, *job.requirements, *job.preferred_qualifications, *job.responsibilities]
    return "\n".join(chunk for chunk in chunks if chunk)
