from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from neujobscan.core.config import settings
from neujobscan.core.errors import (
    NeuJobScanError,
    PersistenceError,
    PipelineStageError,
    ScanTimeoutError,
    ValidationError,
)
from neujobscan.features.job_analyzer import analyze_job
from neujobscan.features.resume_analyzer import analyze_resume
from neujobscan.normalize.job_parser import parse_job
from neujobscan.normalize.resume_parser import parse_resume
from neujobscan.schemas.scan import ATSResponse, ScoreBreakdown
from neujobscan.scoring.explanation import build_explanation
from neujobscan.scoring.matcher import create_match, match_keywords
from neujobscan.scoring.rewrite import generate_suggestions
from neujobscan.scoring.skill_gaps import compute_skill_gaps
from neujobscan.semantic.embeddings import EmbeddingProvider, HashedNgramEmbeddingProvider
from neujobscan.semantic.evidence import ResumeIndex
from neujobscan.services.history_store import ScanHistoryStore
from neujobscan.services.llm import LLMTimeoutError, llm_enabled
from neujobscan.taxonomy import get_default_taxonomy_provider
from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGE_PARSE = "parse"
STAGE_ANALYZE = "analyze"
STAGE_MATCH = "match"
STAGE_SKILL_GAP = "skill-gap"
STAGE_REWRITE = "rewrite"
STAGE_EXPLANATION = "explanation"


def new_scan_id() -> str:
    return f"scan_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class _Deadline:
    def __init__(self, budget_s: float, clock: Callable[[], float]) -> None:
        self.budget_s = budget_s
        self._clock = clock
        self._expires_at = clock() + budget_s

    def check(self, stage: str) -> None:
        if self._clock() > self._expires_at:
            raise ScanTimeoutError(stage, self.budget_s)


class ScanService:
    """Runs parse, analyze, match, skill-gap and rewrite for one resume/job pair and keeps the history."""

    def __init__(
        self,
        history_store: ScanHistoryStore,
        *,
        timeout_s: float | None = None,
        taxonomy: LocalTaxonomy | None = None,
        embedder: EmbeddingProvider | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.history_store = history_store
        self.timeout_s = float(timeout_s if timeout_s is not None else settings.scan_timeout_s)
        self.taxonomy = taxonomy or get_default_taxonomy_provider()
        self.embedder = embedder or HashedNgramEmbeddingProvider()
        self._clock = clock

    def _run_stage(self, stage: str, deadline: _Deadline, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            result = func(*args, **kwargs)
        except LLMTimeoutError as exc:
            raise ScanTimeoutError(stage, self.timeout_s) from exc
        except NeuJobScanError:
            raise
        except Exception as exc:  # noqa: BLE001 - every stage failure is reported by stage name
            logger.exception("scan_stage_failed stage=%s", stage)
            raise PipelineStageError(stage) from exc
        deadline.check(stage)
        return result

    def perform_scan(
        self,
        resume_text: str,
        job_text: str,
        user_id: str,
        file_name: str | None = None,
    ) -> ATSResponse:
        if not (user_id or "").strip():
            raise ValidationError("userId is required.")
        if not (resume_text or "").strip():
            raise ValidationError("resumeText is required.")
        if not (job_text or "").strip():
            raise ValidationError("jobText is required.")

        started = self._clock()
        deadline = _Deadline(self.timeout_s, self._clock)
        scan_id = new_scan_id()
        timestamp = datetime.now(timezone.utc)

        resume, job = self._run_stage(STAGE_PARSE, deadline, self._parse, resume_text, job_text)
        resume_analysis, job_analysis = self._run_stage(
            STAGE_ANALYZE, deadline, self._analyze, resume, resume_text, job, timestamp
        )
        index = ResumeIndex(resume, self.taxonomy, self.embedder)
        match, keywords = self._run_stage(STAGE_MATCH, deadline, self._match, resume, job, resume_text, index)
        skill_gaps = self._run_stage(
            STAGE_SKILL_GAP, deadline, compute_skill_gaps, resume, job, taxonomy=self.taxonomy, index=index
        )
        rewrites = self._run_stage(
            STAGE_REWRITE,
            deadline,
            generate_suggestions,
            resume,
            job,
            skill_gaps,
            taxonomy=self.taxonomy,
            index=index,
        )
        explanation = self._run_stage(
            STAGE_EXPLANATION,
            deadline,
            build_explanation,
            scan_id,
            match,
            keywords,
            skill_gaps,
            rewrites,
            job,
            use_llm=llm_enabled(),
        )

        response = ATSResponse(
            scan_id=scan_id,
            timestamp=timestamp,
            user_id=user_id,
            file_name=file_name,
            resume_id=match.resume_id,
            job_id=match.job_id,
            job_title=job.title,
            company=job.company,
            overall_score=match.overall_score,
            ats_score=match.ats_score,
            keyword_score=match.keyword_score,
            experience_score=match.experience_score,
            education_score=match.education_score,
            skill_score=match.skill_score,
            format_score=resume_analysis.structure_score,
            match_percentage=match.match_percentage,
            weights=match.weights,
            breakdown=ScoreBreakdown(
                keyword_match=match.keyword_score,
                skill_alignment=match.skill_score,
                experience_relevance=match.experience_score,
                education_match=match.education_score,
                ats_compliance=match.ats_score,
            ),
            keyword_matches=keywords,
            skill_gaps=skill_gaps,
            rewrite_suggestions=rewrites,
            explanation=explanation,
            resume_analysis=resume_analysis,
            job_analysis=job_analysis,
            recommendations=list(dict.fromkeys(match.recommendations + resume_analysis.recommendations)),
            strengths=match.strengths,
            weaknesses=list(dict.fromkeys(match.gaps + resume_analysis.weaknesses)),
        )

        try:
            self.history_store.append(user_id, response)
        except Exception as exc:  # noqa: BLE001 - a failed save must not fail the scan
            logger.error("scan_history_persist_failed user=%s scan_id=%s error=%s", user_id, scan_id, exc)

        logger.info(
            "scan_completed scan_id=%s user=%s overall=%s duration_ms=%s",
            scan_id,
            user_id,
            response.overall_score,
            int((self._clock() - started) * 1000),
        )
        return response

    def get_scan_history(self, user_id: str, limit: int | None = None) -> list[ATSResponse]:
        if not (user_id or "").strip():
            raise ValidationError("userId is required.")
        try:
            return self.history_store.list(user_id, limit)
        except PersistenceError:
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced as a persistence failure
            raise PersistenceError(f"Failed to load scan history: {exc}") from exc

    def _parse(self, resume_text: str, job_text: str):
        return parse_resume(resume_text, taxonomy=self.taxonomy), parse_job(job_text, taxonomy=self.taxonomy)

    def _analyze(self, resume, resume_text: str, job, now: datetime):
        return (
            analyze_resume(resume, resume_text, now=now, taxonomy=self.taxonomy),
            analyze_job(job, now=now, taxonomy=self.taxonomy),
        )

    def _match(self, resume, job, resume_text: str, index: ResumeIndex):
        keywords = match_keywords(resume, job, index=index, taxonomy=self.taxonomy)
        match = create_match(
            resume,
            job,
            resume_text=resume_text,
            taxonomy=self.taxonomy,
            index=index,
            keyword_result=keywords,
        )
        return match, keywords
