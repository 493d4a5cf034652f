from __future__ import annotations

import re

from pydantic import BaseModel, Field

from neujobscan.core.scoring import get_scoring_value
from neujobscan.schemas.job import ParsedJobData

DOMAIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "tech": (
        "python", "java", "javascript", "api", "backend", "frontend", "aws", "sql", "docker",
        "kubernetes", "ci/cd", "microservices", "cloud", "react", "git",
    ),
    "sales": ("sales", "quota", "pipeline", "crm", "prospecting", "deal", "revenue", "account executive", "negotiation"),
    "marketing": ("marketing", "seo", "campaign", "brand", "content", "funnel", "growth", "copywriting", "analytics"),
    "finance": ("finance", "financial", "reporting", "budget", "forecast", "audit", "gaap", "fp&a", "excel"),
    "hr": ("hr", "recruiting", "talent", "onboarding", "benefits", "payroll", "hris", "employee relations"),
    "healthcare": ("healthcare", "patient", "clinical", "emr", "ehr", "nursing", "medical", "hospital", "hipaa"),
}


class DomainClassification(BaseModel):
    domain_primary: str
    domain_secondary: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    using_general_expectations: bool = False


def _domain_scores(text: str) -> dict[str, int]:
    lowered = (text or "").lower()
    scores: dict[str, int] = {}
    for domain, keywords in DOMAIN_KEYWORDS.items():
        scores[domain] = sum(
            len(re.findall(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", lowered)) for keyword in keywords
        )
    return scores


def classify_domain(text: str) -> DomainClassification:
    scores = _domain_scores(text)
    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    total_hits = sum(scores.values())
    if total_hits <= 0 or not ranked:
        return DomainClassification(domain_primary="other", confidence=0.35, using_general_expectations=True)

    primary_domain, primary_hits = ranked[0]
    secondary_domain = ranked[1][0] if len(ranked) > 1 and ranked[1][1] > 0 else None
    confidence = primary_hits / total_hits
    low_conf_threshold = float(get_scoring_value("domains.classifier.low_confidence_threshold", 0.55))
    return DomainClassification(
        domain_primary=primary_domain,
        domain_secondary=secondary_domain,
        confidence=round(confidence, 4),
        using_general_expectations=confidence < low_conf_threshold,
    )


def classify_domain_from_job(job: ParsedJobData) -> DomainClassification:
    chunks = [job.title, job.description, *job.responsibilities, *job.requirements]
    chunks.extend(skill.name for skill in job.skills)
    return classify_domain("\n".join(chunk for chunk in chunks if chunk))


def missing_domain_keywords(domain: str, text: str, *, limit: int = 8) -> list[str]:
    """High-value terms of the domain that never appear in the text."""
    lowered = (text or "").lower()
    return [
        keyword
        for keyword in DOMAIN_KEYWORDS.get(domain, ())
        if not re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", lowered)
    ][:limit]
