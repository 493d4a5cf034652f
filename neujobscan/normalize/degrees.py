from __future__ import annotations

import re

DEGREE_LEVELS: tuple[tuple[int, str, re.Pattern[str]], ...] = (
    (4, "phd", re.compile(r"\b(?:ph\.?\s?d\.?|doctorate|doctoral|doctor of)\b", re.IGNORECASE)),
    (
        3,
        "master",
        re.compile(r"\b(?:masters?|master's|m\.s\.?|m\.sc\.?|msc|m\.a\.?|mba|m\.eng\.?|meng)\b", re.IGNORECASE),
    ),
    (
        2,
        "bachelor",
        re.compile(
            r"\b(?:bachelors?|bachelor's|b\.s\.?|b\.sc\.?|bsc|b\.a\.?|b\.eng\.?|beng|b\.tech|btech|undergraduate)\b",
            re.IGNORECASE,
        ),
    ),
    (1, "associate", re.compile(r"\bassociate'?s? (?:degree|of)\b", re.IGNORECASE)),
    (0, "diploma", re.compile(r"\b(?:high school|diploma|ged)\b", re.IGNORECASE)),
)
_BARE_ABBREVIATIONS: tuple[tuple[int, re.Pattern[str]], ...] = (
    (3, re.compile(r"\bMS\b")),
    (2, re.compile(r"\b(?:BS|BA)\b")),
)
_GENERIC_DEGREE_RE = re.compile(r"\b(?:degree|graduate)\b", re.IGNORECASE)
_INSTITUTION_RE = re.compile(r"\b(?:university|college|institute|school|academy|polytechnic|universit[äa]t)\b", re.IGNORECASE)

FIELD_FAMILIES: dict[str, tuple[str, ...]] = {
    "computing": (
        "computer science",
        "software engineering",
        "computer engineering",
        "information technology",
        "information systems",
        "data science",
        "informatics",
    ),
    "quantitative": ("mathematics", "statistics", "physics", "data science", "applied mathematics", "economics"),
    "engineering": (
        "electrical engineering",
        "mechanical engineering",
        "civil engineering",
        "chemical engineering",
        "engineering",
    ),
    "business": (
        "business administration",
        "business",
        "finance",
        "accounting",
        "economics",
        "marketing",
        "management",
    ),
    "health": ("nursing", "medicine", "public health", "biology", "healthcare administration"),
    "design": ("graphic design", "design", "human computer interaction", "fine arts"),
    "people": ("human resources", "psychology", "communications", "sociology"),
}
KNOWN_FIELDS: tuple[str, ...] = tuple(
    sorted({field for fields in FIELD_FAMILIES.values() for field in fields}, key=len, reverse=True)
)


def degree_level(text: str, *, strict: bool = False) -> int | None:
    """Highest degree level named in text; strict mode ignores bare MS/BS/BA abbreviations."""
    for level, _, pattern in DEGREE_LEVELS:
        if pattern.search(text or ""):
            return level
    if strict:
        return None
    for level, pattern in _BARE_ABBREVIATIONS:
        if pattern.search(text or ""):
            return level
    return None


def mentions_degree(text: str) -> bool:
    return degree_level(text, strict=True) is not None or bool(_GENERIC_DEGREE_RE.search(text or ""))


def looks_like_institution(text: str) -> bool:
    return bool(_INSTITUTION_RE.search(text or ""))


def find_fields(text: str) -> list[str]:
    lowered = (text or "").lower()
    found: list[str] = []
    for field in KNOWN_FIELDS:
        if re.search(rf"\b{re.escape(field)}\b", lowered) and not any(field in other for other in found):
            found.append(field)
    return found


def field_families(field: str) -> set[str]:
    lowered = (field or "").lower()
    return {
        family
        for family, fields in FIELD_FAMILIES.items()
        if any(re.search(rf"\b{re.escape(item)}\b", lowered) for item in fields)
    }
