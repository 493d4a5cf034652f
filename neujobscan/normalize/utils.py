from __future__ import annotations

import hashlib
import re

from neujobscan.core.errors import ParsingError

_READABLE_WORD_RE = re.compile(r"[A-Za-z]{2,}")
_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"\+?\(?\d[\d\s().-]{7,}\d")
_URL_RE = re.compile(r"(?:https?://|www\.|linkedin\.com|github\.com)", re.IGNORECASE)
LINKEDIN_RE = re.compile(r"(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/[^\s,;|]+", re.IGNORECASE)
GITHUB_RE = re.compile(r"(?:https?://)?(?:www\.)?github\.com/[^\s,;|]+", re.IGNORECASE)
WEBSITE_RE = re.compile(r"(?:https?://|www\.)[^\s,;|]+", re.IGNORECASE)
_ACTION_RE = re.compile(
    r"^\s*(achieved|architected|automated|built|created|decreased|delivered|designed|developed|drove|"
    r"engineered|established|grew|implemented|improved|increased|launched|led|managed|mentored|"
    r"migrated|optimized|owned|reduced|scaled|shipped|spearheaded|streamlined|supported)\b",
    re.IGNORECASE,
)
_METRIC_RE = re.compile(r"\d+(?:[\.,]\d+)?\s*(?:%|x\b|k\b|m\b|\+)|[$€£]\s*\d|\b\d{2,}\b|%")
_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
_DATE = rf"(?:{_MONTH}\s+\d{{4}}|\d{{1,2}}/\d{{4}}|\d{{4}})"
DATE_RANGE_RE = re.compile(
    rf"(?P<start>{_DATE})\s*(?:-|–|—|to|until)\s*(?P<end>{_DATE}|present|current|now|today)",
    re.IGNORECASE,
)
YEAR_RE = re.compile(r"\b(19[5-9]\d|20\d{2})\b")
_WEAK_OPENERS = (
    "responsible for",
    "worked on",
    "helped with",
    "helped",
    "assisted with",
    "assisted in",
    "involved in",
    "participated in",
    "duties included",
    "tasked with",
)


def enumerate_lines(text: str) -> list[tuple[int, str]]:
    return [(index + 1, line) for index, line in enumerate(text.splitlines())]


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def is_bullet_like(line: str) -> bool:
    return bool(_BULLET_PATTERN.match(line))


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def contains_any(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def heading_key(line: str, aliases: dict[str, str]) -> str | None:
    """Map a heading line such as 'WORK EXPERIENCE:' to its section key."""
    stripped = normalize_line(line).rstrip(":").strip().lower()
    if not stripped or len(stripped) > 40:
        return None
    stripped = re.sub(r"[^a-z&/ ]+", "", stripped).strip()
    return aliases.get(stripped)


def is_contact_or_url(line: str) -> bool:
    stripped = normalize_line(line)
    if not stripped:
        return False
    return bool(EMAIL_RE.search(stripped) or PHONE_RE.search(stripped) or _URL_RE.search(stripped))


def starts_with_action_verb(text: str) -> bool:
    return bool(_ACTION_RE.match(strip_bullet_prefix(text)))


def has_metric(text: str) -> bool:
    return bool(_METRIC_RE.search(text))


def weak_opener(text: str) -> str | None:
    lowered = strip_bullet_prefix(text).lower()
    for opener in _WEAK_OPENERS:
        if lowered.startswith(opener):
            return opener
    return None


def split_list_items(text: str) -> list[str]:
    """Split 'Python, SQL; Docker | AWS' style lists, ignoring separators inside parentheses."""
    items: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in "([":
            depth += 1
        elif char in ")]" and depth:
            depth -= 1
        if depth == 0 and char in ",;|•·":
            items.append("".join(current))
            current = []
            continue
        current.append(char)
    items.append("".join(current))
    return [normalize_line(item) for item in items if normalize_line(item)]


def content_digest(text: str) -> str:
    return hashlib.sha256((text or "").encode("utf-8", errors="ignore")).hexdigest()[:16]


def ensure_parseable(raw_text: str | None, document_type: str) -> str:
    """Return text with normalized newlines, or raise ParsingError when nothing readable is present."""
    text = (raw_text or "").replace("\r\n", "\n").replace("\r", "\n")
    if not text.strip():
        raise ParsingError(
            f"{document_type.capitalize()} text is empty.",
            document_type=document_type,
            raw_text=raw_text or "",
        )
    if not _READABLE_WORD_RE.search(text):
        raise ParsingError(
            f"{document_type.capitalize()} text does not contain readable words.",
            document_type=document_type,
            raw_text=raw_text or "",
        )
    return text


def document_id(prefix: str, text: str) -> str:
    return f"{prefix}_{content_digest(text)}"
