from __future__ import annotations

import re

from neujobscan.schemas.job import JobSkill, ParsedJobData, SalaryRange
from neujobscan.taxonomy import LocalTaxonomy, get_default_taxonomy_provider

from .sections import split_sections
from .utils import (
    content_digest,
    contains_any,
    ensure_parseable,
    normalize_line,
    split_list_items,
    strip_bullet_prefix,
)

JOB_SECTION_ALIASES: dict[str, str] = {
    "about the role": "description",
    "about the job": "description",
    "about the position": "description",
    "job description": "description",
    "description": "description",
    "overview": "description",
    "role overview": "description",
    "the role": "description",
    "position summary": "description",
    "summary": "description",
    "about us": "company",
    "about the company": "company",
    "who we are": "company",
    "our company": "company",
    "responsibilities": "responsibilities",
    "key responsibilities": "responsibilities",
    "your responsibilities": "responsibilities",
    "what youll do": "responsibilities",
    "what you will do": "responsibilities",
    "duties": "responsibilities",
    "your role": "responsibilities",
    "day to day": "responsibilities",
    "requirements": "requirements",
    "job requirements": "requirements",
    "qualifications": "requirements",
    "required qualifications": "requirements",
    "minimum qualifications": "requirements",
    "basic qualifications": "requirements",
    "requirements & qualifications": "requirements",
    "what youll need": "requirements",
    "what you need": "requirements",
    "what were looking for": "requirements",
    "what we are looking for": "requirements",
    "must have": "requirements",
    "must haves": "requirements",
    "required skills": "requirements",
    "you have": "requirements",
    "who you are": "requirements",
    "preferred qualifications": "preferred",
    "preferred": "preferred",
    "preferred skills": "preferred",
    "nice to have": "preferred",
    "nice to haves": "preferred",
    "nicetohave": "preferred",
    "bonus": "preferred",
    "bonus points": "preferred",
    "pluses": "preferred",
    "desired qualifications": "preferred",
    "good to have": "preferred",
    "skills": "skills",
    "technical skills": "skills",
    "key skills": "skills",
    "tech stack": "skills",
    "our stack": "skills",
    "technologies": "skills",
    "tools": "skills",
    "benefits": "benefits",
    "perks": "benefits",
    "perks & benefits": "benefits",
    "benefits & perks": "benefits",
    "what we offer": "benefits",
    "compensation & benefits": "benefits",
    "why join us": "benefits",
}

REQUIRED_MARKERS = ("required", "must", "essential", "mandatory", "need to have")
PREFERRED_MARKERS = ("preferred", "nice to have", "nice-to-have", "bonus", "a plus", "is a plus", "ideally", "desirable")
_REQUIREMENT_SENTENCE_MARKERS = (
    "require",
    "must",
    "need",
    "experience with",
    "experience in",
    "proficien",
    "knowledge of",
    "familiar",
    "years",
    "degree",
)
_TITLE_FIELD_RE = re.compile(r"^(?:job title|title|position|role)\s*:\s*(.+)$", re.IGNORECASE)
_COMPANY_FIELD_RE = re.compile(r"^(?:company|employer|organization|organisation)\s*:\s*(.+)$", re.IGNORECASE)
_LOCATION_FIELD_RE = re.compile(r"^(?:location|based in)\s*:\s*(.+)$", re.IGNORECASE)
_HIRING_RE = re.compile(r"^([A-Z][\w&.\- ]{1,40}?) is (?:hiring|looking|seeking)\b")
_JOIN_RE = re.compile(r"\bjoin (?:us at |the team at )?([A-Z][\w&.\-]*(?: [A-Z][\w&.\-]*){0,3})")
_CITY_RE = re.compile(r"\b([A-Z][a-zA-Z]+(?: [A-Z][a-zA-Z]+)*, [A-Z]{2})\b")
_SALARY_RE = re.compile(
    r"(?P<cur1>[$€£])?\s?(?P<min>\d[\d,]*(?:\.\d+)?)\s*(?P<k1>[kK])?\s*(?:-|–|—|to)\s*"
    r"(?P<cur2>[$€£])?\s?(?P<max>\d[\d,]*(?:\.\d+)?)\s*(?P<k2>[kK])?\s*(?P<code>USD|EUR|GBP|CAD|AUD)?",
)
_CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP"}
_YEARS_REQUIRED_RE = re.compile(r"(\d{1,2})\s*\+?\s*(?:-\s*\d{1,2}\s*)?(?:years?|yrs?)", re.IGNORECASE)
_EMPLOYMENT_TYPES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("full-time", re.compile(r"\b(?:full[\s-]?time|permanent)\b", re.IGNORECASE)),
    ("internship", re.compile(r"\bintern(?:ship)?\b", re.IGNORECASE)),
    ("part-time", re.compile(r"\bpart[\s-]?time\b", re.IGNORECASE)),
    ("contract", re.compile(r"\b(?:contract(?:or)? role|contract position|contractor|freelance|fixed[\s-]term|contract)\b", re.IGNORECASE)),
    ("temporary", re.compile(r"\b(?:temporary|temp)\b", re.IGNORECASE)),
)
_TITLE_LEVELS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("executive", re.compile(r"\b(?:chief|cto|ceo|cfo|vp|vice president|head of|director)\b", re.IGNORECASE)),
    ("lead", re.compile(r"\b(?:lead|principal|staff|manager)\b", re.IGNORECASE)),
    ("senior", re.compile(r"\b(?:senior|sr\.?)\b", re.IGNORECASE)),
    ("mid", re.compile(r"\b(?:mid[\s-]?level|intermediate)\b", re.IGNORECASE)),
    ("junior", re.compile(r"\b(?:junior|jr\.?|associate)\b", re.IGNORECASE)),
    ("entry", re.compile(r"\b(?:entry[\s-]?level|graduate|intern|trainee)\b", re.IGNORECASE)),
)
_SKILL_LEVEL_BY_EXPERIENCE = {
    "entry": "junior",
    "junior": "junior",
    "mid": "intermediate",
    "senior": "senior",
    "lead": "expert",
    "executive": "expert",
}
_MAX_KEYWORDS = 40


def _sentences(lines: list[str]) -> list[str]:
    sentences: list[str] = []
    for line in lines:
        for sentence in re.split(r"(?<=[.!?])\s+", strip_bullet_prefix(line)):
            cleaned = normalize_line(sentence)
            if cleaned:
                sentences.append(cleaned)
    return sentences


def _split_title(line: str) -> tuple[str, str]:
    for separator in (" at ", " @ ", " | ", " — ", " – ", " - "):
        if separator in line:
            title, company = line.split(separator, 1)
            return title.strip(), company.split(separator, 1)[0].strip()
    return line.strip(), ""


def _extract_title_company(header: list[str]) -> tuple[str, str]:
    title = ""
    company = ""
    for line in header:
        title_match = _TITLE_FIELD_RE.match(line)
        company_match = _COMPANY_FIELD_RE.match(line)
        if title_match and not title:
            title = title_match.group(1).strip()
        if company_match and not company:
            company = company_match.group(1).strip()

    if not title:
        for line in header[:3]:
            if _COMPANY_FIELD_RE.match(line) or _LOCATION_FIELD_RE.match(line):
                continue
            if len(line.split()) <= 12 and not line.endswith("."):
                title, split_company = _split_title(line)
                company = company or split_company
                break
    if not company:
        for line in header:
            hiring = _HIRING_RE.match(line)
            joining = _JOIN_RE.search(line)
            if hiring:
                company = hiring.group(1).strip()
                break
            if joining:
                company = joining.group(1).strip()
                break
    return title, company


def _extract_location(header: list[str], text: str) -> str | None:
    for line in header:
        match = _LOCATION_FIELD_RE.match(line)
        if match:
            return match.group(1).strip()
    city = _CITY_RE.search("\n".join(header[:6]))
    if city:
        return city.group(1)
    if re.search(r"\bremote\b", text, re.IGNORECASE):
        return "Remote"
    if re.search(r"\bhybrid\b", text, re.IGNORECASE):
        return "Hybrid"
    return None


def _extract_employment_type(title: str, text: str) -> str | None:
    if re.search(r"\bintern(?:ship)?\b", title, re.IGNORECASE):
        return "internship"
    for employment_type, pattern in _EMPLOYMENT_TYPES:
        if pattern.search(text):
            return employment_type
    return None


def max_years_required(lines: list[str]) -> int | None:
    years = [int(match.group(1)) for line in lines for match in _YEARS_REQUIRED_RE.finditer(line)]
    return max(years) if years else None


def _extract_experience_level(title: str, requirement_lines: list[str], text: str) -> str | None:
    for level, pattern in _TITLE_LEVELS:
        if pattern.search(title):
            return level
    years = max_years_required(requirement_lines)
    if years is not None:
        if years <= 1:
            return "entry"
        if years <= 2:
            return "junior"
        if years <= 4:
            return "mid"
        if years <= 7:
            return "senior"
        return "lead"
    for level, pattern in _TITLE_LEVELS:
        if level in {"lead", "executive"}:
            continue
        if pattern.search(text):
            return level
    return None


def _amount(raw: str, has_k: bool) -> float:
    value = float(raw.replace(",", ""))
    return value * 1000 if has_k else value


def _extract_salary(text: str) -> SalaryRange | None:
    for match in _SALARY_RE.finditer(text):
        symbol = match.group("cur1") or match.group("cur2")
        code = match.group("code")
        k1, k2 = bool(match.group("k1")), bool(match.group("k2"))
        if not symbol and not code and not (k1 or k2):
            continue
        low_raw, high_raw = match.group("min"), match.group("max")
        if k2 and not k1 and float(low_raw.replace(",", "")) < 1000:
            k1 = True
        low, high = _amount(low_raw, k1), _amount(high_raw, k2)
        if high < low or high <= 0:
            continue
        currency = code or _CURRENCY_SYMBOLS.get(symbol or "", "USD")
        return SalaryRange(min=low, max=high, currency=currency)
    return None


def _add_skill(
    found: dict[str, dict],
    canonical_or_name: str,
    *,
    required: bool,
    taxonomy: LocalTaxonomy,
) -> None:
    normalized, canonical_id = taxonomy.normalize_skill(canonical_or_name)
    key = canonical_id or normalized
    if not key:
        return
    existing = found.get(key)
    if existing is not None:
        existing["required"] = existing["required"] or required
        return
    name = taxonomy.display_name(canonical_id) if canonical_id else normalize_line(canonical_or_name)
    found[key] = {"name": name, "required": required, "category": taxonomy.categorize(name)}


def _collect_skills(
    sections: dict[str, list[str]],
    requirement_lines: list[str],
    preferred_lines: list[str],
    text: str,
    taxonomy: LocalTaxonomy,
) -> dict[str, dict]:
    found: dict[str, dict] = {}

    for raw_line in sections.get("skills", []):
        line = strip_bullet_prefix(raw_line)
        optional = contains_any(line, PREFERRED_MARKERS)
        items = split_list_items(re.sub(r"^[A-Za-z ]{1,30}:\s*", "", line))
        if items and all(len(item.split()) <= 4 for item in items):
            for item in items:
                _add_skill(found, re.sub(r"\([^)]*\)", "", item).strip(), required=not optional, taxonomy=taxonomy)
        else:
            for canonical_id in taxonomy.find_skills(line):
                _add_skill(found, canonical_id, required=not optional, taxonomy=taxonomy)

    for line in requirement_lines:
        optional = contains_any(line, PREFERRED_MARKERS)
        for canonical_id in taxonomy.find_skills(line):
            _add_skill(found, canonical_id, required=not optional, taxonomy=taxonomy)

    for line in preferred_lines:
        for canonical_id in taxonomy.find_skills(line):
            _add_skill(found, canonical_id, required=False, taxonomy=taxonomy)

    for line in sections.get("responsibilities", []):
        required = contains_any(line, REQUIRED_MARKERS) and not contains_any(line, PREFERRED_MARKERS)
        for canonical_id in taxonomy.find_skills(line):
            _add_skill(found, canonical_id, required=required, taxonomy=taxonomy)

    if not found:
        for sentence in _sentences(text.splitlines()):
            required = contains_any(sentence, REQUIRED_MARKERS) and not contains_any(sentence, PREFERRED_MARKERS)
            for canonical_id in taxonomy.find_skills(sentence):
                _add_skill(found, canonical_id, required=required, taxonomy=taxonomy)
    return found


def _extract_keywords(skill_names: list[str], text: str, taxonomy: LocalTaxonomy) -> list[str]:
    keywords: list[str] = []
    seen: set[str] = set()

    def add(term: str) -> None:
        normalized, canonical_id = taxonomy.normalize_skill(term)
        key = canonical_id or normalized
        if key and key not in seen:
            seen.add(key)
            keywords.append(term)

    for name in skill_names:
        add(name)
    for canonical_id in taxonomy.find_skills(text):
        add(taxonomy.display_name(canonical_id))
    lowered = text.lower()
    for term in taxonomy.business_terms:
        if re.search(rf"\b{re.escape(term)}\b", lowered):
            add(term)
    return keywords[:_MAX_KEYWORDS]


def parse_job(raw_text: str, *, taxonomy: LocalTaxonomy | None = None) -> ParsedJobData:
    text = ensure_parseable(raw_text, "job")
    taxonomy = taxonomy or get_default_taxonomy_provider()
    sections = split_sections(text, JOB_SECTION_ALIASES)
    header = sections.get("header", [])

    title, company = _extract_title_company(header)
    body_header = [line for line in header if title not in line or not title]

    requirement_lines = [strip_bullet_prefix(line) for line in sections.get("requirements", [])]
    preferred_lines = [strip_bullet_prefix(line) for line in sections.get("preferred", [])]
    for line in list(requirement_lines):
        if contains_any(line, PREFERRED_MARKERS) and not contains_any(line, REQUIRED_MARKERS):
            requirement_lines.remove(line)
            preferred_lines.append(line)

    description_lines = sections.get("description", []) + sections.get("company", [])
    if not requirement_lines and not preferred_lines:
        loose = _sentences(body_header + sections.get("description", []))
        for sentence in loose:
            if contains_any(sentence, PREFERRED_MARKERS):
                preferred_lines.append(sentence)
            elif contains_any(sentence, _REQUIREMENT_SENTENCE_MARKERS):
                requirement_lines.append(sentence)
    if not description_lines:
        description_lines = [line for line in body_header if len(line.split()) > 6]

    experience_level = _extract_experience_level(title, requirement_lines + preferred_lines, text)
    skill_level = _SKILL_LEVEL_BY_EXPERIENCE.get(experience_level or "")
    skills = [
        JobSkill(name=entry["name"], required=entry["required"], category=entry["category"], level=skill_level)
        for entry in _collect_skills(sections, requirement_lines, preferred_lines, text, taxonomy).values()
    ]

    return ParsedJobData(
        id=f"job_{content_digest(normalize_line(text))}",
        title=title,
        company=company,
        location=_extract_location(header, text),
        employment_type=_extract_employment_type(title, text),
        experience_level=experience_level,
        salary=_extract_salary(text),
        description=" ".join(strip_bullet_prefix(line) for line in description_lines),
        requirements=requirement_lines,
        preferred_qualifications=preferred_lines,
        responsibilities=[strip_bullet_prefix(line) for line in sections.get("responsibilities", [])],
        benefits=[strip_bullet_prefix(line) for line in sections.get("benefits", [])],
        skills=skills,
        keywords=_extract_keywords([skill.name for skill in skills], text, taxonomy),
    )
