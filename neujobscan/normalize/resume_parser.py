from __future__ import annotations

import re
from typing import Any

from neujobscan.schemas.resume import (
    Certification,
    Education,
    Language,
    ParsedResumeData,
    PersonalInfo,
    Project,
    Skill,
    WorkExperience,
)
from neujobscan.taxonomy import LocalTaxonomy, get_default_taxonomy_provider

from .degrees import degree_level, find_fields, looks_like_institution
from .sections import split_sections
from .utils import (
    DATE_RANGE_RE,
    EMAIL_RE,
    GITHUB_RE,
    LINKEDIN_RE,
    PHONE_RE,
    WEBSITE_RE,
    YEAR_RE,
    ensure_parseable,
    is_bullet_like,
    is_contact_or_url,
    normalize_line,
    split_list_items,
    strip_bullet_prefix,
)

RESUME_SECTION_ALIASES: dict[str, str] = {
    "summary": "summary",
    "professional summary": "summary",
    "career summary": "summary",
    "objective": "summary",
    "career objective": "summary",
    "profile": "summary",
    "professional profile": "summary",
    "about": "summary",
    "about me": "summary",
    "experience": "experience",
    "work experience": "experience",
    "professional experience": "experience",
    "relevant experience": "experience",
    "employment": "experience",
    "employment history": "experience",
    "work history": "experience",
    "career history": "experience",
    "education": "education",
    "academic background": "education",
    "education & training": "education",
    "education and training": "education",
    "academic qualifications": "education",
    "skills": "skills",
    "technical skills": "skills",
    "key skills": "skills",
    "core skills": "skills",
    "core competencies": "skills",
    "competencies": "skills",
    "skills & tools": "skills",
    "skills and tools": "skills",
    "skills & technologies": "skills",
    "technologies": "skills",
    "tech stack": "skills",
    "certifications": "certifications",
    "certificates": "certifications",
    "licenses & certifications": "certifications",
    "licenses and certifications": "certifications",
    "certifications & licenses": "certifications",
    "languages": "languages",
    "spoken languages": "languages",
    "projects": "projects",
    "personal projects": "projects",
    "key projects": "projects",
    "selected projects": "projects",
    "side projects": "projects",
}

_WORD_RE = re.compile(r"[A-Za-z]{2,}")
_ROLE_WORDS_RE = re.compile(
    r"\b(engineer|developer|manager|analyst|designer|intern|lead|director|consultant|specialist|scientist|"
    r"architect|coordinator|administrator|officer|associate|assistant|head|vp|president|programmer|"
    r"technician|representative|executive|nurse|accountant|recruiter|teacher)\b",
    re.IGNORECASE,
)
_COMPANY_SUFFIX_RE = re.compile(r"\b(inc|llc|ltd|corp|corporation|gmbh|co|company|group|labs|technologies)\b\.?", re.IGNORECASE)
_HEADER_SEPARATORS = (" at ", " @ ", " | ", " — ", " – ", " - ", ", ")
_LOCATION_RE = re.compile(r"^[A-Z][A-Za-z .'\-]+,\s*[A-Z][A-Za-z]+(?:\s[A-Z][a-z]+)?$")
_LEVEL_RE = re.compile(
    r"\(\s*(beginner|basic|novice|familiar|intermediate|advanced|proficient|expert)\s*\)|"
    r"\s[-–:]\s*(beginner|basic|novice|familiar|intermediate|advanced|proficient|expert)\s*$",
    re.IGNORECASE,
)
_YEARS_RE = re.compile(r"(\d+(?:\.\d+)?)\+?\s*(?:years?|yrs?)", re.IGNORECASE)
_LEVEL_ALIASES = {
    "basic": "beginner",
    "novice": "beginner",
    "familiar": "beginner",
    "proficient": "advanced",
}
_GPA_RE = re.compile(r"\bgpa\b[:\s]*([0-4](?:\.\d{1,2})?)", re.IGNORECASE)
_ISSUER_RE = re.compile(
    r"\b(aws|amazon|google|microsoft|oracle|cisco|comptia|pmi|scrum alliance|salesforce|linux foundation|"
    r"hashicorp|isc2|axelos|coursera|udemy)\b",
    re.IGNORECASE,
)
_ISSUER_NAMES = {
    "aws": "Amazon Web Services",
    "amazon": "Amazon Web Services",
    "comptia": "CompTIA",
    "pmi": "PMI",
    "isc2": "ISC2",
    "hashicorp": "HashiCorp",
}
_CREDENTIAL_RE = re.compile(r"\b(?:credential(?: id)?|id)\s*[:#]\s*([A-Za-z0-9\-]{4,})", re.IGNORECASE)
_PROFICIENCY_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("native", ("native", "mother tongue", "bilingual")),
    ("professional", ("fluent", "professional", "proficient", "full working", "advanced", "c1", "c2")),
    ("conversational", ("conversational", "intermediate", "working", "b1", "b2")),
    ("basic", ("basic", "beginner", "elementary", "a1", "a2")),
)
_TECH_LINE_RE = re.compile(r"^(?:technologies|tech stack|tech|stack|built with|tools)\s*:\s*(.+)$", re.IGNORECASE)


def _valid_phone(candidate: str) -> bool:
    digits = re.sub(r"\D", "", candidate)
    return 10 <= len(digits) <= 15


def _find_phone(text: str) -> str:
    for match in PHONE_RE.finditer(text):
        candidate = match.group(0).strip()
        if _valid_phone(candidate) and not DATE_RANGE_RE.search(candidate):
            return candidate
    return ""


def _header_segments(lines: list[str]) -> list[str]:
    segments: list[str] = []
    for line in lines[:8]:
        for segment in re.split(r"\s*[|•·]\s*", line):
            cleaned = normalize_line(segment)
            if cleaned:
                segments.append(cleaned)
    return segments


def _extract_personal_info(text: str, header_lines: list[str]) -> PersonalInfo:
    email_match = EMAIL_RE.search(text)
    linkedin_match = LINKEDIN_RE.search(text)
    github_match = GITHUB_RE.search(text)
    portfolio = None
    for match in WEBSITE_RE.finditer(text):
        url = match.group(0)
        if "linkedin.com" not in url.lower() and "github.com" not in url.lower():
            portfolio = url
            break

    segments = _header_segments(header_lines or text.splitlines())
    name = ""
    location = ""
    for segment in segments:
        if is_contact_or_url(segment):
            continue
        if not location and (_LOCATION_RE.match(segment) or segment.lower() in {"remote", "remote, us"}):
            location = segment
            continue
        words = segment.split()
        if (
            not name
            and 1 < len(words) <= 4
            and len(segment) <= 60
            and not re.search(r"\d", segment)
            and not _ROLE_WORDS_RE.search(segment)
        ):
            name = segment

    return PersonalInfo(
        name=name,
        email=email_match.group(0) if email_match else "",
        phone=_find_phone("\n".join(header_lines) or text) or _find_phone(text),
        location=location,
        linkedin=linkedin_match.group(0) if linkedin_match else None,
        github=github_match.group(0) if github_match else None,
        portfolio=portfolio,
    )


def _split_header(text: str) -> tuple[str, str]:
    for separator in _HEADER_SEPARATORS:
        if separator in text:
            left, right = text.split(separator, 1)
            right = right.split(separator, 1)[0]
            left, right = left.strip(), right.strip()
            if separator in {" at ", " @ "}:
                return left, right
            if _COMPANY_SUFFIX_RE.search(left) or (_ROLE_WORDS_RE.search(right) and not _ROLE_WORDS_RE.search(left)):
                return right, left
            return left, right
    if _ROLE_WORDS_RE.search(text):
        return text.strip(), ""
    return "", text.strip()


def _has_separator(text: str) -> bool:
    return any(separator in text for separator in _HEADER_SEPARATORS)


def _is_prose(text: str) -> bool:
    return text.endswith(".") or len(text.split()) > 12


def _apply_dates(entry: dict[str, Any], match: re.Match[str]) -> None:
    entry["start_date"] = normalize_line(match.group("start"))
    end = normalize_line(match.group("end"))
    if end.lower() in {"present", "current", "now", "today"}:
        entry["end_date"] = None
        entry["current"] = True
    else:
        entry["end_date"] = end
        entry["current"] = False


def _new_experience() -> dict[str, Any]:
    return {
        "position": "",
        "company": "",
        "start_date": "",
        "end_date": None,
        "current": False,
        "description": [],
        "achievements": [],
    }


def _parse_experience(lines: list[str]) -> list[WorkExperience]:
    entries: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    def start_entry() -> dict[str, Any]:
        entry = _new_experience()
        entries.append(entry)
        return entry

    for line in lines:
        if is_bullet_like(line):
            if current is None:
                current = start_entry()
            current["achievements"].append(strip_bullet_prefix(line))
            continue

        date_match = DATE_RANGE_RE.search(line)
        header_text = normalize_line(DATE_RANGE_RE.sub(" ", line)).strip(" ,|-–—()") if date_match else line

        if date_match and not header_text:
            if current is None or (current["start_date"] and current["position"]):
                if current is None or current["achievements"] or current["description"]:
                    current = start_entry()
            _apply_dates(current, date_match)
            continue

        header_like = bool(date_match) or (
            not _is_prose(header_text)
            and (_has_separator(header_text) or _ROLE_WORDS_RE.search(header_text) or current is None)
        )
        if header_like:
            if (
                current is not None
                and current["position"]
                and not current["company"]
                and not current["achievements"]
                and not current["description"]
                and not _has_separator(header_text)
                and not _ROLE_WORDS_RE.search(header_text)
            ):
                current["company"] = header_text
            elif current is not None and not current["position"] and not current["company"]:
                current["position"], current["company"] = _split_header(header_text)
            else:
                current = start_entry()
                current["position"], current["company"] = _split_header(header_text)
            if date_match:
                _apply_dates(current, date_match)
            continue

        if current is None:
            current = start_entry()
        current["description"].append(line)

    experiences: list[WorkExperience] = []
    for entry in entries:
        if not entry["position"] and not entry["company"]:
            continue
        experiences.append(
            WorkExperience(
                id=f"exp-{len(experiences) + 1}",
                company=entry["company"],
                position=entry["position"],
                start_date=entry["start_date"],
                end_date=entry["end_date"],
                current=entry["current"],
                description=" ".join(entry["description"]),
                achievements=entry["achievements"],
            )
        )
    return experiences


def _parse_education(lines: list[str]) -> list[Education]:
    entries: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    def start_entry() -> dict[str, Any]:
        entry: dict[str, Any] = {
            "institution": "",
            "degree": "",
            "field": "",
            "start_date": "",
            "end_date": None,
            "current": False,
            "gpa": None,
        }
        entries.append(entry)
        return entry

    for raw_line in lines:
        line = strip_bullet_prefix(raw_line)
        gpa_match = _GPA_RE.search(line)
        date_match = DATE_RANGE_RE.search(line)
        undated = DATE_RANGE_RE.sub(" ", line)
        segments = [
            normalize_line(segment).strip(" ,()")
            for segment in re.split(r"\s*(?:,|\||—|–|\s-\s)\s*", _GPA_RE.sub(" ", undated))
        ]
        segments = [segment for segment in segments if segment and not YEAR_RE.fullmatch(segment)]
        degree_segment = next((segment for segment in segments if degree_level(segment) is not None), "")
        institution_segment = next((segment for segment in segments if looks_like_institution(segment)), "")

        if degree_segment:
            if current is None or current["degree"]:
                current = start_entry()
            current["degree"] = degree_segment
            fields = find_fields(line)
            in_match = re.search(r".*\b(?:in|of)\s+([A-Z][A-Za-z&\s]+)$", degree_segment)
            if fields:
                current["field"] = fields[0].title()
            elif in_match and degree_level(in_match.group(1)) is None:
                current["field"] = in_match.group(1).strip()
        if institution_segment:
            if current is None or (current["institution"] and not degree_segment):
                current = start_entry()
            current["institution"] = institution_segment
        if current is None:
            continue
        if gpa_match:
            current["gpa"] = float(gpa_match.group(1))
        if date_match:
            _apply_dates(current, date_match)
        elif not current["end_date"] and not current["start_date"]:
            years = YEAR_RE.findall(line)
            if years:
                current["end_date"] = years[-1]

    return [
        Education(id=f"edu-{index}", **entry)
        for index, entry in enumerate(
            (entry for entry in entries if entry["degree"] or entry["institution"]), start=1
        )
    ]


def _skill_entry(item: str, taxonomy: LocalTaxonomy, index: int) -> Skill | None:
    level = "intermediate"
    level_match = _LEVEL_RE.search(item)
    if level_match:
        raw_level = (level_match.group(1) or level_match.group(2)).lower()
        level = _LEVEL_ALIASES.get(raw_level, raw_level)
        item = _LEVEL_RE.sub("", item)
    years = None
    years_match = _YEARS_RE.search(item)
    if years_match:
        years = float(years_match.group(1))
    name = normalize_line(re.sub(r"\([^)]*\)", " ", _YEARS_RE.sub(" ", item))).strip(" .-:")
    if not name or len(name.split()) > 5 or not re.search(r"[A-Za-z]", name):
        return None
    return Skill(
        id=f"skill-{index}",
        name=name,
        category=taxonomy.categorize(name),
        level=level,
        years_of_experience=years,
    )


def _parse_skills(lines: list[str], taxonomy: LocalTaxonomy) -> list[Skill]:
    skills: list[Skill] = []
    seen: set[str] = set()
    for raw_line in lines:
        line = strip_bullet_prefix(raw_line)
        label = re.match(r"^([A-Za-z][A-Za-z &/]{1,30}):\s*(.+)$", line)
        if label:
            line = label.group(2)
        for item in split_list_items(line):
            skill = _skill_entry(item, taxonomy, len(skills) + 1)
            if skill is None:
                continue
            normalized, canonical_id = taxonomy.normalize_skill(skill.name)
            key = canonical_id or normalized
            if key in seen:
                continue
            seen.add(key)
            skills.append(skill)
    return skills


def _detect_skills(text: str, taxonomy: LocalTaxonomy) -> list[Skill]:
    return [
        Skill(
            id=f"skill-{index}",
            name=taxonomy.display_name(canonical_id),
            category=taxonomy.categorize(canonical_id),
            level="intermediate",
        )
        for index, canonical_id in enumerate(taxonomy.find_skills(text), start=1)
    ]


def _parse_certifications(lines: list[str]) -> list[Certification]:
    certifications: list[Certification] = []
    for raw_line in lines:
        line = strip_bullet_prefix(raw_line)
        url_match = WEBSITE_RE.search(line)
        credential_match = _CREDENTIAL_RE.search(line)
        date_match = DATE_RANGE_RE.search(line)
        years = YEAR_RE.findall(line)
        name_part = _CREDENTIAL_RE.sub(" ", WEBSITE_RE.sub(" ", DATE_RANGE_RE.sub(" ", line)))
        name_part = normalize_line(YEAR_RE.sub(" ", name_part)).strip(" ,|-–—()")
        issuer = ""
        if " - " in name_part or " | " in name_part or ", " in name_part:
            name_part, issuer = [part.strip() for part in re.split(r"\s(?:-|\|)\s|,\s", name_part, maxsplit=1)]
        issuer_match = _ISSUER_RE.search(line)
        if not issuer and issuer_match:
            found = issuer_match.group(1).lower()
            issuer = _ISSUER_NAMES.get(found, issuer_match.group(1).title())
        if not name_part or not _WORD_RE.search(name_part):
            continue
        certifications.append(
            Certification(
                id=f"cert-{len(certifications) + 1}",
                name=name_part,
                issuer=issuer,
                date=date_match.group("start") if date_match else (years[0] if years else ""),
                expiry_date=None if not date_match else normalize_line(date_match.group("end")),
                credential_id=credential_match.group(1) if credential_match else None,
                credential_url=url_match.group(0) if url_match else None,
            )
        )
    return certifications


def _parse_languages(lines: list[str]) -> list[Language]:
    languages: list[Language] = []
    for raw_line in lines:
        for item in split_list_items(strip_bullet_prefix(raw_line)):
            name_match = re.match(r"^([A-Za-z][A-Za-z ]*?)(?:\s*[\(\-:–]|$)", item)
            if not name_match:
                continue
            name = name_match.group(1).strip()
            lowered = item.lower()
            proficiency = "conversational"
            for level, markers in _PROFICIENCY_MARKERS:
                if any(re.search(rf"\b{re.escape(marker)}\b", lowered) for marker in markers):
                    proficiency = level
                    break
            if not name or len(name.split()) > 3:
                continue
            languages.append(Language(id=f"lang-{len(languages) + 1}", name=name, proficiency=proficiency))
    return languages


def _parse_projects(lines: list[str]) -> list[Project]:
    entries: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None
    for line in lines:
        bullet = is_bullet_like(line)
        text = strip_bullet_prefix(line)
        tech_match = _TECH_LINE_RE.match(text)
        if tech_match and current is not None:
            current["technologies"].extend(split_list_items(tech_match.group(1)))
            continue
        github_match = GITHUB_RE.search(text)
        url_match = WEBSITE_RE.search(text)
        if current is not None and (github_match or url_match) and len(text.split()) <= 2:
            if github_match:
                current["github"] = github_match.group(0)
            elif url_match:
                current["url"] = url_match.group(0)
            continue
        if not bullet and not _is_prose(text):
            date_match = DATE_RANGE_RE.search(text)
            name = normalize_line(DATE_RANGE_RE.sub(" ", text)) if date_match else text
            technologies: list[str] = []
            bracket = re.search(r"[\(\[]([^\)\]]+)[\)\]]", name)
            if bracket:
                technologies = split_list_items(bracket.group(1))
                name = normalize_line(name.replace(bracket.group(0), " "))
            elif " | " in name:
                name, tech_text = name.split(" | ", 1)
                technologies = split_list_items(tech_text)
            current = {
                "name": name.strip(" -–—:"),
                "description": [],
                "technologies": technologies,
                "url": None,
                "github": github_match.group(0) if github_match else None,
                "start_date": normalize_line(date_match.group("start")) if date_match else "",
                "end_date": normalize_line(date_match.group("end")) if date_match else None,
            }
            entries.append(current)
            continue
        if current is None:
            continue
        current["description"].append(text)

    return [
        Project(
            id=f"proj-{index}",
            name=entry["name"],
            description=" ".join(entry["description"]),
            technologies=entry["technologies"],
            url=entry["url"],
            github=entry["github"],
            start_date=entry["start_date"],
            end_date=entry["end_date"],
        )
        for index, entry in enumerate((entry for entry in entries if entry["name"]), start=1)
    ]


def parse_resume(raw_text: str, *, taxonomy: LocalTaxonomy | None = None) -> ParsedResumeData:
    text = ensure_parseable(raw_text, "resume")
    taxonomy = taxonomy or get_default_taxonomy_provider()
    sections = split_sections(text, RESUME_SECTION_ALIASES)

    summary_lines = [strip_bullet_prefix(line) for line in sections.get("summary", [])]
    skills = _parse_skills(sections.get("skills", []), taxonomy)
    if not skills:
        skills = _detect_skills(text, taxonomy)

    certifications = _parse_certifications(sections.get("certifications", []))
    languages = _parse_languages(sections.get("languages", []))
    projects = _parse_projects(sections.get("projects", []))

    return ParsedResumeData(
        personal_info=_extract_personal_info(text, sections.get("header", [])),
        summary=" ".join(summary_lines) or None,
        experience=_parse_experience(sections.get("experience", [])),
        education=_parse_education(sections.get("education", [])),
        skills=skills,
        certifications=certifications or None,
        languages=languages or None,
        projects=projects or None,
    )
