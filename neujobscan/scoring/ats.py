from __future__ import annotations

import re

from pydantic import BaseModel, Field

from neujobscan.normalize.resume_parser import RESUME_SECTION_ALIASES
from neujobscan.normalize.utils import EMAIL_RE, PHONE_RE, heading_key
from neujobscan.schemas.base import clamp_score
from neujobscan.schemas.resume import ParsedResumeData

MIN_SKILLS = 5
_STANDARD_SECTIONS = ("experience", "education", "skills")
_IMAGE_PLACEHOLDER_RE = re.compile(r"\[(?:image|photo|picture|logo|graphic|icon)[^\]]*\]|<img\b", re.IGNORECASE)
_MARKDOWN_TABLE_RE = re.compile(r"^\s*\|?\s*:?-{2,}\s*\|")


class AtsReport(BaseModel):
    score: float = Field(ge=0.0, le=100.0)
    issues: list[str] = Field(default_factory=list)


def _table_like_line(line: str) -> bool:
    stripped = line.strip()
    if stripped.count("|") < 2 or EMAIL_RE.search(stripped) or PHONE_RE.search(stripped):
        return False
    return len([segment for segment in stripped.split("|") if segment.strip()]) >= 3


def _layout_deductions(raw_text: str) -> list[tuple[int, str]]:
    issues: list[tuple[int, str]] = []
    lines = [line for line in raw_text.splitlines() if line.strip()]
    table_lines = sum(1 for line in lines if _table_like_line(line) or _MARKDOWN_TABLE_RE.match(line))
    tab_lines = sum(1 for line in lines if "\t" in line.strip())
    column_lines = sum(1 for line in lines if re.search(r"\S\s{6,}\S", line))
    if table_lines >= 2 or tab_lines >= 3 or column_lines >= 3:
        issues.append((10, "Table or multi-column layout detected; ATS parsers may scramble the reading order."))
    if _IMAGE_PLACEHOLDER_RE.search(raw_text):
        issues.append((5, "Images or graphics detected; ATS parsers ignore their content."))

    found_sections = {heading_key(line, RESUME_SECTION_ALIASES) for line in lines}
    found_sections |= {
        heading_key(line.split(":", 1)[0], RESUME_SECTION_ALIASES) for line in lines if ":" in line
    }
    missing = [section for section in _STANDARD_SECTIONS if section not in found_sections]
    if missing:
        issues.append((10, f"Missing standard section headings: {', '.join(missing)}."))
    return issues


def ats_report(resume: ParsedResumeData, raw_text: str | None = None) -> AtsReport:
    """Job-independent structural compliance check with a deduction per issue."""
    deductions: list[tuple[int, str]] = []
    info = resume.personal_info
    if not info.email:
        deductions.append((20, "No email address found in the contact details."))
    if not info.phone:
        deductions.append((10, "No phone number found in the contact details."))
    if not resume.skills:
        deductions.append((20, "No skills section found."))
    elif len(resume.skills) < MIN_SKILLS:
        deductions.append((5, f"Fewer than {MIN_SKILLS} skills listed."))
    if not resume.experience:
        deductions.append((25, "No work experience found."))
    elif any(not role.description and not role.achievements for role in resume.experience):
        deductions.append((10, "Some roles have neither a description nor achievements."))
    if not resume.education:
        deductions.append((10, "No education entries found."))

    if raw_text:
        deductions.extend(_layout_deductions(raw_text))

    score = clamp_score(100 - sum(points for points, _ in deductions))
    return AtsReport(score=score, issues=[message for _, message in deductions])


def ats_compliance(resume: ParsedResumeData, raw_text: str | None = None) -> float:
    return ats_report(resume, raw_text).score
