from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from html import escape

from neujobscan.core.errors import ValidationError
from neujobscan.schemas.scan import ATSResponse
from neujobscan.scoring.explanation import status_for

CONTENT_TYPES = {
    "json": "application/json",
    "csv": "text/csv; charset=utf-8",
    "html": "text/html; charset=utf-8",
}

CSV_COLUMNS = (
    ("scanId", lambda scan: scan.scan_id),
    ("timestamp", lambda scan: scan.timestamp.isoformat()),
    ("jobTitle", lambda scan: scan.job_title),
    ("company", lambda scan: scan.company),
    ("overallScore", lambda scan: scan.overall_score),
    ("keywordScore", lambda scan: scan.keyword_score),
    ("skillScore", lambda scan: scan.skill_score),
    ("experienceScore", lambda scan: scan.experience_score),
    ("educationScore", lambda scan: scan.education_score),
    ("atsScore", lambda scan: scan.ats_score),
    ("missingKeywords", lambda scan: "; ".join(scan.keyword_matches.missing_keywords)),
    ("criticalGaps", lambda scan: "; ".join(
        gap.skill for gap in scan.skill_gaps.missing_skills if gap.importance == "critical"
    )),
)


def content_type_for(fmt: str) -> str:
    try:
        return CONTENT_TYPES[fmt]
    except KeyError:
        raise ValidationError(f"Unsupported report format '{fmt}'. Allowed: {', '.join(CONTENT_TYPES)}.") from None


def report_filename(fmt: str, *, now: datetime | None = None) -> str:
    day = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return f"neujobscan-report-{day}.{fmt}"


def _render_json(scans: list[ATSResponse]) -> bytes:
    rows = [scan.model_dump(mode="json", by_alias=True) for scan in scans]
    return json.dumps({"scans": rows, "count": len(rows)}, ensure_ascii=False, indent=2).encode("utf-8")


def _render_csv(scans: list[ATSResponse]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([name for name, _ in CSV_COLUMNS])
    for scan in scans:
        writer.writerow([getter(scan) for _, getter in CSV_COLUMNS])
    return buffer.getvalue().encode("utf-8")


def _render_html(scans: list[ATSResponse]) -> bytes:
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    rows = []
    for scan in scans:
        gaps = ", ".join(gap.skill for gap in scan.skill_gaps.missing_skills[:5]) or "None"
        rows.append(
            "<tr>"
            f"<td>{escape(scan.timestamp.strftime('%Y-%m-%d'))}</td>"
            f"<td>{escape(scan.job_title or '-')}</td>"
            f"<td>{escape(scan.company or '-')}</td>"
            f"<td>{scan.match_percentage}%</td>"
            f"<td>{escape(status_for(scan.overall_score))}</td>"
            f"<td>{escape(gaps)}</td>"
            "</tr>"
        )
    average = round(sum(scan.overall_score for scan in scans) / len(scans), 2) if scans else 0.0
    body = "\n".join(rows) or '<tr><td colspan="6">No scans yet.</td></tr>'
    document = f"""<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>NeuJobScan Report</title>
<style>
body {{ font-family: Georgia, serif; color: #333; max-width: 900px; margin: 0 auto; padding: 40px; }}
h1, h2 {{ color: #2563eb; }}
table {{ width: 100%; border-collapse: collapse; }}
th, td {{ border: 1px solid #ddd; padding: 8px; text-align: left; }}
th {{ background: #f8f9fa; }}
</style>
</head>
<body>
<h1>NeuJobScan Report</h1>
<p>Generated on {generated}</p>
<h2>Summary</h2>
<p>Total scans: {len(scans)}. Average match score: {average}.</p>
<h2>Scans</h2>
<table>
<tr><th>Date</th><th>Job</th><th>Company</th><th>Match</th><th>Status</th><th>Top gaps</th></tr>
{body}
</table>
</body>
</html>
"""
    return document.encode("utf-8")


_RENDERERS = {"json": _render_json, "csv": _render_csv, "html": _render_html}


def render_report(data: list[ATSResponse], fmt: str) -> bytes:
    renderer = _RENDERERS.get((fmt or "").lower())
    if renderer is None:
        raise ValidationError(f"Unsupported report format '{fmt}'. Allowed: {', '.join(_RENDERERS)}.")
    return renderer(data)


COVER_LETTER_EXPORTS = {
    "txt": ("text/plain; charset=utf-8", "txt"),
    "html": ("text/html; charset=utf-8", "html"),
    "word": ("application/msword", "doc"),
}


def _cover_letter_html(content: str) -> str:
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>Cover Letter</title>
<style>
body {{ font-family: Georgia, serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 40px; }}
.content {{ white-space: pre-wrap; }}
.generated {{ margin-top: 50px; text-align: right; color: #666; }}
</style>
</head>
<body>
<div class="content">{escape(content)}</div>
<p class="generated">Generated on {generated}</p>
</body>
</html>
"""


def render_cover_letter(content: str, fmt: str) -> tuple[bytes, str, str]:
    """Returns the body, media type and attachment filename for an exported letter."""
    if not (content or "").strip():
        raise ValidationError("Content is required for export")
    try:
        media_type, extension = COVER_LETTER_EXPORTS[(fmt or "").lower()]
    except KeyError:
        raise ValidationError(
            f"Unsupported cover letter format '{fmt}'. Allowed: {', '.join(COVER_LETTER_EXPORTS)}."
        ) from None
    if extension == "html":
        body = _cover_letter_html(content)
    elif extension == "doc":
        body = content.replace("\r\n", "\n").replace("\n", "\r\n")
    else:
        body = content
    return body.encode("utf-8"), media_type, f"cover-letter.{extension}"
