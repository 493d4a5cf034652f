from __future__ import annotations

from collections import Counter, OrderedDict

from neujobscan.schemas.analytics import Activity, Analytics, Trend
from neujobscan.schemas.scan import ATSResponse

RECENT_ACTIVITY_LIMIT = 20
TOP_SKILLS_LIMIT = 10
IMPROVEMENT_AREAS_LIMIT = 5


def _activity(scan: ATSResponse, kind: str, description: str, **metadata) -> Activity:
    return Activity(
        id=f"{scan.scan_id}:{kind}",
        type=kind,
        description=description,
        timestamp=scan.timestamp,
        metadata={"scanId": scan.scan_id, **metadata},
    )


def _job_label(scan: ATSResponse) -> str:
    if scan.job_title and scan.company:
        return f"{scan.job_title} at {scan.company}"
    return scan.job_title or scan.company or "a job posting"


def _activities(scans: list[ATSResponse]) -> list[Activity]:
    seen_resumes: set[str] = set()
    seen_jobs: set[str] = set()
    events: list[Activity] = []
    for scan in scans:
        if scan.resume_id not in seen_resumes:
            seen_resumes.add(scan.resume_id)
            events.append(
                _activity(
                    scan,
                    "resume_upload",
                    f"Added resume {scan.file_name or scan.resume_id}",
                    resumeId=scan.resume_id,
                )
            )
        if scan.job_id not in seen_jobs:
            seen_jobs.add(scan.job_id)
            events.append(
                _activity(scan, "job_analysis", f"Analyzed {_job_label(scan)}", jobId=scan.job_id)
            )
        events.append(
            _activity(
                scan,
                "match_created",
                f"Scanned against {_job_label(scan)}: {scan.match_percentage}% match",
                overallScore=scan.overall_score,
            )
        )
    events.reverse()
    return events[:RECENT_ACTIVITY_LIMIT]


def _trends(scans: list[ATSResponse]) -> list[Trend]:
    periods: OrderedDict[str, dict] = OrderedDict()
    for scan in scans:
        period = scan.timestamp.strftime("%Y-%m")
        bucket = periods.setdefault(period, {"scores": [], "resumes": set(), "jobs": set()})
        bucket["scores"].append(scan.overall_score)
        bucket["resumes"].add(scan.resume_id)
        bucket["jobs"].add(scan.job_id)
    return [
        Trend(
            period=period,
            match_scores=bucket["scores"],
            resume_count=len(bucket["resumes"]),
            job_count=len(bucket["jobs"]),
        )
        for period, bucket in periods.items()
    ]


def build_analytics(user_id: str, scans: list[ATSResponse]) -> Analytics:
    """Dashboard projection of a user's scan history; scans may arrive in any order."""
    ordered = sorted(scans, key=lambda scan: (scan.timestamp, scan.scan_id))
    if not ordered:
        return Analytics(user_id=user_id)

    skill_counts: Counter[str] = Counter()
    gap_counts: Counter[str] = Counter()
    for scan in ordered:
        skill_counts.update({strength.skill for strength in scan.skill_gaps.skill_strengths})
        gap_counts.update(
            {missing.skill for missing in scan.skill_gaps.missing_skills if missing.importance == "critical"}
        )

    average = sum(scan.overall_score for scan in ordered) / len(ordered)
    return Analytics(
        user_id=user_id,
        total_resumes=len({scan.resume_id for scan in ordered}),
        total_jobs=len({scan.job_id for scan in ordered}),
        total_matches=len(ordered),
        average_match_score=round(average, 2),
        top_skills=[name for name, _ in skill_counts.most_common(TOP_SKILLS_LIMIT)],
        improvement_areas=[name for name, _ in gap_counts.most_common(IMPROVEMENT_AREAS_LIMIT)],
        recent_activity=_activities(ordered),
        trends=_trends(ordered),
    )
