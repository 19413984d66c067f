"""Read-only projections of ``SchoolRecord`` for display and downstream context."""

from __future__ import annotations

from typing import Any

from school_search.domain.model import SchoolRecord


SUMMARY_SEPARATOR = " • "


def _fmt(value: float | int) -> str:
    """Render whole floats without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_test_score_display(school: SchoolRecord) -> str:
    scores = school.test_scores
    parts: list[str] = []
    if scores.sat_total:
        parts.append(f"SAT: {_fmt(scores.sat_total)}")
    if scores.state_reading:
        parts.append(f"Reading: {_fmt(scores.state_reading)}%")
    if scores.state_math:
        parts.append(f"Math: {_fmt(scores.state_math)}%")
    return " | ".join(parts) if parts else "Test scores not available"


def format_school_summary(school: SchoolRecord) -> str:
    """One-line human summary: name, grades, location, rank, size."""
    parts = [f"{school.name} ({school.level})"]
    if school.grades:
        parts.append(f"Grades {school.grades}")
    parts.append(f"{school.city}, {school.state}")

    if school.rank and school.rank_total:
        parts.append(f"Ranked {school.rank} of {school.rank_total} ({_fmt(school.rating)} stars)")
        percentile = (school.rank_total - school.rank) / school.rank_total * 100
        parts.append(f"Top {percentile:.1f}% in state")

    if school.enrollment:
        parts.append(f"{school.enrollment} students")
    if school.student_teacher_ratio:
        parts.append(f"{_fmt(school.student_teacher_ratio)}:1 student/teacher ratio")

    return SUMMARY_SEPARATOR.join(parts)


def get_school_metrics(school: SchoolRecord) -> dict[str, Any]:
    """Key performance metrics as a plain dict (ranking, demographics, test scores)."""
    ranking = None
    if school.rank:
        percentile = None
        if school.rank_total:
            percentile = (school.rank_total - school.rank) / school.rank_total * 100
        ranking = {
            "rank": school.rank,
            "outOf": school.rank_total,
            "stars": school.rating,
            "percentile": percentile,
        }

    scores = school.test_scores
    return {
        "ranking": ranking,
        "demographics": {
            "totalStudents": school.enrollment,
            "studentTeacherRatio": school.student_teacher_ratio,
            "isCharter": school.is_charter,
            "isPrivate": school.is_private,
            "isMagnet": school.is_magnet,
        },
        "testScores": {
            "sat": {
                "total": scores.sat_total,
                "reading": scores.sat_reading,
                "math": scores.sat_math,
                "testTakers": scores.sat_test_takers,
            },
            "state": {
                "reading": scores.state_reading,
                "math": scores.state_math,
                "science": scores.state_science,
            },
            "year": scores.year,
            "trend": scores.trend,
        },
    }


def to_autocomplete_match(school: SchoolRecord) -> dict[str, Any]:
    """Project a record onto the legacy autocomplete match shape."""
    grade_parts = (school.grades or "").split("-")
    low_grade = grade_parts[0] if grade_parts and grade_parts[0] else "K"
    high_grade = grade_parts[1] if len(grade_parts) > 1 and grade_parts[1] else "12"
    return {
        "schoolid": school.id,
        "schoolName": school.name,
        "city": school.city,
        "state": school.state,
        "zip": "",
        "schoolLevel": school.level,
        "lowGrade": low_grade,
        "highGrade": high_grade,
        "latitude": 0,
        "longitude": 0,
        "rank": school.rank,
        "rankOf": school.rank_total,
        "rankStars": school.rating,
    }
