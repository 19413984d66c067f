"""Map raw directory payloads onto canonical ``SchoolRecord`` values.

The directory is inconsistent about field names across endpoints and API
revisions, so each canonical field lists its candidate source paths in
priority order. The first *truthy* value wins: ``0``, ``""`` and ``False``
fall through to the next source.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
import logging
import math
from typing import Any

from pydantic import ValidationError

from school_search.domain.model import SchoolLevel, SchoolRecord, TestScores
from school_search.errors import ParseError


logger = logging.getLogger(__name__)


FIELD_SOURCES: dict[str, tuple[str, ...]] = {
    "id": ("schoolid", "id", "schoolId"),
    "name": ("schoolName", "name", "school_name"),
    "city": ("city", "location.city", "address.city"),
    "state": ("state", "st", "location.state", "address.state"),
    "address": ("address.street", "street"),
    "phone": ("phone", "phoneNumber"),
    "level": ("schoolLevel", "level"),
    "rating": ("schoolDiggerRating", "rating", "rankStars"),
    "rank": ("schoolDiggerRank", "rank"),
    "rank_total": ("schoolDiggerRankOf", "rankOf", "totalSchools"),
    "enrollment": ("enrollment", "numberOfStudents", "studentCount"),
    "student_teacher_ratio": ("studentTeacherRatio", "pupilTeacherRatio", "str"),
    "grades": ("grades",),
    "sat_reading": ("avgSatReading", "sat.reading", "testScores.satReading"),
    "sat_math": ("avgSatMath", "sat.math", "testScores.satMath"),
    "sat_total": ("avgSatTotal", "sat.total"),
    "state_reading": ("stateTestProficiency.reading", "forwardExam.reading", "proficiency.ela"),
    "state_math": ("stateTestProficiency.math", "forwardExam.math", "proficiency.math"),
    "year": ("testScoreYear", "academicYear"),
    "is_charter": ("isCharter", "charter"),
    "is_private": ("isPrivate", "private"),
    "is_magnet": ("isMagnet", "magnet"),
}

FIELD_DEFAULTS: dict[str, Any] = {
    "id": "",
    "name": "Unknown School",
    "city": "Unknown City",
    "state": "Unknown State",
    "grades": "K-12",
    "rating": 0,
    "rank": 0,
    "rank_total": 0,
}

# (source field, value meaning "true") checked when the direct flags are falsy.
FLAG_FALLBACKS: dict[str, tuple[str, str]] = {
    "is_charter": ("isCharterSchool", "Yes"),
    "is_private": ("schoolType", "Private"),
    "is_magnet": ("isMagnetSchool", "Yes"),
}

_TRUE_STRINGS = frozenset({"yes", "true", "1", "y"})


def _lookup(raw: Mapping[str, Any], path: str) -> Any:
    current: Any = raw
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def _resolve(raw: Mapping[str, Any], field: str) -> Any:
    for path in FIELD_SOURCES[field]:
        value = _lookup(raw, path)
        if value:
            return value
    return FIELD_DEFAULTS.get(field)


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> int | None:
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def normalize_level(level: Any) -> SchoolLevel:
    """Collapse the directory's free-form level labels onto ``SchoolLevel``."""
    if not level:
        return "K-12"
    normalized = str(level).lower()
    if "elem" in normalized or "primary" in normalized:
        return "Elementary"
    if "middle" in normalized or "junior" in normalized:
        return "Middle"
    if "high" in normalized or "senior" in normalized:
        return "High"
    return "K-12"


def _grades(raw: Mapping[str, Any]) -> str:
    low, high = raw.get("lowGrade"), raw.get("highGrade")
    if low and high:
        return f"{low}-{high}"
    return _as_str(_resolve(raw, "grades")) or "K-12"


def _flag(raw: Mapping[str, Any], field: str) -> bool:
    value = _resolve(raw, field)
    if value:
        return _as_flag(value)
    source, expected = FLAG_FALLBACKS[field]
    return raw.get(source) == expected


def _test_scores(raw: Mapping[str, Any]) -> TestScores:
    sat_total = _as_float(_resolve(raw, "sat_total"))
    if sat_total is None:
        reading = _as_float(raw.get("avgSatReading"))
        math_score = _as_float(raw.get("avgSatMath"))
        if reading and math_score:
            sat_total = reading + math_score

    return TestScores(
        sat_reading=_as_float(_resolve(raw, "sat_reading")),
        sat_math=_as_float(_resolve(raw, "sat_math")),
        sat_total=sat_total,
        state_reading=_as_float(_resolve(raw, "state_reading")),
        state_math=_as_float(_resolve(raw, "state_math")),
        year=_as_str(_resolve(raw, "year")) or str(datetime.now().year),
    )


def normalize_school(raw: Any) -> SchoolRecord:
    """Build a ``SchoolRecord`` from one raw directory item.

    Raises:
        ParseError: ``raw`` is not a JSON object, or its fields do not fit a
            ``SchoolRecord``.
    """
    if not isinstance(raw, Mapping):
        raise ParseError(f"Expected a school object, got {type(raw).__name__}")

    try:
        return _build_record(raw)
    except ValidationError as exc:
        raise ParseError(f"Malformed school object: {exc.error_count()} invalid field(s)") from exc


def _build_record(raw: Mapping[str, Any]) -> SchoolRecord:
    return SchoolRecord(
        id=_as_str(_resolve(raw, "id")) or "",
        name=_as_str(_resolve(raw, "name")) or FIELD_DEFAULTS["name"],
        city=_as_str(_resolve(raw, "city")) or FIELD_DEFAULTS["city"],
        state=_as_str(_resolve(raw, "state")) or FIELD_DEFAULTS["state"],
        address=_as_str(_resolve(raw, "address")),
        phone=_as_str(_resolve(raw, "phone")),
        level=normalize_level(_resolve(raw, "level")),
        grades=_grades(raw),
        test_scores=_test_scores(raw),
        rating=max(_as_float(_resolve(raw, "rating")) or 0.0, 0.0),
        rank=_as_int(_resolve(raw, "rank")) or 0,
        rank_total=_as_int(_resolve(raw, "rank_total")) or 0,
        enrollment=_as_int(_resolve(raw, "enrollment")),
        student_teacher_ratio=_as_float(_resolve(raw, "student_teacher_ratio")),
        is_charter=_flag(raw, "is_charter"),
        is_private=_flag(raw, "is_private"),
        is_magnet=_flag(raw, "is_magnet"),
    )
