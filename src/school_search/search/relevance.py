"""Relevance scoring for directory candidates.

A candidate's score is the sum of weighted text similarities (name, city,
state) and fixed bonuses (local match, city prefix, level, geography, data
quality, source strategy). Scores are unbounded above; only their order
matters to ranking.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
import math

from school_search.domain.model import SchoolRecord
from school_search.search.fuzzy import text_similarity
from school_search.search.query_parser import parse_query


logger = logging.getLogger(__name__)


NAME_WEIGHT = 0.4
CITY_WEIGHT = 0.3
INFERRED_CITY_WEIGHT = 0.35
STATE_WEIGHT = 0.2

INFERRED_CITY_MIN_WORD_LENGTH = 2
INFERRED_CITY_MIN_SCORE = 70.0

LOCAL_MATCH_BONUS = 25.0
LOCAL_MATCH_MIN_CITY_SCORE = 80.0
LOCAL_MATCH_MIN_NAME_SCORE = 50.0

CITY_PREFIX_BONUS = 40.0
LEVEL_MATCH_BONUS = 15.0

GEO_BONUS = 20.0
GEO_MIN_CITY_WEIGHT = 20.0
GEO_MIN_STATE_WEIGHT = 15.0

TEST_SCORES_BONUS = 8.0
HIGH_RATING_BONUS = 6.0
HIGH_RATING_THRESHOLD = 8.0
ENROLLMENT_BONUS = 3.0
ENROLLMENT_THRESHOLD = 100

# Looked up by exact source name. Unlisted names, including "smart-autocomplete"
# and "exact-name", score 0.
SOURCE_BONUSES: dict[str, float] = {
    "city-specific": 25.0,
    "last-word-city": 22.0,
    "full-query": 20.0,
    "first-word-city": 18.0,
    "exact-match": 15.0,
    "autocomplete": 12.0,
    "city-search": 8.0,
    "fuzzy-search": 6.0,
    "broad-search": 3.0,
}

LEVEL_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("elementary", "Elementary"),
    ("middle", "Middle"),
    ("high", "High"),
)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-factor contributions to a candidate's relevance score."""

    name: float = 0.0
    city: float = 0.0
    state: float = 0.0
    local_match: float = 0.0
    city_prefix: float = 0.0
    level: float = 0.0
    geo: float = 0.0
    quality: float = 0.0
    source: float = 0.0

    @property
    def total(self) -> float:
        value = (
            self.name
            + self.city
            + self.state
            + self.local_match
            + self.city_prefix
            + self.level
            + self.geo
            + self.quality
            + self.source
        )
        return value if math.isfinite(value) else 0.0

    def to_dict(self) -> dict[str, float]:
        return {**asdict(self), "total": self.total}


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _quality_bonus(candidate: SchoolRecord) -> float:
    bonus = 0.0
    scores = candidate.test_scores
    if scores.sat_total or scores.state_reading:
        bonus += TEST_SCORES_BONUS
    if candidate.rating >= HIGH_RATING_THRESHOLD:
        bonus += HIGH_RATING_BONUS
    if candidate.enrollment and candidate.enrollment > ENROLLMENT_THRESHOLD:
        bonus += ENROLLMENT_BONUS
    return bonus


def _level_bonus(query_lower: str, candidate: SchoolRecord) -> float:
    for keyword, level in LEVEL_KEYWORDS:
        if keyword in query_lower and candidate.level == level:
            return LEVEL_MATCH_BONUS
    return 0.0


def explain_score(candidate: SchoolRecord, query: str, source: str) -> ScoreBreakdown:
    """Compute every contribution to ``candidate``'s relevance for ``query``."""
    query_lower = query.lower().strip()
    components = parse_query(query_lower)
    words = query_lower.split()
    first_word = words[0] if words else ""

    name_score = _finite(text_similarity(components.school_terms, candidate.name))
    name_weight = name_score * NAME_WEIGHT

    city_score = 0.0
    city_weight = 0.0
    if components.city:
        city_score = _finite(text_similarity(components.city, candidate.city))
        city_weight = city_score * CITY_WEIGHT
    elif len(first_word) >= INFERRED_CITY_MIN_WORD_LENGTH:
        potential = _finite(text_similarity(first_word, candidate.city))
        if potential >= INFERRED_CITY_MIN_SCORE:
            city_score = potential
            city_weight = potential * INFERRED_CITY_WEIGHT

    state_weight = 0.0
    if components.state:
        state_weight = _finite(text_similarity(components.state, candidate.state)) * STATE_WEIGHT

    local_match = 0.0
    if components.city and city_score > LOCAL_MATCH_MIN_CITY_SCORE and name_score > LOCAL_MATCH_MIN_NAME_SCORE:
        local_match = LOCAL_MATCH_BONUS

    city_prefix = CITY_PREFIX_BONUS if first_word and candidate.city.lower().startswith(first_word) else 0.0

    geo = 0.0
    if (
        components.city
        and components.state
        and city_weight > GEO_MIN_CITY_WEIGHT
        and state_weight > GEO_MIN_STATE_WEIGHT
    ):
        geo = GEO_BONUS

    return ScoreBreakdown(
        name=name_weight,
        city=city_weight,
        state=state_weight,
        local_match=local_match,
        city_prefix=city_prefix,
        level=_level_bonus(query_lower, candidate),
        geo=geo,
        quality=_quality_bonus(candidate),
        source=SOURCE_BONUSES.get(source, 0.0),
    )


def score_candidate(candidate: SchoolRecord, query: str, source: str) -> float:
    """Relevance of ``candidate`` for ``query`` when produced by strategy ``source``.

    Always finite and non-negative.
    """
    breakdown = explain_score(candidate, query, source)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Score for %s (%s, %s) via %s: %s",
            candidate.name,
            candidate.city,
            candidate.state,
            source,
            breakdown.to_dict(),
        )
    return breakdown.total
