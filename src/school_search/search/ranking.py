"""Merge strategy results into one deduplicated, relevance-ordered list."""

from __future__ import annotations

from collections.abc import Iterable
import logging
import re

from school_search.domain.model import SchoolRecord
from school_search.domain.search import StrategyResult
from school_search.search.relevance import score_candidate


logger = logging.getLogger(__name__)


MIN_RELEVANCE_SCORE = 10.0
DEFAULT_MAX_RESULTS = 15
RATING_QUALITY_WEIGHT = 10
RANK_QUALITY_CEILING = 1000
RANK_QUALITY_DIVISOR = 100

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_SCHOOL_RE = re.compile(r"\s+school$")


def _canonical(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.strip().lower())


def dedup_key(record: SchoolRecord) -> str:
    """``name-city-state`` identity; "Lincoln Elementary School" and "Lincoln Elementary" collide."""
    name = _TRAILING_SCHOOL_RE.sub("", _canonical(record.name))
    return f"{name}-{_canonical(record.city)}-{_canonical(record.state)}"


def quality_tiebreak(record: SchoolRecord) -> float:
    """Secondary sort key: star rating first, state rank as a small adjustment."""
    rank_component = 0.0
    if record.rank_total > 0:
        rank_component = (RANK_QUALITY_CEILING - record.rank) / RANK_QUALITY_DIVISOR
    return record.rating * RATING_QUALITY_WEIGHT + rank_component


def rank_and_limit(
    results: Iterable[StrategyResult],
    query: str,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[SchoolRecord]:
    """Score, deduplicate and order candidates from every strategy.

    Strategies are visited in descending priority. A later strategy only
    replaces a record when it scores strictly higher, so ties keep the
    higher-priority source. Candidates scoring below ``MIN_RELEVANCE_SCORE``
    are dropped.
    """
    best: dict[str, SchoolRecord] = {}

    for result in sorted(results, key=lambda r: r.priority, reverse=True):
        for candidate in result.results:
            score = score_candidate(candidate, query, result.source)
            if score < MIN_RELEVANCE_SCORE:
                continue
            key = dedup_key(candidate)
            existing = best.get(key)
            if existing is None or score > (existing.relevance_score or 0.0):
                best[key] = candidate.with_ranking(result.source, score)

    ranked = sorted(
        best.values(),
        key=lambda record: (record.relevance_score or 0.0, quality_tiebreak(record)),
        reverse=True,
    )[:max_results]

    for position, record in enumerate(ranked, start=1):
        logger.debug(
            "%d. %s (%s, %s) score=%.1f source=%s",
            position,
            record.name,
            record.city,
            record.state,
            record.relevance_score or 0.0,
            record.search_source,
        )
    return ranked
