"""Search service orchestration layer.

Wraps ``SchoolSearchEngine.search`` with the options exposed by the HTTP
route: city/level refinement, alternative sort orders and a metrics block
describing how the result list was narrowed.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from school_search.domain.model import SchoolRecord
from school_search.domain.search import SearchOptions
from school_search.school_search_engine import SchoolSearchEngine


logger = logging.getLogger(__name__)


SEARCH_TYPE = "advanced-optimized"

# Single letters accepted as queries; they are common city-name prefixes.
ALLOWED_SINGLE_CHAR_PREFIXES = frozenset("wabcdefghjlmnprst")

# Requested level -> extra substrings accepted in a record's level label.
LEVEL_ALIASES: dict[str, tuple[str, ...]] = {
    "elementary": ("elem",),
    "middle": ("middle", "jr"),
    "high": ("high", "sr"),
}

OVERFETCH_FACTOR = 2


class InvalidQueryError(ValueError):
    """The query cannot be searched (missing, empty or a disallowed single letter)."""


def validate_query(query: str | None) -> str:
    """Return the query unchanged when it is searchable.

    Raises:
        InvalidQueryError: With a message suitable for a 400 response.
    """
    if not query:
        raise InvalidQueryError('Query parameter "q" is required')
    trimmed = query.strip().lower()
    if len(trimmed) == 1 and trimmed not in ALLOWED_SINGLE_CHAR_PREFIXES:
        raise InvalidQueryError("Single character searches are only allowed for common city prefixes")
    if not trimmed:
        raise InvalidQueryError("Query cannot be empty")
    return query


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchMetrics(_CamelModel):
    """How the final list was derived from the engine's results."""

    original_query: str
    enhanced_query: str
    total_found: int
    after_filtering: int
    final_results: int
    strategies: list[str] = Field(default_factory=list)
    avg_relevance_score: float = 0.0


class SchoolSearchResponse(_CamelModel):
    school_matches: list[SchoolRecord]
    search_type: str = SEARCH_TYPE
    search_metrics: SearchMetrics
    search_options: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def build_enhanced_query(query: str, city: str | None, level: str | None) -> str:
    """Append ``city`` and ``level`` to the query unless it already mentions them."""
    enhanced = query.strip()
    if city and city.lower() not in enhanced.lower():
        enhanced += f" {city}"
    if level and level.lower() not in enhanced.lower():
        enhanced += f" {level}"
    return enhanced


def matches_level(record: SchoolRecord, level: str) -> bool:
    record_level = record.level.lower()
    wanted = level.lower()
    if wanted in record_level:
        return True
    return any(alias in record_level for alias in LEVEL_ALIASES.get(wanted, ()))


def sort_records(records: list[SchoolRecord], sort_by: str) -> list[SchoolRecord]:
    """Reorder by name or rating; any other value keeps the relevance order."""
    if sort_by == "name":
        return sorted(records, key=lambda record: record.name.casefold())
    if sort_by == "rating":
        return sorted(records, key=lambda record: record.rating, reverse=True)
    return list(records)


class SchoolSearchService:
    """Route-level school search on top of the engine."""

    def __init__(self, engine: SchoolSearchEngine):
        self.engine = engine

    async def search(
        self,
        query: str,
        state: str | None = None,
        city: str | None = None,
        level: str | None = None,
        limit: int = 15,
        sort_by: str = "relevance",
        enable_fuzzy_search: bool = True,
        enable_geographic_search: bool = True,
    ) -> SchoolSearchResponse:
        """Run a refined search.

        Args:
            query: User query, already checked with ``validate_query``.
            state: Two-letter state passed through to the directory.
            city: Appended to the query and used as a substring filter.
            level: Appended to the query and used as a level filter.
            limit: Number of records in the response.
            sort_by: ``relevance`` (engine order), ``name`` or ``rating``.
            enable_fuzzy_search: Forwarded to the engine.
            enable_geographic_search: Forwarded to the engine.

        Returns:
            SchoolSearchResponse with the records and ``SearchMetrics``.
        """
        enhanced_query = build_enhanced_query(query, city, level)
        options = SearchOptions(
            max_results=max(limit, 1) * OVERFETCH_FACTOR,
            enable_fuzzy_search=enable_fuzzy_search,
            enable_geographic_search=enable_geographic_search,
        )
        schools = await self.engine.search(enhanced_query, state or None, options)

        filtered = schools
        if level:
            filtered = [school for school in filtered if matches_level(school, level)]
        if city and city.lower() not in query.lower():
            filtered = [school for school in filtered if city.lower() in school.city.lower()]

        filtered = sort_records(filtered, sort_by)
        final = filtered[: max(limit, 0)]

        logger.info(
            "Search pipeline for %r: found=%d filtered=%d final=%d",
            enhanced_query,
            len(schools),
            len(filtered),
            len(final),
        )

        scores = [school.relevance_score or 0.0 for school in final]
        metrics = SearchMetrics(
            original_query=query,
            enhanced_query=enhanced_query,
            total_found=len(schools),
            after_filtering=len(filtered),
            final_results=len(final),
            strategies=[school.search_source for school in final if school.search_source],
            avg_relevance_score=sum(scores) / len(scores) if scores else 0.0,
        )
        return SchoolSearchResponse(
            school_matches=final,
            search_metrics=metrics,
            search_options={
                "enableFuzzySearch": enable_fuzzy_search,
                "enableGeographicSearch": enable_geographic_search,
                "sortBy": sort_by,
                "appliedFilters": {"state": bool(state), "city": bool(city), "level": bool(level)},
            },
        )
