"""Service layer - route-level orchestration over the search engine."""

from .search_service import (
    InvalidQueryError,
    SchoolSearchResponse,
    SchoolSearchService,
    SearchMetrics,
    validate_query,
)


__all__ = [
    "InvalidQueryError",
    "SchoolSearchResponse",
    "SchoolSearchService",
    "SearchMetrics",
    "validate_query",
]
