"""Domain layer - school records and per-search value objects.

No dependencies on infrastructure: no HTTP clients, no clocks, no settings.
"""

from school_search.domain.model import SchoolLevel, SchoolRecord, TestScores
from school_search.domain.presentation import (
    format_school_summary,
    format_test_score_display,
    get_school_metrics,
    to_autocomplete_match,
)
from school_search.domain.search import (
    QueryComponents,
    SearchOptions,
    SearchStrategy,
    StrategyOutcome,
    StrategyResult,
)


__all__ = [
    "QueryComponents",
    "SchoolLevel",
    "SchoolRecord",
    "SearchOptions",
    "SearchStrategy",
    "StrategyOutcome",
    "StrategyResult",
    "TestScores",
    "format_school_summary",
    "format_test_score_display",
    "get_school_metrics",
    "to_autocomplete_match",
]
