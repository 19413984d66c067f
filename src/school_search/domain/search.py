"""Domain models for search functionality.

Value objects describing one search call: the decomposed query, the caller's
options, the strategies planned for it and what each strategy produced.
None of these are persisted; they live for the duration of a single search.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from school_search.domain.model import SchoolRecord


class QueryComponents(BaseModel):
    """Value object holding a free-text query split into name, city and state parts."""

    model_config = ConfigDict(frozen=True)

    school_terms: str
    city: str | None = None
    state: str | None = None


class SearchOptions(BaseModel):
    """Caller-supplied knobs for ``SchoolSearchEngine.search``.

    The fuzzy/geographic flags are accepted for API compatibility and are
    reported in logs; the ranking algorithm does not branch on them.
    """

    model_config = ConfigDict(frozen=True)

    max_results: int = Field(default=15, ge=1)
    enable_fuzzy_search: bool = True
    enable_geographic_search: bool = True


@dataclass(frozen=True)
class StrategyResult:
    """Records returned by one strategy, tagged with its source name and priority."""

    results: list[SchoolRecord]
    source: str
    priority: int


@dataclass(frozen=True)
class StrategyOutcome:
    """Result value for a strategy run: its records, or the error that emptied them."""

    result: StrategyResult
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, source: str, priority: int, error: Exception) -> "StrategyOutcome":
        return cls(result=StrategyResult(results=[], source=source, priority=priority), error=error)


@dataclass(frozen=True)
class SearchStrategy:
    """One concrete query shape dispatched to the directory."""

    name: str
    priority: int
    execute: Callable[[], Awaitable[StrategyOutcome]] = field(repr=False)
