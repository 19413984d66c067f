"""Query planning and concurrent strategy execution.

A search always runs two strategies against the directory:

- ``smart-autocomplete``: the autocomplete endpoint, matching on name, city
  and state
- one targeted ``/schools`` query chosen from the query's shape:
  ``city-specific`` when a city was parsed, ``last-word-city`` for any other
  multi-word query, ``exact-name`` for a single word

Strategies never raise. A failure becomes a ``StrategyOutcome`` with empty
results and the error attached.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import logging
from typing import Any

from school_search.adapters.directory_client import DirectoryClient
from school_search.adapters.record_normalizer import normalize_school
from school_search.domain.model import SchoolRecord
from school_search.domain.search import SearchStrategy, StrategyOutcome, StrategyResult
from school_search.errors import ParseError
from school_search.observability.metrics import STRATEGY_FAILURES
from school_search.observability.tracing import create_span
from school_search.search.query_parser import parse_query


logger = logging.getLogger(__name__)


SMART_AUTOCOMPLETE = ("smart-autocomplete", 30)
CITY_SPECIFIC = ("city-specific", 25)
LAST_WORD_CITY = ("last-word-city", 22)
EXACT_NAME = ("exact-name", 20)


def extract_records(payload: Any, list_key: str) -> list[SchoolRecord]:
    """Normalize ``payload[list_key]``; a missing or null list means no matches."""
    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object with '{list_key}', got {type(payload).__name__}")
    items = payload.get(list_key) or []
    if not isinstance(items, list):
        raise ParseError(f"Expected '{list_key}' to be a list, got {type(items).__name__}")
    return [normalize_school(item) for item in items]


class StrategyPlanner:
    """Build the strategies for one search call."""

    def __init__(self, client: DirectoryClient):
        self.client = client

    @property
    def per_page(self) -> str:
        return str(self.client.settings.per_page)

    def plan(self, query: str, state: str | None = None) -> list[SearchStrategy]:
        components = parse_query(query)
        words = query.lower().strip().split()

        strategies = [
            self._strategy(
                SMART_AUTOCOMPLETE,
                lambda: self.client.autocomplete(query, state),
                "schoolMatches",
            )
        ]

        if components.city:
            city = components.city
            strategies.append(
                self._strategy(
                    CITY_SPECIFIC,
                    lambda: self.client.search_schools(
                        q=components.school_terms, city=city, st=state, perPage=self.per_page, sortBy="rank"
                    ),
                    "schoolList",
                )
            )
        elif len(words) >= 2:
            school_terms = " ".join(words[:-1])
            last_word = words[-1]
            strategies.append(
                self._strategy(
                    LAST_WORD_CITY,
                    lambda: self.client.search_schools(q=school_terms, city=last_word, st=state, perPage=self.per_page),
                    "schoolList",
                )
            )
        else:
            strategies.append(
                self._strategy(
                    EXACT_NAME,
                    lambda: self.client.search_schools(
                        q=query, qSearchSchoolNameOnly="true", st=state, perPage=self.per_page, sortBy="schoolname"
                    ),
                    "schoolList",
                )
            )

        logger.debug("Planned strategies for %r: %s", query, [s.name for s in strategies])
        return strategies

    @staticmethod
    def _strategy(
        identity: tuple[str, int],
        fetch: Callable[[], Awaitable[Any]],
        list_key: str,
    ) -> SearchStrategy:
        name, priority = identity

        async def execute() -> StrategyOutcome:
            with create_span("search.strategy", attributes={"strategy.name": name}) as span:
                try:
                    records = extract_records(await fetch(), list_key)
                except Exception as exc:
                    span.set_attribute("strategy.failed", True)
                    return StrategyOutcome.failure(name, priority, exc)
                span.set_attribute("strategy.result_count", len(records))
                logger.info("Strategy %s found %d results", name, len(records))
                return StrategyOutcome(StrategyResult(results=records, source=name, priority=priority))

        return SearchStrategy(name=name, priority=priority, execute=execute)


async def execute_strategies(strategies: Sequence[SearchStrategy]) -> list[StrategyOutcome]:
    """Run every strategy concurrently; outcomes come back in plan order."""
    outcomes = await asyncio.gather(*(strategy.execute() for strategy in strategies))
    for outcome in outcomes:
        if not outcome.ok:
            logger.warning("Strategy %s failed: %s", outcome.result.source, outcome.error)
            STRATEGY_FAILURES.labels(strategy=outcome.result.source).inc()
    return list(outcomes)
