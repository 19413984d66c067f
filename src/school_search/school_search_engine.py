"""School Search Engine - deep module over the SchoolDigger directory.

Callers see two operations:

- ``search(query, state, options)``: ranked, deduplicated school records
- ``get_by_id(school_id)``: one canonical record

Everything else is internal: query decomposition, strategy planning, the
rate-limited and cached HTTP pipeline, normalization and relevance ranking.
The engine owns its cache and rate limiter; two engines share nothing.

``search`` never raises. Directory failures degrade to an empty list, but
they are logged and counted separately from genuine "no match" results.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
import time

import httpx

from school_search.adapters.directory_client import DirectoryClient
from school_search.adapters.record_normalizer import normalize_school
from school_search.config import Settings
from school_search.domain.model import SchoolRecord
from school_search.domain.search import SearchOptions
from school_search.errors import ConfigError
from school_search.observability.metrics import (
    DIRECTORY_UNAVAILABLE,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    track_latency,
)
from school_search.observability.tracing import create_span
from school_search.search.ranking import rank_and_limit
from school_search.search.strategies import StrategyPlanner, execute_strategies
from school_search.utils.rate_limiter import RateLimiter
from school_search.utils.response_cache import ResponseCache


logger = logging.getLogger(__name__)


MIN_QUERY_LENGTH = 2


class SchoolSearchEngine:
    """Search and lookup of schools in the SchoolDigger directory.

    Interface Methods:
    - search(query, state, options) -> list[SchoolRecord]
    - get_by_id(school_id) -> SchoolRecord
    - health() -> dict
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the engine.

        Args:
            settings: Directory credentials, limits and TTLs.
            http_client: Pre-built client, e.g. one using ``httpx.MockTransport``.
                The engine only closes clients it created itself.
            clock: Monotonic clock shared by the cache and the rate limiter.
            sleep: Coroutine used by the rate limiter to wait.

        Raises:
            ConfigError: The app id or key is empty.
        """
        if not settings.has_credentials():
            raise ConfigError(
                "SchoolDigger credentials not configured. "
                "Set SCHOOLDIGGER_APP_ID and SCHOOLDIGGER_API_KEY in the environment or .env"
            )
        self.settings = settings

        self.rate_limiter = RateLimiter(
            max_calls=settings.rate_limit_per_minute,
            window=settings.rate_limit_window_seconds,
            min_delay=settings.rate_delay_ms / 1000.0,
            clock=clock,
            sleep=sleep,
        )
        self.cache = ResponseCache(ttl=settings.cache_ttl_seconds, clock=clock)
        self.client = DirectoryClient(settings, self.rate_limiter, self.cache, http_client=http_client)
        self._planner = StrategyPlanner(self.client)

        logger.info(
            "Initialized SchoolSearchEngine (app id %s, %d calls/%.0fs, cache ttl %.0fs)",
            settings.masked_app_id(),
            settings.rate_limit_per_minute,
            settings.rate_limit_window_seconds,
            settings.cache_ttl_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs) -> SchoolSearchEngine:
        """Build an engine from explicit settings or the ``SCHOOLDIGGER_*`` environment."""
        return cls(settings or Settings(), **kwargs)

    async def __aenter__(self) -> SchoolSearchEngine:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def search(
        self,
        query: str,
        state: str | None = None,
        options: SearchOptions | None = None,
    ) -> list[SchoolRecord]:
        """Find schools matching ``query``, best match first.

        Args:
            query: Free text, e.g. "lincoln elementary austin".
            state: Optional two-letter state filter passed to the directory.
            options: Result limit and search flags.

        Returns:
            At most ``options.max_results`` records; ``[]`` for queries shorter
            than two characters, for no matches, and when the directory is
            unavailable.
        """
        options = options or SearchOptions(max_results=self.settings.default_max_results)
        trimmed = query.strip()
        if len(trimmed) < MIN_QUERY_LENGTH:
            logger.info("Query too short, returning empty results")
            SEARCH_REQUESTS.labels(outcome="rejected").inc()
            return []

        logger.info(
            "Searching for %r (state=%s, max_results=%d, fuzzy=%s, geographic=%s)",
            trimmed,
            state,
            options.max_results,
            options.enable_fuzzy_search,
            options.enable_geographic_search,
        )

        with (
            create_span("school_search.search", attributes={"search.query": trimmed, "search.state": state}) as span,
            track_latency(SEARCH_LATENCY, operation="search"),
        ):
            start = time.perf_counter()
            try:
                outcomes = await execute_strategies(self._planner.plan(trimmed, state))
                if outcomes and not any(outcome.ok for outcome in outcomes):
                    self._record_unavailable("all_strategies_failed", outcomes[0].error)
                    return []
                results = rank_and_limit([outcome.result for outcome in outcomes], trimmed, options.max_results)
            except Exception as exc:
                self._record_unavailable("unexpected_error", exc)
                return []

            span.set_attribute("search.result_count", len(results))
            SEARCH_REQUESTS.labels(outcome="ok" if results else "empty").inc()
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info("Search for %r returned %d results in %.1fms", trimmed, len(results), elapsed_ms)
            return results

    def _record_unavailable(self, reason: str, error: BaseException | None) -> None:
        logger.warning("Directory unavailable (%s): %s", reason, error, exc_info=reason == "unexpected_error")
        DIRECTORY_UNAVAILABLE.labels(reason=reason).inc()
        SEARCH_REQUESTS.labels(outcome="unavailable").inc()

    async def get_by_id(self, school_id: str) -> SchoolRecord:
        """Fetch one school by directory id.

        Raises:
            DirectoryError: The directory call failed (``DirectoryHttpError`` for non-2xx).
            ParseError: The payload was not a school object.
        """
        with (
            create_span("school_search.get_by_id", attributes={"school.id": school_id}),
            track_latency(SEARCH_LATENCY, operation="get_by_id"),
        ):
            payload = await self.client.get_school(school_id)
            return normalize_school(payload)

    def health(self) -> dict:
        """Cache and rate limiter snapshot for the health endpoint."""
        return {
            "cache": self.cache.stats(),
            "rate_limiter": self.rate_limiter.snapshot(),
        }
