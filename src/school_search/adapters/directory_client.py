"""HTTP adapter for the SchoolDigger directory API.

Every call goes through the same pipeline:

1. Look up ``(endpoint, params)`` in the response cache.
2. On a miss, wait for the shared rate limiter.
3. ``GET {base_url}/{api_version}{endpoint}`` with credentials appended to the
   query string. Credentials never reach the cache key or the logs.
4. Map non-2xx statuses, transport failures and non-JSON bodies onto the
   ``DirectoryError`` family; cache and return successful payloads.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any
from urllib.parse import quote

import httpx
import orjson

from school_search.config import Settings
from school_search.errors import DirectoryError, DirectoryHttpError, ParseError
from school_search.observability.metrics import CACHE_EVENTS, DIRECTORY_REQUESTS
from school_search.utils.rate_limiter import RateLimiter
from school_search.utils.response_cache import ResponseCache


logger = logging.getLogger(__name__)


AUTOCOMPLETE_ENDPOINT = "/autocomplete/schools"
SCHOOLS_ENDPOINT = "/schools"

STATUS_HINTS: dict[int, str] = {
    400: "Bad Request: Check API parameters and query format",
    401: "Unauthorized: Check API credentials (SCHOOLDIGGER_APP_ID and SCHOOLDIGGER_API_KEY)",
    403: "Forbidden: API key may not have access to this endpoint or region",
    429: "Rate limit exceeded: Too many requests",
}


def build_error_message(status: int, body: str | None) -> str:
    """``SchoolDigger API error: <status>[ - Details: <body>][ - <hint>]``."""
    message = f"SchoolDigger API error: {status}"
    if body:
        message += f" - Details: {body}"
    if hint := STATUS_HINTS.get(status):
        message += f" - {hint}"
    return message


class DirectoryClient:
    """Cached, rate-limited access to the directory endpoints."""

    def __init__(
        self,
        settings: Settings,
        rate_limiter: RateLimiter,
        cache: ResponseCache,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self.rate_limiter = rate_limiter
        self.cache = cache
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> DirectoryClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.http_timeout, connect=10.0),
            headers={"Accept": "application/json", "User-Agent": "school-search"},
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _url(self, endpoint: str) -> str:
        return f"{self.settings.api_root}{endpoint}"

    async def call(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        """Fetch ``endpoint`` with ``params``, serving from cache within the TTL.

        Raises:
            DirectoryHttpError: The directory answered with a non-2xx status.
            DirectoryError: The request could not be completed.
            ParseError: A 2xx body was not valid JSON.
        """
        params = dict(params or {})
        cache_key = self.cache.make_key(endpoint, params)

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s", cache_key)
            CACHE_EVENTS.labels(event="hit").inc()
            DIRECTORY_REQUESTS.labels(endpoint=endpoint, outcome="hit").inc()
            return cached
        CACHE_EVENTS.labels(event="miss").inc()

        await self.rate_limiter.acquire()

        query = {**params, "appID": self.settings.app_id, "appKey": self.settings.api_key}
        logger.info("Directory call %s params=%s", endpoint, params)

        try:
            response = await self.client.get(self._url(endpoint), params=query)
        except httpx.HTTPError as exc:
            DIRECTORY_REQUESTS.labels(endpoint=endpoint, outcome="transport_error").inc()
            logger.error("Directory request to %s failed: %s", endpoint, type(exc).__name__)
            raise DirectoryError(f"SchoolDigger request failed: {type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            body = self._read_body(response)
            DIRECTORY_REQUESTS.labels(endpoint=endpoint, outcome="http_error").inc()
            logger.error(
                "Directory error %s from %s", response.status_code, endpoint, extra={"status": response.status_code}
            )
            raise DirectoryHttpError(response.status_code, build_error_message(response.status_code, body))

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as exc:
            DIRECTORY_REQUESTS.labels(endpoint=endpoint, outcome="parse_error").inc()
            raise ParseError(f"SchoolDigger returned a non-JSON body for {endpoint}", status=response.status_code) from exc

        DIRECTORY_REQUESTS.labels(endpoint=endpoint, outcome="ok").inc()
        self.cache.put(cache_key, data)
        return data

    @staticmethod
    def _read_body(response: httpx.Response) -> str | None:
        try:
            return response.text.strip() or None
        except (UnicodeDecodeError, LookupError):
            logger.debug("Could not decode error response body")
            return None

    async def autocomplete(self, q: str, state: str | None = None, return_count: int | None = None) -> Any:
        params = {"q": q, "qSearchCityStateName": "true"}
        if state:
            params["st"] = state
        params["returnCount"] = str(return_count or self.settings.autocomplete_return_count)
        return await self.call(AUTOCOMPLETE_ENDPOINT, params)

    async def search_schools(self, **params: str) -> Any:
        """``GET /schools``; falsy parameters are left out of the query."""
        return await self.call(SCHOOLS_ENDPOINT, {key: value for key, value in params.items() if value})

    async def get_school(self, school_id: str) -> Any:
        return await self.call(f"{SCHOOLS_ENDPOINT}/{quote(str(school_id), safe='')}")
