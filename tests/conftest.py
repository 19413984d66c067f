"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
import os
from typing import Any

import httpx
import pytest


# Complete test environment overriding every SCHOOLDIGGER_* setting
TEST_ENV = {
    "SCHOOLDIGGER_APP_ID": "test-app-id",
    "SCHOOLDIGGER_API_KEY": "test-app-key",
    "SCHOOLDIGGER_BASE_URL": "https://api.schooldigger.test",
    "SCHOOLDIGGER_API_VERSION": "v2.3",
    "SCHOOLDIGGER_HTTP_TIMEOUT": "5",
    "SCHOOLDIGGER_RATE_LIMIT_PER_MINUTE": "20",
    "SCHOOLDIGGER_RATE_LIMIT_WINDOW_SECONDS": "60",
    "SCHOOLDIGGER_RATE_DELAY_MS": "100",
    "SCHOOLDIGGER_CACHE_TTL_SECONDS": "900",
    "SCHOOLDIGGER_AUTOCOMPLETE_RETURN_COUNT": "20",
    "SCHOOLDIGGER_PER_PAGE": "15",
    "SCHOOLDIGGER_DEFAULT_MAX_RESULTS": "15",
    "SCHOOLDIGGER_LOG_LEVEL": "info",
    "SCHOOLDIGGER_LOG_JSON": "true",
    "SCHOOLDIGGER_HOST": "127.0.0.1",
    "SCHOOLDIGGER_PORT": "15010",
    # Proxy settings - cleared so httpx never routes test traffic
    "http_proxy": "",
    "https_proxy": "",
    "all_proxy": "",
    "no_proxy": "",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value

from school_search.config import Settings  # noqa: E402
from school_search.school_search_engine import SchoolSearchEngine  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset the SCHOOLDIGGER_* environment before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


class FakeClock:
    """Manually advanced monotonic clock; ``sleep`` advances it instead of waiting."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings()


def make_raw_school(
    name: str,
    city: str,
    state: str = "TX",
    *,
    school_id: str | None = None,
    level: str = "Elementary",
    **extra: Any,
) -> dict[str, Any]:
    """Raw directory item in the shape returned by /schools and /autocomplete/schools."""
    raw: dict[str, Any] = {
        "schoolid": school_id or f"{state}-{name}-{city}".replace(" ", "").lower(),
        "schoolName": name,
        "city": city,
        "state": state,
        "schoolLevel": level,
        "lowGrade": "K",
        "highGrade": "5",
    }
    raw.update(extra)
    return raw


class DirectoryStub:
    """``httpx.MockTransport`` handler routing by path, recording every request."""

    def __init__(
        self,
        autocomplete: Any = None,
        schools: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.autocomplete = autocomplete if autocomplete is not None else {"schoolMatches": []}
        self.schools = schools if schools is not None else {"schoolList": []}
        self.details = details or {}
        self.requests: list[httpx.Request] = []

    def _respond(self, payload: Any) -> httpx.Response:
        if isinstance(payload, httpx.Response):
            return payload
        if isinstance(payload, Exception):
            raise payload
        return httpx.Response(200, json=payload)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/autocomplete/schools"):
            return self._respond(self.autocomplete)
        if path.endswith("/schools"):
            return self._respond(self.schools)
        school_id = path.rsplit("/", 1)[-1]
        if school_id in self.details:
            return self._respond(self.details[school_id])
        return httpx.Response(404, text="School not found")

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def make_engine(settings: Settings, fake_clock: FakeClock) -> Callable[..., SchoolSearchEngine]:
    """Factory: engine wired to a ``DirectoryStub`` and the fake clock."""

    def factory(stub: DirectoryStub, **overrides: Any) -> SchoolSearchEngine:
        engine_settings = settings.model_copy(update=overrides) if overrides else settings
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        return SchoolSearchEngine(
            engine_settings,
            http_client=http_client,
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )

    return factory


@pytest.fixture
def raw_school() -> Callable[..., dict[str, Any]]:
    return make_raw_school


@pytest.fixture
def directory_stub() -> type[DirectoryStub]:
    return DirectoryStub
