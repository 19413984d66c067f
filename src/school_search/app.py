"""ASGI application entry point.

Routes:
    GET /health              engine cache and rate limiter snapshot
    GET /metrics             Prometheus exposition
    GET /schools/search      refined, ranked school search
    GET /schools/{id}        one school record with display projections;
                             optimized=false gives the legacy match shape

Usage:
    school-search                      # console script
    python -m school_search.app        # same, via the module
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from school_search.config import Settings
from school_search.domain import (
    format_school_summary,
    format_test_score_display,
    get_school_metrics,
    to_autocomplete_match,
)
from school_search.errors import DirectoryError
from school_search.observability.logging import configure_logging
from school_search.observability.metrics import get_metrics, get_metrics_content_type
from school_search.observability.tracing import TraceContextMiddleware, init_tracing
from school_search.school_search_engine import SchoolSearchEngine
from school_search.service_layer.search_service import InvalidQueryError, SchoolSearchService, validate_query


logger = logging.getLogger(__name__)


def _flag(request: Request, name: str) -> bool:
    """Query flags default to on; only the literal ``false`` disables them."""
    return request.query_params.get(name) != "false"


def create_app(settings: Settings | None = None, engine: SchoolSearchEngine | None = None) -> Starlette:
    """Build the Starlette app around one engine instance.

    Args:
        settings: Used to build the engine when ``engine`` is not given.
        engine: Pre-built engine (tests inject one with a mocked transport).

    Raises:
        ConfigError: No engine was given and the settings lack credentials.
    """
    settings = settings or (engine.settings if engine else Settings())
    engine = engine or SchoolSearchEngine.from_settings(settings)
    service = SchoolSearchService(engine)

    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "healthy", **engine.health()})

    async def metrics_endpoint(request: Request) -> Response:
        return Response(get_metrics(), media_type=get_metrics_content_type())

    async def search_schools(request: Request) -> JSONResponse:
        params = request.query_params
        try:
            query = validate_query(params.get("q"))
            limit = int(params.get("limit") or settings.default_max_results)
        except InvalidQueryError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        except ValueError:
            return JSONResponse({"error": 'Query parameter "limit" must be an integer'}, status_code=400)

        response = await service.search(
            query,
            state=params.get("st") or params.get("state"),
            city=params.get("city"),
            level=params.get("level"),
            limit=limit,
            sort_by=params.get("sortBy") or "relevance",
            enable_fuzzy_search=_flag(request, "fuzzy"),
            enable_geographic_search=_flag(request, "geographic"),
        )
        return JSONResponse(response.to_dict())

    async def get_school(request: Request) -> JSONResponse:
        school_id = request.path_params["school_id"]
        try:
            school = await engine.get_by_id(school_id)
        except DirectoryError as exc:
            logger.error("Failed to fetch school %s: %s", school_id, exc.message)
            return JSONResponse({"error": "Failed to fetch school details", "message": exc.message}, status_code=502)
        if not _flag(request, "optimized"):
            return JSONResponse({**to_autocomplete_match(school), "detailsType": "legacy"})
        return JSONResponse(
            {
                **school.to_dict(),
                "summary": format_school_summary(school),
                "testScoreDisplay": format_test_score_display(school),
                "metrics": get_school_metrics(school),
                "detailsType": "optimized",
            }
        )

    @asynccontextmanager
    async def lifespan(app: Starlette):
        try:
            yield
        finally:
            await engine.aclose()

    routes = [
        Route("/health", endpoint=health_check, methods=["GET"]),
        Route("/metrics", endpoint=metrics_endpoint, methods=["GET"]),
        Route("/schools/search", endpoint=search_schools, methods=["GET"]),
        Route("/schools/{school_id}", endpoint=get_school, methods=["GET"]),
    ]
    app = Starlette(routes=routes, middleware=[Middleware(TraceContextMiddleware)], lifespan=lifespan)
    app.state.engine = engine
    return app


def main() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    init_tracing()

    app = create_app(settings)

    logger.info("Starting school-search on %s:%d", settings.host, settings.port)
    logger.info("Health check: http://%s:%d/health", settings.host, settings.port)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,  # keep the handlers installed by configure_logging
    )


if __name__ == "__main__":
    main()
