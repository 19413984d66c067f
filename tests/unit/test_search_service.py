"""Unit tests for the route-level search service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from school_search.domain.model import SchoolRecord
from school_search.service_layer.search_service import (
    InvalidQueryError,
    SchoolSearchService,
    build_enhanced_query,
    matches_level,
    sort_records,
    validate_query,
)


def _school(name, city="Austin", level="Elementary", rating=0.0, score=50.0, source="city-specific"):
    return SchoolRecord(
        name=name,
        city=city,
        state="TX",
        level=level,
        rating=rating,
        relevance_score=score,
        search_source=source,
    )


def _engine(results):
    engine = MagicMock()
    engine.search = AsyncMock(return_value=list(results))
    return engine


@pytest.mark.unit
class TestValidateQuery:
    @pytest.mark.parametrize("query", [None, ""])
    def test_missing(self, query):
        with pytest.raises(InvalidQueryError, match='Query parameter "q" is required'):
            validate_query(query)

    def test_blank(self):
        with pytest.raises(InvalidQueryError, match="Query cannot be empty"):
            validate_query("   ")

    @pytest.mark.parametrize("query", ["x", "i", "Z"])
    def test_disallowed_single_character(self, query):
        with pytest.raises(InvalidQueryError, match="Single character searches"):
            validate_query(query)

    @pytest.mark.parametrize("query", ["w", "M", " a "])
    def test_allowed_single_character(self, query):
        assert validate_query(query) == query

    def test_normal_query_unchanged(self):
        assert validate_query("Lincoln Elementary") == "Lincoln Elementary"


@pytest.mark.unit
class TestHelpers:
    def test_enhanced_query_appends_city_and_level(self):
        assert build_enhanced_query("lincoln", "Austin", "elementary") == "lincoln Austin elementary"

    def test_enhanced_query_skips_terms_already_present(self):
        assert build_enhanced_query("Lincoln Elementary austin", "Austin", "Elementary") == "Lincoln Elementary austin"

    @pytest.mark.parametrize(
        ("level", "wanted", "expected"),
        [
            ("Elementary", "elementary", True),
            ("Elementary", "Elementary", True),
            ("Middle", "middle", True),
            ("High", "high", True),
            ("High", "middle", False),
            ("K-12", "high", False),
        ],
    )
    def test_matches_level(self, level, wanted, expected):
        assert matches_level(_school("A", level=level), wanted) is expected

    def test_sort_by_name(self):
        records = [_school("beta"), _school("Alpha"), _school("charlie")]
        assert [r.name for r in sort_records(records, "name")] == ["Alpha", "beta", "charlie"]

    def test_sort_by_rating(self):
        records = [_school("A", rating=2), _school("B", rating=5), _school("C", rating=3)]
        assert [r.name for r in sort_records(records, "rating")] == ["B", "C", "A"]

    def test_relevance_keeps_order(self):
        records = [_school("B"), _school("A")]
        assert [r.name for r in sort_records(records, "relevance")] == ["B", "A"]


@pytest.mark.unit
class TestSchoolSearchService:
    """Tests for SchoolSearchService.search."""

    @pytest.mark.asyncio
    async def test_passes_enhanced_query_and_overfetches(self):
        engine = _engine([])
        service = SchoolSearchService(engine)

        await service.search("lincoln", state="TX", city="Austin", limit=5, enable_fuzzy_search=False)

        query, state, options = engine.search.call_args.args
        assert query == "lincoln Austin"
        assert state == "TX"
        assert options.max_results == 10
        assert options.enable_fuzzy_search is False
        assert options.enable_geographic_search is True

    @pytest.mark.asyncio
    async def test_filters_by_level_and_city(self):
        engine = _engine(
            [
                _school("Lincoln Elementary", score=90),
                _school("Lincoln High", level="High", score=80),
                _school("Lincoln Elementary", city="Round Rock", score=70),
            ]
        )
        service = SchoolSearchService(engine)

        response = await service.search("lincoln", city="Austin", level="elementary")

        assert [s.name for s in response.school_matches] == ["Lincoln Elementary"]
        metrics = response.search_metrics
        assert metrics.total_found == 3
        assert metrics.after_filtering == 1
        assert metrics.final_results == 1
        assert metrics.enhanced_query == "lincoln Austin elementary"

    @pytest.mark.asyncio
    async def test_city_in_query_skips_city_filter(self):
        engine = _engine([_school("Lincoln Elementary", city="Round Rock")])
        service = SchoolSearchService(engine)

        response = await service.search("lincoln austin", city="Austin")

        assert len(response.school_matches) == 1

    @pytest.mark.asyncio
    async def test_limit_and_sort(self):
        engine = _engine([_school("C", rating=1), _school("A", rating=9), _school("B", rating=5)])
        service = SchoolSearchService(engine)

        response = await service.search("school", limit=2, sort_by="rating")

        assert [s.name for s in response.school_matches] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_response_shape(self):
        engine = _engine([_school("Lincoln Elementary", score=60.0), _school("Adams Elementary", score=40.0)])
        service = SchoolSearchService(engine)

        data = (await service.search("elementary", state="TX")).to_dict()

        assert data["searchType"] == "advanced-optimized"
        assert data["schoolMatches"][0]["relevanceScore"] == 60.0
        assert data["schoolMatches"][0]["searchSource"] == "city-specific"
        metrics = data["searchMetrics"]
        assert metrics["originalQuery"] == "elementary"
        assert metrics["avgRelevanceScore"] == 50.0
        assert metrics["strategies"] == ["city-specific", "city-specific"]
        assert data["searchOptions"]["appliedFilters"] == {"state": True, "city": False, "level": False}
        assert data["searchOptions"]["sortBy"] == "relevance"

    @pytest.mark.asyncio
    async def test_empty_results(self):
        response = await SchoolSearchService(_engine([])).search("nothing here")

        assert response.school_matches == []
        assert response.search_metrics.avg_relevance_score == 0.0
