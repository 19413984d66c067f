"""Unit tests for merging, deduplicating and ordering strategy results."""

import pytest

from school_search.domain.model import SchoolRecord
from school_search.domain.search import StrategyResult
from school_search.search.ranking import MIN_RELEVANCE_SCORE, dedup_key, quality_tiebreak, rank_and_limit


def _school(name, city="Austin", state="TX", **fields):
    return SchoolRecord(name=name, city=city, state=state, level=fields.pop("level", "Elementary"), **fields)


@pytest.mark.unit
class TestDedupKey:
    def test_trailing_school_is_ignored(self):
        assert dedup_key(_school("Lincoln Elementary")) == dedup_key(_school("Lincoln Elementary School"))

    def test_case_and_whitespace_are_ignored(self):
        assert dedup_key(_school("  Lincoln   ELEMENTARY ", city=" austin")) == "lincoln elementary-austin-tx"

    def test_different_city_is_different_school(self):
        assert dedup_key(_school("Lincoln Elementary")) != dedup_key(_school("Lincoln Elementary", city="Dallas"))

    def test_school_inside_name_is_kept(self):
        assert dedup_key(_school("School Of The Arts")).startswith("school of the arts-")


@pytest.mark.unit
class TestQualityTiebreak:
    def test_rating_only_without_rank_total(self):
        assert quality_tiebreak(_school("A", rating=4, rank=10)) == 40

    def test_rank_adjustment(self):
        assert quality_tiebreak(_school("A", rating=4, rank=10, rank_total=100)) == pytest.approx(49.9)


@pytest.mark.unit
class TestRankAndLimit:
    """Tests for rank_and_limit."""

    def test_duplicate_keeps_highest_scoring_copy(self):
        results = [
            StrategyResult(
                results=[_school("Lincoln Elementary", rating=9)], source="smart-autocomplete", priority=30
            ),
            StrategyResult(
                results=[_school("Lincoln Elementary School", rating=5)], source="city-specific", priority=25
            ),
        ]

        ranked = rank_and_limit(results, "lincoln elementary austin tx")

        assert len(ranked) == 1
        assert ranked[0].name == "Lincoln Elementary School"
        assert ranked[0].search_source == "city-specific"
        assert ranked[0].relevance_score == pytest.approx(171.6)

    def test_tie_keeps_higher_priority_source(self):
        school = _school("Lincoln Elementary")
        results = [
            StrategyResult(results=[school], source="exact-name", priority=20),
            StrategyResult(results=[school], source="smart-autocomplete", priority=30),
        ]

        ranked = rank_and_limit(results, "lincoln")

        assert [r.search_source for r in ranked] == ["smart-autocomplete"]

    def test_drops_low_scores(self):
        results = [StrategyResult(results=[_school("Roosevelt High", level="High")], source="unknown", priority=1)]
        assert rank_and_limit(results, "zzqq") == []

    def test_source_bonus_counts_toward_threshold(self):
        results = [StrategyResult(results=[_school("Roosevelt High")], source="city-specific", priority=25)]
        ranked = rank_and_limit(results, "zzqq")
        assert len(ranked) == 1
        assert ranked[0].relevance_score >= MIN_RELEVANCE_SCORE

    def test_orders_by_score_then_quality(self):
        results = [
            StrategyResult(
                results=[
                    _school("Adams Elementary", rating=5),
                    _school("Baker Elementary", rating=7),
                    _school("Lincoln Elementary"),
                ],
                source="city-specific",
                priority=25,
            )
        ]

        ranked = rank_and_limit(results, "lincoln")

        assert [r.name for r in ranked] == ["Lincoln Elementary", "Baker Elementary", "Adams Elementary"]
        scores = [r.relevance_score for r in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_truncates_to_max_results(self):
        schools = [_school(f"School {i}", city=f"City {i}") for i in range(10)]
        results = [StrategyResult(results=schools, source="city-specific", priority=25)]

        assert len(rank_and_limit(results, "zzqq", max_results=3)) == 3

    def test_does_not_mutate_input_records(self):
        school = _school("Lincoln Elementary")
        rank_and_limit([StrategyResult(results=[school], source="city-specific", priority=25)], "lincoln")
        assert school.search_source is None
        assert school.relevance_score is None

    def test_no_results(self):
        assert rank_and_limit([], "lincoln") == []
