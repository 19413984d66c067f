"""Unit tests for relevance scoring."""

import math

import pytest

from school_search.domain.model import SchoolRecord, TestScores
from school_search.search.relevance import SOURCE_BONUSES, ScoreBreakdown, explain_score, score_candidate


def _school(name="Lincoln Elementary School", city="Austin", state="TX", level="Elementary", **fields):
    return SchoolRecord(name=name, city=city, state=state, level=level, **fields)


@pytest.mark.unit
class TestExplainScore:
    """Per-factor contributions for representative queries."""

    def test_full_local_match(self):
        breakdown = explain_score(_school(), "lincoln elementary austin", "city-specific")
        assert breakdown.name == pytest.approx(36.6)
        assert breakdown.city == pytest.approx(30.0)
        assert breakdown.state == 0.0
        assert breakdown.local_match == 25.0
        assert breakdown.city_prefix == 0.0
        assert breakdown.level == 15.0
        assert breakdown.geo == 0.0
        assert breakdown.source == 25.0
        assert breakdown.total == pytest.approx(131.6)

    def test_unlisted_source_earns_nothing(self):
        assert score_candidate(_school(), "lincoln elementary austin", "smart-autocomplete") == pytest.approx(106.6)

    def test_geo_bonus_requires_city_and_state(self):
        breakdown = explain_score(_school(), "lincoln elementary austin, tx", "smart-autocomplete")
        assert breakdown.state == pytest.approx(20.0)
        assert breakdown.geo == 20.0

    def test_inferred_city_earns_no_geo_bonus(self):
        # "austin" is a single word, so no city is parsed; it only scores as an inferred city
        breakdown = explain_score(_school(name="Lincoln Elementary"), "austin tx", "unknown")
        assert breakdown.city == pytest.approx(35.0)
        assert breakdown.state == pytest.approx(20.0)
        assert breakdown.geo == 0.0

    def test_inferred_city_and_prefix_bonus(self):
        school = _school(name="Lincoln Elementary")
        breakdown = explain_score(school, "austin elementary", "unknown")
        # "elementary" is a school term so no city is parsed; the first word is tried as a city
        assert breakdown.name == pytest.approx(20.0)
        assert breakdown.city == pytest.approx(35.0)
        assert breakdown.local_match == 0.0
        assert breakdown.city_prefix == 40.0
        assert breakdown.level == 15.0
        assert breakdown.total == pytest.approx(110.0)

    def test_level_bonus_requires_matching_level(self):
        breakdown = explain_score(_school(level="High"), "lincoln elementary austin", "unknown")
        assert breakdown.level == 0.0

    def test_quality_bonus(self):
        school = _school(rating=9, enrollment=450, test_scores=TestScores(state_reading=71.0))
        assert explain_score(school, "lincoln", "unknown").quality == 17.0

    def test_quality_thresholds_are_strict_for_enrollment(self):
        school = _school(rating=7.9, enrollment=100)
        assert explain_score(school, "lincoln", "unknown").quality == 0.0

    @pytest.mark.parametrize("source", sorted(SOURCE_BONUSES))
    def test_source_bonus_is_exact_lookup(self, source):
        assert explain_score(_school(), "zzqq", source).source == SOURCE_BONUSES[source]

    def test_source_bonus_not_substring(self):
        assert explain_score(_school(), "zzqq", "city-specific-v2").source == 0.0


@pytest.mark.unit
class TestScoreProperties:
    @pytest.mark.parametrize(
        "query",
        ["lincoln", "lincoln elementary austin tx", "the of", "zzqq qqzz", "a b c", "St. Mary's, Boston, MA"],
    )
    def test_score_is_finite_and_non_negative(self, query):
        score = score_candidate(_school(), query, "city-specific")
        assert math.isfinite(score)
        assert score >= 0

    def test_non_finite_total_collapses_to_zero(self):
        assert ScoreBreakdown(name=float("nan")).total == 0.0
        assert ScoreBreakdown(quality=float("inf")).total == 0.0

    def test_to_dict_includes_total(self):
        data = ScoreBreakdown(name=10.0, source=5.0).to_dict()
        assert data["total"] == 15.0
        assert data["name"] == 10.0
