"""Domain model - canonical school records.

Records are Pydantic models with snake_case attributes and camelCase wire
names, so directory-facing JSON and Python code each read naturally.
Ranking never mutates a record in place; it stamps copies.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


SchoolLevel = Literal["Elementary", "Middle", "High", "K-12"]
ScoreTrend = Literal["improving", "declining", "stable"]


class TestScores(BaseModel):
    """Value object holding the test score snapshot for one school."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    sat_reading: float | None = None
    sat_math: float | None = None
    sat_total: float | None = None
    sat_test_takers: int | None = None
    state_reading: float | None = None
    state_math: float | None = None
    state_science: float | None = None
    year: str | None = None
    trend: ScoreTrend | None = None


class SchoolRecord(BaseModel):
    """Canonical school entity produced by the record normalizer.

    ``search_source`` and ``relevance_score`` are only set on records that
    went through ranking.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = ""
    name: str
    city: str
    state: str
    address: str | None = None
    phone: str | None = None
    level: SchoolLevel = "K-12"
    grades: str | None = None
    test_scores: TestScores = Field(default_factory=TestScores)
    rating: float = Field(default=0, ge=0)
    rank: int = 0
    rank_total: int = 0
    enrollment: int | None = None
    student_teacher_ratio: float | None = None
    is_charter: bool = False
    is_private: bool = False
    is_magnet: bool = False
    search_source: str | None = None
    relevance_score: float | None = None

    def with_ranking(self, source: str, score: float) -> "SchoolRecord":
        """Return a copy stamped with the strategy that produced it and its score."""
        return self.model_copy(update={"search_source": source, "relevance_score": score})

    def to_dict(self) -> dict[str, Any]:
        """Serialize using camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)
