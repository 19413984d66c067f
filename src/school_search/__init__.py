"""school-search: ranked school lookup over the SchoolDigger directory."""

from school_search.config import Settings
from school_search.domain.model import SchoolRecord, TestScores
from school_search.domain.search import QueryComponents, SearchOptions
from school_search.errors import ConfigError, DirectoryError, DirectoryHttpError, ParseError, SchoolSearchError
from school_search.school_search_engine import SchoolSearchEngine


__all__ = [
    "ConfigError",
    "DirectoryError",
    "DirectoryHttpError",
    "ParseError",
    "QueryComponents",
    "SchoolRecord",
    "SchoolSearchEngine",
    "SchoolSearchError",
    "SearchOptions",
    "Settings",
    "TestScores",
]
