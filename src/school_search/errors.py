"""Exception taxonomy for the school search engine."""

from __future__ import annotations


class SchoolSearchError(Exception):
    """Base class for all school-search errors."""


class ConfigError(SchoolSearchError):
    """Raised when required configuration (directory credentials) is missing."""


class DirectoryError(SchoolSearchError):
    """A directory call failed before a usable payload was obtained."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class DirectoryHttpError(DirectoryError):
    """The directory answered with a non-2xx status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message, status=status)


class ParseError(DirectoryError):
    """The directory payload was not JSON or had an unexpected shape."""
