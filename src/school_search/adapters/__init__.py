"""Adapters between the SchoolDigger directory and the domain model."""

from school_search.adapters.directory_client import DirectoryClient
from school_search.adapters.record_normalizer import normalize_school


__all__ = ["DirectoryClient", "normalize_school"]
