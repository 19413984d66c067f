"""Fuzzy text similarity for typo-tolerant school name matching.

This module provides edit distance calculation and a 0-100 similarity score
between a query fragment and a directory field (school name, city, state).

Scoring rules, first match wins:
- Exact match (case-insensitive, trimmed): 100
- Candidate starts with the query: 85-95, shorter tails score higher
- Any word of the candidate starts with the query: 70-80
- Otherwise token scoring: exact tokens weigh 100, partial/typo tokens 60
"""

from __future__ import annotations

import re


EXACT_MATCH_SCORE = 100.0
PREFIX_BASE_SCORE = 95.0
PREFIX_FLOOR_SCORE = 85.0
WORD_PREFIX_BASE_SCORE = 80.0
WORD_PREFIX_FLOOR_SCORE = 70.0
LENGTH_PENALTY_PER_CHAR = 0.5

CONTAINMENT_WEIGHT = 0.7
TYPO_WEIGHT = 0.5
TYPO_SIMILARITY_THRESHOLD = 0.7
EXACT_TOKEN_POINTS = 100.0
PARTIAL_TOKEN_POINTS = 60.0

STOPWORDS = frozenset({"the", "of", "for", "at", "in", "on", "and", "or"})

# Ordered: abbreviation expansion runs before "school" removal.
_TOKEN_NORMALIZATIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\belem\b|\belementary\b"), "elementary"),
    (re.compile(r"\bmiddle\b|\bjr\b|\bjunior\b"), "middle"),
    (re.compile(r"\bhigh\b|\bsr\b|\bsenior\b"), "high"),
    (re.compile(r"\bst\b"), "saint"),
    (re.compile(r"\bmt\b"), "mount"),
    (re.compile(r"\bsch\b|\bschool\b"), ""),
)
_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s+")


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the Levenshtein (edit) distance between two strings.

    Uses dynamic programming for O(m*n) time complexity, keeping only two
    rows, with optional early termination when the distance exceeds
    ``max_distance``.

    Args:
        s1: First string.
        s2: Second string.
        max_distance: If provided, return max_distance+1 as soon as the
            distance is guaranteed to exceed this threshold.

    Returns:
        The minimum number of single-character insertions, deletions or
        substitutions needed to change s1 into s2.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)

    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)

    for j in range(1, n + 1):
        curr_row[0] = j
        row_min = j
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(
                prev_row[i] + 1,
                curr_row[i - 1] + 1,
                prev_row[i - 1] + cost,
            )
            row_min = min(row_min, curr_row[i])

        if max_distance is not None and row_min > max_distance:
            return max_distance + 1

        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def normalized_similarity(s1: str, s2: str) -> float:
    """Edit-distance similarity in [0, 1]: ``(max_len - distance) / max_len``."""
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein_distance(s1, s2)) / max_len


def tokenize_search_text(text: str) -> list[str]:
    """Split text into normalized search tokens.

    Expands common abbreviations (elem, jr, sr, st, mt), removes "school",
    strips punctuation and drops one-character tokens and stopwords.
    """
    normalized = text.lower()
    for pattern, replacement in _TOKEN_NORMALIZATIONS:
        normalized = pattern.sub(replacement, normalized)
    normalized = _PUNCTUATION_RE.sub(" ", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()
    return [token for token in normalized.split(" ") if len(token) > 1 and token not in STOPWORDS]


def _best_token_match(query_token: str, candidate_tokens: list[str]) -> tuple[float, bool]:
    """Return (best score, exact) for one query token against the candidate tokens."""
    best = 0.0
    for candidate_token in candidate_tokens:
        if candidate_token == query_token:
            return 1.0, True
        if candidate_token in query_token or query_token in candidate_token:
            ratio = max(len(query_token), len(candidate_token)) / min(len(query_token), len(candidate_token))
            best = max(best, CONTAINMENT_WEIGHT * ratio)
            continue
        similarity = normalized_similarity(query_token, candidate_token)
        if similarity > TYPO_SIMILARITY_THRESHOLD:
            best = max(best, TYPO_WEIGHT * similarity)
    return best, False


def text_similarity(query: str, candidate: str) -> float:
    """Score how well ``candidate`` matches ``query`` on a 0-100 scale.

    An empty query is a prefix of every candidate and therefore scores by the
    prefix rule; callers that care guard against empty input.
    """
    query_lower = query.lower().strip()
    candidate_lower = candidate.lower().strip()

    if candidate_lower == query_lower:
        return EXACT_MATCH_SCORE

    if candidate_lower.startswith(query_lower):
        tail = len(candidate_lower) - len(query_lower)
        return max(PREFIX_BASE_SCORE - tail * LENGTH_PENALTY_PER_CHAR, PREFIX_FLOOR_SCORE)

    for word in candidate_lower.split():
        if word.startswith(query_lower):
            tail = len(word) - len(query_lower)
            return max(WORD_PREFIX_BASE_SCORE - tail * LENGTH_PENALTY_PER_CHAR, WORD_PREFIX_FLOOR_SCORE)

    query_tokens = tokenize_search_text(query_lower)
    if not query_tokens:
        return 0.0
    candidate_tokens = tokenize_search_text(candidate_lower)

    exact = 0
    partial = 0
    for query_token in query_tokens:
        best, is_exact = _best_token_match(query_token, candidate_tokens)
        if is_exact:
            exact += 1
        elif 0 < best < 1:
            partial += 1

    total = len(query_tokens)
    score = exact / total * EXACT_TOKEN_POINTS + partial / total * PARTIAL_TOKEN_POINTS
    return min(score, EXACT_MATCH_SCORE)
