"""Decompose a free-text school query into name, city and state parts.

The parser is heuristic and case-preserving:

1. A trailing US state (full name or two-letter code) is stripped and
   recorded as its lowercase code.
2. ``"<name>, <city>"`` splits at the first comma unless the tail looks like
   part of a school name.
3. Otherwise a trailing word that does not look like a school term or a
   direction word is taken as the city.
"""

from __future__ import annotations

import logging
import re

from school_search.domain.search import QueryComponents


logger = logging.getLogger(__name__)


# Full name -> code, in match order. Order matters: the first hit wins.
US_STATES: tuple[tuple[str, str], ...] = (
    ("wisconsin", "wi"),
    ("california", "ca"),
    ("texas", "tx"),
    ("florida", "fl"),
    ("new york", "ny"),
    ("pennsylvania", "pa"),
    ("illinois", "il"),
    ("ohio", "oh"),
    ("georgia", "ga"),
    ("north carolina", "nc"),
    ("michigan", "mi"),
    ("new jersey", "nj"),
    ("virginia", "va"),
    ("washington", "wa"),
    ("arizona", "az"),
    ("massachusetts", "ma"),
    ("tennessee", "tn"),
    ("indiana", "in"),
    ("missouri", "mo"),
    ("maryland", "md"),
    ("minnesota", "mn"),
    ("colorado", "co"),
    ("alabama", "al"),
    ("louisiana", "la"),
    ("kentucky", "ky"),
    ("oregon", "or"),
    ("oklahoma", "ok"),
    ("connecticut", "ct"),
    ("iowa", "ia"),
    ("mississippi", "ms"),
    ("arkansas", "ar"),
    ("kansas", "ks"),
    ("utah", "ut"),
    ("nevada", "nv"),
    ("new mexico", "nm"),
    ("west virginia", "wv"),
    ("nebraska", "ne"),
    ("idaho", "id"),
    ("hawaii", "hi"),
    ("new hampshire", "nh"),
    ("maine", "me"),
    ("montana", "mt"),
    ("rhode island", "ri"),
    ("delaware", "de"),
    ("south dakota", "sd"),
    ("north dakota", "nd"),
    ("alaska", "ak"),
    ("vermont", "vt"),
    ("wyoming", "wy"),
)

# A comma tail containing any of these stays part of the school name.
SCHOOL_KEYWORDS = ("elementary", "middle", "high", "school", "academy", "institute")

# A trailing word containing any of these is not treated as a city.
SCHOOL_TERM_INDICATORS = (
    "school",
    "elementary",
    "middle",
    "high",
    "academy",
    "institute",
    "center",
    "campus",
    "prep",
    "charter",
)

DIRECTION_WORDS = frozenset(
    {"north", "south", "east", "west", "central", "upper", "lower", "new", "old", "greater", "metro", "downtown"}
)

MIN_TRAILING_CITY_LENGTH = 3

_STATE_SUFFIX_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(rf"[,\s]+{re.escape(name)}$|[,\s]+{code}$", re.IGNORECASE), code) for name, code in US_STATES
)


def _strip_state(query: str) -> tuple[str, str | None]:
    for pattern, code in _STATE_SUFFIX_PATTERNS:
        if pattern.search(query):
            return pattern.sub("", query, count=1).strip(), code
    return query, None


def _split_comma_city(query: str) -> tuple[str, str | None]:
    before, sep, after = query.partition(",")
    if not sep:
        return query, None
    before = before.strip()
    after = after.strip()
    after_lower = after.lower()
    if after and not any(keyword in after_lower for keyword in SCHOOL_KEYWORDS):
        return before, after
    return query, None


def _split_trailing_city(query: str) -> tuple[str, str | None]:
    words = query.split()
    if len(words) < 2:
        return query, None
    last = words[-1]
    last_lower = last.lower()
    if len(last) < MIN_TRAILING_CITY_LENGTH:
        return query, None
    if any(term in last_lower for term in SCHOOL_TERM_INDICATORS) or last_lower in DIRECTION_WORDS:
        return query, None
    return " ".join(words[:-1]), last


def parse_query(query: str) -> QueryComponents:
    """Split ``query`` into ``QueryComponents``.

    Examples:
        >>> parse_query("lincoln elementary austin")
        QueryComponents(school_terms='lincoln elementary', city='austin', state=None)
    """
    remaining, state = _strip_state(query)
    remaining, city = _split_comma_city(remaining)
    if city is None:
        remaining, city = _split_trailing_city(remaining)

    components = QueryComponents(school_terms=" ".join(remaining.split()), city=city, state=state)
    logger.debug(
        "Parsed query %r -> terms=%r city=%r state=%r", query, components.school_terms, components.city, state
    )
    return components
