"""Utility helpers for the logbook service."""

from __future__ import annotations

import re


INTEGER_RE = re.compile(r"\d+")
YEAR_RE = re.compile(r"\d{4}")
QUERY_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")


def split_words(value: str) -> list[str]:
    """Return the non-empty whitespace-delimited words of ``value``."""

    return [word for word in value.split() if word]


def first_integer(value: str | None) -> str | None:
    """Return the first run of digits in ``value`` or ``None``."""

    if not value:
        return None
    match = INTEGER_RE.search(value)
    return match.group(0) if match else None


def first_year(value: str | None) -> str | None:
    """Return the first four-digit run in ``value`` or ``None``."""

    if not value:
        return None
    match = YEAR_RE.search(value)
    return match.group(0) if match else None


def query_year(value: str) -> str | None:
    """Return a 19xx/20xx year mentioned as a standalone token."""

    match = QUERY_YEAR_RE.search(value)
    return match.group(0) if match else None


def clean_sentinel(value: object) -> str | None:
    """Return ``value`` as a string unless it is missing or ``"N/A"``."""

    if value is None:
        return None
    text = str(value)
    if not text or text == "N/A":
        return None
    return text


def format_runtime(total_minutes: int) -> str | None:
    """Format minutes as ``"Xh Ym"``, ``"Xh"`` or ``"X min"``."""

    if total_minutes <= 0:
        return None
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"
    return f"{total_minutes} min"


def title_match_score(query: str, title: str) -> int:
    """Score a candidate title against a free-text query.

    An exact case-insensitive match is worth 1000 and every query word that
    contains, or is contained by, some title word adds 50.
    """

    query_lower = query.lower()
    title_lower = title.lower()
    score = 0
    if title_lower == query_lower:
        score += 1000

    title_words = split_words(title_lower)
    for query_word in split_words(query_lower):
        if any(query_word in word or word in query_word for word in title_words):
            score += 50
    return score
