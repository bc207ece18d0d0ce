"""Pure helpers for keyword/skill normalization and match scoring."""

from __future__ import annotations

from collections.abc import Iterable


def normalize_term(term: str) -> str:
    """Casefold and collapse internal whitespace."""
    return " ".join(term.split()).casefold()


def normalize_skill_set(skills: Iterable[str]) -> set[str]:
    """Build the membership set used for keyword matching. Blanks are ignored."""
    normalized = {normalize_term(s) for s in skills if isinstance(s, str)}
    normalized.discard("")
    return normalized


def dedupe_keywords(keywords: Iterable[object]) -> list[str]:
    """Strip, drop blanks and non-strings, and remove case/space-insensitive repeats.

    First spelling wins; order is preserved.
    """
    seen: set[str] = set()
    result: list[str] = []
    for keyword in keywords:
        if not isinstance(keyword, str):
            continue
        cleaned = " ".join(keyword.split())
        key = cleaned.casefold()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


def matched_keywords(keywords: Iterable[str], skill_set: set[str]) -> list[str]:
    """Keywords whose normalized form is in the normalized skill set."""
    return [k for k in keywords if normalize_term(k) in skill_set]


def keyword_match_score(keywords: list[str], matched: list[str]) -> int:
    """Percentage of keywords matched, rounded half up. Zero keywords scores 0."""
    total = len(keywords)
    if total == 0:
        return 0
    hits = min(len(matched), total)
    return (200 * hits + total) // (2 * total)
