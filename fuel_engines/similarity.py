"""
fuel_engines.similarity -- Fuzzy name matching for configuration lookups.

Responsibility:
    Compare free-text location and suffix names typed by clerks against
    the configured names.  Provides the normalised Levenshtein similarity,
    the ``fuzzy_match`` predicate used for surcharges, and candidate
    ranking used for suggestions.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``similarity(x, x) == 1.0`` and ``0.0 <= similarity(x, y) <= 1.0``.
    - Comparison is case-insensitive (both sides upper-cased).
    - ``rank_candidates`` is stable: ties keep candidate order.

Usage:
    >>> similarity("KAMOWA", "KAMOA")
    0.8333333333333334
    >>> fuzzy_match("NM", "NMI")
    True
"""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_FUZZY_THRESHOLD = 0.5


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance with unit cost for insert, delete and substitute."""
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(second) + 1))
    for i, a in enumerate(first, start=1):
        current = [i]
        for j, b in enumerate(second, start=1):
            cost = 0 if a == b else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def similarity(first: str, second: str) -> float:
    """
    Normalised similarity in [0, 1]: ``1 - distance / longer length``.

    Both inputs are upper-cased.  Two empty strings are identical (1.0).
    """
    a = (first or "").upper()
    b = (second or "").upper()
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longer


def fuzzy_match(value: str, target: str, threshold: float = DEFAULT_FUZZY_THRESHOLD) -> bool:
    """
    True if ``value`` names ``target``.

    Matches on trimmed case-insensitive equality, on either string
    containing the other, or on ``similarity >= threshold``.  An empty
    side only matches another empty side.
    """
    a = (value or "").strip().upper()
    b = (target or "").strip().upper()
    if a == b:
        return True
    if not a or not b:
        return False
    if a in b or b in a:
        return True
    return similarity(a, b) >= threshold


def rank_candidates(
    value: str,
    candidates: Iterable[str],
    threshold: float,
    limit: int | None = None,
) -> list[tuple[str, float]]:
    """Candidates scoring at least ``threshold``, best first."""
    scored = [(c, similarity(value, c)) for c in candidates]
    kept = [pair for pair in scored if pair[1] >= threshold]
    kept.sort(key=lambda pair: pair[1], reverse=True)
    if limit is not None:
        return kept[:limit]
    return kept
