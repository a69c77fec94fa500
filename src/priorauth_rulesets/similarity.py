"""Normalized edit-distance similarity.

``similarity(a, b) = 1 - edit_distance(a, b) / max(len(a), len(b))``

Inputs are compared as given; callers lowercase/trim beforehand when they
want case-insensitive scoring.
"""

from rapidfuzz.distance import Levenshtein


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (insert, delete, substitute all cost 1)."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """Return a score in [0, 1]; 1.0 means identical.

    Two empty strings are identical.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / longest
