"""
Edit-distance similarity between two normalized strings.
"""

from rapidfuzz.distance import Levenshtein


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit-cost insert, delete and substitute."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """
    Percentage similarity based on edit distance.

    similarity = (max_len - distance) / max_len * 100

    Two empty strings are a perfect match, so a shared missing middle or
    extension name does not count against a pair.

    Args:
        a: First normalized string
        b: Second normalized string

    Returns:
        Similarity in [0, 100]
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100.0

    distance = edit_distance(a, b)
    return ((max_len - distance) / max_len) * 100
