"""
Fuzzy Matching Utilities
-----------------------
This module contains functions for comparing normalized strings.
Similarity is derived from the Levenshtein edit distance and expressed as a
0-100 percentage of the longer string's length.
"""

import math
from typing import Optional, Sequence, Tuple

import jellyfish

# (minimum similarity, points, reason), checked from the highest threshold down
ScoreTier = Tuple[int, int, str]


def levenshtein_distance(a: str, b: str) -> int:
    """
    Classic edit distance with unit-cost insertions, deletions and substitutions.

    Args:
        a: First string
        b: Second string

    Returns:
        int: Minimum number of single-character edits turning a into b
    """
    return jellyfish.levenshtein_distance(a, b)


def similarity_score(a: str, b: str) -> int:
    """
    Calculate a similarity score between two strings.

    The score is (1 - distance / max_length) * 100, rounded half up. Two empty
    strings are identical and score 100.

    Args:
        a: First string to compare
        b: Second string to compare

    Returns:
        int: Similarity between 0 and 100
    """
    max_length = max(len(a), len(b))
    if max_length == 0:
        return 100

    distance = levenshtein_distance(a, b)
    return int(math.floor((1 - distance / max_length) * 100 + 0.5))


def tiered_score(similarity: int, tiers: Sequence[ScoreTier]) -> Tuple[int, Optional[str]]:
    """
    Map a similarity to the points and reason of the first tier it reaches.

    Only one tier fires per field; tiers are not cumulative.

    Args:
        similarity: Similarity score (0-100)
        tiers: Tiers ordered from the highest threshold to the lowest

    Returns:
        Tuple[int, Optional[str]]: The points awarded and the reason, or (0, None)
    """
    for threshold, points, reason in tiers:
        if similarity >= threshold:
            return points, reason
    return 0, None
