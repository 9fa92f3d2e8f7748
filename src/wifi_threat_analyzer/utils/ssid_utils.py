"""
String helpers for SSID comparison.

Edit distance is the classic dynamic-programming Levenshtein distance;
similarity is 1 - distance / max(len1, len2).
"""

from typing import Iterable


def levenshtein_distance(s1: str, s2: str) -> int:
    """Number of single-character edits turning s1 into s2."""
    if s1 == s2:
        return 0
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i] + [0] * len(s2)
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current[j] = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost   # substitution
            )
        previous = current
    return previous[-1]


def ssid_similarity(s1: str, s2: str) -> float:
    """Normalized similarity in [0, 1]; two empty strings are identical."""
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s1, s2) / longest


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring test against a keyword list."""
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def matching_keyword(text: str, keywords: Iterable[str]):
    """First keyword contained in text (case-insensitive), or None."""
    lowered = text.lower()
    for keyword in keywords:
        if keyword.lower() in lowered:
            return keyword
    return None
