from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_text(
    text: str | None,
    *,
    collapse_whitespace: bool = True,
    case_sensitive: bool = True,
    max_length: int | None = None,
) -> str:
    """Trims, optionally collapses whitespace and lower-cases, then truncates."""

    if not text:
        return ""
    normalized = text.strip()
    if collapse_whitespace:
        normalized = _WHITESPACE.sub(" ", normalized)
    if not case_sensitive:
        normalized = normalized.lower()
    if max_length is not None:
        normalized = normalized[:max_length]
    return normalized


def word_similarity(left: str, right: str) -> float:
    """Jaccard similarity of the lower-cased word sets of two texts."""

    left_words = set(normalize_text(left, case_sensitive=False).split())
    right_words = set(normalize_text(right, case_sensitive=False).split())
    if not left_words and not right_words:
        return 1.0
    if not left_words or not right_words:
        return 0.0
    union = left_words | right_words
    return len(left_words & right_words) / len(union)


def edit_distance(left: str, right: str) -> int:
    if left == right:
        return 0
    if len(left) < len(right):
        left, right = right, left
    previous = list(range(len(right) + 1))
    for row, left_char in enumerate(left, start=1):
        current = [row]
        for column, right_char in enumerate(right, start=1):
            current.append(
                min(
                    previous[column] + 1,
                    current[column - 1] + 1,
                    previous[column - 1] + (left_char != right_char),
                )
            )
        previous = current
    return previous[-1]


def edit_similarity(left: str | None, right: str | None) -> float:
    """1 - normalized edit distance over raw characters."""

    left = left or ""
    right = right or ""
    if not left and not right:
        return 1.0
    if not left or not right:
        return 0.0
    return 1.0 - edit_distance(left, right) / max(len(left), len(right))


def map_difference(old: dict[str, str], new: dict[str, str]) -> list[str]:
    """Keys that were added, removed or changed between two string maps, sorted."""

    return sorted(key for key in old.keys() | new.keys() if old.get(key) != new.get(key))
