"""Deterministic display-name similarity for duplicate detection."""

from __future__ import annotations


FUZZY_THRESHOLD = 0.80
CONTAINMENT_SCORE = 0.85
SHARED_SURNAME_SCORE = 0.82
_MIN_MATCH_LENGTH = 4


def normalize_display_name(value: str | None) -> str:
    """Trim and lowercase a display name for comparison and bucketing."""

    return (value or "").strip().lower()


def levenshtein_distance(left: str, right: str) -> int:
    """Classic edit distance over a full (len+1) x (len+1) table."""

    rows = len(left)
    cols = len(right)
    table = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(rows + 1):
        table[i][0] = i
    for j in range(cols + 1):
        table[0][j] = j
    for i in range(1, rows + 1):
        for j in range(1, cols + 1):
            if left[i - 1] == right[j - 1]:
                table[i][j] = table[i - 1][j - 1]
            else:
                table[i][j] = 1 + min(table[i - 1][j], table[i][j - 1], table[i - 1][j - 1])
    return table[rows][cols]


def name_similarity(left: str, right: str) -> float:
    """Score two display names in [0, 1].

    Rules short-circuit in order: identical names, containment (shorter side at
    least four characters), shared final token of at least four characters,
    then normalized edit distance.
    """

    norm_left = normalize_display_name(left)
    norm_right = normalize_display_name(right)
    if norm_left == norm_right:
        return 1.0

    shorter = min(len(norm_left), len(norm_right))
    if (norm_left in norm_right or norm_right in norm_left) and shorter >= _MIN_MATCH_LENGTH:
        return CONTAINMENT_SCORE

    surname_left = _last_token(norm_left)
    surname_right = _last_token(norm_right)
    if len(surname_left) >= _MIN_MATCH_LENGTH and surname_left == surname_right:
        return SHARED_SURNAME_SCORE

    distance = levenshtein_distance(norm_left, norm_right)
    return 1.0 - distance / max(len(norm_left), len(norm_right))


def is_similar_candidate(score: float) -> bool:
    """Fuzzy candidates only; identical names belong to the exact pass."""

    return FUZZY_THRESHOLD <= score < 1.0


def _last_token(value: str) -> str:
    tokens = value.split()
    return tokens[-1] if tokens else value
