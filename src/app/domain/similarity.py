"""Similaridade de texto por distância de Levenshtein normalizada."""

from __future__ import annotations

from app.domain.fingerprint import normalize_body_for_comparison


def levenshtein_distance(left: str, right: str) -> int:
    """Distância de edição (inserção, remoção, substituição)."""
    if left == right:
        return 0
    if len(left) < len(right):
        left, right = right, left
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def text_similarity(left: str | None, right: str | None) -> float:
    """Similaridade em [0, 1]: 1 - distância / maior comprimento.

    Textos vazios após normalização nunca são considerados similares.
    """
    a = normalize_body_for_comparison(left)
    b = normalize_body_for_comparison(right)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))
