"""Testes de similaridade de texto."""

from __future__ import annotations

import pytest

from app.domain.similarity import levenshtein_distance, text_similarity


class TestLevenshtein:
    @pytest.mark.parametrize(
        ("left", "right", "expected"),
        [
            ("", "", 0),
            ("abc", "", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_distance(self, left: str, right: str, expected: int) -> None:
        assert levenshtein_distance(left, right) == expected
        assert levenshtein_distance(right, left) == expected


class TestTextSimilarity:
    def test_identical_after_normalization(self) -> None:
        assert text_similarity("Hello  World", "hello world") == 1.0

    def test_empty_is_never_similar(self) -> None:
        assert text_similarity("", "") == 0.0
        assert text_similarity(None, "hello") == 0.0

    def test_small_typo_is_above_default_threshold(self) -> None:
        score = text_similarity(
            "Hello, I need help with my order", "Hello, I need help with my ordr"
        )
        assert score >= 0.85

    def test_different_text_is_below_threshold(self) -> None:
        assert text_similarity("Where is my order?", "Thanks, all good!") < 0.85
