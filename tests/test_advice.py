"""Tests for shelf-life estimates, tips and the static fallback result."""

from __future__ import annotations

from collections import Counter

import pytest

from conftest import SequenceRandom
from freshscan.analysis.advice import (
    days_remaining,
    fallback_result,
    storage_tips,
    synthesize_advice,
)
from freshscan.analysis.knowledge import DEFAULT_TIPS, FOOD_TIPS
from freshscan.analysis.results import FreshnessStatus
from freshscan.randomness import default_random_source

FRESH = FreshnessStatus.FRESH
EXPIRING = FreshnessStatus.EXPIRING
ROTTEN = FreshnessStatus.ROTTEN


class TestDaysRemaining:
    @pytest.mark.parametrize(
        ("food", "confidence", "expected"),
        [
            ("Apple", 0.98, 11),
            ("Banana", 0.9, 6),
            ("Leafy Greens", 0.8, 7),
            ("Apple", 0.6, 8),
        ],
    )
    def test_fresh(self, food: str, confidence: float, expected: int) -> None:
        assert days_remaining(food, FRESH, confidence) == expected

    @pytest.mark.parametrize(("confidence", "expected"), [(0.6, 2), (0.9, 3), (0.98, 3)])
    def test_expiring(self, confidence: float, expected: int) -> None:
        assert days_remaining("Apple", EXPIRING, confidence) == expected

    def test_rotten_has_none(self) -> None:
        assert days_remaining("Apple", ROTTEN, 0.9) is None


class TestStorageTips:
    def test_food_specific_table(self) -> None:
        assert storage_tips("Banana", EXPIRING) == FOOD_TIPS["banana"][EXPIRING]

    def test_lookup_uses_first_word_case_insensitively(self) -> None:
        assert storage_tips("  LEAFY   Greens ", FRESH) == FOOD_TIPS["leafy"][FRESH]

    def test_unknown_food_uses_default_table(self) -> None:
        assert storage_tips("Kiwi", ROTTEN) == DEFAULT_TIPS[ROTTEN]
        assert storage_tips("", FRESH) == DEFAULT_TIPS[FRESH]


class TestSynthesizeAdvice:
    def test_appends_confidence_line(self) -> None:
        advice = synthesize_advice("Apple", FRESH, 0.98)
        assert advice.tips == (*FOOD_TIPS["apple"][FRESH], "Analysis confidence: 98%")
        assert advice.days_remaining == 11

    def test_rotten_advice(self) -> None:
        advice = synthesize_advice("Tomato", ROTTEN, 0.833)
        assert advice.days_remaining is None
        assert advice.tips[-1] == "Analysis confidence: 83%"
        assert advice.tips[:-1] == FOOD_TIPS["tomato"][ROTTEN]


class TestFallbackResult:
    def test_pinned_draws(self) -> None:
        result = fallback_result(SequenceRandom([0.3, 0.7]))
        assert result.food_type == "Apple"
        assert result.status is EXPIRING
        assert result.confidence == 0.65
        assert result.days_remaining == 2
        assert result.tips == DEFAULT_TIPS[EXPIRING]

    def test_rotten_draw_has_no_days(self) -> None:
        result = fallback_result(SequenceRandom([0.0, 0.99]))
        assert result.food_type == "Fresh Produce"
        assert result.status is ROTTEN
        assert result.days_remaining is None

    def test_fresh_draw(self) -> None:
        result = fallback_result(SequenceRandom([0.99, 0.1]))
        assert result.food_type == "Fruit"
        assert result.status is FRESH
        assert result.days_remaining == 6

    def test_status_distribution(self) -> None:
        rng = default_random_source()
        counts = Counter(fallback_result(rng).status for _ in range(4000))
        assert set(counts) <= {FRESH, EXPIRING, ROTTEN}
        assert 0.55 < counts[FRESH] / 4000 < 0.65
        assert 0.30 < counts[EXPIRING] / 4000 < 0.40
        assert counts[ROTTEN] / 4000 < 0.08
