"""Tests for the pixel-statistics fallback classifier."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import SequenceRandom, blend_pixels
from freshscan.ml.image_classifier import CandidateSource
from freshscan.ml.pixel_classifier import (
    PixelStatistics,
    PixelStatisticsClassifier,
    compute_statistics,
    condition_for,
)

RED = (220, 80, 70)
GREEN = (80, 200, 90)
YELLOW = (210, 200, 60)
GRAY = (120, 120, 120)
BLACK = (0, 0, 0)


def _stats(dark: float = 0.0, bright: float = 0.2, rgb: tuple[float, float, float] = (100, 100, 100)) -> PixelStatistics:
    return PixelStatistics(mean_red=rgb[0], mean_green=rgb[1], mean_blue=rgb[2], dark_ratio=dark, bright_ratio=bright)


class TestComputeStatistics:
    def test_channel_means_and_ratios(self) -> None:
        stats = compute_statistics(blend_pixels(RED))
        assert stats.mean_red == pytest.approx(0.8 * 220 + 0.2 * 255)
        assert stats.mean_green == pytest.approx(0.8 * 80 + 0.2 * 255)
        assert stats.dark_ratio == pytest.approx(0.0)
        assert stats.bright_ratio == pytest.approx(0.2)

    def test_dark_pixels_counted(self) -> None:
        stats = compute_statistics(blend_pixels(RED, accent=BLACK, accent_ratio=0.4))
        assert stats.dark_ratio == pytest.approx(0.4)
        assert stats.bright_ratio == pytest.approx(0.0)

    def test_any_input_size_is_sampled(self) -> None:
        stats = compute_statistics(np.full((37, 613, 3), 200, dtype=np.uint8))
        assert stats.mean_red == pytest.approx(200.0)
        assert stats.bright_ratio == pytest.approx(1.0)


class TestConditionRule:
    def test_rotten_when_mostly_dark(self) -> None:
        assert condition_for(_stats(dark=0.31)) == "rotten"

    def test_expiring_when_somewhat_dark(self) -> None:
        assert condition_for(_stats(dark=0.2)) == "expiring"

    def test_expiring_when_dull(self) -> None:
        assert condition_for(_stats(dark=0.0, bright=0.05)) == "expiring"

    def test_fresh_otherwise(self) -> None:
        assert condition_for(_stats(dark=0.1, bright=0.3)) == "fresh"


class TestFoodRule:
    @pytest.mark.parametrize(("draw", "food"), [(0.1, "apple"), (0.9, "tomato")])
    def test_red_dominant(self, draw: float, food: str) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([draw]))
        assert classifier.food_for(_stats(rgb=(200, 90, 80))) == food

    @pytest.mark.parametrize(("draw", "food"), [(0.2, "lettuce"), (0.7, "cucumber")])
    def test_green_dominant(self, draw: float, food: str) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([draw]))
        assert classifier.food_for(_stats(rgb=(90, 190, 100))) == food

    def test_banana(self) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([0.5]))
        assert classifier.food_for(_stats(rgb=(219, 211, 99))) == "banana"

    def test_generic_produce(self) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([0.5]))
        assert classifier.food_for(_stats(rgb=(147, 147, 147))) == "produce"


class TestClassify:
    def test_fresh_red_image(self) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([0.0, 0.5]))
        candidate = classifier.classify(blend_pixels(RED))
        assert candidate.label == "fresh apple"
        assert candidate.score == pytest.approx(0.85)
        assert candidate.source is CandidateSource.FALLBACK

    def test_rotten_red_image(self) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([0.99, 0.0]))
        candidate = classifier.classify(blend_pixels(RED, accent=BLACK, accent_ratio=0.4))
        assert candidate.label == "rotten tomato"
        assert candidate.score == pytest.approx(0.75)

    def test_green_image(self) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([0.0, 0.0]))
        assert classifier.classify(blend_pixels(GREEN)).label == "fresh lettuce"

    def test_banana_uses_no_tie_break_draw(self) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([0.5]))
        candidate = classifier.classify(blend_pixels(YELLOW))
        assert candidate.label == "fresh banana"
        assert candidate.score == pytest.approx(0.85)

    def test_dull_gray_image_is_aging_produce(self) -> None:
        classifier = PixelStatisticsClassifier(SequenceRandom([0.5]))
        assert classifier.classify(blend_pixels(GRAY, accent_ratio=0.0)).label == "aging produce"

    def test_confidence_always_in_band(self) -> None:
        classifier = PixelStatisticsClassifier()
        pixels = blend_pixels(GREEN)
        scores = [classifier.classify(pixels).score for _ in range(50)]
        assert all(0.75 <= score <= 0.95 for score in scores)
