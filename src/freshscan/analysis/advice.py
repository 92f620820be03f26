"""Shelf-life estimates, storage tips, and the static fallback result."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from freshscan.analysis.knowledge import (
    BASE_SHELF_DAYS,
    DEFAULT_SHELF_DAYS,
    DEFAULT_TIPS,
    FALLBACK_CONFIDENCE,
    FALLBACK_FOOD_WEIGHTS,
    FALLBACK_STATUS_WEIGHTS,
    FOOD_TIPS,
    food_key,
)
from freshscan.analysis.results import Advice, FoodAnalysisResult, FreshnessStatus
from freshscan.randomness import weighted_choice

if TYPE_CHECKING:
    from freshscan.randomness import RandomSource

EXPIRING_BASE_DAYS: int = 3


def base_days(food_type: str) -> int:
    return BASE_SHELF_DAYS.get(food_key(food_type), DEFAULT_SHELF_DAYS)


def days_remaining(food_type: str, status: FreshnessStatus, confidence: float) -> int | None:
    if status is FreshnessStatus.FRESH:
        return math.floor(base_days(food_type) * confidence) + 2
    if status is FreshnessStatus.EXPIRING:
        return math.floor(EXPIRING_BASE_DAYS * confidence) + 1
    return None


def storage_tips(food_type: str, status: FreshnessStatus) -> tuple[str, ...]:
    table = FOOD_TIPS.get(food_key(food_type), DEFAULT_TIPS)
    return table[status]


def confidence_tip(confidence: float) -> str:
    return f"Analysis confidence: {round(confidence * 100)}%"


def synthesize_advice(food_type: str, status: FreshnessStatus, confidence: float) -> Advice:
    """Days remaining plus the storage tips and a confidence line."""
    return Advice(
        days_remaining=days_remaining(food_type, status, confidence),
        tips=(*storage_tips(food_type, status), confidence_tip(confidence)),
    )


def fallback_result(rng: RandomSource) -> FoodAnalysisResult:
    """Best-effort result used when no classifier produced anything usable.

    Touches nothing but the static tables and ``rng``.
    """
    food_type = weighted_choice(rng, FALLBACK_FOOD_WEIGHTS)
    status = weighted_choice(rng, FALLBACK_STATUS_WEIGHTS)
    return FoodAnalysisResult(
        status=status,
        confidence=FALLBACK_CONFIDENCE,
        food_type=food_type,
        days_remaining=days_remaining(food_type, status, FALLBACK_CONFIDENCE),
        tips=DEFAULT_TIPS[status],
    )
