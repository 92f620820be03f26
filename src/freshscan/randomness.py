"""Injectable source of non-cryptographic randomness.

Every random decision in the pipeline (tie-breaks, synthetic fallback
confidence, the static fallback draw) goes through a ``RandomSource`` so
tests can pin outcomes with a fixed sequence.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Sequence

T = TypeVar("T")


class RandomSource(Protocol):
    """Anything yielding uniform floats in [0, 1). ``random.Random`` qualifies."""

    def random(self) -> float: ...


def default_random_source() -> RandomSource:
    return random.Random()  # noqa: S311


def uniform(rng: RandomSource, low: float, high: float) -> float:
    return low + (high - low) * rng.random()


def choice(rng: RandomSource, items: Sequence[T]) -> T:
    if not items:
        raise ValueError("Cannot choose from an empty sequence")
    index = min(int(rng.random() * len(items)), len(items) - 1)
    return items[index]


def weighted_choice(rng: RandomSource, weighted: Sequence[tuple[T, float]]) -> T:
    """Pick an item with probability proportional to its weight."""
    total = sum(weight for _, weight in weighted)
    if not weighted or total <= 0:
        raise ValueError("Weighted choice needs at least one positive weight")

    target = rng.random() * total
    cumulative = 0.0
    for item, weight in weighted:
        cumulative += weight
        if target < cumulative:
            return item
    return weighted[-1][0]
