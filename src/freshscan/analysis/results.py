"""Value types produced by the analysis stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from freshscan.ml.image_classifier import CandidateSource


class FreshnessStatus(StrEnum):
    FRESH = "fresh"
    EXPIRING = "expiring"
    ROTTEN = "rotten"


@dataclass(frozen=True)
class RankedCandidate:
    """A merged candidate; ``score`` is weighted, ``raw_score`` as produced."""

    label: str
    score: float
    raw_score: float
    source: CandidateSource


@dataclass(frozen=True)
class FreshnessVerdict:
    status: FreshnessStatus
    confidence: float


@dataclass(frozen=True)
class Advice:
    days_remaining: int | None
    tips: tuple[str, ...]


@dataclass(frozen=True)
class FoodAnalysisResult:
    """The structured verdict returned for one image.

    ``days_remaining`` is set for fresh and expiring food and None for
    rotten food.
    """

    status: FreshnessStatus
    confidence: float
    food_type: str
    days_remaining: int | None
    tips: tuple[str, ...]
