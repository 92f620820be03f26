"""Heuristic freshness scoring from label text and scores.

Raw model scores say how sure a model is about a label, not how fresh the
food is, so the resulting confidence is always clamped into
``[MIN_CONFIDENCE, MAX_CONFIDENCE]``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from freshscan.analysis.results import FreshnessStatus, FreshnessVerdict

if TYPE_CHECKING:
    from collections.abc import Sequence

    from freshscan.analysis.results import RankedCandidate

NEUTRAL_PRIOR: float = 0.5
MIN_CONFIDENCE: float = 0.6
MAX_CONFIDENCE: float = 0.98

FRESH_THRESHOLD: float = 0.7
EXPIRING_THRESHOLD: float = 0.3
EXPIRING_CONFIDENCE_FACTOR: float = 0.9
ROTTEN_CONFIDENCE_FACTOR: float = 0.85

HIGH_SCORE: float = 0.85
HIGH_SCORE_BOOST: float = 0.1
SOLID_SCORE: float = 0.7
SOLID_SCORE_BONUS: float = 0.1
AGREEMENT_WEIGHT: float = 0.5


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def label_adjustment(label: str) -> float:
    """Sum of the keyword adjustments for one label."""
    text = label.lower()
    adjustment = 0.0
    if "fresh" in text or "ripe" in text:
        adjustment += 0.4
    if "green" in text and "decay" not in text:
        adjustment += 0.3
    if "bright" in text or "crisp" in text:
        adjustment += 0.2
    if "brown" in text or "dark" in text:
        adjustment -= 0.3
    if "spot" in text or "blemish" in text:
        adjustment -= 0.2
    if "rotten" in text or "decay" in text or "moldy" in text:
        adjustment -= 0.5
    return adjustment


def freshness_score(candidates: Sequence[RankedCandidate]) -> float:
    top = candidates[0]
    score = NEUTRAL_PRIOR + label_adjustment(top.label)
    if top.score > SOLID_SCORE:
        score += SOLID_SCORE_BONUS
    return _clamp(score, 0.0, 1.0)


def score_freshness(candidates: Sequence[RankedCandidate]) -> FreshnessVerdict:
    """Map a non-empty ranked candidate list to a freshness verdict.

    Raises:
        ValueError: If ``candidates`` is empty.
    """
    if not candidates:
        raise ValueError("score_freshness needs at least one candidate")

    top_score = candidates[0].score
    boost = HIGH_SCORE_BOOST if top_score > HIGH_SCORE else 0.0
    if len(candidates) > 1:
        head = candidates[:3]
        mean_score = sum(c.score for c in head) / len(head)
        boost += (mean_score - top_score) * AGREEMENT_WEIGHT

    freshness = freshness_score(candidates)
    confidence = _clamp(top_score + boost, MIN_CONFIDENCE, MAX_CONFIDENCE)

    if freshness > FRESH_THRESHOLD:
        status = FreshnessStatus.FRESH
    elif freshness > EXPIRING_THRESHOLD:
        status = FreshnessStatus.EXPIRING
        confidence *= EXPIRING_CONFIDENCE_FACTOR
    else:
        status = FreshnessStatus.ROTTEN
        confidence *= ROTTEN_CONFIDENCE_FACTOR

    return FreshnessVerdict(status=status, confidence=_clamp(confidence, MIN_CONFIDENCE, MAX_CONFIDENCE))
