"""Food-type resolution by weighted keyword matching."""

from __future__ import annotations

from typing import TYPE_CHECKING

from freshscan.analysis.knowledge import DEFAULT_FOOD_TYPE, FOOD_TAXONOMY

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from freshscan.analysis.results import RankedCandidate

PRIMARY_KEYWORD_BONUS: float = 0.2
SECONDARY_KEYWORD_BONUS: float = 0.1


def title_case(name: str) -> str:
    return " ".join(word.capitalize() for word in name.split())


def match_scores(
    candidates: Sequence[RankedCandidate],
    taxonomy: Mapping[str, tuple[str, ...]] = FOOD_TAXONOMY,
) -> dict[str, float]:
    """Accumulated keyword score per taxonomy entry (zero entries omitted)."""
    text = " ".join(c.label.lower() for c in candidates[:3])
    top_score = candidates[0].raw_score

    scores: dict[str, float] = {}
    for food, keywords in taxonomy.items():
        total = 0.0
        for position, keyword in enumerate(keywords):
            if keyword in text:
                total += top_score + (PRIMARY_KEYWORD_BONUS if position == 0 else SECONDARY_KEYWORD_BONUS)
        if total > 0:
            scores[food] = total
    return scores


def resolve_food_type(
    candidates: Sequence[RankedCandidate],
    taxonomy: Mapping[str, tuple[str, ...]] = FOOD_TAXONOMY,
) -> str:
    """Return the title-cased canonical food name for the top candidates.

    The highest accumulated score wins, ties go to the entry declared
    first, and "Fresh Produce" is returned when no keyword matches.
    """
    if not candidates:
        return DEFAULT_FOOD_TYPE

    best_food: str | None = None
    best_score = 0.0
    for food, score in match_scores(candidates, taxonomy).items():
        if score > best_score:
            best_food, best_score = food, score

    return title_case(best_food) if best_food is not None else DEFAULT_FOOD_TYPE
