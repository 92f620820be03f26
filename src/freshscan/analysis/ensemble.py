"""Ensemble aggregation of classifier outputs."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from freshscan.analysis.results import RankedCandidate
from freshscan.ml.image_classifier import CandidateSource

if TYPE_CHECKING:
    from collections.abc import Iterable

    from freshscan.ml.gateway import ClassifierPair
    from freshscan.ml.image_classifier import ClassificationCandidate, Classifier
    from freshscan.ml.inference import InferencePool
    from freshscan.ml.preprocessing import PreprocessedImage

logger = logging.getLogger(__name__)

MIN_CONFIDENCE_THRESHOLD: float = 0.3
MAX_CANDIDATES: int = 3

SOURCE_WEIGHTS: dict[CandidateSource, float] = {
    CandidateSource.PRIMARY: 1.2,
    CandidateSource.SECONDARY: 1.0,
    CandidateSource.FALLBACK: 1.0,
}

# Breaks ties on equal weighted score.
_SOURCE_PRIORITY: dict[CandidateSource, int] = {
    CandidateSource.PRIMARY: 0,
    CandidateSource.SECONDARY: 1,
    CandidateSource.FALLBACK: 2,
}


def rank_candidates(candidates: Iterable[ClassificationCandidate]) -> list[RankedCandidate]:
    """Weight, filter, sort and truncate candidates from any number of sources.

    Ties on weighted score go to the higher-priority source. Returns an
    empty list when nothing clears ``MIN_CONFIDENCE_THRESHOLD``.
    """
    weighted = [
        RankedCandidate(
            label=candidate.label,
            score=candidate.score * SOURCE_WEIGHTS[candidate.source],
            raw_score=candidate.score,
            source=candidate.source,
        )
        for candidate in candidates
    ]
    kept = [candidate for candidate in weighted if candidate.score > MIN_CONFIDENCE_THRESHOLD]
    kept.sort(key=lambda c: (-c.score, _SOURCE_PRIORITY[c.source]))
    return kept[:MAX_CANDIDATES]


class EnsembleAggregator:
    """Runs both classifier slots concurrently and merges their candidates."""

    def __init__(self, pool: InferencePool) -> None:
        self._pool = pool

    async def aggregate(self, image: PreprocessedImage, classifiers: ClassifierPair) -> list[RankedCandidate]:
        results = await asyncio.gather(
            self._invoke(classifiers.primary, image),
            self._invoke(classifiers.secondary, image),
        )
        return rank_candidates(candidate for batch in results for candidate in batch)

    async def _invoke(self, classifier: Classifier, image: PreprocessedImage) -> list[ClassificationCandidate]:
        try:
            return await self._pool.run(classifier.invoke, image)
        except Exception:
            logger.warning("Classifier %s failed, ignoring its output", classifier.model_name, exc_info=True)
            return []
