"""Public entry point of the freshness pipeline.

    raw image -> preprocess -> gateway -> ensemble -> {freshness, food type} -> advice

Every failure inside the pipeline ends in a best-effort result: the
pixel-statistics classifier (via a degraded gateway slot) or the static
fallback result. ``analyze`` does not raise.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from freshscan.analysis.advice import fallback_result, synthesize_advice
from freshscan.analysis.ensemble import EnsembleAggregator
from freshscan.analysis.food_type import resolve_food_type
from freshscan.analysis.freshness import score_freshness
from freshscan.analysis.results import FoodAnalysisResult
from freshscan.errors import ImageDecodeError, NoCandidatesError
from freshscan.ml.preprocessing import preprocess
from freshscan.randomness import default_random_source

if TYPE_CHECKING:
    from freshscan.config import Settings
    from freshscan.ml.gateway import ModelGateway
    from freshscan.ml.inference import InferencePool
    from freshscan.ml.preprocessing import RawImage
    from freshscan.randomness import RandomSource

logger = logging.getLogger(__name__)


class FoodAnalyzer:
    def __init__(
        self,
        settings: Settings,
        gateway: ModelGateway,
        pool: InferencePool,
        rng: RandomSource | None = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway
        self._pool = pool
        self._ensemble = EnsembleAggregator(pool)
        self._rng = rng if rng is not None else default_random_source()

    async def analyze(self, image: RawImage) -> FoodAnalysisResult:
        """Classify one image's food type and freshness."""
        try:
            return await self._analyze(image)
        except ImageDecodeError as exc:
            logger.warning("Unreadable image, using fallback result: %s", exc)
        except NoCandidatesError as exc:
            logger.info("%s, using fallback result", exc)
        except Exception:
            logger.exception("Analysis pipeline failed, using fallback result")
        return fallback_result(self._rng)

    async def _analyze(self, image: RawImage) -> FoodAnalysisResult:
        prepared = await self._pool.run(
            partial(
                preprocess,
                image,
                max_size=self._settings.max_image_size,
                quality=self._settings.jpeg_quality,
                max_pixels=self._settings.max_image_pixels,
            )
        )
        classifiers = await self._gateway.get_classifiers()
        candidates = await self._ensemble.aggregate(prepared, classifiers)
        if not candidates:
            raise NoCandidatesError("No candidate above the confidence threshold")

        logger.debug("Ranked candidates: %s", candidates)
        verdict = score_freshness(candidates)
        food_type = resolve_food_type(candidates)
        advice = synthesize_advice(food_type, verdict.status, verdict.confidence)
        return FoodAnalysisResult(
            status=verdict.status,
            confidence=verdict.confidence,
            food_type=food_type,
            days_remaining=advice.days_remaining,
            tips=advice.tips,
        )
