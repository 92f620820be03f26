"""Model gateway: resolves the primary and secondary classifier slots.

Primary chain:   configured model on the accelerator -> CPU variant of the
                 same family -> pixel statistics.
Secondary chain: alternate model family on CPU -> pixel statistics.

Each slot is resolved at most once per process through an ``OnceCell``;
both slots resolve concurrently and independently. A slot that falls all
the way through stays bound to the pixel-statistics classifier.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from freshscan.errors import ModelLoadError
from freshscan.ml.image_classifier import (
    CandidateSource,
    ClassifierKind,
    FallbackClassifier,
    LearnedModelClassifier,
)
from freshscan.ml.once import CellState, OnceCell

if TYPE_CHECKING:
    from freshscan.config import Settings
    from freshscan.ml.image_classifier import Classifier
    from freshscan.ml.model_manager import ModelManager
    from freshscan.ml.pixel_classifier import PixelStatisticsClassifier

logger = logging.getLogger(__name__)


class SlotState(StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class LoadTier:
    model_name: str
    accelerated: bool


@dataclass(frozen=True)
class ClassifierPair:
    primary: Classifier
    secondary: Classifier


class ModelGateway:
    """Owns the process-wide classifier slots."""

    def __init__(
        self,
        settings: Settings,
        model_manager: ModelManager,
        pixel_classifier: PixelStatisticsClassifier,
    ) -> None:
        self._settings = settings
        self._model_manager = model_manager
        self._pixel_classifier = pixel_classifier

        self._primary_tiers = (
            LoadTier(settings.primary_model, accelerated=True),
            LoadTier(settings.primary_cpu_model, accelerated=False),
        )
        self._secondary_tiers = (LoadTier(settings.secondary_model, accelerated=False),)

        self._primary: OnceCell[Classifier] = OnceCell(
            lambda: self._resolve_slot(CandidateSource.PRIMARY, self._primary_tiers)
        )
        self._secondary: OnceCell[Classifier] = OnceCell(
            lambda: self._resolve_slot(CandidateSource.SECONDARY, self._secondary_tiers)
        )

    async def get_classifiers(self) -> ClassifierPair:
        """Return both slots, loading them on first use."""
        primary, secondary = await asyncio.gather(
            self._primary.get_or_init(),
            self._secondary.get_or_init(),
        )
        return ClassifierPair(primary=primary, secondary=secondary)

    def slot_states(self) -> dict[str, SlotState]:
        return {
            CandidateSource.PRIMARY.value: self._slot_state(self._primary),
            CandidateSource.SECONDARY.value: self._slot_state(self._secondary),
        }

    @staticmethod
    def _slot_state(cell: OnceCell[Classifier]) -> SlotState:
        state = cell.state
        if state is CellState.EMPTY:
            return SlotState.UNINITIALIZED
        if state is CellState.RUNNING:
            return SlotState.LOADING
        classifier = cell.peek()
        if classifier is None or classifier.kind is ClassifierKind.FALLBACK:
            return SlotState.DEGRADED
        return SlotState.READY

    async def _resolve_slot(self, source: CandidateSource, tiers: tuple[LoadTier, ...]) -> Classifier:
        for tier in tiers:
            try:
                loaded = await asyncio.to_thread(self._model_manager.load, tier.model_name, tier.accelerated)
                classifier = LearnedModelClassifier(
                    spec=loaded.spec,
                    session=loaded.session,
                    labels=loaded.labels,
                    source=source,
                    top_k=self._settings.top_k,
                )
            except ModelLoadError as exc:
                logger.warning("%s slot: %s, trying next tier", source, exc)
                continue
            except Exception:
                logger.warning("%s slot: %s unusable, trying next tier", source, tier.model_name, exc_info=True)
                continue

            logger.info(
                "%s slot ready with %s (accelerated=%s)",
                source,
                tier.model_name,
                tier.accelerated,
            )
            return classifier

        logger.warning("%s slot degraded to pixel-statistics classifier", source)
        return FallbackClassifier(self._pixel_classifier)
