"""Classifier variants behind a single ``invoke(image)`` capability.

A slot in the model gateway holds either a ``LearnedModelClassifier``
(an ONNX image-classification session) or a ``FallbackClassifier``
(pixel statistics). The ensemble never needs to know which one answered.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

import numpy as np

from freshscan.errors import ClassifierInvocationError
from freshscan.ml.preprocessing import to_model_input

if TYPE_CHECKING:
    from numpy.typing import NDArray
    from onnxruntime import InferenceSession

    from freshscan.ml.model_manager import ModelSpec
    from freshscan.ml.pixel_classifier import PixelStatisticsClassifier
    from freshscan.ml.preprocessing import PreprocessedImage


class CandidateSource(StrEnum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    FALLBACK = "fallback"


class ClassifierKind(StrEnum):
    LEARNED = "learned"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ClassificationCandidate:
    """A single classification prediction from one source."""

    label: str
    score: float
    source: CandidateSource


class Classifier(Protocol):
    """Protocol for anything the ensemble can invoke."""

    @property
    def kind(self) -> ClassifierKind:
        """Return which variant this classifier is."""
        ...

    @property
    def model_name(self) -> str:
        """Return the model identifier string."""
        ...

    def invoke(self, image: PreprocessedImage) -> list[ClassificationCandidate]:
        """Classify an image.

        Args:
            image: Preprocessed image.

        Returns:
            Candidates in no particular order.

        Raises:
            ClassifierInvocationError: If inference fails.
        """
        ...


def _softmax(logits: NDArray[np.float32]) -> NDArray[np.float32]:
    shifted = logits - np.max(logits)
    exp = np.exp(shifted)
    return exp / np.sum(exp)


class LearnedModelClassifier:
    """Runs an ONNX image-classification model and returns the top-k labels."""

    def __init__(
        self,
        spec: ModelSpec,
        session: InferenceSession,
        labels: dict[int, str],
        source: CandidateSource,
        top_k: int = 5,
    ) -> None:
        self._spec = spec
        self._session = session
        self._labels = labels
        self._source = source
        self._top_k = top_k
        self._input_name = session.get_inputs()[0].name

    @property
    def kind(self) -> ClassifierKind:
        return ClassifierKind.LEARNED

    @property
    def model_name(self) -> str:
        return self._spec.name

    @property
    def source(self) -> CandidateSource:
        return self._source

    def invoke(self, image: PreprocessedImage) -> list[ClassificationCandidate]:
        tensor = to_model_input(
            image.pixels,
            self._spec.input_size,
            self._spec.image_mean,
            self._spec.image_std,
        )
        try:
            outputs = self._session.run(None, {self._input_name: tensor})
        except Exception as exc:
            raise ClassifierInvocationError(f"{self._spec.name} inference failed: {exc}") from exc

        probabilities = _softmax(np.asarray(outputs[0], dtype=np.float32).reshape(-1))
        top = np.argsort(probabilities)[::-1][: self._top_k]
        return [
            ClassificationCandidate(
                label=self._labels.get(int(index), f"class_{int(index)}"),
                score=float(probabilities[index]),
                source=self._source,
            )
            for index in top
        ]


class FallbackClassifier:
    """Wraps the pixel-statistics classifier as a slot classifier."""

    def __init__(self, pixel_classifier: PixelStatisticsClassifier) -> None:
        self._pixel_classifier = pixel_classifier

    @property
    def kind(self) -> ClassifierKind:
        return ClassifierKind.FALLBACK

    @property
    def model_name(self) -> str:
        return "pixel_statistics"

    def invoke(self, image: PreprocessedImage) -> list[ClassificationCandidate]:
        return [self._pixel_classifier.classify(image.pixels)]
