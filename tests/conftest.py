"""Shared fixtures and fakes for the FreshScan test suite."""

from __future__ import annotations

import io
import threading
import time
from collections.abc import AsyncIterator, Sequence
from types import SimpleNamespace

import numpy as np
import pytest
from PIL import Image

from freshscan.config import Settings
from freshscan.errors import ClassifierInvocationError, ModelLoadError
from freshscan.ml.image_classifier import CandidateSource, ClassificationCandidate, ClassifierKind
from freshscan.ml.inference import InferencePool
from freshscan.ml.model_manager import MODEL_REGISTRY, LoadedModel
from freshscan.ml.preprocessing import PreprocessedImage

# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------


class SequenceRandom:
    """Random source replaying a fixed sequence of floats, cycling at the end."""

    def __init__(self, values: Sequence[float]) -> None:
        self._values = list(values)
        self._index = 0
        self._lock = threading.Lock()

    def random(self) -> float:
        with self._lock:
            value = self._values[self._index % len(self._values)]
            self._index += 1
            return value


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


def blend_pixels(
    base: tuple[int, int, int],
    accent: tuple[int, int, int] = (255, 255, 255),
    accent_ratio: float = 0.2,
    size: int = 100,
) -> np.ndarray:
    """A size x size RGB array whose bottom ``accent_ratio`` rows are ``accent``."""
    pixels = np.empty((size, size, 3), dtype=np.uint8)
    pixels[:, :] = base
    accent_rows = round(size * accent_ratio)
    if accent_rows:
        pixels[size - accent_rows :, :] = accent
    return pixels


def encode_png(pixels: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


def prepared(pixels: np.ndarray) -> PreprocessedImage:
    return PreprocessedImage(pixels=pixels, encoded=b"")


# ---------------------------------------------------------------------------
# Classifier and model fakes
# ---------------------------------------------------------------------------


class StaticClassifier:
    """Classifier returning fixed candidates, or raising when ``error`` is set."""

    def __init__(
        self,
        candidates: Sequence[tuple[str, float]] = (),
        source: CandidateSource = CandidateSource.PRIMARY,
        error: Exception | None = None,
    ) -> None:
        self._candidates = [ClassificationCandidate(label, score, source) for label, score in candidates]
        self._error = error
        self.calls = 0

    @property
    def kind(self) -> ClassifierKind:
        return ClassifierKind.LEARNED

    @property
    def model_name(self) -> str:
        return "static"

    def invoke(self, image: PreprocessedImage) -> list[ClassificationCandidate]:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._candidates)


def failing_classifier(source: CandidateSource = CandidateSource.PRIMARY) -> StaticClassifier:
    return StaticClassifier(source=source, error=ClassifierInvocationError("inference failed"))


class FakeSession:
    """Stands in for an onnxruntime InferenceSession."""

    def __init__(self, logits: Sequence[float] = (4.0, 1.0, 0.5)) -> None:
        self._logits = np.asarray([logits], dtype=np.float32)
        self.inputs_seen: list[np.ndarray] = []

    def get_inputs(self) -> list[SimpleNamespace]:
        return [SimpleNamespace(name="pixel_values")]

    def run(self, output_names: object, feeds: dict[str, np.ndarray]) -> list[np.ndarray]:
        self.inputs_seen.append(feeds["pixel_values"])
        return [self._logits]


class FakeModelManager:
    """Counts load attempts; fails for any (model, accelerated) pair in ``failing``."""

    def __init__(self, failing: set[tuple[str, bool]] | None = None, delay: float = 0.05) -> None:
        self.failing = failing or set()
        self.delay = delay
        self.calls: list[tuple[str, bool]] = []
        self._lock = threading.Lock()

    def load(self, model_name: str, accelerated: bool) -> LoadedModel:
        with self._lock:
            self.calls.append((model_name, accelerated))
        time.sleep(self.delay)
        if (model_name, accelerated) in self.failing:
            raise ModelLoadError(model_name, "simulated failure")
        return LoadedModel(
            spec=MODEL_REGISTRY[model_name],
            session=FakeSession(),  # type: ignore[arg-type]
            labels={0: "Granny Smith", 1: "banana", 2: "orange"},
            accelerated=accelerated,
        )

    def get_loaded_models(self) -> list[str]:
        return sorted({name for name, accelerated in self.calls if (name, accelerated) not in self.failing})

    def shutdown(self) -> None:
        pass


ALL_TIERS_FAILING: set[tuple[str, bool]] = {
    ("vit_base_patch16_224", True),
    ("vit_base_patch16_224_quantized", False),
    ("mobilenet_v2_1.0_224", False),
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> Settings:
    return Settings(device="cuda", models_dir="/tmp/freshscan_test_models")


@pytest.fixture()
async def pool(settings: Settings) -> AsyncIterator[InferencePool]:
    inference_pool = InferencePool(settings)
    yield inference_pool
    inference_pool.shutdown()
