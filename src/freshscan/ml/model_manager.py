"""Model manager: download, load, and cache ONNX image classifiers.

Handles downloading ONNX exports and their label maps from HuggingFace,
creating and caching ONNX InferenceSessions per (model, tier), and
mapping every download or runtime failure onto ``ModelLoadError`` so the
gateway can move on to the next fallback tier.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import onnxruntime
from huggingface_hub import hf_hub_download
from onnxruntime import InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

from freshscan.errors import ModelLoadError

if TYPE_CHECKING:
    from freshscan.config import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol (kept for test mocking)
# ---------------------------------------------------------------------------


class ModelManager(Protocol):
    """Protocol for model lifecycle management."""

    def load(self, model_name: str, accelerated: bool) -> LoadedModel:
        """Return a cached or newly created session with its labels.

        Raises:
            ModelLoadError: If the model cannot be downloaded or loaded.
        """
        ...

    def get_loaded_models(self) -> list[str]:
        """Return names of currently loaded models."""
        ...

    def shutdown(self) -> None:
        """Clear all cached sessions."""
        ...


# ---------------------------------------------------------------------------
# Model registry
# ---------------------------------------------------------------------------


class ModelTask(StrEnum):
    IMAGE_CLASSIFICATION = "image_classification"


IMAGENET_STANDARD_MEAN: tuple[float, float, float] = (0.5, 0.5, 0.5)
IMAGENET_STANDARD_STD: tuple[float, float, float] = (0.5, 0.5, 0.5)


@dataclass(frozen=True)
class ModelSpec:
    """Static metadata for a single ONNX model."""

    name: str
    family: str
    repo_id: str
    filename: str
    task: ModelTask
    license: str
    config_filename: str = "config.json"
    input_size: int = 224
    image_mean: tuple[float, float, float] = IMAGENET_STANDARD_MEAN
    image_std: tuple[float, float, float] = IMAGENET_STANDARD_STD


MODEL_REGISTRY: dict[str, ModelSpec] = {
    "vit_base_patch16_224": ModelSpec(
        name="vit_base_patch16_224",
        family="vit",
        repo_id="Xenova/vit-base-patch16-224",
        filename="onnx/model.onnx",
        task=ModelTask.IMAGE_CLASSIFICATION,
        license="Apache-2.0",
    ),
    "vit_base_patch16_224_quantized": ModelSpec(
        name="vit_base_patch16_224_quantized",
        family="vit",
        repo_id="Xenova/vit-base-patch16-224",
        filename="onnx/model_quantized.onnx",
        task=ModelTask.IMAGE_CLASSIFICATION,
        license="Apache-2.0",
    ),
    "mobilenet_v2_1.0_224": ModelSpec(
        name="mobilenet_v2_1.0_224",
        family="mobilenet_v2",
        repo_id="Xenova/mobilenet_v2_1.0_224",
        filename="onnx/model.onnx",
        task=ModelTask.IMAGE_CLASSIFICATION,
        license="Apache-2.0",
    ),
}


@dataclass(frozen=True)
class LoadedModel:
    """A ready-to-run session together with its registry entry and labels."""

    spec: ModelSpec
    session: InferenceSession
    labels: dict[int, str]
    accelerated: bool


# ---------------------------------------------------------------------------
# Concrete implementation
# ---------------------------------------------------------------------------


class OnnxModelManager:
    """Downloads, loads, and caches ONNX inference sessions.

    Sessions are cached for the process lifetime; the gateway above this
    class guarantees that each (model, tier) is requested at most once, the
    lock here only protects the cache itself.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._models_dir = Path(settings.models_dir)

        self._lock = threading.Lock()
        self._loaded: dict[tuple[str, bool], LoadedModel] = {}
        self._model_paths: dict[str, Path] = {}

        self._session_options = self._build_session_options()

    # -- Public API ---------------------------------------------------------

    def ensure_downloaded(self, model_name: str) -> Path:
        """Download a model from HuggingFace if not already present locally."""
        spec = self._get_spec(model_name)

        if model_name in self._model_paths:
            path = self._model_paths[model_name]
            if path.exists():
                return path

        self._models_dir.mkdir(parents=True, exist_ok=True)
        downloaded = Path(
            hf_hub_download(
                repo_id=spec.repo_id,
                filename=spec.filename,
                local_dir=str(self._models_dir / spec.family),
            )
        )
        self._model_paths[model_name] = downloaded
        logger.info("Downloaded %s to %s", model_name, downloaded)
        return downloaded

    def load_labels(self, model_name: str) -> dict[int, str]:
        """Read ``id2label`` from the model repository's config file."""
        spec = self._get_spec(model_name)
        config_path = hf_hub_download(
            repo_id=spec.repo_id,
            filename=spec.config_filename,
            local_dir=str(self._models_dir / spec.family),
        )
        with open(config_path, encoding="utf-8") as fh:
            config = json.load(fh)
        return {int(index): label for index, label in config.get("id2label", {}).items()}

    def load(self, model_name: str, accelerated: bool) -> LoadedModel:
        """Return a cached LoadedModel, creating it if needed.

        Raises:
            ModelLoadError: On unknown models, missing accelerators, and any
                download or session-creation failure.
        """
        key = (model_name, accelerated)
        with self._lock:
            cached = self._loaded.get(key)
            if cached is not None:
                return cached

        spec = self._get_spec(model_name)
        providers = self._build_providers(accelerated)
        if accelerated:
            self._check_accelerator(model_name, providers)

        try:
            model_path = self.ensure_downloaded(model_name)
            labels = self.load_labels(model_name)
            session = InferenceSession(
                str(model_path),
                sess_options=self._session_options,
                providers=providers,
            )
        except Exception as exc:
            raise ModelLoadError(model_name, str(exc)) from exc

        loaded = LoadedModel(spec=spec, session=session, labels=labels, accelerated=accelerated)
        with self._lock:
            # Double-check: another thread may have created it while we loaded.
            existing = self._loaded.get(key)
            if existing is not None:
                return existing
            self._loaded[key] = loaded
            logger.info("Loaded session for %s (accelerated=%s)", model_name, accelerated)
            return loaded

    def get_loaded_models(self) -> list[str]:
        """Return names of models with active sessions."""
        with self._lock:
            return sorted({name for name, _ in self._loaded})

    def shutdown(self) -> None:
        """Clear all cached sessions."""
        with self._lock:
            self._loaded.clear()
            logger.info("All model sessions cleared")

    # -- Internal -----------------------------------------------------------

    @staticmethod
    def _get_spec(model_name: str) -> ModelSpec:
        try:
            return MODEL_REGISTRY[model_name]
        except KeyError:
            raise ModelLoadError(model_name, "unknown model") from None

    def _check_accelerator(self, model_name: str, providers: list[str | tuple[str, dict[str, object]]]) -> None:
        if providers == ["CPUExecutionProvider"]:
            raise ModelLoadError(model_name, "no accelerator configured (FRESHSCAN_DEVICE=cpu)")

        first = providers[0]
        wanted = first[0] if isinstance(first, tuple) else first
        if wanted not in onnxruntime.get_available_providers():
            raise ModelLoadError(model_name, f"{wanted} is not available in this onnxruntime build")

    def _build_providers(self, accelerated: bool) -> list[str | tuple[str, dict[str, object]]]:
        device = self._settings.device
        if not accelerated:
            return ["CPUExecutionProvider"]
        if device == "cuda":
            return [
                (
                    "CUDAExecutionProvider",
                    {
                        "device_id": 0,
                        "gpu_mem_limit": self._settings.gpu_mem_limit,
                        "arena_extend_strategy": "kSameAsRequested",
                    },
                ),
                "CPUExecutionProvider",
            ]
        if device == "openvino":
            return [
                ("OpenVINOExecutionProvider", {"device_type": "CPU"}),
                "CPUExecutionProvider",
            ]
        return ["CPUExecutionProvider"]

    def _build_session_options(self) -> SessionOptions:
        opts = SessionOptions()
        opts.intra_op_num_threads = self._settings.intra_op_threads
        opts.inter_op_num_threads = self._settings.inter_op_threads
        opts.execution_mode = ExecutionMode.ORT_SEQUENTIAL
        opts.enable_mem_pattern = True
        opts.enable_mem_reuse = True

        if self._settings.device == "openvino":
            # OpenVINO does its own graph optimization
            from onnxruntime import GraphOptimizationLevel

            opts.graph_optimization_level = GraphOptimizationLevel.ORT_DISABLE_ALL
        return opts
