"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, UploadFile, status
from fastapi.responses import JSONResponse

from freshscan.api.middleware import verify_api_key
from freshscan.api.schemas import (
    ErrorResponse,
    FoodAnalysisResponse,
    HealthResponse,
    ModelInfo,
    ModelsResponse,
)
from freshscan.ml.model_manager import MODEL_REGISTRY

if TYPE_CHECKING:
    from freshscan.analysis.analyzer import FoodAnalyzer
    from freshscan.config import Settings
    from freshscan.ml.gateway import ModelGateway
    from freshscan.ml.inference import InferencePool
    from freshscan.ml.model_manager import ModelManager

logger = logging.getLogger(__name__)

# Spelled out: starlette renamed the 413 constant across releases.
HTTP_413_CONTENT_TOO_LARGE = 413

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_inference_pool(request: Request) -> InferencePool:
    pool: InferencePool = request.app.state.inference_pool
    return pool


def _get_analyzer(request: Request) -> FoodAnalyzer:
    analyzer: FoodAnalyzer = request.app.state.analyzer
    return analyzer


@router.post(
    "/analyze",
    response_model=FoodAnalysisResponse,
    responses={
        HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
    },
    summary="Analyze the freshness of a food image",
)
async def analyze(request: Request, file: UploadFile) -> FoodAnalysisResponse | JSONResponse:
    """Classify the food type and freshness of an uploaded image."""
    settings = _get_settings(request)
    data = await file.read(settings.max_file_size + 1)
    if len(data) > settings.max_file_size:
        return JSONResponse(
            status_code=HTTP_413_CONTENT_TOO_LARGE,
            content={"detail": f"Image larger than {settings.max_file_size} bytes"},
        )

    result = await _get_analyzer(request).analyze(data)
    logger.info("Analyzed %s: %s %s (%.2f)", file.filename, result.food_type, result.status, result.confidence)
    return FoodAnalysisResponse.from_result(result)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    pool = _get_inference_pool(request)
    gateway: ModelGateway = request.app.state.gateway
    model_manager: ModelManager = request.app.state.model_manager
    return HealthResponse(
        status="ok",
        gpu=settings.device == "cuda",
        models_loaded=model_manager.get_loaded_models(),
        slots={slot: state.value for slot, state in gateway.slot_states().items()},
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List available models",
)
async def list_models(request: Request) -> ModelsResponse:
    """Return registered models and whether a classifier slot is configured to use them."""
    settings = _get_settings(request)
    active_models = {settings.primary_model, settings.primary_cpu_model, settings.secondary_model}

    return ModelsResponse(
        models=[
            ModelInfo(
                name=spec.name,
                task=spec.task.value,
                family=spec.family,
                status="active" if spec.name in active_models else "available",
                license=spec.license,
            )
            for spec in MODEL_REGISTRY.values()
        ]
    )
