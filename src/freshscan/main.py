"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from freshscan.analysis.analyzer import FoodAnalyzer
from freshscan.api.routes import router
from freshscan.config import Settings, get_settings
from freshscan.ml.gateway import ModelGateway
from freshscan.ml.inference import InferencePool
from freshscan.ml.model_manager import OnnxModelManager
from freshscan.ml.pixel_classifier import PixelStatisticsClassifier
from freshscan.randomness import default_random_source

logger = logging.getLogger(__name__)


def init_app_state(app: FastAPI, settings: Settings) -> None:
    """Build the pipeline collaborators and attach them to ``app.state``."""
    rng = default_random_source()
    inference_pool = InferencePool(settings)
    model_manager = OnnxModelManager(settings)
    gateway = ModelGateway(settings, model_manager, PixelStatisticsClassifier(rng))

    app.state.settings = settings
    app.state.inference_pool = inference_pool
    app.state.model_manager = model_manager
    app.state.gateway = gateway
    app.state.analyzer = FoodAnalyzer(settings, gateway, inference_pool, rng)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting FreshScan (device=%s, max_concurrent=%s, primary=%s, secondary=%s)",
        settings.device,
        settings.max_concurrent,
        settings.primary_model,
        settings.secondary_model,
    )

    init_app_state(app, settings)
    if settings.preload_models:
        gateway: ModelGateway = app.state.gateway
        await gateway.get_classifiers()
        logger.info("Classifier slots: %s", gateway.slot_states())

    logger.info("FreshScan ready")
    yield

    logger.info("Shutting down FreshScan")
    app.state.inference_pool.shutdown()
    app.state.model_manager.shutdown()
    logger.info("FreshScan shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="FreshScan",
        description="Food type and freshness classification from a single image",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn using FRESHSCAN_HOST / FRESHSCAN_PORT."""
    settings = get_settings()
    uvicorn.run("freshscan.main:app", host=settings.host, port=settings.port)
