"""Environment-based configuration for FreshScan."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from FRESHSCAN_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FRESHSCAN_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083
    log_level: str = "INFO"

    # Authentication (None = disabled)
    api_key: str | None = None

    # Accelerated tier for the primary model ("cpu" skips it)
    device: Literal["cpu", "cuda", "openvino"] = "cpu"

    # Model selection
    models_dir: str = "models"
    primary_model: str = "vit_base_patch16_224"
    primary_cpu_model: str = "vit_base_patch16_224_quantized"
    secondary_model: str = "mobilenet_v2_1.0_224"
    preload_models: bool = False
    top_k: int = Field(default=5, ge=1)

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)
    gpu_mem_limit: int = Field(default=2_147_483_648, ge=0)

    # Concurrency (queue_timeout None = wait indefinitely)
    max_concurrent: int = Field(default=2, ge=1)
    queue_timeout: float | None = Field(default=None, gt=0)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=10_485_760, ge=1)

    # Preprocessing
    max_image_size: int = Field(default=512, ge=1)
    jpeg_quality: int = Field(default=90, ge=1, le=95)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
