"""Pydantic request/response schemas for the FreshScan API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from freshscan.analysis.results import FoodAnalysisResult


class FoodAnalysisResponse(BaseModel):
    """Freshness verdict for one uploaded image."""

    status: str = Field(description="One of 'fresh', 'expiring', 'rotten'")
    confidence: float = Field(ge=0.0, le=1.0)
    food_type: str
    days_remaining: int | None = Field(default=None, description="Absent for rotten food")
    tips: list[str]

    @classmethod
    def from_result(cls, result: FoodAnalysisResult) -> FoodAnalysisResponse:
        return cls(
            status=result.status.value,
            confidence=result.confidence,
            food_type=result.food_type,
            days_remaining=result.days_remaining,
            tips=list(result.tips),
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    gpu: bool
    models_loaded: list[str]
    slots: dict[str, str] = Field(description="Classifier slot state: uninitialized, loading, ready or degraded")
    concurrent_requests: int
    queue_depth: int


class ModelInfo(BaseModel):
    """Information about an available model."""

    name: str
    task: str
    family: str
    status: str = Field(description="Model status: 'active' or 'available'")
    license: str


class ModelsResponse(BaseModel):
    """Response for the models listing endpoint."""

    models: list[ModelInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
