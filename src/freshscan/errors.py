"""Exception taxonomy for the analysis pipeline.

None of these reach callers of ``FoodAnalyzer.analyze``: every one of them
ends in a pixel-statistics classification or the static fallback result.
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for all pipeline errors."""


class ImageDecodeError(AnalysisError):
    """The input could not be decoded as an image."""


class ModelLoadError(AnalysisError):
    """A learned model could not be downloaded or loaded."""

    def __init__(self, model_name: str, reason: str) -> None:
        super().__init__(f"Failed to load model '{model_name}': {reason}")
        self.model_name = model_name
        self.reason = reason


class ClassifierInvocationError(AnalysisError):
    """A loaded classifier raised during inference."""


class NoCandidatesError(AnalysisError):
    """The ensemble produced no candidate above the confidence threshold."""
