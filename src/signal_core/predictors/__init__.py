"""Predictor framework and built-in architectures."""

from signal_core.predictors.base import Forecast, Predictor
from signal_core.predictors.registry import PREDICTOR_REGISTRY, PredictorRegistry, register

# Register the built-in architectures
from signal_core.predictors import architectures  # noqa: F401, E402

__all__ = ["PREDICTOR_REGISTRY", "Forecast", "Predictor", "PredictorRegistry", "register"]
