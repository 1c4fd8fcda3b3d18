"""Prediction records — per model, per horizon, and per symbol."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from signal_core.models.signal import TradingSignal


class ModelPrediction(BaseModel):
    """One predictor's output for one horizon."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    architecture: str
    model_type: str
    horizon: str
    expected_return: float
    price_target: float
    confidence: float = Field(ge=0.0, le=1.0)
    volatility: float
    weight: float = Field(ge=0.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class EnsembleEstimate(BaseModel):
    """A weighted combination; *weights* are normalised and sum to 1."""

    model_config = ConfigDict(frozen=True)

    expected_return: float
    price_target: float
    confidence: float = Field(ge=0.0, le=1.0)
    weights: dict[str, float]
    method: str = "weighted_average"


class HorizonPrediction(BaseModel):
    model_config = ConfigDict(frozen=True)

    horizon: str
    predictions: tuple[ModelPrediction, ...]
    ensemble: EnsembleEstimate
    confidence: float = Field(ge=0.0, le=1.0)
    consensus_score: float = Field(ge=0.0, le=1.0)
    diversity_index: float = Field(ge=0.0, le=1.0)
    failed_models: tuple[str, ...] = ()
    degraded: bool = False
    timestamp: datetime


class EnsemblePrediction(EnsembleEstimate):
    """Cross-horizon estimate; *coverage* is the importance share that survived."""

    coverage: float = Field(default=1.0, ge=0.0, le=1.0)


class UncertaintyBounds(BaseModel):
    """Gaussian dispersion bounds pooled over every surviving model return.

    Assumes approximately normal dispersion; fat tails are not modelled.
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    prediction: float
    standard_error: float = Field(ge=0.0)
    intervals: dict[str, tuple[float, float]]
    prediction_interval: tuple[float, float]
    sample_size: int = Field(ge=0)


class MarketPrediction(BaseModel):
    """Top-level per-symbol output of the prediction stages."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float  # reference price the targets are relative to
    timeframe: str | None = None
    timestamp: datetime
    horizon_predictions: tuple[HorizonPrediction, ...]
    unavailable_horizons: tuple[str, ...] = ()
    ensemble_prediction: EnsemblePrediction
    uncertainty_bounds: UncertaintyBounds
    signal: TradingSignal
    confidence: float = Field(ge=0.0, le=1.0)
    model_versions: dict[str, str] = Field(default_factory=dict)
    execution_time_ms: float
    degraded: bool = False
    degradation_reasons: tuple[str, ...] = ()


class DirectionForecast(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    horizon: str
    direction: str  # "UP", "DOWN" or "NEUTRAL"
    probability: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    price_target: float
    confidence_interval: tuple[float, float]
    degraded: bool = False


class PriceRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    horizon: str
    low: float
    median: float
    high: float
    confidence: float = Field(ge=0.0, le=1.0)
    volatility_forecast: float
    degraded: bool = False
