"""Time-series architectures — LSTM, GRU, Transformer, ARIMA-GARCH.

Deterministic stand-ins with the response shape of the trained models:
return follows the moving-average trend scaled to the horizon, uncertainty
grows with the square root of the horizon length. Confidence is
``base + span * clarity`` where clarity comes from trend alignment and
band width. Swap in a trained model by registering a predictor with the
same architecture name, or pass instances to PredictorRegistry.
"""

from __future__ import annotations

import math
from typing import Any

from signal_core.models import FeatureVector
from signal_core.predictors.base import Forecast, Predictor
from signal_core.predictors.indicators import (
    band_volatility,
    horizon_days,
    horizon_multiplier,
    trend_clarity,
    trend_score,
)
from signal_core.predictors.registry import register


class _TrendModel(Predictor):
    """Shared trend-following response; subclasses tune the scalings."""

    model_type = "timeseries"
    base_confidence: float
    confidence_span: float
    return_scale: float = 1.0
    uncertainty_scale: float = 1.0
    volatility_scale: float = 1.0

    def __init__(self, **params: Any) -> None:
        super().__init__(**params)
        self.base_confidence = float(self.params.get("base_confidence", self.base_confidence))
        self.confidence_span = float(self.params.get("confidence_span", self.confidence_span))

    def horizon_boost(self, horizon: str) -> float:
        return 1.0

    def predict(self, features: FeatureVector, horizon: str) -> Forecast:
        vol = band_volatility(features)
        expected = trend_score(features) * horizon_multiplier(horizon) * self.return_scale
        expected *= self.horizon_boost(horizon)
        uncertainty = vol * math.sqrt(horizon_days(horizon)) * self.uncertainty_scale
        confidence = self.base_confidence + self.confidence_span * trend_clarity(features)
        return Forecast(
            expected_return=expected,
            confidence=min(confidence, 1.0),
            volatility=vol * self.volatility_scale,
            metadata={
                "interval_95": (expected - 1.96 * uncertainty, expected + 1.96 * uncertainty),
            },
        )


@register
class LSTMModel(_TrendModel):
    architecture = "lstm"
    version = "2.1.0"
    base_confidence = 0.75
    confidence_span = 0.2


@register
class GRUModel(_TrendModel):
    architecture = "gru"
    version = "1.8.0"
    base_confidence = 0.72
    confidence_span = 0.18
    return_scale = 0.95
    uncertainty_scale = 1.05


@register
class TransformerModel(_TrendModel):
    """Attention model; slightly more decisive on the weekly horizon."""

    architecture = "transformer"
    version = "3.0.0"
    base_confidence = 0.8
    confidence_span = 0.15
    uncertainty_scale = 0.9
    volatility_scale = 0.95

    def horizon_boost(self, horizon: str) -> float:
        return float(self.params.get("long_horizon_boost", 1.1)) if horizon == "1w" else 1.0


@register
class ArimaGarchModel(Predictor):
    """ARIMA(1,1,1) return with GARCH(1,1)-style horizon-scaled volatility."""

    architecture = "arima_garch"
    model_type = "statistical"
    version = "1.5.0"

    def __init__(self, **params: Any) -> None:
        super().__init__(**params)
        self.base_confidence = float(self.params.get("base_confidence", 0.7))
        self.confidence_span = float(self.params.get("confidence_span", 0.2))

    def predict(self, features: FeatureVector, horizon: str) -> Forecast:
        clarity = trend_clarity(features)
        expected = trend_score(features) * horizon_multiplier(horizon)
        garch_vol = band_volatility(features) * math.sqrt(horizon_days(horizon))
        return Forecast(
            expected_return=expected,
            confidence=min(self.base_confidence + self.confidence_span * clarity, 1.0),
            volatility=garch_vol,
            metadata={
                "arima_order": (1, 1, 1),
                "garch_order": (1, 1),
                "interval_95": (expected - 1.96 * garch_vol, expected + 1.96 * garch_vol),
            },
        )
