"""Market-regime model — trend scaled by a regime multiplier."""

from __future__ import annotations

from typing import Any

from signal_core.models import FeatureVector
from signal_core.predictors.base import Forecast, Predictor
from signal_core.predictors.indicators import (
    REGIME_MULTIPLIERS,
    band_volatility,
    detect_regime,
    horizon_multiplier,
    trend_clarity,
    trend_score,
)
from signal_core.predictors.registry import register


@register
class RegimeModel(Predictor):
    """BULL / BEAR / HIGH_VOLATILITY / NEUTRAL regime detection.

    BULL:            trend > 0.02 and volatility < 0.25
    BEAR:            trend < -0.02 and volatility > 0.3
    HIGH_VOLATILITY: volatility > 0.35
    """

    architecture = "regime"
    model_type = "regime"
    version = "1.0.0"

    def __init__(self, **params: Any) -> None:
        super().__init__(**params)
        self.base_confidence = float(self.params.get("base_confidence", 0.75))
        self.confidence_span = float(self.params.get("confidence_span", 0.15))

    def predict(self, features: FeatureVector, horizon: str) -> Forecast:
        trend = trend_score(features)
        vol = band_volatility(features)
        regime = detect_regime(trend, vol)
        multiplier = REGIME_MULTIPLIERS[regime]
        return Forecast(
            expected_return=trend * multiplier * horizon_multiplier(horizon),
            confidence=min(self.base_confidence + self.confidence_span * trend_clarity(features), 1.0),
            volatility=vol,
            metadata={"regime": regime, "regime_multiplier": multiplier},
        )
