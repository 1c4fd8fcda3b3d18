"""Technical-analysis composite of RSI, MACD and Bollinger position."""

from __future__ import annotations

from typing import Any

from signal_core.models import FeatureVector
from signal_core.predictors.base import Forecast, Predictor
from signal_core.predictors.indicators import (
    band_volatility,
    bollinger_signal,
    horizon_multiplier,
    macd_signal,
    rsi_signal,
)
from signal_core.predictors.registry import register


@register
class TechnicalModel(Predictor):
    """Mean of three indicator readings in [-1, 1], scaled to at most 5%.

    Horizon-independent in level; the horizon is still validated so an
    unknown horizon fails like it does for every other model.
    """

    architecture = "technical"
    model_type = "technical"
    version = "1.2.0"

    def __init__(self, **params: Any) -> None:
        super().__init__(**params)
        self.max_return = float(self.params.get("max_return", 0.05))
        self.base_confidence = float(self.params.get("base_confidence", 0.65))
        self.confidence_span = float(self.params.get("confidence_span", 0.2))

    def predict(self, features: FeatureVector, horizon: str) -> Forecast:
        horizon_multiplier(horizon)
        signals = {
            "rsi": rsi_signal(features.rsi),
            "macd": macd_signal(features.macd),
            "bollinger": bollinger_signal(features.bollinger, features.price),
        }
        score = sum(signals.values()) / len(signals)
        # Agreement between the three readings drives confidence
        same_sign = max(
            sum(1 for v in signals.values() if v > 0),
            sum(1 for v in signals.values() if v < 0),
        )
        agreement = same_sign / len(signals)
        return Forecast(
            expected_return=score * self.max_return,
            confidence=min(self.base_confidence + self.confidence_span * agreement * abs(score), 1.0),
            volatility=band_volatility(features),
            metadata={"technical_score": score, "signals": signals},
        )
