"""Builders shared across test modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from signal_core.config.schema import EngineConfig, HorizonConfig, PredictorConfig
from signal_core.ensemble import HorizonEnsembler
from signal_core.models import (
    BollingerBands,
    FeatureVector,
    ModelPrediction,
    RiskAssessment,
    RiskComponents,
    SignalRiskMetrics,
    SignalThresholds,
    SignalType,
    TradingSignal,
)
from signal_core.predictors import Forecast, Predictor, PredictorRegistry


def make_features(**overrides: Any) -> FeatureVector:
    """Bullish AAPL-like setup: price above both moving averages, mid-band."""
    data: dict[str, Any] = {
        "symbol": "AAPL",
        "timestamp": datetime.now(timezone.utc),
        "price": 150.0,
        "volume": 2_000_000,
        "rsi": 65.5,
        "macd": 2.5,
        "bollinger": BollingerBands(upper=155.0, middle=150.0, lower=145.0),
        "sma20": 148.0,
        "sma50": 145.0,
        "ema12": 149.0,
        "ema26": 147.0,
        "support": 140.0,
        "resistance": 160.0,
        "volatility": 0.25,
        "momentum": 0.05,
    }
    data.update(overrides)
    return FeatureVector(**data)


class StubPredictor(Predictor):
    """Returns fixed forecasts; optionally fails for some horizons."""

    model_type = "stub"

    def __init__(
        self,
        architecture: str,
        expected_return: float | dict[str, float],
        confidence: float = 0.8,
        volatility: float = 0.02,
        fail_on: tuple[str, ...] = (),
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.architecture = architecture
        self.expected_return = expected_return
        self.confidence = confidence
        self.volatility = volatility
        self.fail_on = fail_on
        self.error = error
        self.calls = 0

    def predict(self, features: FeatureVector, horizon: str) -> Forecast:
        self.calls += 1
        if self.error is not None or horizon in self.fail_on:
            raise self.error or RuntimeError(f"{self.architecture} unavailable for {horizon}")
        r = self.expected_return
        if isinstance(r, dict):
            r = r[horizon]
        return Forecast(expected_return=r, confidence=self.confidence, volatility=self.volatility)


def stub_setup(
    predictors: dict[str, StubPredictor],
    weights: dict[str, dict[str, float]],
    horizons: list[str],
    **sections: Any,
) -> tuple[EngineConfig, PredictorRegistry]:
    config = EngineConfig(
        predictors=PredictorConfig(weights=weights),
        horizons=HorizonConfig(default=horizons),
        **sections,
    )
    return config, PredictorRegistry(config.predictors, predictors)


def three_model_setup(**sections: Any) -> tuple[EngineConfig, PredictorRegistry, dict[str, StubPredictor]]:
    """Three daily models returning [0.02, 0.025, 0.018] @ [0.8, 0.82, 0.78]."""
    predictors = {
        "m1": StubPredictor("m1", 0.02, 0.8),
        "m2": StubPredictor("m2", 0.025, 0.82),
        "m3": StubPredictor("m3", 0.018, 0.78),
    }
    weights = {"m1": {"1d": 0.4}, "m2": {"1d": 0.35}, "m3": {"1d": 0.25}}
    config, registry = stub_setup(predictors, weights, ["1d"], **sections)
    return config, registry, predictors


def make_prediction(
    architecture: str,
    expected_return: float,
    confidence: float = 0.8,
    weight: float = 1.0,
    horizon: str = "1d",
    price: float = 150.0,
) -> ModelPrediction:
    return ModelPrediction(
        model_id=f"{architecture}-v1",
        architecture=architecture,
        model_type="stub",
        horizon=horizon,
        expected_return=expected_return,
        price_target=price * (1 + expected_return),
        confidence=confidence,
        volatility=0.02,
        weight=weight,
    )


def make_signal(
    signal: SignalType = SignalType.BUY,
    strength: float = 0.7,
    confidence: float = 0.8,
    **overrides: Any,
) -> TradingSignal:
    now = datetime.now(timezone.utc)
    data: dict[str, Any] = {
        "signal": signal,
        "strength": strength,
        "confidence": confidence,
        "reasoning": f"{signal.value}: test",
        "rule": signal.value.lower(),
        "thresholds": SignalThresholds(
            buy_threshold=0.01, sell_threshold=-0.01,
            confidence_threshold=0.7, uncertainty_threshold=0.05,
        ),
        "risk_metrics": SignalRiskMetrics(max_drawdown=0.0, volatility=0.01, sharpe_ratio=1.0),
        "generated_at": now,
        "valid_until": now + timedelta(minutes=5),
    }
    data.update(overrides)
    return TradingSignal(**data)


def make_risk(overall: float, category: str = "LOW") -> RiskAssessment:
    component = min(1.0, overall)
    return RiskAssessment(
        components=RiskComponents(
            technical=component, market=component, sentiment=component,
            liquidity=component, concentration=component, model=component,
        ),
        overall=overall,
        category=category,
        max_drawdown=0.0,
        volatility=0.25,
    )


def make_horizon(horizon: str, expected_return: float, confidence: float = 0.8):
    """Single-model HorizonPrediction for *horizon*."""
    config = PredictorConfig(weights={"m": {horizon: 1.0}})
    ensembler = HorizonEnsembler(PredictorRegistry(config, {"m": StubPredictor("m", 0.0)}))
    return ensembler.combine(horizon, [make_prediction("m", expected_return, confidence, horizon=horizon)])


def two_to_one_timeframes() -> dict[str, TradingSignal]:
    """1d BUY @0.8, 1h BUY @0.75, 15m SELL @0.6, all at strength 0.7."""
    return {
        "1d": make_signal(SignalType.BUY, 0.7, 0.8),
        "1h": make_signal(SignalType.BUY, 0.7, 0.75),
        "15m": make_signal(SignalType.SELL, 0.7, 0.6),
    }
