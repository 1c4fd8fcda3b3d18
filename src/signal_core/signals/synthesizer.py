"""Signal synthesizer — deterministic mapping to a discrete signal.

Rules are evaluated in order; the first match wins:

    uncertainty_hold  stdErr > hold_std_error          -> HOLD (uncertainty wins)
    strong_buy        r > strong_return, c > strong_confidence, stdErr < strong_max_std_error
    buy               r > buy_return, c > min_confidence
    strong_sell       mirror of strong_buy
    sell              mirror of buy
    neutral           otherwise                         -> HOLD
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from signal_core.config.schema import SignalConfig
from signal_core.models import (
    SignalRiskMetrics,
    SignalThresholds,
    SignalType,
    TradingSignal,
    UncertaintyBounds,
)


class Classification(NamedTuple):
    signal: SignalType
    strength: float
    rule: str
    reasoning: str


def classify(
    expected_return: float,
    confidence: float,
    standard_error: float,
    config: SignalConfig | None = None,
) -> Classification:
    """Pure rule table; identical inputs always give identical output."""
    cfg = config or SignalConfig()
    r, c, se = expected_return, confidence, standard_error

    if not all(math.isfinite(v) for v in (r, c, se)):
        return Classification(
            SignalType.HOLD, cfg.hold_strength, "invalid_input",
            "HOLD: non-finite return, confidence or standard error",
        )
    if se > cfg.hold_std_error:
        return Classification(
            SignalType.HOLD, cfg.uncertainty_hold_strength, "uncertainty_hold",
            f"HOLD: standard error {se:.4f} > {cfg.hold_std_error} overrides direction",
        )

    strong = c > cfg.strong_confidence and se < cfg.strong_max_std_error
    if r > cfg.strong_return and strong:
        return Classification(
            SignalType.STRONG_BUY, cfg.strong_strength, "strong_buy",
            f"STRONG_BUY: return {r:+.4f} > {cfg.strong_return}, confidence {c:.3f} > "
            f"{cfg.strong_confidence}, standard error {se:.4f} < {cfg.strong_max_std_error}",
        )
    if r > cfg.buy_return and c > cfg.min_confidence:
        return Classification(
            SignalType.BUY, cfg.strength, "buy",
            f"BUY: return {r:+.4f} > {cfg.buy_return}, confidence {c:.3f} > {cfg.min_confidence}",
        )
    if r < -cfg.strong_return and strong:
        return Classification(
            SignalType.STRONG_SELL, cfg.strong_strength, "strong_sell",
            f"STRONG_SELL: return {r:+.4f} < {-cfg.strong_return}, confidence {c:.3f} > "
            f"{cfg.strong_confidence}, standard error {se:.4f} < {cfg.strong_max_std_error}",
        )
    if r < -cfg.buy_return and c > cfg.min_confidence:
        return Classification(
            SignalType.SELL, cfg.strength, "sell",
            f"SELL: return {r:+.4f} < {-cfg.buy_return}, confidence {c:.3f} > {cfg.min_confidence}",
        )
    return Classification(
        SignalType.HOLD, cfg.hold_strength, "neutral",
        f"HOLD: return {r:+.4f} with confidence {c:.3f} meets no directional rule",
    )


class SignalSynthesizer:
    """Wraps :func:`classify` into timestamped TradingSignal snapshots."""

    def __init__(self, config: SignalConfig | None = None) -> None:
        self.config = config or SignalConfig()

    def thresholds(self) -> SignalThresholds:
        return SignalThresholds(
            buy_threshold=self.config.buy_return,
            sell_threshold=-self.config.buy_return,
            confidence_threshold=self.config.min_confidence,
            uncertainty_threshold=self.config.hold_std_error,
        )

    def synthesize(
        self,
        expected_return: float,
        confidence: float,
        bounds: UncertaintyBounds,
        timeframe: str | None = None,
        degraded: bool = False,
        now: datetime | None = None,
    ) -> TradingSignal:
        se = bounds.standard_error
        result = classify(expected_return, confidence, se, self.config)
        return self._build(
            result,
            confidence=confidence if math.isfinite(confidence) else 0.0,
            risk_metrics=risk_metrics(expected_return, bounds),
            timeframe=timeframe,
            degraded=degraded,
            now=now,
        )

    def fallback(
        self,
        reason: str,
        confidence: float,
        timeframe: str | None = None,
        now: datetime | None = None,
    ) -> TradingSignal:
        """Low-confidence HOLD emitted on degraded paths."""
        result = Classification(
            SignalType.HOLD, self.config.hold_strength, "fallback", f"HOLD: fallback ({reason})"
        )
        return self._build(
            result,
            confidence=confidence,
            risk_metrics=SignalRiskMetrics(max_drawdown=0.0, volatility=0.0, sharpe_ratio=0.0),
            timeframe=timeframe,
            degraded=True,
            now=now,
        )

    def _build(
        self,
        result: Classification,
        confidence: float,
        risk_metrics: SignalRiskMetrics,
        timeframe: str | None,
        degraded: bool,
        now: datetime | None,
    ) -> TradingSignal:
        generated = now or datetime.now(timezone.utc)
        return TradingSignal(
            signal=result.signal,
            strength=result.strength,
            confidence=max(0.0, min(1.0, confidence)),
            reasoning=result.reasoning,
            rule=result.rule,
            thresholds=self.thresholds(),
            risk_metrics=risk_metrics,
            degraded=degraded,
            timeframe=timeframe,
            generated_at=generated,
            valid_until=generated + timedelta(seconds=self.config.valid_for_s),
        )


def risk_metrics(expected_return: float, bounds: UncertaintyBounds) -> SignalRiskMetrics:
    """maxDrawdown = |min(0, lower 95% bound)|, sharpe = r / (stdErr or 0.01)."""
    if "95" in bounds.intervals:
        lower = bounds.intervals["95"][0]
    else:
        lower = bounds.prediction_interval[0]
    se = bounds.standard_error
    sharpe = expected_return / (se or 0.01) if math.isfinite(expected_return) else 0.0
    return SignalRiskMetrics(
        max_drawdown=abs(min(0.0, lower)),
        volatility=se,
        sharpe_ratio=sharpe,
    )
