"""Meta-learning calibration of the resolved timeframe signal."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Mapping

from signal_core.config.schema import MetaConfig
from signal_core.ensemble.weights import weighted_mean
from signal_core.models import (
    ConflictResolution,
    EnsembleSignal,
    MetaFeatures,
    SignalRiskMetrics,
    SignalThresholds,
    SignalType,
    TimeframeContribution,
    TradingSignal,
)
from signal_core.timeframe.conflict import ConflictResolver, majority_share, timeframe_consistency
from signal_core.timeframe.methods import MethodResult, averaging, stacking, voting


def meta_score(features: MetaFeatures) -> float:
    """average(historical accuracy, timeframe consistency)."""
    return (features.historical_accuracy + features.timeframe_consistency) / 2


class MetaLearner:
    """Final calibration stage.

    ``meta_learning`` scales the resolved signal's confidence and strength
    by the meta score, with confidence capped at ``confidence_ceiling``.
    The other methods re-derive the class from the raw timeframe signals.
    A risk-locked resolution passes through untouched.
    """

    def __init__(self, config: MetaConfig | None = None, resolver: ConflictResolver | None = None) -> None:
        self.config = config or MetaConfig()
        self.resolver = resolver or ConflictResolver()

    def meta_features(
        self,
        signals: Mapping[str, TradingSignal],
        resolution: ConflictResolution,
        historical_accuracy: float | None = None,
        market_regime: str | None = None,
        market_volatility: float = 0.0,
    ) -> MetaFeatures:
        confidences = [s.confidence for s in signals.values()]
        return MetaFeatures(
            market_volatility=market_volatility,
            signal_agreement=resolution.confidence,
            prediction_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            historical_accuracy=(
                self.config.default_accuracy if historical_accuracy is None else historical_accuracy
            ),
            market_regime=market_regime or self.config.default_regime,
            timeframe_consistency=timeframe_consistency(signals),
        )

    def calibrate(
        self,
        signals: Mapping[str, TradingSignal],
        resolution: ConflictResolution,
        features: MetaFeatures,
        method: str | None = None,
    ) -> tuple[MethodResult, float]:
        """Return ``(result, meta_score)`` for *method* (defaults to config)."""
        method = method or self.config.method
        score = meta_score(features)
        ceiling = self.config.confidence_ceiling

        if resolution.final:
            return (
                MethodResult(SignalType.HOLD, resolution.strength, resolution.confidence),
                score,
            )

        if method == "meta_learning":
            result = MethodResult(
                resolution.final_signal,
                max(0.0, min(1.0, resolution.strength * score)),
                min(ceiling, resolution.confidence * score),
            )
        elif method == "voting":
            result = voting(signals)
        elif method == "averaging":
            result = averaging(
                signals, resolution.weights, self.config.strong_score, self.config.score
            )
        elif method == "stacking":
            result = stacking(
                signals, resolution.weights, self.config.strong_score, self.config.score
            )
        else:
            raise ValueError(f"unknown ensemble method {method!r}")

        return result._replace(confidence=min(ceiling, max(0.0, result.confidence))), score

    def combine(
        self,
        symbol: str,
        signals: Mapping[str, TradingSignal],
        historical_accuracy: float | None = None,
        market_regime: str | None = None,
        market_volatility: float = 0.0,
        method: str | None = None,
        valid_for_s: float = 300.0,
        now: datetime | None = None,
    ) -> EnsembleSignal:
        """Resolve conflicts, calibrate, and package an EnsembleSignal."""
        method = method or self.config.method
        resolution = self.resolver.resolve(signals)
        features = self.meta_features(
            signals, resolution, historical_accuracy, market_regime, market_volatility
        )
        result, score = self.calibrate(signals, resolution, features, method)

        generated = now or datetime.now(timezone.utc)
        weights = resolution.weights
        degraded = any(s.degraded for s in signals.values())
        contributions = {
            tf: TimeframeContribution(
                weight=weights[tf], signal=s.signal, strength=s.strength, confidence=s.confidence
            )
            for tf, s in signals.items()
        }
        risk = SignalRiskMetrics(
            max_drawdown=weighted_mean([s.risk_metrics.max_drawdown for s in signals.values()],
                                       [weights[tf] for tf in signals]),
            volatility=weighted_mean([s.risk_metrics.volatility for s in signals.values()],
                                     [weights[tf] for tf in signals]),
            sharpe_ratio=weighted_mean([s.risk_metrics.sharpe_ratio for s in signals.values()],
                                       [weights[tf] for tf in signals]),
        )
        first = next(iter(signals.values()))
        final_signal = TradingSignal(
            signal=result.signal,
            strength=result.strength,
            confidence=result.confidence,
            reasoning=(
                f"{method} across {len(signals)} timeframes in {features.market_regime} regime "
                f"with {features.timeframe_consistency:.0%} consistency ({resolution.resolution})"
            ),
            rule=resolution.resolution if resolution.final else method,
            thresholds=SignalThresholds(
                buy_threshold=self.config.score,
                sell_threshold=-self.config.score,
                confidence_threshold=first.thresholds.confidence_threshold,
                uncertainty_threshold=first.thresholds.uncertainty_threshold,
            ),
            risk_metrics=risk,
            filters_applied=tuple(sorted({f for s in signals.values() for f in s.filters_applied})),
            final=resolution.final,
            degraded=degraded,
            generated_at=generated,
            valid_until=generated + timedelta(seconds=valid_for_s),
        )
        return EnsembleSignal(
            symbol=symbol,
            timeframe_signals=dict(signals),
            conflicts=resolution.conflicts,
            resolution=resolution,
            final_signal=final_signal,
            meta_features=features,
            meta_score=score,
            method=method,
            agreement=majority_share(signals),
            contributions=contributions,
            degraded=degraded,
            degradation_reasons=tuple(
                sorted({f"{tf}:degraded" for tf, s in signals.items() if s.degraded})
            ),
            generated_at=generated,
        )
