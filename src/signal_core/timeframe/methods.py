"""Alternative final-ensemble methods for timeframe signals.

Each method returns a ``MethodResult``; ``meta_learning`` (the default)
is implemented by MetaLearner on top of ConflictResolver.
"""

from __future__ import annotations

from collections import Counter
from typing import Mapping, NamedTuple

from signal_core.models import SignalType, TradingSignal


class MethodResult(NamedTuple):
    signal: SignalType
    strength: float
    confidence: float


def score_to_signal(score: float, strong: float = 0.7, threshold: float = 0.3) -> SignalType:
    """Map a numeric score in [-1, 1] back to a signal class."""
    if score >= strong:
        return SignalType.STRONG_BUY
    if score >= threshold:
        return SignalType.BUY
    if score <= -strong:
        return SignalType.STRONG_SELL
    if score <= -threshold:
        return SignalType.SELL
    return SignalType.HOLD


def voting(signals: Mapping[str, TradingSignal]) -> MethodResult:
    """One timeframe, one vote. Ties at the top resolve to HOLD."""
    counts = Counter(s.signal for s in signals.values())
    ranked = counts.most_common()
    n = len(signals)
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return MethodResult(SignalType.HOLD, 0.0, 0.0)
    winner, count = ranked[0]
    winners = [s for s in signals.values() if s.signal is winner]
    share = count / n
    return MethodResult(winner, share, share * sum(s.confidence for s in winners) / count)


def averaging(
    signals: Mapping[str, TradingSignal],
    weights: Mapping[str, float],
    strong: float = 0.7,
    threshold: float = 0.3,
) -> MethodResult:
    """Importance-weighted mean of signal scores."""
    score = sum(weights[tf] * s.signal.score for tf, s in signals.items())
    confidence = sum(weights[tf] * s.confidence for tf, s in signals.items())
    return MethodResult(score_to_signal(score, strong, threshold), min(1.0, abs(score)), confidence)


def stacking(
    signals: Mapping[str, TradingSignal],
    weights: Mapping[str, float],
    strong: float = 0.7,
    threshold: float = 0.3,
) -> MethodResult:
    """Scores weighted by importance * strength * confidence."""
    adjusted = {tf: weights[tf] * s.strength * s.confidence for tf, s in signals.items()}
    total = sum(adjusted.values())
    if total <= 0:
        return MethodResult(SignalType.HOLD, 0.0, 0.0)
    score = sum(adjusted[tf] * s.signal.score for tf, s in signals.items()) / total
    confidence = sum(adjusted[tf] * s.confidence for tf, s in signals.items()) / total
    return MethodResult(score_to_signal(score, strong, threshold), min(1.0, abs(score)), confidence)
