"""Multi-timeframe conflict resolution by weighted class voting."""

from __future__ import annotations

from collections import Counter
from itertools import combinations
from typing import Mapping

import structlog

from signal_core.config.schema import TimeframeConfig
from signal_core.ensemble.weights import normalize_weights
from signal_core.models import ConflictResolution, SignalType, TimeframeConflict, TradingSignal

log = structlog.get_logger("timeframe")


def detect_conflicts(signals: Mapping[str, TradingSignal]) -> list[TimeframeConflict]:
    """Every pair of timeframes whose signal classes differ."""
    conflicts = []
    for (tf_a, a), (tf_b, b) in combinations(signals.items(), 2):
        if a.signal is not b.signal:
            conflicts.append(
                TimeframeConflict(
                    timeframe_a=tf_a,
                    timeframe_b=tf_b,
                    signal_a=a.signal,
                    signal_b=b.signal,
                    strength_a=a.strength,
                    strength_b=b.strength,
                    confidence_a=a.confidence,
                    confidence_b=b.confidence,
                )
            )
    return conflicts


def timeframe_consistency(signals: Mapping[str, TradingSignal]) -> float:
    """1 - (unique classes - 1) / (n - 1); a single timeframe is fully consistent."""
    n = len(signals)
    if n < 2:
        return 1.0
    unique = len({s.signal for s in signals.values()})
    return 1.0 - (unique - 1) / (n - 1)


def majority_share(signals: Mapping[str, TradingSignal]) -> float:
    if not signals:
        return 0.0
    counts = Counter(s.signal for s in signals.values())
    return max(counts.values()) / len(signals)


class ConflictResolver:
    """Confidence-and-strength-weighted voting over timeframe signals.

    Each timeframe votes ``importance * strength * confidence`` for its
    class, with importance renormalised over the timeframes present. A HOLD
    votes with at least ``hold_vote_strength`` so that standing aside on a
    heavy timeframe still counts against a light directional one. The
    heaviest class wins; confidence is its count share times its average
    confidence. A tie at the top, or a vote where every timeframe names a
    different class, is a split and resolves to HOLD.
    """

    def __init__(self, config: TimeframeConfig | None = None) -> None:
        config = config or TimeframeConfig()
        self._importance = dict(config.importance)
        self._hold_vote_strength = config.hold_vote_strength

    def weights(self, timeframes: list[str]) -> dict[str, float]:
        unknown = [tf for tf in timeframes if tf not in self._importance]
        if unknown:
            raise ValueError(f"unknown timeframes {unknown}; expected {list(self._importance)}")
        return normalize_weights({tf: self._importance[tf] for tf in timeframes})

    def vote(self, weight: float, signal: TradingSignal) -> float:
        strength = signal.strength
        if signal.signal is SignalType.HOLD:
            strength = max(strength, self._hold_vote_strength)
        return weight * strength * signal.confidence

    def resolve(self, signals: Mapping[str, TradingSignal]) -> ConflictResolution:
        if not signals:
            raise ValueError("no timeframe signals to resolve")

        weights = self.weights(list(signals))
        conflicts = tuple(detect_conflicts(signals))
        score = sum(weights[tf] * s.signal.score * s.strength for tf, s in signals.items())

        votes: dict[SignalType, float] = {}
        members: dict[SignalType, list[TradingSignal]] = {}
        for tf, s in signals.items():
            votes[s.signal] = votes.get(s.signal, 0.0) + self.vote(weights[tf], s)
            members.setdefault(s.signal, []).append(s)
        vote_table = {k.value: v for k, v in votes.items()}

        def outcome(signal: SignalType, strength: float, confidence: float, resolution: str,
                    final: bool = False) -> ConflictResolution:
            return ConflictResolution(
                conflicts=conflicts,
                resolution=resolution,
                final_signal=signal,
                strength=max(0.0, min(1.0, strength)),
                confidence=max(0.0, min(1.0, confidence)),
                votes=vote_table,
                weights=weights,
                score=score,
                final=final,
            )

        locked = [s for s in signals.values() if s.final]
        if locked:
            log.warning("risk_locked_timeframe", timeframes=[tf for tf, s in signals.items() if s.final])
            return outcome(
                SignalType.HOLD,
                min(s.strength for s in locked),
                min(s.confidence for s in locked),
                "risk_locked",
                final=True,
            )

        n = len(signals)
        ranked = sorted(votes.items(), key=lambda kv: kv[1], reverse=True)
        tied = len(ranked) > 1 and ranked[0][1] == ranked[1][1]
        if tied or (n > 1 and len(votes) == n):
            mean_conf = sum(s.confidence for s in signals.values()) / n
            log.info("split_vote", classes=sorted(vote_table), timeframes=n)
            return outcome(SignalType.HOLD, 0.0, mean_conf / n, "split_vote")

        winner = ranked[0][0]
        group = members[winner]
        share = len(group) / n
        avg_conf = sum(s.confidence for s in group) / len(group)
        avg_strength = sum(s.strength for s in group) / len(group)
        return outcome(
            winner,
            avg_strength,
            share * avg_conf,
            "weighted_voting_applied" if conflicts else "no_conflicts",
        )
