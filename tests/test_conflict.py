"""Tests for multi-timeframe conflict resolution."""

from __future__ import annotations

import itertools

import pytest

from signal_core.config.schema import TimeframeConfig
from signal_core.models import SignalType
from signal_core.timeframe import ConflictResolver, detect_conflicts, timeframe_consistency
from signal_core.timeframe.conflict import majority_share

from factories import make_signal, two_to_one_timeframes

BUY, SELL, HOLD = SignalType.BUY, SignalType.SELL, SignalType.HOLD


class TestHelpers:
    def test_detect_conflicts(self):
        conflicts = detect_conflicts(two_to_one_timeframes())
        assert [(c.timeframe_a, c.timeframe_b) for c in conflicts] == [("1d", "15m"), ("1h", "15m")]
        assert conflicts[0].signal_a is BUY
        assert conflicts[0].signal_b is SELL

    def test_strength_difference_is_a_conflict(self):
        signals = {"1d": make_signal(BUY), "1h": make_signal(SignalType.STRONG_BUY, 0.9)}
        assert len(detect_conflicts(signals)) == 1

    def test_consistency(self):
        assert timeframe_consistency({"1d": make_signal(BUY)}) == 1.0
        assert timeframe_consistency(two_to_one_timeframes()) == 0.5
        split = {"1d": make_signal(BUY), "1h": make_signal(SELL), "15m": make_signal(HOLD)}
        assert timeframe_consistency(split) == 0.0

    def test_majority_share(self):
        assert majority_share(two_to_one_timeframes()) == pytest.approx(2 / 3)
        assert majority_share({}) == 0.0


class TestConflictResolver:
    def setup_method(self):
        self.resolver = ConflictResolver()

    def test_weights_renormalised(self):
        weights = self.resolver.weights(["1d", "1h", "15m"])
        assert weights == pytest.approx({"1d": 0.4, "1h": 1 / 3, "15m": 0.2 / 0.75})

    def test_unknown_timeframe(self):
        with pytest.raises(ValueError, match="unknown timeframes"):
            self.resolver.weights(["1d", "2h"])

    def test_empty(self):
        with pytest.raises(ValueError):
            self.resolver.resolve({})

    def test_two_to_one_weighted_vote(self):
        resolution = self.resolver.resolve(two_to_one_timeframes())
        assert resolution.final_signal is BUY
        assert resolution.confidence == pytest.approx(2 / 3 * 0.775)
        assert resolution.strength == pytest.approx(0.7)
        assert resolution.resolution == "weighted_voting_applied"
        assert len(resolution.conflicts) == 2
        assert resolution.votes["BUY"] > resolution.votes["SELL"]

    def test_agreement(self):
        signals = {"1d": make_signal(BUY, 0.7, 0.8), "1h": make_signal(BUY, 0.7, 0.6)}
        resolution = self.resolver.resolve(signals)
        assert resolution.final_signal is BUY
        assert resolution.confidence == pytest.approx(0.7)
        assert resolution.resolution == "no_conflicts"
        assert resolution.conflicts == ()

    def test_single_timeframe(self):
        resolution = self.resolver.resolve({"1h": make_signal(SELL, 0.7, 0.75)})
        assert resolution.final_signal is SELL
        assert resolution.confidence == pytest.approx(0.75)

    def test_hold_on_heavy_timeframes_outvotes_light_buy(self):
        signals = {
            "1d": make_signal(HOLD, 0.0, 0.9),
            "1h": make_signal(HOLD, 0.0, 0.9),
            "1m": make_signal(BUY, 0.7, 0.75),
        }
        resolution = self.resolver.resolve(signals)
        assert resolution.final_signal is HOLD
        assert resolution.strength == 0.0
        assert resolution.confidence == pytest.approx(2 / 3 * 0.9)
        assert resolution.votes["HOLD"] == pytest.approx(0.55 / 0.65 * 0.7 * 0.9)
        assert resolution.votes["BUY"] == pytest.approx(0.1 / 0.65 * 0.7 * 0.75)

    def test_light_hold_does_not_outvote_heavy_buys(self):
        signals = {
            "1d": make_signal(BUY, 0.7, 0.8),
            "1h": make_signal(BUY, 0.7, 0.8),
            "1m": make_signal(HOLD, 0.0, 0.9),
        }
        assert self.resolver.resolve(signals).final_signal is BUY

    def test_hold_vote_strength_configurable(self):
        resolver = ConflictResolver(TimeframeConfig(hold_vote_strength=0.2))
        vote = resolver.vote(0.5, make_signal(HOLD, 0.0, 0.8))
        assert vote == pytest.approx(0.5 * 0.2 * 0.8)
        assert resolver.vote(0.5, make_signal(BUY, 0.7, 0.8)) == pytest.approx(0.5 * 0.7 * 0.8)

    def test_every_timeframe_different_is_split(self):
        signals = {
            "1d": make_signal(BUY, 0.7, 0.8),
            "1h": make_signal(SELL, 0.7, 0.7),
            "15m": make_signal(HOLD, 0.0, 0.6),
        }
        resolution = self.resolver.resolve(signals)
        assert resolution.final_signal is HOLD
        assert resolution.strength == 0.0
        assert resolution.confidence == pytest.approx(0.7 / 3)
        assert resolution.resolution == "split_vote"

    def test_exact_tie_is_split(self):
        resolver = ConflictResolver(
            TimeframeConfig(importance={"a": 0.25, "b": 0.25, "c": 0.25, "d": 0.25}, default=["a"])
        )
        signals = {
            "a": make_signal(BUY), "b": make_signal(BUY),
            "c": make_signal(SELL), "d": make_signal(SELL),
        }
        resolution = resolver.resolve(signals)
        assert resolution.final_signal is HOLD
        assert resolution.resolution == "split_vote"

    def test_risk_locked_input_forces_hold(self):
        signals = two_to_one_timeframes()
        signals["15m"] = make_signal(HOLD, 0.3, 0.5, final=True)
        resolution = self.resolver.resolve(signals)
        assert resolution.final_signal is HOLD
        assert resolution.final is True
        assert resolution.resolution == "risk_locked"
        assert resolution.strength == 0.3

    def test_outputs_bounded_for_every_combination(self):
        classes = list(SignalType)
        for combo in itertools.product(classes, repeat=3):
            signals = {
                tf: make_signal(cls, 0.9 if cls.is_strong else 0.7, conf)
                for (tf, conf), cls in zip((("1d", 0.9), ("1h", 0.7), ("15m", 0.5)), combo)
            }
            resolution = self.resolver.resolve(signals)
            assert 0.0 <= resolution.confidence <= 1.0
            assert 0.0 <= resolution.strength <= 1.0
            assert sum(resolution.weights.values()) == pytest.approx(1.0)
