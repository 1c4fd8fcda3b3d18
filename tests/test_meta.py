"""Tests for the meta-learning stage and alternative ensemble methods."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from signal_core.config.schema import MetaConfig
from signal_core.models import MetaFeatures, SignalType
from signal_core.timeframe import MetaLearner, meta_score
from signal_core.timeframe.methods import averaging, score_to_signal, stacking, voting

from factories import make_signal, two_to_one_timeframes

STRONG_BUY, BUY, SELL, HOLD = (
    SignalType.STRONG_BUY, SignalType.BUY, SignalType.SELL, SignalType.HOLD,
)


class TestMethods:
    @pytest.mark.parametrize(
        "score,expected",
        [(0.8, STRONG_BUY), (0.5, BUY), (0.1, HOLD), (-0.3, SELL), (-0.7, SignalType.STRONG_SELL)],
    )
    def test_score_to_signal(self, score, expected):
        assert score_to_signal(score) is expected

    def test_voting(self):
        result = voting(two_to_one_timeframes())
        assert result.signal is BUY
        assert result.strength == pytest.approx(2 / 3)
        assert result.confidence == pytest.approx(2 / 3 * 0.775)

    def test_voting_tie(self):
        result = voting({"1d": make_signal(BUY), "1h": make_signal(SELL)})
        assert result.signal is HOLD
        assert result.confidence == 0.0

    def test_averaging(self):
        signals = {tf: make_signal(STRONG_BUY, 0.9, 0.8) for tf in ("1d", "1h")}
        result = averaging(signals, {"1d": 0.5, "1h": 0.5})
        assert result.signal is STRONG_BUY
        assert result.strength == pytest.approx(1.0)
        assert result.confidence == pytest.approx(0.8)

    def test_stacking(self):
        signals = {"1d": make_signal(BUY, 0.7, 0.8), "1h": make_signal(SELL, 0.1, 0.1)}
        result = stacking(signals, {"1d": 0.5, "1h": 0.5})
        assert result.signal is BUY

    def test_stacking_without_conviction(self):
        signals = {"1d": make_signal(HOLD, 0.0, 0.8)}
        assert stacking(signals, {"1d": 1.0}).signal is HOLD


class TestMetaLearner:
    def setup_method(self):
        self.learner = MetaLearner()

    def test_meta_score(self):
        features = MetaFeatures(
            market_volatility=0.2, signal_agreement=0.5, prediction_confidence=0.7,
            historical_accuracy=0.8, market_regime="bull", timeframe_consistency=0.4,
        )
        assert meta_score(features) == pytest.approx(0.6)

    def test_default_meta_features(self):
        signals = two_to_one_timeframes()
        resolution = self.learner.resolver.resolve(signals)
        features = self.learner.meta_features(signals, resolution)
        assert features.historical_accuracy == 0.5
        assert features.market_regime == "sideways"
        assert features.timeframe_consistency == 0.5
        assert features.prediction_confidence == pytest.approx((0.8 + 0.75 + 0.6) / 3)

    def test_meta_learning_scales_resolution(self):
        ensemble = self.learner.combine("AAPL", two_to_one_timeframes())
        assert ensemble.meta_score == pytest.approx(0.5)
        assert ensemble.final_signal.signal is BUY
        assert ensemble.final_signal.confidence == pytest.approx(0.5 * 2 / 3 * 0.775)
        assert ensemble.final_signal.strength == pytest.approx(0.35)
        assert ensemble.method == "meta_learning"

    def test_confidence_ceiling(self):
        signals = {tf: make_signal(BUY, 1.0, 1.0) for tf in ("1d", "1h", "15m")}
        ensemble = self.learner.combine("AAPL", signals, historical_accuracy=1.0)
        assert ensemble.final_signal.confidence == 0.95
        assert ensemble.final_signal.strength == 1.0

    def test_analytics_inputs_recorded(self):
        ensemble = self.learner.combine(
            "AAPL", two_to_one_timeframes(), historical_accuracy=0.9, market_regime="bull", market_volatility=0.3
        )
        assert ensemble.meta_features.historical_accuracy == 0.9
        assert ensemble.meta_features.market_regime == "bull"
        assert ensemble.meta_features.market_volatility == 0.3
        assert "bull regime" in ensemble.final_signal.reasoning

    @pytest.mark.parametrize("method", ["voting", "averaging", "stacking"])
    def test_alternative_methods(self, method):
        ensemble = self.learner.combine("AAPL", two_to_one_timeframes(), method=method)
        assert ensemble.method == method
        assert ensemble.final_signal.rule == method
        assert 0.0 <= ensemble.final_signal.confidence <= 0.95

    def test_method_from_config(self):
        learner = MetaLearner(MetaConfig(method="voting"))
        assert learner.combine("AAPL", two_to_one_timeframes()).method == "voting"

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="unknown ensemble method"):
            self.learner.combine("AAPL", two_to_one_timeframes(), method="boosting")

    def test_risk_lock_survives_calibration(self):
        signals = two_to_one_timeframes()
        signals["1h"] = make_signal(HOLD, 0.3, 0.5, final=True, filters_applied=("risk_budget",))
        ensemble = self.learner.combine("AAPL", signals, method="averaging")
        assert ensemble.final_signal.signal is HOLD
        assert ensemble.final_signal.final is True
        assert ensemble.final_signal.rule == "risk_locked"
        assert "risk_budget" in ensemble.final_signal.filters_applied

    def test_packaging(self):
        now = datetime(2024, 1, 2, tzinfo=timezone.utc)
        ensemble = self.learner.combine("AAPL", two_to_one_timeframes(), valid_for_s=60, now=now)
        assert ensemble.symbol == "AAPL"
        assert set(ensemble.timeframe_signals) == {"1d", "1h", "15m"}
        assert sum(c.weight for c in ensemble.contributions.values()) == pytest.approx(1.0)
        assert ensemble.agreement == pytest.approx(2 / 3)
        assert ensemble.final_signal.valid_until == now + timedelta(seconds=60)
        assert ensemble.degraded is False

    def test_degraded_inputs_reported(self):
        signals = two_to_one_timeframes()
        signals["15m"] = make_signal(SELL, 0.7, 0.6, degraded=True)
        ensemble = self.learner.combine("AAPL", signals)
        assert ensemble.degraded is True
        assert ensemble.degradation_reasons == ("15m:degraded",)
