"""Tests for domain models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from signal_core.models import PortfolioContext, RiskProfile, SentimentScore, SignalType

from factories import make_features, make_signal


class TestSignalType:
    def test_direction(self):
        assert SignalType.STRONG_BUY.direction == 1
        assert SignalType.BUY.direction == 1
        assert SignalType.HOLD.direction == 0
        assert SignalType.SELL.direction == -1
        assert SignalType.STRONG_SELL.direction == -1

    def test_strong(self):
        assert {s for s in SignalType if s.is_strong} == {SignalType.STRONG_BUY, SignalType.STRONG_SELL}

    def test_scores_are_ordered(self):
        ordered = [
            SignalType.STRONG_SELL, SignalType.SELL, SignalType.HOLD,
            SignalType.BUY, SignalType.STRONG_BUY,
        ]
        assert [s.score for s in ordered] == [-1.0, -0.5, 0.0, 0.5, 1.0]

    def test_string_value(self):
        assert SignalType("STRONG_BUY") is SignalType.STRONG_BUY


class TestRecords:
    def test_feature_vector_is_frozen(self):
        features = make_features()
        with pytest.raises(ValidationError):
            features.price = 1.0

    def test_trading_signal_is_frozen(self):
        signal = make_signal()
        with pytest.raises(ValidationError):
            signal.strength = 0.1

    @pytest.mark.parametrize("field", ["strength", "confidence"])
    def test_signal_bounds(self, field):
        with pytest.raises(ValidationError):
            make_signal(**{field: 1.2})
        with pytest.raises(ValidationError):
            make_signal(**{field: -0.1})

    def test_model_copy_replaces_not_mutates(self):
        signal = make_signal(strength=0.7)
        weaker = signal.model_copy(update={"strength": 0.5})
        assert signal.strength == 0.7
        assert weaker.strength == 0.5

    def test_sentiment_range(self):
        with pytest.raises(ValidationError):
            SentimentScore(symbol="AAPL", overall=1.5, confidence=0.5)

    def test_portfolio_requires_positive_value(self):
        with pytest.raises(ValidationError):
            PortfolioContext(total_value=0)

    def test_risk_profile_defaults(self):
        profile = RiskProfile()
        assert profile.tolerance == "MODERATE"
        assert profile.risk_budget is None
