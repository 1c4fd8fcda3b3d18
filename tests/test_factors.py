"""Tests for multi-factor analysis."""

from __future__ import annotations

import pytest

from signal_core.models import MarketState, SentimentScore
from signal_core.signals import analyze_factors
from signal_core.signals.factors import market_factor, sentiment_factor, technical_factor

from factories import make_features


class TestFactorScores:
    def test_technical(self):
        assert technical_factor(make_features()) == pytest.approx((0.5 + 1.0 + 1.0 + 0.525) / 4)
        overbought = make_features(rsi=80, macd=-3.0, volume=0, momentum=-1.0)
        assert technical_factor(overbought) == pytest.approx(0.05)

    def test_sentiment(self):
        assert sentiment_factor(None) == 0.5
        score = SentimentScore(symbol="AAPL", overall=0.6, confidence=0.5)
        assert sentiment_factor(score) == pytest.approx(0.4)

    @pytest.mark.parametrize(
        "vix,trend,expected",
        [(15, "BULLISH", 1.0), (25, "NEUTRAL", 0.5), (35, "BEARISH", 0.0), (35, "BULLISH", 0.6)],
    )
    def test_market(self, vix, trend, expected):
        assert market_factor(MarketState(vix_level=vix, market_trend=trend)) == pytest.approx(expected)


class TestAnalyzeFactors:
    def test_defaults(self):
        analysis = analyze_factors(make_features())
        assert analysis.weighted_score == pytest.approx(0.616875)
        assert analysis.dominant == ("technical", "sentiment", "market")
        assert sum(analysis.weights.values()) == pytest.approx(1.0)
        assert all(0.0 <= s <= 1.0 for s in analysis.scores.values())

    def test_bearish_market_shifts_weights(self):
        analysis = analyze_factors(make_features(), market=MarketState(vix_level=25, market_trend="BEARISH"))
        assert analysis.weights["technical"] == pytest.approx(0.4)
        assert analysis.weights["market"] == pytest.approx(0.1)
        assert sum(analysis.weights.values()) == pytest.approx(1.0)

    def test_illiquid_symbol(self):
        analysis = analyze_factors(make_features(volume=150_000))
        assert analysis.scores["liquidity"] == pytest.approx(0.1)
