"""Tests for the command-line entry point."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from signal_core.models import FeatureVector
from signal_core.pipeline.cli import load_request, main

FEATURES = {
    "symbol": "AAPL",
    "price": 150.0,
    "volume": 2_000_000,
    "rsi": 65.5,
    "macd": 2.5,
    "bollinger": {"upper": 155.0, "middle": 150.0, "lower": 145.0},
    "sma20": 148.0,
    "sma50": 145.0,
    "ema12": 149.0,
    "ema26": 147.0,
    "support": 140.0,
    "resistance": 160.0,
    "volatility": 0.25,
    "momentum": 0.05,
}


class TestLoadRequest:
    def test_bare_features_stamped_now(self, tmp_path):
        path = tmp_path / "features.json"
        path.write_text(json.dumps(FEATURES))
        request = load_request(path)
        assert isinstance(request["features"], FeatureVector)
        age = datetime.now(timezone.utc) - request["features"].timestamp
        assert age.total_seconds() < 60
        assert set(request) == {"features"}

    def test_envelope(self, tmp_path):
        path = tmp_path / "request.json"
        path.write_text(
            json.dumps(
                {
                    "features": FEATURES,
                    "sentiment": {"symbol": "AAPL", "overall": 0.4, "confidence": 0.7},
                    "market": {"vix_level": 18.0, "market_trend": "BULLISH"},
                    "portfolio": {"total_value": 100000, "positions": {"AAPL": 5000}},
                    "profile": {"tolerance": "CONSERVATIVE"},
                }
            )
        )
        request = load_request(path)
        assert request["sentiment"].overall == 0.4
        assert request["market"].market_trend == "BULLISH"
        assert request["portfolio"].positions == {"AAPL": 5000}
        assert request["profile"].tolerance == "CONSERVATIVE"

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError, match="JSON object"):
            load_request(path)


class TestMain:
    def test_prints_recommendation(self, tmp_path, capsys):
        path = tmp_path / "features.json"
        path.write_text(json.dumps(FEATURES))
        assert main(None, str(path), horizons=["1d"], timeframe="1d") == 0

        out = json.loads(capsys.readouterr().out)
        assert out["symbol"] == "AAPL"
        assert out["signal"]["signal"] in {"STRONG_BUY", "BUY", "HOLD", "SELL", "STRONG_SELL"}
        assert out["signal"]["timeframe"] == "1d"
        assert out["prediction"]["horizon_predictions"][0]["horizon"] == "1d"
        assert "sizing" in out

    def test_config_file(self, tmp_path, capsys):
        config = tmp_path / "config.yaml"
        config.write_text("logging:\n  format: console\nsizing:\n  max_position: 0.02\n")
        path = tmp_path / "features.json"
        path.write_text(json.dumps(FEATURES))
        main(str(config), str(path), horizons=["1d"])

        out = json.loads(capsys.readouterr().out)
        assert out["sizing"]["recommended"] <= 0.02
