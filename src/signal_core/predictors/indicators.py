"""Feature-derived indicators shared by the built-in predictors.

Pure functions on a FeatureVector. Unknown horizons raise KeyError, which
the registry records as a predictor failure.
"""

from __future__ import annotations

import math

from signal_core.models import BollingerBands, FeatureVector

HORIZON_DAYS = {"1h": 1 / 24, "4h": 1 / 6, "1d": 1.0, "1w": 7.0}

# Scales a [-1, 1] trend score to a fractional return for the horizon
HORIZON_MULTIPLIERS = {"1h": 0.01, "4h": 0.03, "1d": 0.05, "1w": 0.1}

MAX_BAND_VOLATILITY = 0.5

REGIME_MULTIPLIERS = {"BULL": 1.2, "BEAR": 0.8, "HIGH_VOLATILITY": 0.9, "NEUTRAL": 1.0}


def horizon_days(horizon: str) -> float:
    return HORIZON_DAYS[horizon]


def horizon_multiplier(horizon: str) -> float:
    return HORIZON_MULTIPLIERS[horizon]


def trend_score(features: FeatureVector) -> float:
    """Moving-average alignment score in [-1, 1].

    price > sma20, sma20 > sma50 and price > sma50 each add roughly a third;
    the sum is re-centred so a fully bearish stack scores -1.
    """
    score = 0.0
    if features.price > features.sma20:
        score += 0.33
    if features.sma20 > features.sma50:
        score += 0.33
    if features.price > features.sma50:
        score += 0.34
    return (score - 0.5) * 2


def band_volatility(features: FeatureVector) -> float:
    """Relative Bollinger band width, capped at 0.5.

    Falls back to the supplied volatility when the middle band is unusable.
    """
    bb = features.bollinger
    if bb.middle <= 0 or bb.upper < bb.lower:
        return min(abs(features.volatility), MAX_BAND_VOLATILITY)
    return min((bb.upper - bb.lower) / bb.middle, MAX_BAND_VOLATILITY)


def rsi_signal(rsi: float) -> float:
    """Contrarian RSI reading: overbought is bearish, oversold bullish."""
    if rsi > 70:
        return -0.5
    if rsi < 30:
        return 0.5
    return (50 - rsi) / 50


def macd_signal(macd: float) -> float:
    # Histogram approximated as 10% of the MACD line
    return math.tanh(macd * 0.1 * 2)


def bollinger_signal(bands: BollingerBands, price: float) -> float:
    """(0.5 - band position) * 2; zero when the bands have collapsed."""
    width = bands.upper - bands.lower
    if width <= 0:
        return 0.0
    position = (price - bands.lower) / width
    return (0.5 - position) * 2


def detect_regime(trend: float, volatility: float) -> str:
    if trend > 0.02 and volatility < 0.25:
        return "BULL"
    if trend < -0.02 and volatility > 0.3:
        return "BEAR"
    if volatility > 0.35:
        return "HIGH_VOLATILITY"
    return "NEUTRAL"


def trend_clarity(features: FeatureVector) -> float:
    """How unambiguous the current setup is, in [0, 1].

    Strong moving-average alignment in a quiet market scores high; the
    built-in models scale their confidence by it.
    """
    vol = band_volatility(features)
    return abs(trend_score(features)) * (1 - vol / MAX_BAND_VOLATILITY)
