"""Multi-factor analysis recorded alongside a recommendation."""

from __future__ import annotations

from signal_core.config.schema import FactorConfig
from signal_core.models import FactorAnalysis, FeatureVector, MarketState, SentimentScore


def _clip(value: float) -> float:
    return max(0.0, min(1.0, value))


def technical_factor(features: FeatureVector) -> float:
    rsi = 0.2 if features.rsi > 70 else 0.8 if features.rsi < 30 else 0.5
    macd = _clip((features.macd + 1) / 2)
    volume = min(1.0, features.volume / 2_000_000)
    momentum = _clip((features.momentum + 1) / 2)
    return (rsi + macd + volume + momentum) / 4


def sentiment_factor(sentiment: SentimentScore | None) -> float:
    if sentiment is None:
        return 0.5
    return (sentiment.overall + 1) / 2 * sentiment.confidence


def market_factor(market: MarketState | None) -> float:
    if market is None:
        return 0.5
    score = 0.5
    if market.vix_level < 20:
        score += 0.2
    elif market.vix_level > 30:
        score -= 0.2
    if market.market_trend == "BULLISH":
        score += 0.3
    elif market.market_trend == "BEARISH":
        score -= 0.3
    return _clip(score)


def analyze_factors(
    features: FeatureVector,
    sentiment: SentimentScore | None = None,
    market: MarketState | None = None,
    config: FactorConfig | None = None,
    reference_volume: float = 1_500_000,
) -> FactorAnalysis:
    """Score six factors in [0, 1] and weight them.

    In a bearish market the configured shift moves weight towards
    technical and sentiment factors. The three largest weighted
    contributions are reported as dominant.
    """
    cfg = config or FactorConfig()
    scores = {
        "technical": technical_factor(features),
        "sentiment": sentiment_factor(sentiment),
        "market": market_factor(market),
        "momentum": _clip((features.momentum + 1) / 2),
        "volatility": max(0.0, 1 - features.volatility * 2),
        "liquidity": min(1.0, features.volume / reference_volume) if reference_volume > 0 else 0.0,
    }

    weights = dict(cfg.weights)
    if market is not None and market.market_trend == "BEARISH":
        weights = {k: w + cfg.bearish_shift.get(k, 0.0) for k, w in weights.items()}

    contributions = {k: scores[k] * weights.get(k, 0.0) for k in scores}
    dominant = sorted(contributions, key=contributions.get, reverse=True)[:3]
    return FactorAnalysis(
        scores=scores,
        weights=weights,
        weighted_score=sum(contributions.values()),
        dominant=tuple(dominant),
    )
