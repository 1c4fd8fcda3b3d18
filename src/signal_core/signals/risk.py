"""Risk assessment and post-synthesis signal filters.

Filters can only scale strength down or force HOLD. A risk-budget breach
produces a *final* HOLD that no later stage may lift.
"""

from __future__ import annotations

import structlog

from signal_core.config.schema import RiskConfig
from signal_core.errors import RiskBudgetExceededError
from signal_core.models import (
    FeatureVector,
    MarketState,
    PortfolioContext,
    RiskAssessment,
    RiskComponents,
    RiskProfile,
    SentimentScore,
    SignalType,
    TradingSignal,
    UncertaintyBounds,
)
from signal_core.predictors.indicators import trend_score

log = structlog.get_logger("risk")


def technical_risk(features: FeatureVector) -> float:
    return (min(features.volatility * 2, 0.5) + abs(features.rsi - 50) / 100) / 2


def market_risk(market: MarketState | None) -> float:
    if market is None:
        return 0.3
    trend_risk = 0.3 if market.market_trend == "BEARISH" else 0.1
    return (min(market.vix_level / 50, 0.5) + trend_risk) / 2


def sentiment_risk(sentiment: SentimentScore | None) -> float:
    if sentiment is None:
        return 0.2
    extreme = 0.2 if abs(sentiment.overall) > 0.8 else 0.0
    return ((1 - sentiment.confidence) + extreme) / 2


def liquidity_risk(volume: float, reference_volume: float) -> float:
    ratio = volume / reference_volume if reference_volume > 0 else 0.0
    if ratio < 0.5:
        return 0.3
    if ratio < 0.8:
        return 0.15
    return 0.05


def concentration_risk(symbol: str, portfolio: PortfolioContext | None) -> float:
    if portfolio is None:
        return 0.1
    share = abs(portfolio.positions.get(symbol, 0.0)) / portfolio.total_value
    if share > 0.2:
        return 0.4
    if share > 0.1:
        return 0.2
    return 0.05


class RiskAssessor:
    def __init__(self, config: RiskConfig | None = None, heat_budget: float = 0.2) -> None:
        self.config = config or RiskConfig()
        self.heat_budget = heat_budget

    def categorize(self, overall: float) -> str:
        if overall >= self.config.high_threshold:
            return "HIGH"
        if overall >= self.config.low_threshold:
            return "MEDIUM"
        return "LOW"

    def assess(
        self,
        features: FeatureVector,
        bounds: UncertaintyBounds,
        sentiment: SentimentScore | None = None,
        market: MarketState | None = None,
        portfolio: PortfolioContext | None = None,
    ) -> RiskAssessment:
        """Weighted blend of six component risks, each in [0, 1]."""
        cfg = self.config
        scale = cfg.model_error_scale
        components = {
            "technical": technical_risk(features),
            "market": market_risk(market),
            "sentiment": sentiment_risk(sentiment),
            "liquidity": liquidity_risk(features.volume, cfg.reference_volume),
            "concentration": concentration_risk(features.symbol, portfolio),
            "model": min(1.0, bounds.standard_error / scale) if scale > 0 else 1.0,
        }
        components = {k: max(0.0, min(1.0, v)) for k, v in components.items()}
        overall = sum(cfg.component_weights[k] * v for k, v in components.items())
        overall = max(0.0, min(1.0, overall))
        category = self.categorize(overall)

        interval = bounds.intervals.get("95", bounds.prediction_interval)
        return RiskAssessment(
            components=RiskComponents(**components),
            overall=overall,
            category=category,
            max_drawdown=abs(min(0.0, interval[0])),
            volatility=features.volatility,
            recommendations=tuple(self._recommendations(overall, components, features)),
        )

    def _recommendations(
        self, overall: float, components: dict[str, float], features: FeatureVector
    ) -> list[str]:
        notes = []
        if overall >= self.config.high_threshold:
            notes.append("Consider reducing position size due to high risk")
        if features.volatility > self.config.high_volatility:
            notes.append("Monitor volatility closely")
        if components["liquidity"] >= 0.3:
            notes.append("Be cautious of liquidity constraints")
        if components["concentration"] >= 0.4:
            notes.append("Position already concentrated; avoid adding exposure")
        return notes

    def check_budget(
        self,
        risk: RiskAssessment,
        profile: RiskProfile | None = None,
        portfolio: PortfolioContext | None = None,
    ) -> None:
        """Raise RiskBudgetExceededError on an aggregate risk or heat breach."""
        budget = self.config.risk_budget
        if profile is not None and profile.risk_budget is not None:
            budget = profile.risk_budget
        if risk.overall > budget:
            raise RiskBudgetExceededError(risk.overall, budget)

        heat_budget = self.heat_budget
        if profile is not None and profile.max_portfolio_heat is not None:
            heat_budget = profile.max_portfolio_heat
        if portfolio is not None and portfolio.current_heat >= heat_budget:
            raise RiskBudgetExceededError(portfolio.current_heat, heat_budget)

    def apply_filters(
        self,
        signal: TradingSignal,
        features: FeatureVector,
        risk: RiskAssessment,
        sentiment: SentimentScore | None = None,
        market: MarketState | None = None,
        portfolio: PortfolioContext | None = None,
        profile: RiskProfile | None = None,
    ) -> TradingSignal:
        if signal.final:
            return signal

        cfg = self.config
        strength = signal.strength
        applied: list[str] = list(signal.filters_applied)
        direction = signal.signal.direction

        if features.volatility > cfg.high_volatility:
            strength *= cfg.volatility_multiplier
            applied.append("high_volatility")

        if direction and self._trend(features, market) == -direction:
            strength *= cfg.trend_conflict_multiplier
            applied.append("trend_conflict")

        if (
            direction
            and sentiment is not None
            and abs(sentiment.overall) >= cfg.sentiment_divergence_threshold
            and (sentiment.overall > 0) != (direction > 0)
        ):
            strength *= cfg.sentiment_divergence_multiplier
            applied.append("sentiment_divergence")

        ratio = features.volume / cfg.reference_volume if cfg.reference_volume > 0 else 0.0
        if ratio < cfg.liquidity_threshold:
            strength *= max(cfg.liquidity_floor, ratio / cfg.liquidity_threshold)
            applied.append("liquidity_shortfall")

        try:
            self.check_budget(risk, profile, portfolio)
        except RiskBudgetExceededError as exc:
            log.warning(
                "risk_budget_exceeded",
                overall_risk=exc.overall_risk,
                budget=exc.budget,
                original_signal=signal.signal.value,
            )
            return signal.model_copy(
                update={
                    "signal": SignalType.HOLD,
                    "strength": min(strength, cfg.budget_hold_strength),
                    "rule": "risk_budget",
                    "reasoning": f"HOLD: {exc} (was {signal.signal.value})",
                    "filters_applied": tuple([*applied, "risk_budget"]),
                    "final": True,
                }
            )

        return signal.model_copy(
            update={"strength": min(signal.strength, strength), "filters_applied": tuple(applied)}
        )

    def _trend(self, features: FeatureVector, market: MarketState | None) -> int:
        if market is not None and market.market_trend != "NEUTRAL":
            return 1 if market.market_trend == "BULLISH" else -1
        score = trend_score(features)
        if score > self.config.trend_threshold:
            return 1
        if score < -self.config.trend_threshold:
            return -1
        return 0


def execution_priority(signal: TradingSignal, risk: RiskAssessment) -> str:
    if signal.signal is SignalType.HOLD:
        return "LOW"
    if signal.strength > 0.8 and risk.overall < 0.3:
        return "HIGH"
    if signal.strength > 0.6 and risk.overall < 0.4:
        return "MEDIUM"
    return "LOW"
