"""Position sizing — pure functions plus a profile-aware combiner.

All sizes are fractions of portfolio value.
"""

from __future__ import annotations

from signal_core.config.schema import SIZING_METHODS, SizingConfig
from signal_core.models import (
    PortfolioContext,
    PositionSizing,
    RiskAssessment,
    RiskProfile,
    SizingConstraints,
    TradingLevels,
    TradingSignal,
)


def confidence_to_win_prob(confidence: float, base_rate: float = 0.5) -> float:
    """Map signal confidence (0–1) to win probability for Kelly.

    p = base_rate + confidence * (1 - base_rate)

    confidence=0 → p=base_rate (neutral edge),
    confidence=1 → p=1.0 (certainty).
    """
    return base_rate + confidence * (1.0 - base_rate)


def calculate_kelly_fraction(
    win_prob: float,
    reward_risk: float,
    safety_factor: float = 0.5,
    cap: float = 0.25,
) -> float:
    """Capped, fractional Kelly.

    kelly = (p * b - (1-p)) / b      where b = reward-to-risk
    adjusted = min(kelly, cap) * safety_factor

    Returns 0.0 if b is non-positive or the edge is non-positive.
    """
    if reward_risk <= 0:
        return 0.0
    kelly = (win_prob * reward_risk - (1 - win_prob)) / reward_risk
    if kelly <= 0:
        return 0.0
    return min(kelly, cap) * safety_factor


def risk_parity_size(volatility: float, target_risk: float, min_volatility: float = 0.01) -> float:
    """Size so that size * volatility equals *target_risk*."""
    return target_risk / max(volatility, min_volatility)


def volatility_target_size(
    volatility: float,
    target_volatility: float,
    base_position: float,
    cap: float,
    min_volatility: float = 0.01,
) -> float:
    """base * target / realised, capped."""
    return min(base_position * target_volatility / max(volatility, min_volatility), cap)


def heat_size(remaining_heat: float, overall_risk: float) -> float:
    """Share of the remaining heat budget, shrunk by aggregate risk."""
    return max(0.0, remaining_heat) * (1 - overall_risk)


def reward_risk_ratio(levels: TradingLevels | None, default: float) -> float:
    if levels is None or levels.direction == "FLAT" or levels.risk_reward_ratio <= 0:
        return default
    return levels.risk_reward_ratio


class PositionSizer:
    def __init__(self, config: SizingConfig | None = None) -> None:
        self.config = config or SizingConfig()

    def constraints(
        self,
        profile: RiskProfile | None = None,
        portfolio: PortfolioContext | None = None,
    ) -> SizingConstraints:
        cfg = self.config
        max_position = cfg.max_position
        heat_budget = cfg.max_portfolio_heat
        if profile is not None:
            if profile.max_position_size is not None:
                max_position = min(max_position, profile.max_position_size)
            if profile.max_portfolio_heat is not None:
                heat_budget = profile.max_portfolio_heat
        current_heat = portfolio.current_heat if portfolio is not None else 0.0
        return SizingConstraints(
            min_position=min(cfg.min_position, max_position),
            max_position=max_position,
            heat_budget=heat_budget,
            remaining_heat=max(0.0, heat_budget - current_heat),
        )

    def flat(
        self,
        rationale: str,
        profile: RiskProfile | None = None,
        portfolio: PortfolioContext | None = None,
    ) -> PositionSizing:
        """Zero position with every method zeroed, for paths with no risk picture."""
        return PositionSizing(
            recommended=0.0,
            methods=dict.fromkeys(SIZING_METHODS, 0.0),
            constraints=self.constraints(profile, portfolio),
            profile=profile.tolerance if profile is not None else "MODERATE",
            rationale=rationale,
        )

    def methods(
        self,
        signal: TradingSignal,
        risk: RiskAssessment,
        volatility: float,
        remaining_heat: float,
        levels: TradingLevels | None = None,
    ) -> dict[str, float]:
        cfg = self.config
        win_prob = confidence_to_win_prob(signal.confidence, cfg.kelly_base_win_prob)
        return {
            "kelly": calculate_kelly_fraction(
                win_prob,
                reward_risk_ratio(levels, cfg.default_reward_risk),
                safety_factor=cfg.kelly_safety_factor,
                cap=cfg.kelly_cap,
            ),
            "risk_parity": risk_parity_size(volatility, cfg.risk_parity_target, cfg.min_volatility),
            "volatility": volatility_target_size(
                volatility,
                cfg.volatility_target,
                cfg.volatility_base_position,
                cfg.volatility_position_cap,
                cfg.min_volatility,
            ),
            "heat": heat_size(remaining_heat, risk.overall),
        }

    def size(
        self,
        signal: TradingSignal,
        risk: RiskAssessment,
        volatility: float,
        profile: RiskProfile | None = None,
        portfolio: PortfolioContext | None = None,
        levels: TradingLevels | None = None,
    ) -> PositionSizing:
        """Combine the four sizing methods per the risk profile, then clip.

        Returns 0 for HOLD, for HIGH risk without a STRONG_* signal, and
        when the heat budget is exhausted.
        """
        constraints = self.constraints(profile, portfolio)
        profile_name = profile.tolerance if profile is not None else "MODERATE"
        sizing_profile = self.config.profiles.get(profile_name) or self.config.profiles["MODERATE"]
        methods = self.methods(signal, risk, volatility, constraints.remaining_heat, levels)

        def result(recommended: float, rationale: str) -> PositionSizing:
            return PositionSizing(
                recommended=recommended,
                methods=methods,
                constraints=constraints,
                profile=profile_name,
                rationale=rationale,
            )

        if signal.signal.direction == 0:
            return result(0.0, "no position for HOLD")
        if risk.category == "HIGH" and not signal.signal.is_strong:
            return result(0.0, "HIGH risk requires a STRONG signal")
        if constraints.remaining_heat <= 0:
            return result(0.0, "portfolio heat budget exhausted")

        if sizing_profile.method == "minimum":
            combined = min(methods.values())
            how = "minimum of methods"
        else:
            combined = sum(methods[m] * w for m, w in sizing_profile.weights.items())
            how = "weighted blend"
        if combined <= 0:
            return result(0.0, f"{how} found no edge")

        clipped = max(constraints.min_position, min(constraints.max_position, combined))
        clipped = min(clipped, constraints.remaining_heat)
        return result(
            clipped,
            f"{how} {combined:.4f} clipped to [{constraints.min_position}, "
            f"{constraints.max_position}] and heat {constraints.remaining_heat:.4f}",
        )
