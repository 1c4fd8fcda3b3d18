"""Configuration schema — Pydantic models for config.yaml.

Thresholds and weights here are policy, not physics: every table that is
combined as a weighted sum must add up to 1 and is rejected otherwise.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, ValidationInfo, model_validator

from signal_core.errors import InvalidConfigurationError

WEIGHT_TOLERANCE = 1e-3
MIN_WEIGHT_TOLERANCE = 1e-6
MAX_WEIGHT_TOLERANCE = 0.01

RISK_COMPONENTS = ("technical", "market", "sentiment", "liquidity", "concentration", "model")
SIZING_METHODS = ("kelly", "risk_parity", "volatility", "heat")
FACTORS = ("technical", "sentiment", "market", "momentum", "volatility", "liquidity")


def check_weights(name: str, weights: dict[str, float], tolerance: float = WEIGHT_TOLERANCE) -> None:
    """Raise InvalidConfigurationError unless *weights* are non-negative and sum to 1."""
    if not weights:
        raise InvalidConfigurationError(f"{name}: weight table is empty")
    negative = [k for k, v in weights.items() if v < 0]
    if negative:
        raise InvalidConfigurationError(f"{name}: negative weights for {negative}")
    total = sum(weights.values())
    if abs(total - 1.0) > tolerance:
        raise InvalidConfigurationError(
            f"{name}: weights sum to {total:.4f}, expected 1.0 (±{tolerance})"
        )


def _tolerance(info: ValidationInfo | None) -> float:
    """Weight tolerance passed as validation context, else the default."""
    context = info.context if info is not None else None
    if not context:
        return WEIGHT_TOLERANCE
    return context.get("weight_tolerance", WEIGHT_TOLERANCE)


def _default_model_weights() -> dict[str, dict[str, float]]:
    # architecture -> horizon -> weight; each horizon column sums to 1
    return {
        "lstm": {"1h": 0.30, "4h": 0.25, "1d": 0.20, "1w": 0.15},
        "gru": {"1h": 0.25, "4h": 0.25, "1d": 0.20, "1w": 0.15},
        "transformer": {"1h": 0.15, "4h": 0.20, "1d": 0.25, "1w": 0.30},
        "arima_garch": {"1h": 0.10, "4h": 0.10, "1d": 0.15, "1w": 0.20},
        "technical": {"1h": 0.15, "4h": 0.12, "1d": 0.10, "1w": 0.05},
        "regime": {"1h": 0.05, "4h": 0.08, "1d": 0.10, "1w": 0.15},
    }


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class PredictorConfig(BaseModel):
    """Static (architecture, horizon) weight table plus per-architecture params."""

    weights: dict[str, dict[str, float]] = Field(default_factory=_default_model_weights)
    params: dict[str, dict[str, float | int | str | bool]] = Field(default_factory=dict)

    def horizons(self) -> list[str]:
        seen: dict[str, None] = {}
        for column in self.weights.values():
            for horizon in column:
                seen.setdefault(horizon, None)
        return list(seen)

    def horizon_weights(self, horizon: str) -> dict[str, float]:
        """Architectures with a positive weight for *horizon*."""
        return {
            arch: column[horizon]
            for arch, column in self.weights.items()
            if column.get(horizon, 0.0) > 0
        }

    @model_validator(mode="after")
    def _check_columns(self, info: ValidationInfo) -> PredictorConfig:
        tolerance = _tolerance(info)
        for horizon in self.horizons():
            check_weights(f"predictors.weights[{horizon}]", self.horizon_weights(horizon), tolerance)
        return self


class HorizonConfig(BaseModel):
    importance: dict[str, float] = Field(
        default_factory=lambda: {"1h": 0.4, "4h": 0.3, "1d": 0.2, "1w": 0.1}
    )
    default: list[str] = Field(default_factory=lambda: ["1h", "4h", "1d", "1w"])

    @model_validator(mode="after")
    def _check(self, info: ValidationInfo) -> HorizonConfig:
        check_weights("horizons.importance", self.importance, _tolerance(info))
        unknown = [h for h in self.default if h not in self.importance]
        if unknown:
            raise InvalidConfigurationError(f"horizons.default has unknown horizons {unknown}")
        return self


class UncertaintyConfig(BaseModel):
    z_scores: dict[str, float] = Field(
        default_factory=lambda: {"68": 1.0, "95": 1.96, "99": 2.58}
    )
    prediction_interval_z: float = 2.0

    @model_validator(mode="after")
    def _check(self) -> UncertaintyConfig:
        levels = sorted(self.z_scores, key=float)
        z = [self.z_scores[level] for level in levels]
        if any(v <= 0 for v in z) or any(b <= a for a, b in zip(z, z[1:])):
            raise InvalidConfigurationError(
                "uncertainty.z_scores must be positive and increase with confidence level"
            )
        return self


class SignalConfig(BaseModel):
    buy_return: float = 0.01
    strong_return: float = 0.03
    min_confidence: float = 0.7
    strong_confidence: float = 0.8
    strong_max_std_error: float = 0.02
    hold_std_error: float = 0.05
    strong_strength: float = 0.9
    strength: float = 0.7
    uncertainty_hold_strength: float = 0.3
    hold_strength: float = 0.0
    valid_for_s: float = 300.0

    @model_validator(mode="after")
    def _check(self) -> SignalConfig:
        if not 0 < self.buy_return < self.strong_return:
            raise InvalidConfigurationError("signals: require 0 < buy_return < strong_return")
        if not 0 < self.min_confidence <= self.strong_confidence <= 1:
            raise InvalidConfigurationError(
                "signals: require 0 < min_confidence <= strong_confidence <= 1"
            )
        if not 0 < self.strong_max_std_error <= self.hold_std_error:
            raise InvalidConfigurationError(
                "signals: require 0 < strong_max_std_error <= hold_std_error"
            )
        for name in ("strong_strength", "strength", "uncertainty_hold_strength", "hold_strength"):
            if not 0 <= getattr(self, name) <= 1:
                raise InvalidConfigurationError(f"signals.{name} must be within [0, 1]")
        return self


class RiskConfig(BaseModel):
    component_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "technical": 0.25,
            "market": 0.25,
            "sentiment": 0.15,
            "liquidity": 0.15,
            "concentration": 0.15,
            "model": 0.05,
        }
    )
    low_threshold: float = 0.25
    high_threshold: float = 0.4
    model_error_scale: float = 0.1
    # Post-synthesis filters; multipliers must not exceed 1
    high_volatility: float = 0.4
    volatility_multiplier: float = 0.8
    trend_conflict_multiplier: float = 0.7
    trend_threshold: float = 0.33
    sentiment_divergence_multiplier: float = 0.85
    sentiment_divergence_threshold: float = 0.3
    reference_volume: float = 1_500_000
    liquidity_threshold: float = 0.8
    liquidity_floor: float = 0.5
    risk_budget: float = 0.6
    budget_hold_strength: float = 0.3

    @model_validator(mode="after")
    def _check(self, info: ValidationInfo) -> RiskConfig:
        if set(self.component_weights) != set(RISK_COMPONENTS):
            raise InvalidConfigurationError(
                f"risk.component_weights must define exactly {list(RISK_COMPONENTS)}"
            )
        check_weights("risk.component_weights", self.component_weights, _tolerance(info))
        if not 0 < self.low_threshold < self.high_threshold <= 1:
            raise InvalidConfigurationError("risk: require 0 < low_threshold < high_threshold <= 1")
        for name in (
            "volatility_multiplier",
            "trend_conflict_multiplier",
            "sentiment_divergence_multiplier",
            "liquidity_floor",
        ):
            if not 0 <= getattr(self, name) <= 1:
                raise InvalidConfigurationError(f"risk.{name} must be within [0, 1]")
        return self


class FactorConfig(BaseModel):
    weights: dict[str, float] = Field(
        default_factory=lambda: {
            "technical": 0.30,
            "sentiment": 0.25,
            "market": 0.20,
            "momentum": 0.10,
            "volatility": 0.075,
            "liquidity": 0.075,
        }
    )
    # Shift applied in bearish markets; must net to zero
    bearish_shift: dict[str, float] = Field(
        default_factory=lambda: {
            "technical": 0.10,
            "sentiment": 0.05,
            "market": -0.10,
            "momentum": -0.05,
        }
    )

    @model_validator(mode="after")
    def _check(self, info: ValidationInfo) -> FactorConfig:
        tolerance = _tolerance(info)
        if set(self.weights) != set(FACTORS):
            raise InvalidConfigurationError(f"factors.weights must define exactly {list(FACTORS)}")
        check_weights("factors.weights", self.weights, tolerance)
        shifted = {k: v + self.bearish_shift.get(k, 0.0) for k, v in self.weights.items()}
        check_weights("factors.weights+bearish_shift", shifted, tolerance)
        return self


class SizingProfile(BaseModel):
    method: Literal["blend", "minimum"] = "blend"
    weights: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check(self, info: ValidationInfo) -> SizingProfile:
        if self.method == "blend":
            unknown = set(self.weights) - set(SIZING_METHODS)
            if unknown:
                raise InvalidConfigurationError(f"sizing profile has unknown methods {sorted(unknown)}")
            check_weights("sizing.profiles.weights", self.weights, _tolerance(info))
        return self


def _default_profiles() -> dict[str, SizingProfile]:
    return {
        "CONSERVATIVE": SizingProfile(method="minimum"),
        "MODERATE": SizingProfile(
            weights={"kelly": 0.25, "risk_parity": 0.25, "volatility": 0.25, "heat": 0.25}
        ),
        "AGGRESSIVE": SizingProfile(
            weights={"kelly": 0.4, "risk_parity": 0.2, "volatility": 0.2, "heat": 0.2}
        ),
    }


class SizingConfig(BaseModel):
    min_position: float = 0.001
    max_position: float = 0.1
    max_portfolio_heat: float = 0.2
    kelly_cap: float = 0.25
    kelly_safety_factor: float = 0.5
    kelly_base_win_prob: float = 0.5
    default_reward_risk: float = 1.6
    risk_parity_target: float = 0.01
    volatility_target: float = 0.2
    volatility_base_position: float = 0.05
    volatility_position_cap: float = 0.15
    min_volatility: float = 0.01
    profiles: dict[str, SizingProfile] = Field(default_factory=_default_profiles)

    @model_validator(mode="after")
    def _check(self) -> SizingConfig:
        if not 0 <= self.min_position <= self.max_position <= 1:
            raise InvalidConfigurationError("sizing: require 0 <= min_position <= max_position <= 1")
        if not 0 < self.max_portfolio_heat <= 1:
            raise InvalidConfigurationError("sizing.max_portfolio_heat must be within (0, 1]")
        if "MODERATE" not in self.profiles:
            raise InvalidConfigurationError("sizing.profiles must define MODERATE")
        return self


class LevelsConfig(BaseModel):
    atr_factor: float = 0.02
    stop_volatility_scale: float = 5.0
    take_volatility_scale: float = 3.0
    take_min_multiple: float = 1.5
    resistance_extension: float = 1.1
    support_extension: float = 0.9
    min_distance_pct: float = 0.001
    hold_band: float = 0.05
    tiers: dict[str, float] = Field(
        default_factory=lambda: {"immediate": 0.02, "short_term": 0.05, "medium_term": 0.10}
    )


def _default_timeframe_horizons() -> dict[str, list[str]]:
    return {
        "1m": ["1h"],
        "5m": ["1h"],
        "15m": ["1h", "4h"],
        "1h": ["1h", "4h", "1d"],
        "1d": ["1d", "1w"],
    }


class TimeframeConfig(BaseModel):
    importance: dict[str, float] = Field(
        default_factory=lambda: {"1d": 0.3, "1h": 0.25, "15m": 0.2, "5m": 0.15, "1m": 0.1}
    )
    default: list[str] = Field(default_factory=lambda: ["1m", "5m", "15m", "1h", "1d"])
    horizons: dict[str, list[str]] = Field(default_factory=_default_timeframe_horizons)
    # Strength a neutral HOLD votes with; its own strength is 0
    hold_vote_strength: float = 0.7

    @model_validator(mode="after")
    def _check(self, info: ValidationInfo) -> TimeframeConfig:
        check_weights("timeframes.importance", self.importance, _tolerance(info))
        if not self.default:
            raise InvalidConfigurationError("timeframes.default must list at least one timeframe")
        if not 0 < self.hold_vote_strength <= 1:
            raise InvalidConfigurationError("timeframes.hold_vote_strength must be within (0, 1]")
        unknown = [t for t in self.default if t not in self.importance]
        if unknown:
            raise InvalidConfigurationError(f"timeframes.default has unknown timeframes {unknown}")
        return self


class MetaConfig(BaseModel):
    method: Literal["meta_learning", "voting", "averaging", "stacking"] = "meta_learning"
    confidence_ceiling: float = 0.95
    default_accuracy: float = 0.5
    default_regime: str = "sideways"
    strong_score: float = 0.7
    score: float = 0.3

    @model_validator(mode="after")
    def _check(self) -> MetaConfig:
        if not 0 < self.confidence_ceiling <= 1:
            raise InvalidConfigurationError("meta.confidence_ceiling must be within (0, 1]")
        if not 0 < self.score < self.strong_score <= 1:
            raise InvalidConfigurationError("meta: require 0 < score < strong_score <= 1")
        return self


class PipelineConfig(BaseModel):
    cache_ttl_s: float = 30.0
    io_timeout_s: float = 5.0
    feature_staleness_s: float = 300.0
    fallback_confidence: float = 0.3
    history_size: int = 100


class StreamConfig(BaseModel):
    price_target_delta: float = 0.05
    sentiment_delta: float = 0.1
    confidence_delta: float = 0.1
    queue_size: int = 100


class EngineConfig(BaseModel):
    """Root config.

    *weight_tolerance* bounds how far any weight table may sum from 1. Section
    validators read it from the validation context (see ``validate_config``);
    the root re-checks every table against it so a tightened tolerance also
    holds for sections built directly.
    """

    weight_tolerance: float = Field(
        default=WEIGHT_TOLERANCE, ge=MIN_WEIGHT_TOLERANCE, le=MAX_WEIGHT_TOLERANCE
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    predictors: PredictorConfig = Field(default_factory=PredictorConfig)
    horizons: HorizonConfig = Field(default_factory=HorizonConfig)
    uncertainty: UncertaintyConfig = Field(default_factory=UncertaintyConfig)
    signals: SignalConfig = Field(default_factory=SignalConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    factors: FactorConfig = Field(default_factory=FactorConfig)
    sizing: SizingConfig = Field(default_factory=SizingConfig)
    levels: LevelsConfig = Field(default_factory=LevelsConfig)
    timeframes: TimeframeConfig = Field(default_factory=TimeframeConfig)
    meta: MetaConfig = Field(default_factory=MetaConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)

    @model_validator(mode="after")
    def _check_cross_references(self) -> EngineConfig:
        self._check_weight_tables()
        predictor_horizons = set(self.predictors.horizons())
        missing = [h for h in self.horizons.default if h not in predictor_horizons]
        if missing:
            raise InvalidConfigurationError(
                f"horizons.default lists {missing} but no predictor is weighted for them"
            )
        for timeframe, horizons in self.timeframes.horizons.items():
            unknown = [h for h in horizons if h not in self.horizons.importance]
            if unknown:
                raise InvalidConfigurationError(
                    f"timeframes.horizons[{timeframe}] has unknown horizons {unknown}"
                )
        return self

    def _check_weight_tables(self) -> None:
        tolerance = self.weight_tolerance
        for horizon in self.predictors.horizons():
            check_weights(
                f"predictors.weights[{horizon}]", self.predictors.horizon_weights(horizon), tolerance
            )
        check_weights("horizons.importance", self.horizons.importance, tolerance)
        check_weights("risk.component_weights", self.risk.component_weights, tolerance)
        check_weights("factors.weights", self.factors.weights, tolerance)
        shifted = {
            k: v + self.factors.bearish_shift.get(k, 0.0) for k, v in self.factors.weights.items()
        }
        check_weights("factors.weights+bearish_shift", shifted, tolerance)
        for name, profile in self.sizing.profiles.items():
            if profile.method == "blend":
                check_weights(f"sizing.profiles[{name}].weights", profile.weights, tolerance)
        check_weights("timeframes.importance", self.timeframes.importance, tolerance)
