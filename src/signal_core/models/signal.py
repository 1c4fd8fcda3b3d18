"""Signal, risk, sizing, and level records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SignalType(str, Enum):
    """Discrete recommendation classes."""

    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"

    @property
    def is_buy(self) -> bool:
        return self in (SignalType.BUY, SignalType.STRONG_BUY)

    @property
    def is_sell(self) -> bool:
        return self in (SignalType.SELL, SignalType.STRONG_SELL)

    @property
    def is_strong(self) -> bool:
        return self in (SignalType.STRONG_BUY, SignalType.STRONG_SELL)

    @property
    def direction(self) -> int:
        """+1 for buy-class, -1 for sell-class, 0 for HOLD."""
        return 1 if self.is_buy else -1 if self.is_sell else 0

    @property
    def score(self) -> float:
        """Numeric value used by averaging ensembles."""
        return _SCORES[self]


_SCORES = {
    SignalType.STRONG_SELL: -1.0,
    SignalType.SELL: -0.5,
    SignalType.HOLD: 0.0,
    SignalType.BUY: 0.5,
    SignalType.STRONG_BUY: 1.0,
}


class SignalThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    buy_threshold: float
    sell_threshold: float
    confidence_threshold: float
    uncertainty_threshold: float


class SignalRiskMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_drawdown: float = Field(ge=0.0)
    volatility: float = Field(ge=0.0)
    sharpe_ratio: float


class TradingSignal(BaseModel):
    """Immutable signal snapshot, valid until *valid_until*.

    *final* marks a risk-budget override that later stages must not lift.
    """

    model_config = ConfigDict(frozen=True)

    signal: SignalType
    strength: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    rule: str
    thresholds: SignalThresholds
    risk_metrics: SignalRiskMetrics
    filters_applied: tuple[str, ...] = ()
    final: bool = False
    degraded: bool = False
    timeframe: str | None = None
    generated_at: datetime
    valid_until: datetime


RiskCategory = Literal["LOW", "MEDIUM", "HIGH"]


class RiskComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    technical: float = Field(ge=0.0, le=1.0)
    market: float = Field(ge=0.0, le=1.0)
    sentiment: float = Field(ge=0.0, le=1.0)
    liquidity: float = Field(ge=0.0, le=1.0)
    concentration: float = Field(ge=0.0, le=1.0)
    model: float = Field(ge=0.0, le=1.0)


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    components: RiskComponents
    overall: float = Field(ge=0.0, le=1.0)
    category: RiskCategory
    max_drawdown: float
    volatility: float
    recommendations: tuple[str, ...] = ()


class SizingConstraints(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_position: float
    max_position: float
    heat_budget: float
    remaining_heat: float


class PositionSizing(BaseModel):
    """Recommended exposure as a fraction of portfolio value."""

    model_config = ConfigDict(frozen=True)

    recommended: float = Field(ge=0.0, le=1.0)
    methods: dict[str, float]
    constraints: SizingConstraints
    profile: str
    rationale: str


class LevelTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    support: float
    resistance: float


class TradingLevels(BaseModel):
    """Entry, stop-loss and take-profit bracketing entry per direction."""

    model_config = ConfigDict(frozen=True)

    entry: float
    stop_loss: float
    take_profit: float
    support: float
    resistance: float
    tiers: dict[str, LevelTier]
    risk_reward_ratio: float
    atr: float
    direction: Literal["LONG", "SHORT", "FLAT"]


class FactorAnalysis(BaseModel):
    """Per-factor scores in [0, 1] recorded for audit."""

    model_config = ConfigDict(frozen=True)

    scores: dict[str, float]
    weights: dict[str, float]
    weighted_score: float
    dominant: tuple[str, ...]
