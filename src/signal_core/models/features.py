"""Input records supplied by external collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class BollingerBands(BaseModel):
    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float


class FeatureVector(BaseModel):
    """Technical features for one symbol at one point in time.

    Produced by the feature-engineering collaborator. Values are not
    sanity-checked here; non-finite inputs surface as predictor failures.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    timestamp: datetime
    price: float
    volume: float
    rsi: float
    macd: float
    bollinger: BollingerBands
    sma20: float
    sma50: float
    ema12: float
    ema26: float
    support: float
    resistance: float
    volatility: float
    momentum: float


class SentimentScore(BaseModel):
    """Aggregated sentiment in [-1, 1] with its own confidence."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    overall: float = Field(ge=-1.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: datetime | None = None


class MarketState(BaseModel):
    model_config = ConfigDict(frozen=True)

    vix_level: float
    market_trend: Literal["BULLISH", "BEARISH", "NEUTRAL"] = "NEUTRAL"
    timestamp: datetime | None = None


class PortfolioContext(BaseModel):
    """Current holdings as seen by the portfolio collaborator."""

    model_config = ConfigDict(frozen=True)

    total_value: float = Field(gt=0)
    positions: dict[str, float] = Field(default_factory=dict)  # symbol -> market value
    current_heat: float = Field(default=0.0, ge=0.0)  # fraction of capital at risk


class RiskProfile(BaseModel):
    """Caller risk preferences; unset limits fall back to engine config."""

    model_config = ConfigDict(frozen=True)

    tolerance: Literal["CONSERVATIVE", "MODERATE", "AGGRESSIVE"] = "MODERATE"
    max_position_size: float | None = Field(default=None, gt=0, le=1)
    max_portfolio_heat: float | None = Field(default=None, gt=0, le=1)
    risk_budget: float | None = Field(default=None, gt=0, le=1)
