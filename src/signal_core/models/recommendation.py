"""Per-symbol recommendation — prediction plus risk, sizing, and levels."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from signal_core.models.prediction import MarketPrediction
from signal_core.models.signal import (
    FactorAnalysis,
    PositionSizing,
    RiskAssessment,
    TradingLevels,
    TradingSignal,
)


class Recommendation(BaseModel):
    """*signal* is the risk-filtered signal; the raw one lives on *prediction*.

    Risk, levels and factors are None only on the feature-unavailable
    fallback path, where sizing is always zero.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    prediction: MarketPrediction
    signal: TradingSignal
    risk: RiskAssessment | None
    sizing: PositionSizing
    levels: TradingLevels | None
    factors: FactorAnalysis | None
    execution_priority: Literal["LOW", "MEDIUM", "HIGH"]
    degraded: bool = False
