"""Multi-timeframe records — conflicts, resolution, meta-features."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from signal_core.models.signal import SignalType, TradingSignal


class TimeframeConflict(BaseModel):
    model_config = ConfigDict(frozen=True)

    timeframe_a: str
    timeframe_b: str
    signal_a: SignalType
    signal_b: SignalType
    strength_a: float
    strength_b: float
    confidence_a: float
    confidence_b: float


class ConflictResolution(BaseModel):
    """Outcome of weighted voting; *conflicts* is kept for audit."""

    model_config = ConfigDict(frozen=True)

    conflicts: tuple[TimeframeConflict, ...]
    resolution: str
    final_signal: SignalType
    strength: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    votes: dict[str, float]
    weights: dict[str, float]
    score: float
    final: bool = False


class MetaFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    market_volatility: float
    signal_agreement: float
    prediction_confidence: float
    historical_accuracy: float = Field(ge=0.0, le=1.0)
    market_regime: str
    timeframe_consistency: float = Field(ge=0.0, le=1.0)


class TimeframeContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    weight: float
    signal: SignalType
    strength: float
    confidence: float


class EnsembleSignal(BaseModel):
    """Output of conflict resolution plus meta-learning calibration."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    timeframe_signals: dict[str, TradingSignal]
    conflicts: tuple[TimeframeConflict, ...]
    resolution: ConflictResolution
    final_signal: TradingSignal
    meta_features: MetaFeatures
    meta_score: float
    method: str
    agreement: float
    contributions: dict[str, TimeframeContribution]
    degraded: bool = False
    degradation_reasons: tuple[str, ...] = ()
    generated_at: datetime
