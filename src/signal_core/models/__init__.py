"""Pydantic domain models."""

from signal_core.models.ensemble import (
    ConflictResolution,
    EnsembleSignal,
    MetaFeatures,
    TimeframeConflict,
    TimeframeContribution,
)
from signal_core.models.features import (
    BollingerBands,
    FeatureVector,
    MarketState,
    PortfolioContext,
    RiskProfile,
    SentimentScore,
)
from signal_core.models.prediction import (
    DirectionForecast,
    EnsembleEstimate,
    EnsemblePrediction,
    HorizonPrediction,
    MarketPrediction,
    ModelPrediction,
    PriceRange,
    UncertaintyBounds,
)
from signal_core.models.recommendation import Recommendation
from signal_core.models.signal import (
    FactorAnalysis,
    LevelTier,
    PositionSizing,
    RiskAssessment,
    RiskComponents,
    SignalRiskMetrics,
    SignalThresholds,
    SignalType,
    SizingConstraints,
    TradingLevels,
    TradingSignal,
)

__all__ = [
    "BollingerBands",
    "ConflictResolution",
    "DirectionForecast",
    "EnsembleEstimate",
    "EnsemblePrediction",
    "EnsembleSignal",
    "FactorAnalysis",
    "FeatureVector",
    "HorizonPrediction",
    "LevelTier",
    "MarketPrediction",
    "MarketState",
    "MetaFeatures",
    "ModelPrediction",
    "PortfolioContext",
    "PositionSizing",
    "PriceRange",
    "Recommendation",
    "RiskAssessment",
    "RiskComponents",
    "RiskProfile",
    "SentimentScore",
    "SignalRiskMetrics",
    "SignalThresholds",
    "SignalType",
    "SizingConstraints",
    "TimeframeConflict",
    "TimeframeContribution",
    "TradingLevels",
    "TradingSignal",
    "UncertaintyBounds",
]
