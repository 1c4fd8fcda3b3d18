"""Signal synthesis, risk filtering, sizing and levels."""

from signal_core.signals.factors import analyze_factors
from signal_core.signals.levels import LevelsCalculator
from signal_core.signals.risk import RiskAssessor, execution_priority
from signal_core.signals.sizing import (
    PositionSizer,
    calculate_kelly_fraction,
    confidence_to_win_prob,
    heat_size,
    risk_parity_size,
    volatility_target_size,
)
from signal_core.signals.synthesizer import Classification, SignalSynthesizer, classify, risk_metrics

__all__ = [
    "Classification",
    "LevelsCalculator",
    "PositionSizer",
    "RiskAssessor",
    "SignalSynthesizer",
    "analyze_factors",
    "calculate_kelly_fraction",
    "classify",
    "confidence_to_win_prob",
    "execution_priority",
    "heat_size",
    "risk_metrics",
    "risk_parity_size",
    "volatility_target_size",
]
