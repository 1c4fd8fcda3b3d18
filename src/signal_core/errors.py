"""Exception hierarchy for the signal engine.

Only ``InvalidConfigurationError`` escapes the public API. The rest are
raised inside a pipeline and converted into degraded fallback records at
the coordinator boundary.
"""

from __future__ import annotations


class SignalEngineError(Exception):
    """Base exception for signal engine errors."""


class InvalidConfigurationError(SignalEngineError):
    """Raised when weights or thresholds fail validation."""


class FeatureUnavailableError(SignalEngineError):
    """Raised when features are missing, stale, or could not be fetched in time."""

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"features unavailable for {symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class PredictorError(SignalEngineError):
    """Raised when a single predictor throws or returns non-finite output."""

    def __init__(self, model_id: str, horizon: str, reason: str) -> None:
        super().__init__(f"predictor {model_id} failed for {horizon}: {reason}")
        self.model_id = model_id
        self.horizon = horizon
        self.reason = reason


class HorizonUnavailableError(SignalEngineError):
    """Raised when no predictor survives for a horizon."""

    def __init__(self, horizon: str, failures: list[PredictorError] | None = None) -> None:
        super().__init__(f"no surviving predictions for horizon {horizon}")
        self.horizon = horizon
        self.failures = failures or []


class AllModelsFailedError(SignalEngineError):
    """Raised when every requested horizon is unavailable."""

    def __init__(self, horizons: list[str]) -> None:
        super().__init__(f"all horizons unavailable: {', '.join(horizons) or 'none requested'}")
        self.horizons = horizons


class RiskBudgetExceededError(SignalEngineError):
    """Raised when aggregate risk breaches the configured budget."""

    def __init__(self, overall_risk: float, budget: float) -> None:
        super().__init__(f"overall risk {overall_risk:.3f} exceeds budget {budget:.3f}")
        self.overall_risk = overall_risk
        self.budget = budget
