"""Predictor abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from signal_core.models import FeatureVector


@dataclass(frozen=True)
class Forecast:
    """Raw predictor output before it is stamped into a ModelPrediction."""

    expected_return: float
    confidence: float
    volatility: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


class Predictor(ABC):
    """Base class for all return predictors.

    Subclasses set the class-level attributes and implement predict().
    Instantiate with keyword params from config to override defaults.
    ``predict`` must be a pure function of its arguments.
    """

    architecture: str
    model_type: str = "timeseries"
    version: str = "1.0.0"

    def __init__(self, **params: Any) -> None:
        self.params = params

    @property
    def model_id(self) -> str:
        return f"{self.architecture}-v{self.version}"

    @abstractmethod
    def predict(self, features: FeatureVector, horizon: str) -> Forecast:
        """Forecast the fractional return of ``features.symbol`` over *horizon*."""
        ...
