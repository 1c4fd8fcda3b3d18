"""Interfaces of the external collaborators the pipeline reads from."""

from __future__ import annotations

from typing import Mapping, Protocol

from signal_core.models import FeatureVector


class FeatureSource(Protocol):
    async def get_features(self, symbol: str, timeframe: str | None = None) -> FeatureVector | None:
        """Latest features for *symbol*, or None when nothing is available."""
        ...


class AnalyticsSource(Protocol):
    async def historical_accuracy(self, symbol: str) -> float | None: ...

    async def market_regime(self, symbol: str) -> str | None: ...


class StaticFeatureSource:
    """Serves pre-computed features keyed by symbol or (symbol, timeframe)."""

    def __init__(
        self,
        features: Mapping[str, FeatureVector] | Mapping[tuple[str, str], FeatureVector],
    ) -> None:
        self._features = dict(features)

    async def get_features(self, symbol: str, timeframe: str | None = None) -> FeatureVector | None:
        if timeframe is not None and (symbol, timeframe) in self._features:
            return self._features[(symbol, timeframe)]
        return self._features.get(symbol)


class DefaultAnalytics:
    """Analytics stand-in that always answers with the documented defaults."""

    def __init__(self, accuracy: float = 0.5, regime: str = "sideways") -> None:
        self.accuracy = accuracy
        self.regime = regime

    async def historical_accuracy(self, symbol: str) -> float | None:
        return self.accuracy

    async def market_regime(self, symbol: str) -> str | None:
        return self.regime
