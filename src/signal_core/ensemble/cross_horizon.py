"""Cross-horizon ensembler — importance-weighted blend of horizon estimates."""

from __future__ import annotations

from typing import Sequence

import structlog

from signal_core.config.schema import HorizonConfig
from signal_core.ensemble.weights import normalize_weights, weighted_mean
from signal_core.errors import AllModelsFailedError
from signal_core.models import EnsemblePrediction, HorizonPrediction

log = structlog.get_logger("ensemble")


class CrossHorizonEnsembler:
    """Blend available horizons using the base importance table.

    Importance is renormalised over the horizons that actually produced a
    prediction. ``coverage`` records the share of requested importance that
    survived, so callers can penalise partial results.
    """

    def __init__(self, config: HorizonConfig) -> None:
        self._importance = dict(config.importance)

    def importance(self, horizon: str) -> float:
        if horizon not in self._importance:
            raise ValueError(f"unknown horizon {horizon!r}; expected one of {list(self._importance)}")
        return self._importance[horizon]

    def combine(
        self,
        horizon_predictions: Sequence[HorizonPrediction],
        requested: Sequence[str],
    ) -> EnsemblePrediction:
        """Raises AllModelsFailedError when nothing is available."""
        requested_importance = sum(self.importance(h) for h in requested)
        available = [hp for hp in horizon_predictions if hp.horizon in requested]
        if not available:
            log.warning("all_horizons_unavailable", requested=list(requested))
            raise AllModelsFailedError(list(requested))

        weights = normalize_weights({hp.horizon: self.importance(hp.horizon) for hp in available})
        w = [weights[hp.horizon] for hp in available]
        coverage = sum(self.importance(hp.horizon) for hp in available) / requested_importance

        return EnsemblePrediction(
            expected_return=weighted_mean([hp.ensemble.expected_return for hp in available], w),
            price_target=weighted_mean([hp.ensemble.price_target for hp in available], w),
            confidence=weighted_mean([hp.confidence for hp in available], w),
            weights=weights,
            method="importance_weighted",
            coverage=min(1.0, coverage),
        )
