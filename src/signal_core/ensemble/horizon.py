"""Horizon ensembler — combines predictor outputs for one horizon."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

import structlog

from signal_core.ensemble.weights import (
    dispersion_ratio,
    normalize_weights,
    weighted_mean,
    weighted_std,
)
from signal_core.errors import HorizonUnavailableError, PredictorError
from signal_core.models import EnsembleEstimate, FeatureVector, HorizonPrediction, ModelPrediction
from signal_core.predictors import PredictorRegistry

log = structlog.get_logger("ensemble")


class HorizonEnsembler:
    """Weighted mean of surviving predictions, weights renormalised to 1.

    confidence = weighted mean confidence * (1 - min(1, sigma / scale)),
    capped at *confidence_ceiling*, where sigma is the weighted dispersion
    of model returns. Holding the mean fixed, wider disagreement can only
    lower confidence.
    """

    def __init__(
        self,
        registry: PredictorRegistry,
        confidence_ceiling: float = 0.95,
        dispersion_scale: float = 0.1,
    ) -> None:
        self._registry = registry
        self._ceiling = confidence_ceiling
        self._scale = dispersion_scale

    def predict(self, features: FeatureVector, horizon: str) -> HorizonPrediction:
        """Run the registry for *horizon* and ensemble the survivors.

        Raises HorizonUnavailableError if no predictor survives.
        """
        survivors, failures = self._registry.run(features, horizon)
        return self.combine(horizon, survivors, failures)

    def combine(
        self,
        horizon: str,
        predictions: Sequence[ModelPrediction],
        failures: Sequence[PredictorError] = (),
        now: datetime | None = None,
    ) -> HorizonPrediction:
        if not predictions:
            log.warning("horizon_unavailable", horizon=horizon, failed=len(failures))
            raise HorizonUnavailableError(horizon, list(failures))

        kept = [p for p in predictions if p.weight > 0]
        if not kept:
            raise HorizonUnavailableError(horizon, list(failures))
        weights = normalize_weights({p.architecture: p.weight for p in kept})
        w = [weights[p.architecture] for p in kept]

        returns = [p.expected_return for p in kept]
        expected = weighted_mean(returns, w)
        price_target = weighted_mean([p.price_target for p in kept], w)
        mean_confidence = weighted_mean([p.confidence for p in kept], w)

        spread = dispersion_ratio(weighted_std(returns, w), self._scale)
        confidence = min(self._ceiling, mean_confidence * (1 - spread))

        failed = tuple(f.model_id for f in failures)
        if failed:
            log.warning(
                "degraded_ensemble",
                horizon=horizon,
                failed_models=list(failed),
                surviving=len(kept),
            )

        return HorizonPrediction(
            horizon=horizon,
            predictions=tuple(kept),
            ensemble=EnsembleEstimate(
                expected_return=expected,
                price_target=price_target,
                confidence=confidence,
                weights=weights,
            ),
            confidence=confidence,
            consensus_score=max(0.0, 1 - spread),
            diversity_index=spread,
            failed_models=failed,
            degraded=bool(failed),
            timestamp=now or datetime.now(timezone.utc),
        )
