"""Uncertainty quantifier — Gaussian intervals from pooled model dispersion."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from signal_core.config.schema import UncertaintyConfig
from signal_core.models import HorizonPrediction, UncertaintyBounds


class UncertaintyQuantifier:
    """Pool every surviving model return and derive z-score intervals.

    Intervals are centred on the pooled mean; the prediction interval is
    centred on the ensemble prediction. Assumes approximately normal
    dispersion and is not validated against fat tails.
    """

    def __init__(self, config: UncertaintyConfig | None = None) -> None:
        config = config or UncertaintyConfig()
        self._z = dict(config.z_scores)
        self._prediction_z = config.prediction_interval_z

    def quantify(self, returns: Sequence[float], prediction: float | None = None) -> UncertaintyBounds:
        arr = np.asarray(returns, dtype=np.float64)
        if arr.size == 0:
            mean = std = 0.0
        else:
            mean = float(np.mean(arr))
            std = float(np.std(arr))  # population
        centre = mean if prediction is None else prediction

        intervals = {
            level: (mean - z * std, mean + z * std)
            for level, z in sorted(self._z.items(), key=lambda kv: float(kv[0]))
        }
        return UncertaintyBounds(
            mean=mean,
            prediction=centre,
            standard_error=std,
            intervals=intervals,
            prediction_interval=(
                centre - self._prediction_z * std,
                centre + self._prediction_z * std,
            ),
            sample_size=int(arr.size),
        )

    def from_horizons(
        self,
        horizon_predictions: Sequence[HorizonPrediction],
        prediction: float | None = None,
    ) -> UncertaintyBounds:
        returns = [p.expected_return for hp in horizon_predictions for p in hp.predictions]
        return self.quantify(returns, prediction)
