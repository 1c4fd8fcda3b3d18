"""Weight renormalisation and weighted moments — pure numpy functions."""

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np


def normalize_weights(weights: Mapping[str, float]) -> dict[str, float]:
    """Rescale positive weights to sum to 1; non-positive entries are dropped.

    Raises ValueError if nothing positive remains.
    """
    positive = {k: float(w) for k, w in weights.items() if w > 0}
    total = sum(positive.values())
    if total <= 0:
        raise ValueError("no positive weights to normalise")
    return {k: w / total for k, w in positive.items()}


def weighted_mean(values: Sequence[float], weights: Sequence[float]) -> float:
    return float(np.average(np.asarray(values, dtype=np.float64), weights=weights))


def weighted_std(values: Sequence[float], weights: Sequence[float]) -> float:
    """Population standard deviation under *weights* (ddof=0)."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size < 2:
        return 0.0
    mean = np.average(arr, weights=weights)
    return float(np.sqrt(np.average((arr - mean) ** 2, weights=weights)))


def dispersion_ratio(std: float, scale: float = 0.1) -> float:
    """Map a return standard deviation onto [0, 1]; *scale* is the max expected std."""
    if scale <= 0:
        return 1.0 if std > 0 else 0.0
    return min(1.0, std / scale)
