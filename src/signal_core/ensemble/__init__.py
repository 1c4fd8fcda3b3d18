"""Horizon and cross-horizon ensembling plus uncertainty bounds."""

from signal_core.ensemble.cross_horizon import CrossHorizonEnsembler
from signal_core.ensemble.horizon import HorizonEnsembler
from signal_core.ensemble.uncertainty import UncertaintyQuantifier
from signal_core.ensemble.weights import (
    dispersion_ratio,
    normalize_weights,
    weighted_mean,
    weighted_std,
)

__all__ = [
    "CrossHorizonEnsembler",
    "HorizonEnsembler",
    "UncertaintyQuantifier",
    "dispersion_ratio",
    "normalize_weights",
    "weighted_mean",
    "weighted_std",
]
