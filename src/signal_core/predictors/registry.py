"""Predictor registry — decorated classes are auto-registered.

``PredictorRegistry`` instantiates the configured architectures and runs
them for one horizon, dropping any predictor that raises or returns
non-finite output.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Mapping

from signal_core.config.schema import PredictorConfig
from signal_core.errors import InvalidConfigurationError, PredictorError
from signal_core.logging import get_logger
from signal_core.models import FeatureVector, ModelPrediction

if TYPE_CHECKING:
    from signal_core.predictors.base import Predictor

PREDICTOR_REGISTRY: dict[str, type[Predictor]] = {}


def register(cls: type[Predictor]) -> type[Predictor]:
    """Class decorator that adds a predictor to the global registry."""
    if not getattr(cls, "architecture", None):
        raise ValueError(f"Predictor class {cls.__name__} must define an 'architecture' attribute")
    if cls.architecture in PREDICTOR_REGISTRY:
        raise ValueError(f"Duplicate predictor architecture: {cls.architecture!r}")
    PREDICTOR_REGISTRY[cls.architecture] = cls
    return cls


class PredictorRegistry:
    """Configured predictor set keyed by architecture.

    *predictors* overrides instantiation from the global registry, e.g. to
    plug in trained models. Every architecture with a positive weight in
    the config table must resolve to a predictor.
    """

    def __init__(
        self,
        config: PredictorConfig,
        predictors: Mapping[str, Predictor] | None = None,
    ) -> None:
        self._config = config
        if predictors is None:
            predictors = {}
            for arch in config.weights:
                cls = PREDICTOR_REGISTRY.get(arch)
                if cls is None:
                    raise InvalidConfigurationError(
                        f"predictors.weights references unregistered architecture {arch!r}"
                    )
                predictors[arch] = cls(**config.params.get(arch, {}))
        missing = [arch for arch in config.weights if arch not in predictors]
        if missing:
            raise InvalidConfigurationError(f"no predictor supplied for architectures {missing}")
        self._predictors: dict[str, Predictor] = dict(predictors)

    @property
    def architectures(self) -> list[str]:
        return list(self._predictors)

    def horizons(self) -> list[str]:
        return self._config.horizons()

    def weights(self, horizon: str) -> dict[str, float]:
        """Static (architecture -> weight) column for *horizon*, before renormalisation."""
        return self._config.horizon_weights(horizon)

    def versions(self) -> dict[str, str]:
        return {p.model_id: p.version for p in self._predictors.values()}

    def run(
        self,
        features: FeatureVector,
        horizon: str,
    ) -> tuple[list[ModelPrediction], list[PredictorError]]:
        """Run every predictor weighted for *horizon*.

        Returns ``(survivors, failures)``. A failure never aborts the others.
        """
        survivors: list[ModelPrediction] = []
        failures: list[PredictorError] = []
        log = get_logger("predictors", horizon=horizon)

        for arch, weight in self.weights(horizon).items():
            predictor = self._predictors[arch]
            try:
                forecast = predictor.predict(features, horizon)
            except Exception as exc:
                failures.append(self._failed(log, predictor, horizon, f"{type(exc).__name__}: {exc}"))
                continue

            values = (forecast.expected_return, forecast.confidence, forecast.volatility)
            if not all(math.isfinite(v) for v in values):
                failures.append(self._failed(log, predictor, horizon, "non-finite output"))
                continue
            if not 0.0 <= forecast.confidence <= 1.0:
                failures.append(
                    self._failed(log, predictor, horizon, f"confidence {forecast.confidence} outside [0, 1]")
                )
                continue
            price_target = features.price * (1 + forecast.expected_return)
            if not math.isfinite(price_target):
                failures.append(self._failed(log, predictor, horizon, "non-finite price target"))
                continue

            survivors.append(
                ModelPrediction(
                    model_id=predictor.model_id,
                    architecture=arch,
                    model_type=predictor.model_type,
                    horizon=horizon,
                    expected_return=forecast.expected_return,
                    price_target=price_target,
                    confidence=forecast.confidence,
                    volatility=abs(forecast.volatility),
                    weight=weight,
                    metadata=dict(forecast.metadata),
                )
            )

        return survivors, failures

    @staticmethod
    def _failed(log, predictor: Predictor, horizon: str, reason: str) -> PredictorError:
        log.warning("predictor_failed", model_id=predictor.model_id, reason=reason)
        return PredictorError(predictor.model_id, horizon, reason)
