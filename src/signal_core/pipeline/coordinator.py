"""Pipeline coordinator — per-symbol fan-out/fan-in with local fallbacks.

The coordinator owns every piece of mutable state (prediction cache,
signal history, stream); stages themselves are stateless. Horizon
predictions run concurrently in worker threads and the cross-horizon
ensemble waits for all of them. Numerical and model failures are
recovered here and surface as ``degraded`` records; only configuration
errors propagate.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from datetime import datetime, timezone
from typing import Mapping, Sequence

import structlog

from signal_core.config.schema import EngineConfig
from signal_core.ensemble import CrossHorizonEnsembler, HorizonEnsembler, UncertaintyQuantifier
from signal_core.errors import AllModelsFailedError, FeatureUnavailableError, HorizonUnavailableError
from signal_core.logging import pipeline_context
from signal_core.models import (
    DirectionForecast,
    EnsemblePrediction,
    EnsembleSignal,
    FeatureVector,
    HorizonPrediction,
    MarketPrediction,
    MarketState,
    PortfolioContext,
    PriceRange,
    Recommendation,
    RiskProfile,
    SentimentScore,
    TradingSignal,
)
from signal_core.pipeline.cache import PredictionCache
from signal_core.pipeline.collaborators import AnalyticsSource, FeatureSource
from signal_core.pipeline.stream import SignalStream, SignalUpdate
from signal_core.predictors import PredictorRegistry
from signal_core.signals import (
    LevelsCalculator,
    PositionSizer,
    RiskAssessor,
    SignalSynthesizer,
    analyze_factors,
    execution_priority,
)
from signal_core.timeframe import ConflictResolver, MetaLearner

log = structlog.get_logger("pipeline")


class PipelineCoordinator:
    def __init__(
        self,
        config: EngineConfig | None = None,
        registry: PredictorRegistry | None = None,
        feature_source: FeatureSource | None = None,
        analytics: AnalyticsSource | None = None,
        stream: SignalStream | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        cfg = self.config
        self.registry = registry or PredictorRegistry(cfg.predictors)
        self.feature_source = feature_source
        self.analytics = analytics
        self.stream = stream

        self.horizon_ensembler = HorizonEnsembler(
            self.registry, confidence_ceiling=cfg.meta.confidence_ceiling
        )
        self.cross_horizon = CrossHorizonEnsembler(cfg.horizons)
        self.uncertainty = UncertaintyQuantifier(cfg.uncertainty)
        self.synthesizer = SignalSynthesizer(cfg.signals)
        self.risk = RiskAssessor(cfg.risk, heat_budget=cfg.sizing.max_portfolio_heat)
        self.sizer = PositionSizer(cfg.sizing)
        self.levels = LevelsCalculator(cfg.levels)
        self.meta = MetaLearner(cfg.meta, ConflictResolver(cfg.timeframes))

        self.cache = PredictionCache(ttl_seconds=cfg.pipeline.cache_ttl_s)
        self._history: dict[str, deque[TradingSignal]] = {}

    # -- history ---------------------------------------------------------

    def history(self, symbol: str) -> list[TradingSignal]:
        """Signals emitted for *symbol*, oldest first (bounded)."""
        return list(self._history.get(symbol, ()))

    def _record(self, symbol: str, signal: TradingSignal) -> None:
        entries = self._history.get(symbol)
        if entries is None:
            entries = self._history[symbol] = deque(maxlen=self.config.pipeline.history_size)
        entries.append(signal)

    # -- inputs ----------------------------------------------------------

    async def _resolve_features(
        self,
        symbol: str,
        features: FeatureVector | None,
        timeframe: str | None,
    ) -> FeatureVector:
        """Fetch (if needed) and staleness-check features.

        Raises FeatureUnavailableError on timeout, absence or staleness.
        """
        if features is None:
            if self.feature_source is None:
                raise FeatureUnavailableError(symbol, "no features supplied and no feature source")
            timeout = self.config.pipeline.io_timeout_s
            try:
                features = await asyncio.wait_for(
                    self.feature_source.get_features(symbol, timeframe), timeout=timeout
                )
            except asyncio.TimeoutError:
                raise FeatureUnavailableError(symbol, f"feature fetch timed out after {timeout}s") from None
            except Exception as exc:
                raise FeatureUnavailableError(symbol, f"feature fetch failed: {exc!r}") from exc
            if features is None:
                raise FeatureUnavailableError(symbol, "feature source returned nothing")

        ts = features.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        age = (datetime.now(timezone.utc) - ts).total_seconds()
        if age > self.config.pipeline.feature_staleness_s:
            raise FeatureUnavailableError(symbol, f"features are {age:.0f}s old")
        return features

    async def _meta_inputs(self, symbol: str) -> tuple[float | None, str | None]:
        """Historical accuracy and regime; None falls back to configured defaults."""
        if self.analytics is None:
            return None, None
        timeout = self.config.pipeline.io_timeout_s
        try:
            accuracy, regime = await asyncio.wait_for(
                asyncio.gather(
                    self.analytics.historical_accuracy(symbol),
                    self.analytics.market_regime(symbol),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            log.warning("analytics_unavailable", reason="timeout", timeout_s=timeout)
            return None, None
        except Exception as exc:
            log.warning("analytics_unavailable", reason=repr(exc))
            return None, None
        if accuracy is not None and not 0.0 <= accuracy <= 1.0:
            log.warning("analytics_out_of_range", historical_accuracy=accuracy)
            accuracy = None
        return accuracy, regime

    # -- prediction ------------------------------------------------------

    def _requested_horizons(self, horizons: Sequence[str] | None) -> list[str]:
        requested = list(dict.fromkeys(horizons or self.config.horizons.default))
        if not requested:
            raise ValueError("at least one horizon must be requested")
        for horizon in requested:
            self.cross_horizon.importance(horizon)
        return requested

    async def predict_market(
        self,
        symbol: str,
        features: FeatureVector | None = None,
        horizons: Sequence[str] | None = None,
        timeframe: str | None = None,
    ) -> MarketPrediction:
        """Symbol-level prediction and raw signal.

        Cached per (symbol, timeframe, horizons, features): within the cache
        TTL an identical request returns the same object, while new features
        are always predicted afresh. Without features the key covers whatever
        the feature source serves during the TTL.
        Fallback results are not cached.
        """
        prediction = await self._cached_prediction(symbol, features, horizons, timeframe)
        self._record(symbol, prediction.signal)
        return prediction

    async def _cached_prediction(
        self,
        symbol: str,
        features: FeatureVector | None,
        horizons: Sequence[str] | None,
        timeframe: str | None,
    ) -> MarketPrediction:
        requested = self._requested_horizons(horizons)
        key = ("market", symbol, timeframe, tuple(requested), features)
        return await self.cache.get_or_compute(
            key,
            lambda: self._predict_market(symbol, features, requested, timeframe),
            should_cache=lambda p: bool(p.horizon_predictions),
        )

    async def _predict_market(
        self,
        symbol: str,
        features: FeatureVector | None,
        horizons: list[str],
        timeframe: str | None,
    ) -> MarketPrediction:
        start = time.perf_counter()
        with pipeline_context(symbol, timeframe=timeframe):
            try:
                features = await self._resolve_features(symbol, features, timeframe)
            except FeatureUnavailableError as exc:
                return self._fallback(symbol, None, horizons, timeframe, "feature_unavailable", exc, start)

            results = await asyncio.gather(
                *(asyncio.to_thread(self.horizon_ensembler.predict, features, h) for h in horizons),
                return_exceptions=True,
            )

            available: list[HorizonPrediction] = []
            unavailable: list[str] = []
            reasons: list[str] = []
            for horizon, result in zip(horizons, results):
                if isinstance(result, HorizonUnavailableError):
                    unavailable.append(horizon)
                    reasons.append(f"horizon_unavailable:{horizon}")
                elif isinstance(result, BaseException):
                    raise result
                else:
                    available.append(result)
                    if result.degraded:
                        reasons.append(f"model_failure:{horizon}")

            try:
                ensemble = self.cross_horizon.combine(available, horizons)
            except AllModelsFailedError as exc:
                return self._fallback(symbol, features, horizons, timeframe, "all_models_failed", exc, start)

            bounds = self.uncertainty.from_horizons(available, ensemble.expected_return)
            confidence = ensemble.confidence * ensemble.coverage
            degraded = bool(reasons)
            signal = self.synthesizer.synthesize(
                ensemble.expected_return, confidence, bounds, timeframe=timeframe, degraded=degraded
            )
            if degraded:
                log.warning("degraded_prediction", reasons=reasons, coverage=ensemble.coverage)

            prediction = MarketPrediction(
                symbol=symbol,
                price=features.price,
                timeframe=timeframe,
                timestamp=datetime.now(timezone.utc),
                horizon_predictions=tuple(available),
                unavailable_horizons=tuple(unavailable),
                ensemble_prediction=ensemble,
                uncertainty_bounds=bounds,
                signal=signal,
                confidence=max(0.0, min(1.0, confidence)),
                model_versions=self.registry.versions(),
                execution_time_ms=(time.perf_counter() - start) * 1000,
                degraded=degraded,
                degradation_reasons=tuple(reasons),
            )
            log.info(
                "prediction_completed",
                signal=signal.signal.value,
                rule=signal.rule,
                expected_return=round(ensemble.expected_return, 6),
                confidence=round(prediction.confidence, 4),
                horizons=[hp.horizon for hp in available],
                execution_time_ms=round(prediction.execution_time_ms, 2),
            )
            return prediction

    def _fallback(
        self,
        symbol: str,
        features: FeatureVector | None,
        horizons: list[str],
        timeframe: str | None,
        reason: str,
        exc: Exception,
        start: float,
    ) -> MarketPrediction:
        confidence = self.config.pipeline.fallback_confidence
        log.warning("fallback_signal", reason=reason, detail=str(exc), confidence=confidence)
        price = features.price if features is not None else 0.0
        signal = self.synthesizer.fallback(reason, confidence, timeframe=timeframe)
        return MarketPrediction(
            symbol=symbol,
            price=price,
            timeframe=timeframe,
            timestamp=datetime.now(timezone.utc),
            horizon_predictions=(),
            unavailable_horizons=tuple(horizons),
            ensemble_prediction=EnsemblePrediction(
                expected_return=0.0,
                price_target=price,
                confidence=0.0,
                weights={},
                method="fallback",
                coverage=0.0,
            ),
            uncertainty_bounds=self.uncertainty.quantify([]),
            signal=signal,
            confidence=confidence,
            model_versions=self.registry.versions(),
            execution_time_ms=(time.perf_counter() - start) * 1000,
            degraded=True,
            degradation_reasons=(reason,),
        )

    # -- recommendation --------------------------------------------------

    async def recommend(
        self,
        symbol: str,
        features: FeatureVector | None = None,
        sentiment: SentimentScore | None = None,
        market: MarketState | None = None,
        portfolio: PortfolioContext | None = None,
        profile: RiskProfile | None = None,
        horizons: Sequence[str] | None = None,
        timeframe: str | None = None,
    ) -> Recommendation:
        """Prediction plus risk filtering, sizing, levels and factor analysis."""
        with pipeline_context(symbol, timeframe=timeframe):
            try:
                features = await self._resolve_features(symbol, features, timeframe)
            except FeatureUnavailableError as exc:
                prediction = self._fallback(
                    symbol, None, self._requested_horizons(horizons), timeframe,
                    "feature_unavailable", exc, time.perf_counter(),
                )
                self._record(symbol, prediction.signal)
                return Recommendation(
                    symbol=symbol,
                    prediction=prediction,
                    signal=prediction.signal,
                    risk=None,
                    sizing=self.sizer.flat("features unavailable", profile, portfolio),
                    levels=None,
                    factors=None,
                    execution_priority="LOW",
                    degraded=True,
                )

            prediction = await self._cached_prediction(symbol, features, horizons, timeframe)
            risk = self.risk.assess(features, prediction.uncertainty_bounds, sentiment, market, portfolio)
            signal = self.risk.apply_filters(
                prediction.signal, features, risk, sentiment, market, portfolio, profile
            )
            levels = self.levels.calculate(signal, features)
            sizing = self.sizer.size(signal, risk, features.volatility, profile, portfolio, levels)
            factors = analyze_factors(
                features, sentiment, market, self.config.factors, self.config.risk.reference_volume
            )
            recommendation = Recommendation(
                symbol=symbol,
                prediction=prediction,
                signal=signal,
                risk=risk,
                sizing=sizing,
                levels=levels,
                factors=factors,
                execution_priority=execution_priority(signal, risk),
                degraded=prediction.degraded,
            )
            self._record(symbol, signal)
            log.info(
                "recommendation_ready",
                signal=signal.signal.value,
                strength=round(signal.strength, 4),
                filters=list(signal.filters_applied),
                risk=round(risk.overall, 4),
                risk_category=risk.category,
                position=round(sizing.recommended, 6),
            )
            if self.stream is not None:
                self.stream.publish(
                    SignalUpdate(
                        symbol=symbol,
                        signal=signal,
                        price_target=prediction.ensemble_prediction.price_target,
                        timeframe=timeframe,
                        sentiment=sentiment.overall if sentiment is not None else None,
                    )
                )
            return recommendation

    # -- multi-timeframe -------------------------------------------------

    def combine_timeframe_signals(
        self,
        symbol: str,
        signals: Mapping[str, TradingSignal],
        historical_accuracy: float | None = None,
        market_regime: str | None = None,
        market_volatility: float = 0.0,
        method: str | None = None,
    ) -> EnsembleSignal:
        """Resolve and calibrate already-synthesised timeframe signals."""
        ensemble = self.meta.combine(
            symbol,
            signals,
            historical_accuracy=historical_accuracy,
            market_regime=market_regime,
            market_volatility=market_volatility,
            method=method,
            valid_for_s=self.config.signals.valid_for_s,
        )
        self._record(symbol, ensemble.final_signal)
        log.info(
            "ensemble_signal_generated",
            symbol=symbol,
            method=ensemble.method,
            signal=ensemble.final_signal.signal.value,
            confidence=round(ensemble.final_signal.confidence, 4),
            conflicts=len(ensemble.conflicts),
            resolution=ensemble.resolution.resolution,
        )
        return ensemble

    async def generate_ensemble_signal(
        self,
        symbol: str,
        timeframe_features: Mapping[str, FeatureVector] | None = None,
        timeframes: Sequence[str] | None = None,
        sentiment: SentimentScore | None = None,
        market: MarketState | None = None,
        portfolio: PortfolioContext | None = None,
        profile: RiskProfile | None = None,
        method: str | None = None,
    ) -> EnsembleSignal:
        """Run one recommendation per timeframe, then resolve and calibrate.

        Timeframes without supplied features are fetched from the feature
        source; a timeframe that cannot be served contributes a degraded
        fallback HOLD rather than failing the whole request.
        """
        supplied = dict(timeframe_features or {})
        selected = list(timeframes or supplied or self.config.timeframes.default)

        with pipeline_context(symbol):
            accuracy, regime = await self._meta_inputs(symbol)
            recommendations = await asyncio.gather(
                *(
                    self.recommend(
                        symbol,
                        features=supplied.get(tf),
                        sentiment=sentiment,
                        market=market,
                        portfolio=portfolio,
                        profile=profile,
                        horizons=self.config.timeframes.horizons.get(tf),
                        timeframe=tf,
                    )
                    for tf in selected
                )
            )
            signals = {tf: rec.signal for tf, rec in zip(selected, recommendations)}
            volatility = sum(
                rec.prediction.uncertainty_bounds.standard_error for rec in recommendations
            ) / len(recommendations)
            return self.combine_timeframe_signals(
                symbol,
                signals,
                historical_accuracy=accuracy,
                market_regime=regime,
                market_volatility=volatility,
                method=method,
            )

    # -- views -----------------------------------------------------------

    async def predict_direction(
        self,
        symbol: str,
        horizon: str = "1d",
        features: FeatureVector | None = None,
    ) -> DirectionForecast:
        """UP / DOWN beyond a ±1% expected return, NEUTRAL otherwise."""
        prediction = await self._cached_prediction(symbol, features, [horizon], None)
        r = prediction.ensemble_prediction.expected_return
        threshold = self.config.signals.buy_return
        if r > threshold:
            direction = "UP"
        elif r < -threshold:
            direction = "DOWN"
        else:
            direction = "NEUTRAL"
        probability = min(0.95, 0.5 + abs(r) * 5) if direction != "NEUTRAL" else 0.5
        low, high = prediction.uncertainty_bounds.intervals.get(
            "95", prediction.uncertainty_bounds.prediction_interval
        )
        return DirectionForecast(
            symbol=symbol,
            horizon=horizon,
            direction=direction,
            probability=probability,
            confidence=prediction.confidence,
            price_target=prediction.ensemble_prediction.price_target,
            confidence_interval=(prediction.price * (1 + low), prediction.price * (1 + high)),
            degraded=prediction.degraded,
        )

    async def predict_range(
        self,
        symbol: str,
        horizon: str = "1d",
        features: FeatureVector | None = None,
    ) -> PriceRange:
        """Low / median / high price from the 95% interval around the prediction."""
        prediction = await self._cached_prediction(symbol, features, [horizon], None)
        r = prediction.ensemble_prediction.expected_return
        se = prediction.uncertainty_bounds.standard_error
        z = self.config.uncertainty.z_scores.get("95", 1.96)
        price = prediction.price
        return PriceRange(
            symbol=symbol,
            horizon=horizon,
            low=price * (1 + r - z * se),
            median=price * (1 + r),
            high=price * (1 + r + z * se),
            confidence=prediction.confidence,
            volatility_forecast=se,
            degraded=prediction.degraded,
        )

