"""Command-line recommendation for a single symbol."""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import structlog

from signal_core.config import load_config
from signal_core.logging import setup_logging
from signal_core.models import (
    FeatureVector,
    MarketState,
    PortfolioContext,
    Recommendation,
    RiskProfile,
    SentimentScore,
)
from signal_core.pipeline.coordinator import PipelineCoordinator

log = structlog.get_logger("cli")


def load_request(path: str | Path) -> dict[str, Any]:
    """Read a request file.

    Either a bare feature mapping, or an envelope with a ``features`` key
    and optional ``sentiment``, ``market``, ``portfolio`` and ``profile``.
    A feature mapping without ``timestamp`` is stamped with the current time.
    """
    with open(path) as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a JSON object")
    envelope = raw if "features" in raw else {"features": raw}

    features = dict(envelope["features"])
    features.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    request: dict[str, Any] = {"features": FeatureVector.model_validate(features)}
    for key, model in (
        ("sentiment", SentimentScore),
        ("market", MarketState),
        ("portfolio", PortfolioContext),
        ("profile", RiskProfile),
    ):
        if envelope.get(key) is not None:
            request[key] = model.model_validate(envelope[key])
    return request


async def run(
    coordinator: PipelineCoordinator,
    request: dict[str, Any],
    horizons: Sequence[str] | None = None,
    timeframe: str | None = None,
) -> Recommendation:
    features: FeatureVector = request["features"]
    return await coordinator.recommend(
        features.symbol,
        features=features,
        sentiment=request.get("sentiment"),
        market=request.get("market"),
        portfolio=request.get("portfolio"),
        profile=request.get("profile"),
        horizons=horizons,
        timeframe=timeframe,
    )


def main(
    config_path: str | None,
    features_path: str,
    horizons: Sequence[str] | None = None,
    timeframe: str | None = None,
) -> int:
    """Entry point — load config, set up logging, print the recommendation JSON."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    request = load_request(features_path)
    coordinator = PipelineCoordinator(config)
    recommendation = asyncio.run(run(coordinator, request, horizons, timeframe))
    sys.stdout.write(recommendation.model_dump_json(indent=2) + "\n")
    log.info("cli_done", symbol=recommendation.symbol, signal=recommendation.signal.signal.value)
    return 0
