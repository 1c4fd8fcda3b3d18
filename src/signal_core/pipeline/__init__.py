"""Pipeline coordination, caching, streaming and collaborator interfaces."""

from signal_core.pipeline.cache import PredictionCache
from signal_core.pipeline.collaborators import (
    AnalyticsSource,
    DefaultAnalytics,
    FeatureSource,
    StaticFeatureSource,
)
from signal_core.pipeline.coordinator import PipelineCoordinator
from signal_core.pipeline.stream import SignalStream, SignalUpdate

__all__ = [
    "AnalyticsSource",
    "DefaultAnalytics",
    "FeatureSource",
    "PipelineCoordinator",
    "PredictionCache",
    "SignalStream",
    "SignalUpdate",
    "StaticFeatureSource",
]
