"""Multi-timeframe conflict resolution and meta-learning."""

from signal_core.timeframe.conflict import (
    ConflictResolver,
    detect_conflicts,
    majority_share,
    timeframe_consistency,
)
from signal_core.timeframe.meta import MetaLearner, meta_score
from signal_core.timeframe.methods import MethodResult, averaging, score_to_signal, stacking, voting

__all__ = [
    "ConflictResolver",
    "MetaLearner",
    "MethodResult",
    "averaging",
    "detect_conflicts",
    "majority_share",
    "meta_score",
    "score_to_signal",
    "stacking",
    "timeframe_consistency",
    "voting",
]
