"""Import all built-in architectures to trigger @register decorators."""

from signal_core.predictors.architectures import regime  # noqa: F401
from signal_core.predictors.architectures import technical  # noqa: F401
from signal_core.predictors.architectures import timeseries  # noqa: F401
