"""Structured logging."""

from signal_core.logging.setup import get_logger, pipeline_context, setup_logging

__all__ = ["get_logger", "pipeline_context", "setup_logging"]
