"""Configuration system."""

from signal_core.config.loader import load_config, validate_config
from signal_core.config.schema import EngineConfig, check_weights

__all__ = ["EngineConfig", "check_weights", "load_config", "validate_config"]
