"""Config loader — reads YAML, applies SIGNAL_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from signal_core.config.schema import WEIGHT_TOLERANCE, EngineConfig
from signal_core.errors import InvalidConfigurationError

# env var -> (section, key, cast)
_ENV_OVERRIDES = {
    "SIGNAL_LOG_LEVEL": ("logging", "level", str),
    "SIGNAL_LOG_FORMAT": ("logging", "format", str),
    "SIGNAL_CACHE_TTL_S": ("pipeline", "cache_ttl_s", float),
    "SIGNAL_IO_TIMEOUT_S": ("pipeline", "io_timeout_s", float),
}


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        SIGNAL_LOG_LEVEL     -> logging.level
        SIGNAL_LOG_FORMAT    -> logging.format
        SIGNAL_CACHE_TTL_S   -> pipeline.cache_ttl_s
        SIGNAL_IO_TIMEOUT_S  -> pipeline.io_timeout_s

    Raises InvalidConfigurationError for malformed YAML, wrong types, or
    weight tables that do not sum to 1.
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as exc:
                    raise InvalidConfigurationError(f"cannot parse {p}: {exc}") from exc
            if not isinstance(data, dict):
                raise InvalidConfigurationError(f"{p} must contain a mapping at the top level")

    for var, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.environ.get(var)
        if not raw:
            continue
        try:
            value = cast(raw)
        except ValueError as exc:
            raise InvalidConfigurationError(f"{var}={raw!r} is not a valid {cast.__name__}") from exc
        data.setdefault(section, {})[key] = value

    return validate_config(data)


def validate_config(data: dict) -> EngineConfig:
    """Validate a raw mapping into an EngineConfig.

    A top-level ``weight_tolerance`` applies to every weight table, including
    those inside sections, so it can loosen as well as tighten the check.
    """
    raw = data.get("weight_tolerance", WEIGHT_TOLERANCE)
    try:
        tolerance = float(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"weight_tolerance={raw!r} is not a number") from exc
    try:
        return EngineConfig.model_validate(data, context={"weight_tolerance": tolerance})
    except ValidationError as exc:
        raise InvalidConfigurationError(str(exc)) from exc
