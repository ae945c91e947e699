"""Configuration management."""

from .config import (
    Config,
    CodecConfig,
    ValidatorConfig,
    LoggingConfig,
    MAX_CODEC_DEPTH,
    WIRE_NESTING_LIMIT,
    load_config,
)

__all__ = [
    "Config",
    "CodecConfig",
    "ValidatorConfig",
    "LoggingConfig",
    "MAX_CODEC_DEPTH",
    "WIRE_NESTING_LIMIT",
    "load_config",
]
