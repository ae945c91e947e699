"""Configuration management for relation plan tooling."""

from dataclasses import dataclass, field
from typing import Optional
import yaml
from pathlib import Path

# protobuf refuses to parse messages nested deeper than this.
WIRE_NESTING_LIMIT = 100

# Each plan level (a relation or an expression) is two message levels deep,
# and leaf detail messages (SortField, DataSource options) add up to two more.
MAX_CODEC_DEPTH = (WIRE_NESTING_LIMIT - 6) // 2


@dataclass
class CodecConfig:
    """Configuration for the wire codec."""

    max_depth: int = 32  # Relations plus nested expressions, at most MAX_CODEC_DEPTH
    deterministic: bool = True  # Stable map ordering in encoded bytes


@dataclass
class ValidatorConfig:
    """Configuration for structural validation."""

    max_depth: int = 32


@dataclass
class LoggingConfig:
    """Configuration for logging setup."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    codec: CodecConfig = field(default_factory=CodecConfig)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Example YAML format:
        codec:
          max_depth: 64
          deterministic: true

        validator:
          max_depth: 64

        logging:
          level: DEBUG
          structured: true
          log_file: /var/log/relplan.log
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}

    codec = CodecConfig(**data.get("codec", {}))
    validator = ValidatorConfig(**data.get("validator", {}))
    logging_config = LoggingConfig(**data.get("logging", {}))

    if codec.max_depth < 1:
        raise ValueError(f"codec.max_depth must be positive, got {codec.max_depth}")
    if codec.max_depth > MAX_CODEC_DEPTH:
        raise ValueError(
            f"codec.max_depth {codec.max_depth} exceeds {MAX_CODEC_DEPTH}; "
            f"deeper plans cannot be decoded again"
        )
    if validator.max_depth < 1:
        raise ValueError(
            f"validator.max_depth must be positive, got {validator.max_depth}"
        )

    return Config(codec=codec, validator=validator, logging=logging_config)
