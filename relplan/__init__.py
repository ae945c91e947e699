"""Relation plan IR: node model, structural validator and wire codec."""

from .codec import RelationCodec, encode, decode, to_json, from_json
from .errors import (
    PlanError,
    DecodeError,
    StructuralError,
    PlanDepthError,
    UnsupportedOperation,
)
from .validator import RelationValidator, validate, is_valid

__version__ = "0.1.0"

__all__ = [
    "RelationCodec",
    "RelationValidator",
    "encode",
    "decode",
    "to_json",
    "from_json",
    "validate",
    "is_valid",
    "PlanError",
    "DecodeError",
    "StructuralError",
    "PlanDepthError",
    "UnsupportedOperation",
]
