"""Structural validation for relation plans."""

from .validator import RelationValidator, validate, is_valid

__all__ = ["RelationValidator", "validate", "is_valid"]
