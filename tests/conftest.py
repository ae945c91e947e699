"""Shared fixtures for relation plan tests."""

import logging

import pytest

from relplan.codec import RelationCodec
from relplan.plan import Limit, Range
from relplan.utils.logging import StandardFormatter, StructuredFormatter
from relplan.validator import RelationValidator


@pytest.fixture
def codec():
    """Create codec with default settings."""
    return RelationCodec()


@pytest.fixture
def validator():
    """Create validator with default settings."""
    return RelationValidator()


@pytest.fixture
def scenario_a():
    """Limit over Range, the canonical small plan."""
    return Limit(Range(start=0, end=10, step=1), 5)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop handlers installed by setup_logging so they do not leak between tests."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, (StructuredFormatter, StandardFormatter)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
