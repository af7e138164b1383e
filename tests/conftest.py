"""Pytest configuration for dataknobs_validator tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_validator import Validator, ValidatorConfig  # noqa: E402
from dataknobs_validator.evaluators import default_registry  # noqa: E402


@pytest.fixture
def validator():
    """A validator with the default configuration."""
    return Validator()


@pytest.fixture
def raw_validator():
    """A validator that leaves error messages untranslated."""
    return Validator(ValidatorConfig(translate=False))


@pytest.fixture
def registry():
    """A fresh registry holding the built-in rules."""
    return default_registry()
