"""Tests for value coercion utilities."""

from decimal import Decimal

import pytest

from dataknobs_validator.coercion import (
    bound_for,
    in_string,
    is_number,
    size_of,
    to_bool,
    to_float,
    to_int,
    to_string,
)
from dataknobs_validator.exceptions import CoercionError, EvaluationError


class TestToString:
    """Test canonical string conversion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("text", "text"),
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (-7, "-7"),
            (1.0, "1"),
            (30.0, "30"),
            (2.5, "2.5"),
            (b"abc", "abc"),
            (None, ""),
            (Decimal("1.50"), "1.50"),
        ],
    )
    def test_conversions(self, value, expected):
        """Test conversion of common value types."""
        assert to_string(value) == expected

    def test_non_finite_floats(self):
        """Test that infinities keep their repr."""
        assert to_string(float("inf")) == "inf"


class TestNumericCoercion:
    """Test int and float coercion."""

    def test_to_int(self):
        """Test int coercion of ints and decimal strings."""
        assert to_int(5) == 5
        assert to_int("12") == 12
        assert to_int(" -3 ") == -3

    @pytest.mark.parametrize("value", ["1.5", "abc", "", True, 1.0, None])
    def test_to_int_rejects(self, value):
        """Test that non-integer representations raise CoercionError."""
        with pytest.raises(CoercionError):
            to_int(value)

    def test_to_float(self):
        """Test float coercion."""
        assert to_float("1.5") == 1.5
        assert to_float(2) == 2.0
        assert to_float(Decimal("0.25")) == 0.25

    def test_to_float_rejects(self):
        """Test that non-numeric strings raise CoercionError."""
        with pytest.raises(CoercionError) as exc_info:
            to_float("nope")
        assert isinstance(exc_info.value, EvaluationError)
        assert isinstance(exc_info.value, ValueError)

    def test_is_number(self):
        """Test detection of numeric rule parameters."""
        assert is_number("10")
        assert is_number("-1.5")
        assert not is_number("Other")

    def test_to_bool(self):
        """Test that only 'true' and '1' are truthy strings."""
        assert to_bool("true") is True
        assert to_bool("1") is True
        assert to_bool("yes") is False
        assert to_bool(True) is True


class TestSizes:
    """Test size measurement and bounds."""

    def test_size_of(self):
        """Test the size of strings, collections and numbers."""
        assert size_of("héllo") == 5
        assert size_of([1, 2, 3]) == 3
        assert size_of({"a": 1}) == 1
        assert size_of(7) == 7
        assert size_of(2.5) == 2.5

    def test_size_of_unsupported(self):
        """Test that values without a size raise CoercionError."""
        with pytest.raises(CoercionError):
            size_of(True)
        with pytest.raises(CoercionError):
            size_of(object())

    def test_bound_for(self):
        """Test that bounds match the measured value."""
        assert bound_for(1.5, "2.5") == 2.5
        assert bound_for(3, "4") == 4
        assert bound_for("abc", "4") == 4
        with pytest.raises(CoercionError):
            bound_for(3, "4.5")

    def test_in_string(self):
        """Test set membership of parameters."""
        assert in_string("a", ["a", "b"])
        assert not in_string("c", ("a", "b"))
