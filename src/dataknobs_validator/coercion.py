"""Value coercion utilities used by the comparison rules.

All functions are pure. Failures raise ``CoercionError`` so that a rule
evaluator can surface them as the cause of a field error.
"""

from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction
from typing import Any

from .exceptions import CoercionError
from .kinds import Kind, kind_of_value


def to_string(value: Any) -> str:
    """Convert a value to its canonical string form.

    Booleans render as ``true``/``false`` and integral floats drop the
    trailing ``.0`` so that rule parameters such as ``requiredIf=Age|30``
    compare equal to a ``30.0`` value.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if value is None:
        return ""
    return str(value)


def to_int(value: Any) -> int:
    """Coerce an int or a base-10 integer string to ``int``.

    Raises:
        CoercionError: If the value is not an integer representation
    """
    if isinstance(value, bool):
        raise CoercionError(f"unable to convert bool {value!r} to int")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 10)
        except ValueError as e:
            raise CoercionError(f"invalid integer {value!r}") from e
    raise CoercionError(f"unable to convert {type(value).__name__} to int")


def to_float(value: Any) -> float:
    """Coerce a number or numeric string to ``float``.

    Raises:
        CoercionError: If the value is not numeric
    """
    if isinstance(value, bool):
        raise CoercionError(f"unable to convert bool {value!r} to float")
    if isinstance(value, (int, float, Decimal, Fraction)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as e:
            raise CoercionError(f"invalid number {value!r}") from e
    raise CoercionError(f"unable to convert {type(value).__name__} to float")


def to_bool(value: Any) -> bool:
    """Interpret ``"true"`` and ``"1"`` as True; everything else is False."""
    if isinstance(value, bool):
        return value
    return to_string(value) in ("true", "1")


def is_number(text: str) -> bool:
    """Whether a rule parameter parses as a number."""
    try:
        to_float(text)
    except CoercionError:
        return False
    return True


def size_of(value: Any) -> int | float:
    """Return the measured size of a value.

    Strings measure their character count, collections their length and
    numbers their own value.

    Raises:
        CoercionError: If the value has no size
    """
    kind = kind_of_value(value)
    if kind is Kind.STRING or kind.is_collection:
        return len(value)
    if kind is Kind.INT:
        return value
    if kind is Kind.FLOAT:
        return float(value)
    raise CoercionError(f"unsupported type {type(value).__name__}")


def bound_for(value: Any, param: str) -> int | float:
    """Coerce a rule parameter to the bound type matching ``value``.

    Lengths and integers take integer bounds, floats take float bounds.
    """
    if kind_of_value(value) is Kind.FLOAT:
        return to_float(param)
    return to_int(param)


def in_string(text: str, params: list[str] | tuple[str, ...]) -> bool:
    """Check if ``text`` is a member of ``params``."""
    return text in params
