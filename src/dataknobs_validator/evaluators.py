"""Rule evaluators and the registry that maps rule names onto them.

An evaluator is a tagged callable. The tag tells the dispatch engine what the
callable expects:

- ``VALUE``: ``func(value) -> bool``
- ``PARAM``: ``func(value, params) -> bool``
- ``STRING``: ``func(text) -> bool``, applied to string values only
- ``FIELD``: ``func(value, other) -> bool``, where ``other`` is the value of
  the field named by the rule's first parameter
- ``CUSTOM``: ``func(value, record, rule) -> bool`` for rules registered by
  callers

Evaluators return False for a violation and raise ``EvaluationError`` when
they cannot evaluate the value at all.

Example:
    ```python
    from dataknobs_validator import Validator

    validator = Validator()
    validator.register_rule("even", lambda value, record, rule: value % 2 == 0)
    ```
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from . import patterns
from .coercion import bound_for, size_of, to_int, to_string
from .exceptions import EvaluationError
from .kinds import Kind, kind_of_value


class EvaluatorKind(Enum):
    """Calling convention of an evaluator."""

    VALUE = "value"
    PARAM = "param"
    STRING = "string"
    FIELD = "field"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Evaluator:
    """A rule implementation tagged with its calling convention."""

    kind: EvaluatorKind
    func: Callable[..., bool]


class RuleRegistry:
    """Mapping from rule name to ``Evaluator``.

    A registry is only read while validating. ``copy()`` gives an
    independent registry that can be extended without affecting the source.
    """

    def __init__(self, evaluators: dict[str, Evaluator] | None = None):
        self._evaluators: dict[str, Evaluator] = dict(evaluators or {})

    def register(self, name: str, evaluator: Evaluator) -> None:
        if not name:
            raise ValueError("rule name must not be empty")
        self._evaluators[name] = evaluator

    def get(self, name: str) -> Evaluator | None:
        return self._evaluators.get(name)

    def copy(self) -> RuleRegistry:
        return RuleRegistry(self._evaluators)

    def names(self) -> list[str]:
        return sorted(self._evaluators)

    def __contains__(self, name: object) -> bool:
        return name in self._evaluators

    def __len__(self) -> int:
        return len(self._evaluators)


# Value rules

def validate_distinct(value: Any) -> bool:
    """Check that a collection holds no repeated values.

    Numbers are trivially distinct. Mappings are checked on their values.
    """
    kind = kind_of_value(value)
    if kind.is_numeric:
        return True
    if kind is Kind.MAP:
        items = list(value.values())
    elif kind in (Kind.SLICE, Kind.ARRAY):
        items = list(value)
    else:
        raise EvaluationError(f"validator: distinct unsupported type {type(value).__name__}")

    seen: list[Any] = []
    for item in items:
        try:
            if item in seen:
                return False
        except TypeError as e:
            raise EvaluationError(f"validator: distinct cannot compare {type(item).__name__}") from e
        seen.append(item)
    return True


# Parameterized rules

def _measure(rule: str, value: Any) -> int | float:
    try:
        return size_of(value)
    except EvaluationError as e:
        raise EvaluationError(f"validator: {rule} unsupported type {type(value).__name__}") from e


def _expect(rule: str, params: list[str] | tuple[str, ...], count: int) -> None:
    if len(params) != count:
        raise EvaluationError(f"validator: {rule} params length must be {count}")


def validate_between(value: Any, params: list[str] | tuple[str, ...]) -> bool:
    """Check that the size of ``value`` lies within ``[params[0], params[1]]``.

    Reversed bounds are swapped before comparing.
    """
    _expect("between", params, 2)
    size = _measure("between", value)
    low = bound_for(value, params[0])
    high = bound_for(value, params[1])
    if low > high:
        low, high = high, low
    return low <= size <= high


def validate_digits_between(value: Any, params: list[str] | tuple[str, ...]) -> bool:
    """Check that an integer or numeric string has a digit count within bounds."""
    _expect("digitsBetween", params, 2)
    kind = kind_of_value(value)
    if kind not in (Kind.STRING, Kind.INT):
        raise EvaluationError(f"validator: digitsBetween unsupported type {type(value).__name__}")
    low = to_int(params[0])
    high = to_int(params[1])
    text = to_string(value)
    if text == "" or not patterns.is_numeric(text):
        raise EvaluationError("validator: digitsBetween value is not numeric")
    if low > high:
        low, high = high, low
    return low <= len(text) <= high


def _size_comparison(rule: str, op: Callable[[Any, Any], bool]) -> Callable[..., bool]:
    def evaluate(value: Any, params: list[str] | tuple[str, ...]) -> bool:
        _expect(rule, params, 1)
        return op(_measure(rule, value), bound_for(value, params[0]))

    evaluate.__name__ = f"validate_{rule}"
    evaluate.__doc__ = f"Compare the size of a value against the ``{rule}`` bound."
    return evaluate


validate_size = _size_comparison("size", operator.eq)
validate_min = _size_comparison("min", operator.ge)
validate_max = _size_comparison("max", operator.le)
validate_gt = _size_comparison("gt", operator.gt)
validate_gte = _size_comparison("gte", operator.ge)
validate_lt = _size_comparison("lt", operator.lt)
validate_lte = _size_comparison("lte", operator.le)


# Field comparison rules

def _comparable(rule: str, value: Any, other: Any) -> tuple[Any, Any]:
    kind = kind_of_value(value)
    other_kind = kind_of_value(other)
    if kind is not other_kind:
        raise EvaluationError(
            f"validator: {rule} The two fields must be of the same type "
            f"{type(value).__name__}, {type(other).__name__}"
        )
    if kind is Kind.STRING or kind.is_collection:
        return len(value), len(other)
    if kind.is_numeric:
        return value, other
    raise EvaluationError(f"validator: {rule} unsupported type {type(value).__name__}")


def _field_comparison(rule: str, op: Callable[[Any, Any], bool]) -> Callable[..., bool]:
    def evaluate(value: Any, other: Any) -> bool:
        left, right = _comparable(rule, value, other)
        return op(left, right)

    evaluate.__name__ = f"compare_{rule}"
    return evaluate


def compare_same(value: Any, other: Any) -> bool:
    """Strings must be equal; collections must have equal lengths."""
    if kind_of_value(value) is Kind.STRING and kind_of_value(other) is Kind.STRING:
        return value == other
    left, right = _comparable("same", value, other)
    return left == right


FIELD_COMPARISONS: dict[str, Evaluator] = {
    "gt": Evaluator(EvaluatorKind.FIELD, _field_comparison("gt", operator.gt)),
    "gte": Evaluator(EvaluatorKind.FIELD, _field_comparison("gte", operator.ge)),
    "lt": Evaluator(EvaluatorKind.FIELD, _field_comparison("lt", operator.lt)),
    "lte": Evaluator(EvaluatorKind.FIELD, _field_comparison("lte", operator.le)),
    "same": Evaluator(EvaluatorKind.FIELD, compare_same),
}


def _string_rules() -> dict[str, Callable[[str], bool]]:
    return {
        "email": patterns.is_email,
        "alpha": patterns.is_alpha,
        "alphaNum": patterns.is_alpha_num,
        "alphaDash": patterns.is_alpha_dash,
        "alphaUnicode": patterns.is_alpha_unicode,
        "alphaNumUnicode": patterns.is_alpha_num_unicode,
        "alphaDashUnicode": patterns.is_alpha_dash_unicode,
        "numeric": patterns.is_numeric,
        "int": patterns.is_int,
        "float": patterns.is_float,
        "ip": patterns.is_ip,
        "ipv4": patterns.is_ipv4,
        "ipv6": patterns.is_ipv6,
        "uuid": patterns.is_uuid,
        "uuid3": patterns.is_uuid3,
        "uuid4": patterns.is_uuid4,
        "uuid5": patterns.is_uuid5,
        "url": patterns.is_url,
    }


def default_registry() -> RuleRegistry:
    """Build a registry holding every built-in rule."""
    registry = RuleRegistry()
    registry.register("distinct", Evaluator(EvaluatorKind.VALUE, validate_distinct))

    param_rules: dict[str, Callable[..., bool]] = {
        "between": validate_between,
        "digitsBetween": validate_digits_between,
        "size": validate_size,
        "min": validate_min,
        "max": validate_max,
        "gt": validate_gt,
        "gte": validate_gte,
        "lt": validate_lt,
        "lte": validate_lte,
    }
    for name, func in param_rules.items():
        registry.register(name, Evaluator(EvaluatorKind.PARAM, func))

    for name, func in _string_rules().items():
        registry.register(name, Evaluator(EvaluatorKind.STRING, func))

    return registry
