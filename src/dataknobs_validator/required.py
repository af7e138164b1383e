"""Required-class rules and cross-field lookup.

Required-class rules decide whether a field must be non-empty, possibly
depending on the values of other fields of the same record. They run before
every other rule of a field and are not affected by ``omitempty``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .coercion import in_string, to_string
from .exceptions import EvaluationError
from .kinds import Kind, is_empty, is_record, kind_of_value
from .rules import MULTI_REFERENCE_RULES, REFERENCE_RULES, RuleDescriptor


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
"""Returned by ``find_field`` for references that do not resolve."""


@dataclass(frozen=True)
class RequiredViolation:
    """A failed required-class rule with its message parameters."""

    rule: RuleDescriptor
    message_parameters: tuple[tuple[str, str], ...] = ()
    func_error: EvaluationError | None = None


def _lookup(record: Any, name: str, embedded_key: str) -> Any:
    level = [record]
    seen: set[int] = set()
    while level:
        matches: list[Any] = []
        following: list[Any] = []
        for obj in level:
            if id(obj) in seen:
                continue
            seen.add(id(obj))
            for f in dataclasses.fields(obj):
                if f.name == name:
                    matches.append(getattr(obj, f.name))
                elif f.metadata.get(embedded_key, False):
                    value = getattr(obj, f.name, None)
                    if is_record(value):
                        following.append(value)
        if len(matches) == 1:
            return matches[0]
        if matches:
            # Shadowed at the same depth.
            return MISSING
        level = following
    return MISSING


def find_field(record: Any, reference: str, embedded_key: str = "embedded") -> Any:
    """Resolve a dotted attribute reference against a record instance.

    Each segment may name a field promoted from an embedded record. Returns
    ``MISSING`` when a segment does not resolve, is ambiguous, or when the
    walk reaches a non-record value before the last segment.
    """
    current = record
    for segment in reference.split("."):
        if not is_record(current):
            return MISSING
        current = _lookup(current, segment, embedded_key)
        if current is MISSING:
            return MISSING
    return current


def display_name(reference: str) -> str:
    """The last segment of a dotted reference, used as ``{{.Other}}``."""
    return reference.rsplit(".", 1)[-1]


def _is_absent(value: Any) -> bool:
    return value is MISSING or is_empty(value)


def _candidate_values(rule: str, other: Any) -> list[str]:
    kind = kind_of_value(other)
    if kind.is_scalar:
        return [to_string(other)]
    if kind is Kind.MAP:
        items = [other[key] for key in sorted(other, key=to_string)]
    elif kind in (Kind.SLICE, Kind.ARRAY):
        items = list(other)
    else:
        raise EvaluationError(f"validator: {rule} unsupported type {type(other).__name__}")

    values = []
    for item in items:
        if is_record(item) or isinstance(item, Mapping):
            raise EvaluationError(f"validator: {rule} unsupported type {type(item).__name__}")
        values.append(to_string(item))
    return values


def _violation(rule: RuleDescriptor, *extra: tuple[str, str], func_error: EvaluationError | None = None) -> RequiredViolation:
    parameters = list(rule.message_parameters) + list(extra)
    if rule.name in MULTI_REFERENCE_RULES:
        parameters.append(("Values", " / ".join(rule.params)))
    elif rule.name in REFERENCE_RULES:
        parameters.append(("Other", display_name(rule.params[0])))
    return RequiredViolation(rule, tuple(parameters), func_error)


def check_required(
    rule: RuleDescriptor, value: Any, record: Any, embedded_key: str = "embedded"
) -> RequiredViolation | None:
    """Evaluate one required-class rule for ``value`` held by ``record``.

    Returns:
        A RequiredViolation when the rule fails, otherwise None
    """
    name = rule.name
    if name == "required":
        return _violation(rule) if is_empty(value) else None

    if name in REFERENCE_RULES:
        other = find_field(record, rule.params[0], embedded_key)
        if other is MISSING or other is None:
            return None
        try:
            candidates = _candidate_values(name, other)
        except EvaluationError as e:
            return _violation(rule, func_error=e)
        expected = rule.params[1:]
        if name == "requiredIf":
            for candidate in candidates:
                if in_string(candidate, expected) and is_empty(value):
                    return _violation(rule, ("Value", candidate))
        else:
            for candidate in candidates:
                if not in_string(candidate, expected) and is_empty(value):
                    return _violation(rule)
        return None

    others = [find_field(record, reference, embedded_key) for reference in rule.params]
    absent = [_is_absent(other) for other in others]
    if name == "requiredWith":
        triggered = not all(absent)
    elif name == "requiredWithAll":
        triggered = not any(absent)
    elif name == "requiredWithout":
        triggered = any(absent)
    elif name == "requiredWithoutAll":
        triggered = all(absent)
    else:
        raise EvaluationError(f"validator: unknown required rule {name}")

    if triggered and is_empty(value):
        return _violation(rule)
    return None
