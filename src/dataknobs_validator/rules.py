"""Parser for field rule declarations.

A declaration is a comma-separated list of rule tokens attached to a field::

    required,between=3|20,attribute=User name

Each token is ``name`` or ``name=p1|p2|...``. Two tokens are options rather
than rules: ``attribute=X`` sets the display attribute used in messages, and
``omitempty`` skips the non-required rules when the value is empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .coercion import is_number
from .evaluators import FIELD_COMPARISONS, Evaluator, RuleRegistry
from .exceptions import RuleParseError
from .kinds import Kind, deref, kind_of_type

logger = logging.getLogger(__name__)

REQUIRED_RULES = frozenset({
    "required",
    "requiredIf",
    "requiredUnless",
    "requiredWith",
    "requiredWithAll",
    "requiredWithout",
    "requiredWithoutAll",
})

# Rules whose first parameter names another field of the record.
REFERENCE_RULES = frozenset({"requiredIf", "requiredUnless"})
# Rules whose every parameter names another field of the record.
MULTI_REFERENCE_RULES = frozenset({
    "requiredWith",
    "requiredWithAll",
    "requiredWithout",
    "requiredWithoutAll",
})

SIZED_RULES = frozenset({"between", "gt", "gte", "lt", "lte", "min", "max", "size"})

_COMPARISON_RULES = frozenset({"gt", "gte", "lt", "lte"})

OPTION_ATTRIBUTE = "attribute"
OPTION_OMIT_EMPTY = "omitempty"


@dataclass(frozen=True)
class RuleDescriptor:
    """A single parsed rule.

    Attributes:
        name: Rule name as written in the declaration
        params: Parameters in declaration order
        message_name: Translation key, possibly suffixed with the value kind
        message_parameters: ``(key, value)`` pairs substituted into messages
        plan: Evaluators resolved for the rule, in the order they are tried
    """

    name: str
    params: tuple[str, ...] = ()
    message_name: str = ""
    message_parameters: tuple[tuple[str, str], ...] = ()
    plan: tuple[Evaluator, ...] = field(default=(), compare=False, repr=False)

    @property
    def is_required(self) -> bool:
        return self.name in REQUIRED_RULES

    @property
    def is_field_comparison(self) -> bool:
        return self.name == "same" or (
            self.name in _COMPARISON_RULES
            and len(self.params) == 1
            and not is_number(self.params[0])
        )

    def references(self) -> tuple[str, ...]:
        """Names of the other fields this rule reads."""
        if self.name in REFERENCE_RULES or self.name == "same":
            return self.params[:1]
        if self.name in MULTI_REFERENCE_RULES:
            return self.params
        if self.is_field_comparison:
            return self.params[:1]
        return ()


@dataclass(frozen=True)
class ParsedRules:
    """Result of parsing one declaration."""

    required_rules: tuple[RuleDescriptor, ...] = ()
    other_rules: tuple[RuleDescriptor, ...] = ()
    default_attribute: str = ""
    omit_empty: bool = False


def message_name(rule: str, field_type: Any) -> str:
    """Build the translation key of a rule for a field of ``field_type``.

    Size-style rules get a suffix so that messages can talk about characters,
    items or numeric values as appropriate.
    """
    if rule not in SIZED_RULES:
        return rule
    kind = kind_of_type(deref(field_type))
    if kind.is_numeric:
        return f"{rule}.numeric"
    if kind is Kind.STRING:
        return f"{rule}.string"
    if kind.is_collection:
        return f"{rule}.array"
    return rule


def message_parameters(
    rule: str, params: tuple[str, ...], declaration: str
) -> tuple[tuple[str, str], ...]:
    """Build the static message parameters of a rule and check its arity.

    Raises:
        RuleParseError: If the rule has the wrong number of parameters
    """

    def require(count: int, exact: bool = True) -> None:
        if (exact and len(params) != count) or (not exact and len(params) < count):
            bound = f"exactly {count}" if exact else f"at least {count}"
            raise RuleParseError(
                rule, declaration, f"expected {bound} parameter(s), got {len(params)}"
            )

    if rule in ("between", "digitsBetween"):
        require(2)
        return (("Min", params[0]), ("Max", params[1]))
    if rule in _COMPARISON_RULES:
        require(1)
        return (("Value", params[0]),)
    if rule == "min":
        require(1)
        return (("Min", params[0]),)
    if rule == "max":
        require(1)
        return (("Max", params[0]),)
    if rule == "size":
        require(1)
        return (("Size", params[0]),)
    if rule == "requiredUnless":
        require(2, exact=False)
        return (("Values", ", ".join(params[1:])),)
    if rule == "requiredIf":
        require(2, exact=False)
    elif rule in MULTI_REFERENCE_RULES:
        require(1, exact=False)
    elif rule == "same":
        require(1)
    return ()


def _plan(rule: str, params: tuple[str, ...], registry: RuleRegistry) -> tuple[Evaluator, ...]:
    if rule in REQUIRED_RULES:
        return ()
    if rule == "same" or (rule in _COMPARISON_RULES and not is_number(params[0])):
        return (FIELD_COMPARISONS[rule],)
    evaluator = registry.get(rule)
    if evaluator is None:
        logger.debug(f"Ignoring unknown rule '{rule}'")
        return ()
    return (evaluator,)


def parse_rules(declaration: str, field_type: Any, registry: RuleRegistry) -> ParsedRules:
    """Parse a rule declaration.

    Args:
        declaration: Raw declaration string
        field_type: Declared type of the field, used for message keys
        registry: Registry used to resolve each rule's evaluators

    Returns:
        ParsedRules with the required and other rules in declaration order

    Raises:
        RuleParseError: If a rule has the wrong number of parameters
    """
    required: list[RuleDescriptor] = []
    other: list[RuleDescriptor] = []
    default_attribute = ""
    omit_empty = False

    for token in declaration.split(","):
        token = token.strip()
        if not token:
            continue

        name, has_params, raw = token.partition("=")
        name = name.strip()
        params = tuple(raw.split("|")) if has_params else ()

        if name == OPTION_ATTRIBUTE:
            default_attribute = raw
            continue
        if name == OPTION_OMIT_EMPTY:
            omit_empty = True
            continue

        rule = RuleDescriptor(
            name=name,
            params=params,
            message_name=message_name(name, field_type),
            message_parameters=message_parameters(name, params, declaration),
            plan=_plan(name, params, registry),
        )
        if rule.is_required:
            required.append(rule)
        else:
            other.append(rule)

    return ParsedRules(
        required_rules=tuple(required),
        other_rules=tuple(other),
        default_attribute=default_attribute,
        omit_empty=omit_empty,
    )
