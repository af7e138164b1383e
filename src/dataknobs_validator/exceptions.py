"""Exception hierarchy for the dataknobs_validator package.

Every exception raised by the validator derives from ``ValidatorError`` and
supports an optional context dictionary for rich error information.

The hierarchy separates failures by who has to act on them:

- ``UsageError``: the caller passed something the engine cannot validate
  (a non-record top-level value, an unsupported field type). Fatal to the call.
- ``RuleParseError``: a field declaration is malformed. Raised at first
  validation of the owning type and on every later validation of it.
- ``EvaluationError`` / ``CoercionError``: a lower-level failure inside a rule
  evaluator. These never escape ``Validator.validate``; they are attached to the
  ``FieldError`` they caused.

Example:
    ```python
    from dataknobs_validator.exceptions import UsageError, ValidatorError

    try:
        validator.validate(42)
    except UsageError as e:
        logger.error(f"Error: {e}")
        if e.context:
            logger.error(f"Context: {e.context}")
    ```
"""

from __future__ import annotations

from typing import Any


class ValidatorError(Exception):
    """Base exception for the validator package.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context
        details: Alternative to context (takes precedence when both are given)
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.context = details or context or {}
        self.details = self.context


class UsageError(ValidatorError):
    """Raised when the validator is called with a value it cannot handle.

    Example:
        ```python
        raise UsageError(
            "validate() only accepts dataclass instances",
            context={"type": "int"}
        )
        ```
    """

    pass


class UnsupportedTypeError(UsageError):
    """Raised when a field holds a value of a structurally unsupported type.

    Complex numbers, callables, generators and queues have no meaningful
    validation semantics.
    """

    def __init__(self, value_type: type, message: str | None = None):
        self.type = value_type
        super().__init__(
            message or f"validator: unsupported type: {_type_name(value_type)}",
            context={"type": _type_name(value_type)},
        )


class RuleParseError(ValidatorError):
    """Raised when a rule declaration is malformed.

    Args:
        rule: Name of the offending rule
        declaration: The full raw declaration string
        reason: What is wrong with it
    """

    def __init__(self, rule: str, declaration: str, reason: str | None = None):
        self.rule = rule
        self.declaration = declaration
        message = f"validator: {rule} format is not valid in '{declaration}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, context={"rule": rule, "declaration": declaration})


class EvaluationError(ValidatorError):
    """Raised by a rule evaluator that cannot evaluate a value.

    Surfaced to callers as ``FieldError.func_error``.
    """

    pass


class CoercionError(EvaluationError, ValueError):
    """Raised when a value or rule parameter cannot be coerced."""

    pass


class ConfigurationError(ValidatorError):
    """Raised when validator configuration is invalid or missing."""

    pass


class TranslationError(ValidatorError):
    """Raised by a strict translator when a message template is missing."""

    pass


def _type_name(value_type: Any) -> str:
    module = getattr(value_type, "__module__", "")
    name = getattr(value_type, "__qualname__", None) or repr(value_type)
    if module and module != "builtins":
        return f"{module}.{name}"
    return name
