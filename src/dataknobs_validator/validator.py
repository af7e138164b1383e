"""Validation dispatch engine.

``Validator.validate`` walks a dataclass instance using the cached field
metadata of its type. For every field it evaluates the required-class rules,
then the other rules according to the runtime kind of the value, and descends
into nested records, collections and optional values. Failures are collected
into an ``Errors`` value; a field stops at its first failure while sibling
fields and elements keep being validated.

Example:
    ```python
    from dataclasses import dataclass
    from dataknobs_validator import Validator, field

    @dataclass
    class User:
        name: str = field("required,between=3|20", name="name")
        email: str = field("required,email", name="email")

    errors = Validator().validate(User(name="Al", email="nope"))
    if errors:
        print(errors.to_json())
    ```
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from .cache import FieldDescriptor, TypeFieldCache
from .coercion import to_string
from .config import ValidatorConfig
from .errors import Errors, FieldError
from .evaluators import Evaluator, EvaluatorKind, RuleRegistry, default_registry
from .exceptions import EvaluationError, UnsupportedTypeError, UsageError
from .kinds import Kind, is_empty, is_record, kind_of_value
from .required import MISSING, check_required, display_name, find_field
from .rules import RuleDescriptor
from .translator import LOCALES_DIR, Translator

logger = logging.getLogger(__name__)


class Validator:
    """Validates dataclass instances against the rules declared on their fields.

    A validator owns its field cache, its rule registry and its translator.
    It is safe to call ``validate`` from several threads at once; registering
    rules while validations are running is not supported.

    Args:
        config: Validator settings (defaults to ``ValidatorConfig()``)
        registry: Rules available to declarations (defaults to the built-in rules)
        translator: Message translator (built from ``config`` when omitted)
    """

    def __init__(
        self,
        config: ValidatorConfig | None = None,
        registry: RuleRegistry | None = None,
        translator: Translator | None = None,
    ):
        self.config = config or ValidatorConfig()
        self.registry = (registry or default_registry()).copy()
        self.cache = self._new_cache()
        self.translator = translator or self._new_translator()

    def _new_cache(self) -> TypeFieldCache:
        return TypeFieldCache(
            self.registry,
            tag_name=self.config.tag_name,
            name_key=self.config.name_key,
            embedded_key=self.config.embedded_key,
        )

    def _new_translator(self) -> Translator:
        locale = self.config.locale
        translator = Translator(locale=locale, strict=self.config.strict_messages)
        if (LOCALES_DIR / f"{locale}.yaml").exists():
            translator.load_builtin(locale)
        else:
            logger.debug(f"No bundled messages for locale '{locale}'")
        translator.set_messages(locale, self.config.messages)
        translator.set_attributes(locale, self.config.attributes)
        translator.set_custom_messages(locale, self.config.custom_messages)
        return translator

    def register_rule(
        self,
        name: str,
        func: Callable[..., bool] | Evaluator,
        kind: EvaluatorKind = EvaluatorKind.CUSTOM,
    ) -> None:
        """Add or replace a rule on this validator.

        ``func`` is called as ``func(value, record, rule)`` for custom rules.
        The registry is copied so that other validators are not affected, and
        cached fields are discarded so declarations pick up the new rule.
        """
        evaluator = func if isinstance(func, Evaluator) else Evaluator(kind, func)
        registry = self.registry.copy()
        registry.register(name, evaluator)
        self.registry = registry
        self.cache = self._new_cache()
        logger.debug(f"Registered {evaluator.kind.value} rule '{name}'")

    def validate(self, value: Any, name_prefix: str = "", struct_prefix: str = "") -> Errors | None:
        """Validate a dataclass instance.

        Args:
            value: Instance to validate; ``None`` is valid
            name_prefix: Prefix for serialization paths in errors
            struct_prefix: Prefix for declared paths in errors

        Returns:
            Errors when any field fails, otherwise None

        Raises:
            UsageError: If ``value`` is not a dataclass instance
            UnsupportedTypeError: If a field without rules holds an unsupported value
            RuleParseError: If a declaration of a visited type is malformed
        """
        if value is None:
            return None
        if not is_record(value):
            raise UsageError(
                f"validator: only dataclass instances can be validated; got {type(value).__name__}",
                context={"type": type(value).__name__},
            )

        errors = Errors()
        self._validate_record(value, name_prefix, struct_prefix, errors)
        if not errors:
            return None
        if self.config.translate:
            self.translator.translate(errors)
        return errors

    def _validate_record(self, record: Any, name_prefix: str, struct_prefix: str, errors: Errors) -> None:
        for descriptor in self.cache.fields_of(type(record)):
            value = descriptor.value_of(record)
            self._validate_field(value, descriptor, record, name_prefix, struct_prefix, errors)

    def _validate_field(
        self,
        value: Any,
        descriptor: FieldDescriptor,
        record: Any,
        name_prefix: str,
        struct_prefix: str,
        errors: Errors,
    ) -> None:
        name = name_prefix + descriptor.name
        struct_name = struct_prefix + descriptor.struct_name

        for rule in descriptor.required_rules:
            violation = check_required(rule, value, record, self.config.embedded_key)
            if violation is not None:
                errors.append(self._field_error(
                    descriptor, name, struct_name, rule, value,
                    violation.message_parameters, violation.func_error,
                ))
                return

        if descriptor.omit_empty and is_empty(value):
            return
        if value is None:
            return

        failure = self._run_custom_rules(value, descriptor, record, name, struct_name)
        if failure is not None:
            errors.append(failure)
            return

        kind = kind_of_value(value)
        if not descriptor.has_rules:
            # Undeclared fields are only searched for nested records.
            if kind is Kind.STRUCT:
                self._validate_record(value, f"{name}.", f"{struct_name}.", errors)
            elif kind.is_collection:
                self._walk(value, name, struct_name, errors, strict=False)
            return

        if kind is Kind.STRUCT:
            self._validate_record(value, f"{name}.", f"{struct_name}.", errors)
        elif kind.is_scalar or kind is Kind.OPAQUE:
            failure = self._run_rules(value, kind, descriptor, record, name, struct_name)
            if failure is not None:
                errors.append(failure)
        elif kind is Kind.MAP:
            if not all(isinstance(key, str) for key in value):
                raise UnsupportedTypeError(type(value))
            failure = self._run_rules(value, kind, descriptor, record, name, struct_name)
            if failure is not None:
                errors.append(failure)
                return
            self._walk(value, name, struct_name, errors)
        elif kind in (Kind.SLICE, Kind.ARRAY):
            failure = self._run_rules(value, kind, descriptor, record, name, struct_name)
            if failure is not None:
                errors.append(failure)
                return
            self._walk(value, name, struct_name, errors)
        else:
            if not descriptor.other_rules:
                raise UnsupportedTypeError(type(value))
            rule = descriptor.other_rules[0]
            errors.append(self._field_error(
                descriptor, name, struct_name, rule, value,
                self._parameters(rule), UnsupportedTypeError(type(value)),
            ))

    def _walk(
        self, container: Any, name: str, struct_name: str, errors: Errors, strict: bool = True
    ) -> None:
        """Visit the elements of a collection to validate the records it holds.

        Record elements extend both paths with their key or index. Map values
        that are not records keep the map's paths. Maps with non-string keys
        raise ``UnsupportedTypeError`` when ``strict``, and are skipped otherwise.
        """
        if isinstance(container, (bytes, bytearray)):
            return
        if kind_of_value(container) is Kind.MAP:
            if not all(isinstance(key, str) for key in container):
                if not strict:
                    return
                raise UnsupportedTypeError(type(container))
            items = [(key, container[key], False) for key in sorted(container)]
        else:
            items = [(str(i), item, True) for i, item in enumerate(container)]

        for key, item, extend in items:
            if item is None:
                continue
            if is_record(item):
                self._validate_record(item, f"{name}.{key}.", f"{struct_name}.{key}.", errors)
            elif kind_of_value(item).is_collection:
                if extend:
                    self._walk(item, f"{name}.{key}", f"{struct_name}.{key}", errors, strict)
                else:
                    self._walk(item, name, struct_name, errors, strict)

    def _run_custom_rules(
        self, value: Any, descriptor: FieldDescriptor, record: Any, name: str, struct_name: str
    ) -> FieldError | None:
        for rule in descriptor.other_rules:
            for evaluator in rule.plan:
                if evaluator.kind is not EvaluatorKind.CUSTOM:
                    continue
                try:
                    valid = evaluator.func(value, record, rule)
                except EvaluationError as e:
                    return self._field_error(descriptor, name, struct_name, rule, value, self._parameters(rule), e)
                if not valid:
                    return self._field_error(descriptor, name, struct_name, rule, value, self._parameters(rule))
        return None

    def _run_rules(
        self,
        value: Any,
        kind: Kind,
        descriptor: FieldDescriptor,
        record: Any,
        name: str,
        struct_name: str,
    ) -> FieldError | None:
        for rule in descriptor.other_rules:
            try:
                valid = self._evaluate(rule, value, kind, record)
            except EvaluationError as e:
                return self._field_error(descriptor, name, struct_name, rule, value, self._parameters(rule), e)
            if not valid:
                return self._field_error(descriptor, name, struct_name, rule, value, self._parameters(rule))
        return None

    def _evaluate(self, rule: RuleDescriptor, value: Any, kind: Kind, record: Any) -> bool:
        for evaluator in rule.plan:
            if evaluator.kind is EvaluatorKind.FIELD:
                other = find_field(record, rule.params[0], self.config.embedded_key)
                if other is MISSING:
                    raise EvaluationError(f"validator: {rule.name} unknown field '{rule.params[0]}'")
                valid = evaluator.func(value, other)
            elif evaluator.kind is EvaluatorKind.VALUE:
                valid = evaluator.func(value)
            elif evaluator.kind is EvaluatorKind.PARAM:
                valid = evaluator.func(value, rule.params)
            elif evaluator.kind is EvaluatorKind.STRING:
                if kind is not Kind.STRING:
                    continue
                valid = evaluator.func(value)
            else:
                continue
            if not valid:
                return False
        return True

    @staticmethod
    def _parameters(rule: RuleDescriptor) -> tuple[tuple[str, str], ...]:
        if rule.name == "same":
            return rule.message_parameters + (("Other", display_name(rule.params[0])),)
        return rule.message_parameters

    @staticmethod
    def _field_error(
        descriptor: FieldDescriptor,
        name: str,
        struct_name: str,
        rule: RuleDescriptor,
        value: Any,
        parameters: tuple[tuple[str, str], ...],
        func_error: BaseException | None = None,
    ) -> FieldError:
        return FieldError(
            name=name,
            struct_name=struct_name,
            tag=rule.name,
            message_name=rule.message_name,
            message_parameters=parameters,
            attribute=descriptor.attribute,
            default_attribute=descriptor.default_attribute,
            value=to_string(value),
            func_error=func_error,
        )


_default_validator: Validator | None = None
_default_lock = threading.Lock()


def default_validator() -> Validator:
    """Return the shared validator with the default configuration."""
    global _default_validator
    if _default_validator is None:
        with _default_lock:
            if _default_validator is None:
                _default_validator = Validator()
    return _default_validator


def validate(value: Any, name_prefix: str = "", struct_prefix: str = "") -> Errors | None:
    """Validate ``value`` with the shared default validator."""
    return default_validator().validate(value, name_prefix, struct_prefix)
