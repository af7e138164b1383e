"""Validation error model.

A validation run returns an ``Errors`` collection holding one ``FieldError``
per failing field, in traversal order. Both are exceptions, so callers can
either inspect the collection or raise it.

Example:
    ```python
    errors = validator.validate(user)
    if errors:
        for error in errors.field_errors():
            print(error.name, error.message)
        payload = errors.to_json()
    ```
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Sequence
from typing import Any, overload


class FieldError(Exception):
    """A single rule violation on a single field.

    Attributes:
        name: Namespaced serialization path, e.g. ``addresses.0.city``
        struct_name: Namespaced declared path, e.g. ``User.Addresses.0.Address.City``
        tag: Name of the rule that failed
        message_name: Translation key of the rule
        message_parameters: ``(key, value)`` pairs substituted into the message
        attribute: Declared attribute name of the field
        default_attribute: Display attribute given by ``attribute=X``
        value: String form of the offending value
        message: Translated message; empty until translated
        func_error: Lower-level failure raised by the rule evaluator, if any
    """

    def __init__(
        self,
        name: str,
        struct_name: str = "",
        tag: str = "",
        message_name: str = "",
        message_parameters: Iterable[tuple[str, str]] = (),
        attribute: str = "",
        default_attribute: str = "",
        value: str = "",
        message: str = "",
        func_error: BaseException | None = None,
    ):
        super().__init__(name)
        self.name = name
        self.struct_name = struct_name
        self.tag = tag
        self.message_name = message_name
        self.message_parameters = tuple(message_parameters)
        self.attribute = attribute
        self.default_attribute = default_attribute
        self.value = value
        self.message = message
        self.func_error = func_error
        if func_error is not None:
            self.__cause__ = func_error

    def set_message(self, message: str) -> None:
        self.message = message

    def parameter(self, key: str) -> str | None:
        """Return the message parameter named ``key``, if present."""
        for param_key, param_value in self.message_parameters:
            if param_key == key:
                return param_value
        return None

    def to_dict(self) -> dict[str, str]:
        return {"message": str(self), "parameter": self.name}

    def __str__(self) -> str:
        if self.message:
            return self.message
        text = f"validation failed for field '{self.name}'"
        if self.func_error is not None:
            text = f"{text}: {self.func_error}"
        return text

    def __repr__(self) -> str:
        return f"FieldError(name={self.name!r}, tag={self.tag!r}, message={self.message!r})"


class Errors(Exception, Sequence):
    """Ordered collection of validation failures.

    Items are usually ``FieldError`` instances but may be any exception, for
    example one raised by a custom rule. ``field_errors()`` gives a uniform
    view.
    """

    def __init__(self, errors: Iterable[BaseException] = ()):
        self._errors: list[BaseException] = list(errors)
        super().__init__(self._errors)

    def append(self, error: BaseException) -> None:
        self._errors.append(error)

    def extend(self, errors: Iterable[BaseException]) -> None:
        self._errors.extend(errors)

    @overload
    def __getitem__(self, index: int) -> BaseException: ...

    @overload
    def __getitem__(self, index: slice) -> list[BaseException]: ...

    def __getitem__(self, index: Any) -> Any:
        return self._errors[index]

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def field_errors(self) -> list[FieldError]:
        """Return every item as a ``FieldError``.

        Nested ``Errors`` are flattened. Other exceptions become a
        ``FieldError`` with an empty name whose message is the exception text.
        """
        result: list[FieldError] = []
        for error in self._errors:
            if isinstance(error, FieldError):
                result.append(error)
            elif isinstance(error, Errors):
                result.extend(error.field_errors())
            else:
                result.append(FieldError("", message=str(error), func_error=error))
        return result

    def has_field_error(self, name: str) -> bool:
        return self.get_field_error(name) is not None

    def get_field_error(self, name: str) -> FieldError | None:
        """Return the first error for the field at path ``name``."""
        for error in self.field_errors():
            if error.name == name:
                return error
        return None

    def group_by_field(self) -> dict[str, list[FieldError]]:
        """Group errors by field path, keeping traversal order."""
        groups: dict[str, list[FieldError]] = {}
        for error in self.field_errors():
            groups.setdefault(error.name, []).append(error)
        return groups

    def to_list(self) -> list[dict[str, str]]:
        """Serialize as ``[{"message": ..., "parameter": ...}]``.

        Only ``FieldError`` items, including those of nested ``Errors``, are
        serialized; other exceptions are omitted.
        """
        return [error.to_dict() for error in self._own_field_errors()]

    def _own_field_errors(self) -> Iterator[FieldError]:
        for error in self._errors:
            if isinstance(error, FieldError):
                yield error
            elif isinstance(error, Errors):
                yield from error._own_field_errors()

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_list(), **kwargs)

    def __str__(self) -> str:
        return "\n".join(str(error) for error in self._errors)

    def __repr__(self) -> str:
        return f"Errors({self._errors!r})"
