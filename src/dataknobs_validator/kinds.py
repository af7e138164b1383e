"""Value kinds used by the field cache and the dispatch engine.

Kinds are derived twice: once from a field's declared type hint (to pick
message keys and decide whether an undeclared field still needs descent) and
once from the runtime value (to pick the dispatch branch).
"""

from __future__ import annotations

import asyncio
import collections.abc
import dataclasses
import queue
import types
import typing
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any


class Kind(Enum):
    """Enumeration of the value kinds the engine distinguishes.

    Attributes:
        BOOL: ``bool``
        INT: ``int`` and its subclasses (except ``bool``)
        FLOAT: ``float``, ``Decimal`` and ``Fraction``
        STRING: ``str``
        MAP: mappings
        SLICE: lists, sets, ``bytes`` and other variable-length sequences
        ARRAY: tuples
        STRUCT: dataclass records
        POINTER: ``Optional[X]``; the value may be ``None``
        INTERFACE: ``Any``, unions and unresolved annotations
        OPAQUE: other class instances, treated as records without fields
        UNSUPPORTED: complex numbers, callables, generators, queues
    """

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    MAP = "map"
    SLICE = "slice"
    ARRAY = "array"
    STRUCT = "struct"
    POINTER = "pointer"
    INTERFACE = "interface"
    OPAQUE = "opaque"
    UNSUPPORTED = "unsupported"

    @property
    def is_scalar(self) -> bool:
        return self in _SCALAR_KINDS

    @property
    def is_numeric(self) -> bool:
        return self in (Kind.INT, Kind.FLOAT)

    @property
    def is_collection(self) -> bool:
        return self in (Kind.MAP, Kind.SLICE, Kind.ARRAY)


_SCALAR_KINDS = frozenset({Kind.BOOL, Kind.INT, Kind.FLOAT, Kind.STRING})

_UNSUPPORTED_TYPES: tuple[type, ...] = (
    complex,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    queue.Queue,
    asyncio.Queue,
)

_SEQUENCE_ORIGINS: tuple[type, ...] = (
    list,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Collection,
    collections.abc.Iterable,
)


def is_record_type(tp: Any) -> bool:
    """Return True when ``tp`` is a dataclass type."""
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def is_record(value: Any) -> bool:
    """Return True when ``value`` is a dataclass instance."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def strip_annotated(tp: Any) -> Any:
    if typing.get_origin(tp) is typing.Annotated:
        return typing.get_args(tp)[0]
    return tp


def optional_target(tp: Any) -> Any | None:
    """Return ``X`` for ``Optional[X]`` / ``X | None``, else None."""
    tp = strip_annotated(tp)
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(tp)) == 2:
            return args[0]
    return None


def deref(tp: Any) -> Any:
    """Follow exactly one Optional indirection."""
    target = optional_target(tp)
    return tp if target is None else strip_annotated(target)


def kind_of_type(tp: Any) -> Kind:
    """Classify a declared type hint."""
    tp = strip_annotated(tp)
    if tp is Any or tp is object or isinstance(tp, (str, typing.TypeVar, typing.ForwardRef)):
        return Kind.INTERFACE

    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        if optional_target(tp) is not None:
            return Kind.POINTER
        return Kind.INTERFACE
    if origin is typing.Literal:
        values = typing.get_args(tp)
        return kind_of_value(values[0]) if values else Kind.INTERFACE
    if origin is not None:
        tp = origin

    if not isinstance(tp, type):
        return Kind.INTERFACE
    if issubclass(tp, bool):
        return Kind.BOOL
    if issubclass(tp, int):
        return Kind.INT
    if issubclass(tp, (float, Decimal, Fraction)):
        return Kind.FLOAT
    if issubclass(tp, str):
        return Kind.STRING
    if issubclass(tp, (bytes, bytearray)):
        return Kind.SLICE
    if dataclasses.is_dataclass(tp):
        return Kind.STRUCT
    if issubclass(tp, _UNSUPPORTED_TYPES) or issubclass(tp, collections.abc.Callable):  # type: ignore[arg-type]
        return Kind.UNSUPPORTED
    if issubclass(tp, tuple):
        return Kind.ARRAY
    if issubclass(tp, collections.abc.Mapping):
        return Kind.MAP
    if issubclass(tp, _SEQUENCE_ORIGINS):
        return Kind.SLICE
    return Kind.OPAQUE


def kind_of_value(value: Any) -> Kind:
    """Classify a runtime value."""
    if value is None:
        return Kind.POINTER
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.INT
    if isinstance(value, (float, Decimal, Fraction)):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (bytes, bytearray)):
        return Kind.SLICE
    if is_record(value):
        return Kind.STRUCT
    if isinstance(value, tuple):
        return Kind.ARRAY
    if isinstance(value, collections.abc.Mapping):
        return Kind.MAP
    if isinstance(value, (list, set, frozenset, collections.abc.Sequence, collections.abc.Set)):
        return Kind.SLICE
    if isinstance(value, _UNSUPPORTED_TYPES) or callable(value):
        return Kind.UNSUPPORTED
    return Kind.OPAQUE


def may_contain_records(tp: Any, _seen: frozenset[int] = frozenset()) -> bool:
    """Whether values of declared type ``tp`` can hold records at any depth.

    Used to decide if a field without a declaration still needs descent.
    """
    tp = strip_annotated(tp)
    if id(tp) in _seen:
        return False
    seen = _seen | {id(tp)}

    kind = kind_of_type(tp)
    if kind is Kind.STRUCT or kind is Kind.INTERFACE:
        return True
    if kind is Kind.POINTER:
        return may_contain_records(deref(tp), seen)
    if kind.is_collection:
        args = typing.get_args(tp)
        if not args:
            # Unparameterized containers may hold anything.
            return not (isinstance(tp, type) and issubclass(tp, (bytes, bytearray)))
        return any(may_contain_records(arg, seen) for arg in args if arg is not Ellipsis)
    return False


def is_empty(value: Any) -> bool:
    """Whether ``value`` is the zero/empty value for its kind.

    ``None``, empty strings and collections, ``False`` and numeric zero are
    empty. Records and opaque objects are never empty.
    """
    if value is None:
        return True
    kind = kind_of_value(value)
    if kind is Kind.BOOL:
        return not value
    if kind.is_numeric:
        return value == 0
    if kind is Kind.STRING or kind.is_collection:
        return len(value) == 0
    return False
