"""Helpers for declaring validated dataclass fields."""

from __future__ import annotations

import dataclasses
from typing import Any


def field(
    rules: str = "",
    *,
    name: str | None = None,
    embedded: bool = False,
    tag_name: str = "valid",
    name_key: str = "json",
    embedded_key: str = "embedded",
    metadata: dict[str, Any] | None = None,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with validation rules.

    A thin wrapper over ``dataclasses.field`` that stores ``rules``, ``name``
    and ``embedded`` in the field metadata under the keys a ``Validator``
    reads. Remaining keyword arguments go to ``dataclasses.field``.

    Example:
        ```python
        @dataclass
        class Address:
            city: str = field("required", name="city", default="")

        @dataclass
        class User:
            address: Address = field(embedded=True, default_factory=Address)
            emails: list[str] = field("between=1|3", name="emails", default_factory=list)
        ```
    """
    merged = dict(metadata or {})
    if rules:
        merged[tag_name] = rules
    if name is not None:
        merged[name_key] = name
    if embedded:
        merged[embedded_key] = True
    return dataclasses.field(metadata=merged, **kwargs)
