"""Validator configuration.

Configuration can be built in code, loaded from a YAML or JSON file, and
overridden from environment variables::

    DATAKNOBS_VALIDATOR_LOCALE=fr
    DATAKNOBS_VALIDATOR_TAG_NAME=rules
    DATAKNOBS_VALIDATOR_TRANSLATE=false
"""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from .exceptions import ConfigurationError

ENV_PREFIX = "DATAKNOBS_VALIDATOR_"

_ENV_FIELDS = ("locale", "tag_name", "name_key", "embedded_key", "translate", "strict_messages")


@dataclass
class ValidatorConfig:
    """Settings of a ``Validator``.

    Attributes:
        tag_name: Field metadata key holding the rule declaration
        name_key: Field metadata key holding the serialization name
        embedded_key: Field metadata key flagging an embedded record
        locale: Locale used to translate messages
        attributes: Display attributes keyed by declared path, e.g. ``User.FirstName``
        custom_messages: Message overrides keyed by ``<path>.<message name>``
        messages: Extra rule messages for ``locale``
        translate: Fill error messages after validation
        strict_messages: Raise for missing message templates
    """

    tag_name: str = "valid"
    name_key: str = "json"
    embedded_key: str = "embedded"
    locale: str = "en"
    attributes: dict[str, str] = field(default_factory=dict)
    custom_messages: dict[str, str] = field(default_factory=dict)
    messages: dict[str, str] = field(default_factory=dict)
    translate: bool = True
    strict_messages: bool = False

    def __post_init__(self) -> None:
        for name in ("tag_name", "name_key", "embedded_key", "locale"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(
                    f"'{name}' must be a non-empty string",
                    context={"field": name, "value": value},
                )
        for name in ("attributes", "custom_messages", "messages"):
            if not isinstance(getattr(self, name), Mapping):
                raise ConfigurationError(
                    f"'{name}' must be a mapping",
                    context={"field": name},
                )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidatorConfig:
        """Create a configuration from a dictionary.

        Raises:
            ConfigurationError: If the dictionary has unknown keys
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown validator configuration key(s): {', '.join(unknown)}",
                context={"unknown": unknown},
            )
        values = dict(data)
        for name in ("translate", "strict_messages"):
            if name in values:
                values[name] = _parse_bool(name, values[name])
        return cls(**values)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> ValidatorConfig:
        """Create a configuration from a YAML or JSON file.

        A top-level ``validator`` section is used when present.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in [".yaml", ".yml", ".json"]:
            raise ConfigurationError(f"Unsupported file format: {suffix}")
        try:
            with open(path, encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {path}: {e}") from e

        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        if isinstance(data.get("validator"), Mapping):
            data = data["validator"]
        return cls.from_dict(data)

    def with_environment_overrides(
        self, prefix: str = ENV_PREFIX, environ: Mapping[str, str] | None = None
    ) -> ValidatorConfig:
        """Return a copy with scalar settings overridden from the environment."""
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for name in _ENV_FIELDS:
            key = f"{prefix}{name.upper()}"
            if key in environ:
                value: Any = environ[key]
                if name in ("translate", "strict_messages"):
                    value = _parse_bool(key, value)
                overrides[name] = value
        return dataclasses.replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ["true", "yes", "1", "on"]:
        return True
    if text in ["false", "no", "0", "off", ""]:
        return False
    raise ConfigurationError(f"'{name}' must be a boolean, got {value!r}")
