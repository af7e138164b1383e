"""Message translation for validation errors.

Messages are templates keyed by a rule's message name. ``{{.Attribute}}`` is
replaced by the field's display attribute and ``{{.Key}}`` by the message
parameter ``Key``::

    between.string: "The {{.Attribute}} must be between {{.Min}} and {{.Max}} characters."

Message files are YAML documents with up to three sections:

```yaml
messages:
  required: "The {{.Attribute}} field is required."
attributes:
  User.FirstName: "first name"
custom:
  User.Email.required: "We need your email address."
```
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from .errors import Errors, FieldError
from .exceptions import ConfigurationError, TranslationError

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"
ATTRIBUTE_PLACEHOLDER = "{{.Attribute}}"


def _placeholder(key: str) -> str:
    return "{{." + key + "}}"


def replace_attributes(
    message: str, attribute: str, parameters: Iterable[tuple[str, str]]
) -> str:
    """Fill the placeholders of a message template."""
    message = message.replace(ATTRIBUTE_PLACEHOLDER, attribute)
    for key, value in parameters:
        message = message.replace(_placeholder(key), value)
    return message


class Translator:
    """Per-locale message catalogs used to fill ``FieldError.message``.

    Args:
        locale: Default locale for ``translate``
        strict: Raise ``TranslationError`` for missing templates instead of
            emitting a placeholder message

    Example:
        ```python
        translator = Translator()
        translator.load_builtin("en")
        translator.set_attributes("en", {"User.FirstName": "first name"})
        translator.translate(errors)
        ```
    """

    def __init__(self, locale: str = "en", strict: bool = False):
        self.locale = locale
        self.strict = strict
        self._messages: dict[str, dict[str, str]] = {}
        self._attributes: dict[str, dict[str, str]] = {}
        self._custom_messages: dict[str, dict[str, str]] = {}

    def set_locale(self, locale: str) -> None:
        self.locale = locale

    def set_messages(self, locale: str, messages: Mapping[str, str]) -> None:
        self._messages.setdefault(locale, {}).update(_as_strings(messages))

    def set_attributes(self, locale: str, attributes: Mapping[str, str]) -> None:
        self._attributes.setdefault(locale, {}).update(_as_strings(attributes))

    def set_custom_messages(self, locale: str, messages: Mapping[str, str]) -> None:
        self._custom_messages.setdefault(locale, {}).update(_as_strings(messages))

    def messages(self, locale: str | None = None) -> dict[str, str]:
        return dict(self._messages.get(locale or self.locale, {}))

    def attributes(self, locale: str | None = None) -> dict[str, str]:
        return dict(self._attributes.get(locale or self.locale, {}))

    def custom_messages(self, locale: str | None = None) -> dict[str, str]:
        return dict(self._custom_messages.get(locale or self.locale, {}))

    def has_locale(self, locale: str) -> bool:
        return locale in self._messages

    def load_messages(self, locale: str, path: str | Path) -> None:
        """Load a YAML message file into ``locale``.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigurationError(f"Message file not found: {path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in message file {path}: {e}") from e

        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Message file {path} must contain a mapping",
                context={"path": str(path)},
            )

        sections = {"messages", "attributes", "custom"}
        if not sections & set(data):
            # A flat file holds messages only.
            data = {"messages": data}

        self.set_messages(locale, data.get("messages") or {})
        self.set_attributes(locale, data.get("attributes") or {})
        self.set_custom_messages(locale, data.get("custom") or {})
        logger.debug(f"Loaded {len(data.get('messages') or {})} message(s) for locale '{locale}' from {path}")

    def load_builtin(self, locale: str = "en") -> None:
        """Load a message catalog bundled with the package."""
        path = LOCALES_DIR / f"{locale}.yaml"
        if not path.exists():
            raise ConfigurationError(
                f"No bundled messages for locale '{locale}'",
                context={"locale": locale},
            )
        self.load_messages(locale, path)

    def template_for(self, error: FieldError, locale: str | None = None) -> str | None:
        """Find the template for ``error``.

        Custom messages keyed by declared path win over custom messages keyed
        by serialization path, which win over the locale's rule messages.
        """
        locale = locale or self.locale
        custom = self._custom_messages.get(locale, {})
        for key in (
            f"{error.struct_name}.{error.message_name}",
            f"{error.name}.{error.message_name}",
        ):
            if key in custom:
                return custom[key]
        return self._messages.get(locale, {}).get(error.message_name)

    def attribute_for(self, error: FieldError, locale: str | None = None) -> str:
        override = self._attributes.get(locale or self.locale, {}).get(error.struct_name)
        if override:
            return override
        return error.default_attribute or error.attribute

    def format(self, error: FieldError, locale: str | None = None) -> str:
        """Render the message for ``error`` without modifying it.

        Raises:
            TranslationError: In strict mode, if no template exists
        """
        template = self.template_for(error, locale)
        if template is None:
            if self.strict:
                raise TranslationError(
                    f"validator: undefined message : {error.message_name}",
                    context={"locale": locale or self.locale, "field": error.name},
                )
            return f"validator: undefined message : {error.message_name}"
        return replace_attributes(template, self.attribute_for(error, locale), error.message_parameters)

    def translate(self, errors: Errors | Iterable[Any], locale: str | None = None) -> Any:
        """Fill the message of every ``FieldError`` in ``errors`` in place.

        Other exceptions are left untouched. Returns ``errors``.
        """
        for error in errors:
            if isinstance(error, FieldError):
                error.set_message(self.format(error, locale))
            elif isinstance(error, Errors):
                self.translate(error, locale)
        return errors


def _as_strings(mapping: Mapping[str, Any]) -> dict[str, str]:
    if not isinstance(mapping, Mapping):
        raise ConfigurationError(f"Expected a mapping, got {type(mapping).__name__}")
    return {str(key): str(value) for key, value in mapping.items()}
