"""Per-type cache of validatable fields.

The first time a record type is validated its fields are discovered
breadth-first, embedded records are flattened into their owner, and every
declaration is parsed. The result is stored once and reused for the lifetime
of the cache.
"""

from __future__ import annotations

import dataclasses
import logging
import typing
from dataclasses import dataclass
from typing import Any

from .evaluators import RuleRegistry
from .exceptions import RuleParseError
from .kinds import Kind, deref, is_record_type, kind_of_type, may_contain_records
from .rules import MULTI_REFERENCE_RULES, REFERENCE_RULES, RuleDescriptor, parse_rules

logger = logging.getLogger(__name__)

_RESERVED_NAME_CHARS = frozenset("\\'\"!#$%&()*+./:<=>?@[]^{|}~ ")


@dataclass(frozen=True)
class FieldDescriptor:
    """Cached metadata for one validatable field of a record type.

    Attributes:
        name: Serialization name, or the attribute name when none is given
        struct_name: ``RootType.attribute``
        attribute: Declared attribute name
        index: Positional index path from the root type
        path: Attribute name path from the root type
        required_rules: Required-class rules in declaration order
        other_rules: All other rules in declaration order
        default_attribute: Display attribute from ``attribute=X``
        omit_empty: Whether ``omitempty`` was declared
        type: Declared type with one Optional indirection removed
        kind: Kind of ``type``
        tagged: Whether an explicit serialization name was given
        ambiguous: Whether another field shadows this one at the same depth
    """

    name: str
    struct_name: str
    attribute: str
    index: tuple[int, ...]
    path: tuple[str, ...]
    required_rules: tuple[RuleDescriptor, ...] = ()
    other_rules: tuple[RuleDescriptor, ...] = ()
    default_attribute: str = ""
    omit_empty: bool = False
    type: Any = None
    kind: Kind = Kind.INTERFACE
    tagged: bool = False
    ambiguous: bool = False

    @property
    def has_rules(self) -> bool:
        """Whether the declaration holds any rule; undeclared fields are only descended."""
        return bool(self.required_rules or self.other_rules)

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    def value_of(self, record: Any) -> Any:
        """Read this field from an instance of the owning type.

        A ``None`` embedded record on the way yields ``None``.
        """
        current = record
        for attribute in self.path:
            if current is None:
                return None
            current = getattr(current, attribute)
        return current


@dataclass(frozen=True)
class TypeFields:
    """Cache entry for one record type.

    Attributes:
        fields: Validatable fields in traversal order
        duplicates: Embedded fields not expanded because their type was
            already queued at the same level
        ambiguous: Names that are shadowed at the same depth
        error: Parse error raised on every lookup when set
    """

    fields: tuple[FieldDescriptor, ...] = ()
    duplicates: tuple[FieldDescriptor, ...] = ()
    ambiguous: frozenset[str] = frozenset()
    error: RuleParseError | None = None

    def __iter__(self):
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, name: str) -> FieldDescriptor | None:
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None


@dataclass(frozen=True)
class _Frontier:
    type: Any
    index: tuple[int, ...] = ()
    path: tuple[str, ...] = ()


@dataclass
class _Leaf:
    field: dataclasses.Field
    hint: Any
    name: str
    tagged: bool
    index: tuple[int, ...]
    path: tuple[str, ...]
    ambiguous: bool


def is_valid_name(name: Any) -> bool:
    """Whether ``name`` can be used as a serialization name in error paths."""
    return isinstance(name, str) and name != "" and not any(c in _RESERVED_NAME_CHARS for c in name)


def _type_hints(tp: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(tp, include_extras=True)
    except Exception as e:  # unresolved forward references and the like
        logger.debug(f"Could not resolve type hints of {tp!r}: {e}")
        return {}


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


class TypeFieldCache:
    """Lazily populated mapping from record type to ``TypeFields``.

    Lookups never block. Two threads may compute the same entry at the same
    time; ``dict.setdefault`` keeps whichever was stored first and both
    callers see that one.

    Args:
        registry: Rule registry used when parsing declarations
        tag_name: Metadata key holding the rule declaration
        name_key: Metadata key holding the serialization name
        embedded_key: Metadata key flagging an embedded record field
    """

    def __init__(
        self,
        registry: RuleRegistry,
        tag_name: str = "valid",
        name_key: str = "json",
        embedded_key: str = "embedded",
    ):
        self.registry = registry
        self.tag_name = tag_name
        self.name_key = name_key
        self.embedded_key = embedded_key
        self._entries: dict[Any, TypeFields] = {}

    def fields_of(self, tp: Any) -> TypeFields:
        """Return the cached fields of ``tp``, computing them on first use.

        Raises:
            RuleParseError: If any declaration of ``tp`` is malformed
        """
        entry = self._entries.get(tp)
        if entry is None:
            entry = self._entries.setdefault(tp, self._build(tp))
        if entry.error is not None:
            raise entry.error
        return entry

    def lookup(self, tp: Any) -> TypeFields | None:
        """Return the stored entry without computing or raising."""
        return self._entries.get(tp)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, tp: object) -> bool:
        return tp in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def is_embedded(self, f: dataclasses.Field) -> bool:
        return bool(f.metadata.get(self.embedded_key, False))

    def _build(self, root: Any) -> TypeFields:
        if not is_record_type(root):
            return TypeFields()

        leaves: list[_Leaf] = []
        duplicates: list[FieldDescriptor] = []
        visited: set[Any] = set()
        current = [_Frontier(root)]
        next_count: dict[Any, int] = {}

        while current:
            level: list[_Leaf] = []
            following: list[_Frontier] = []
            count, next_count = next_count, {}

            for frontier in current:
                if frontier.type in visited:
                    continue
                visited.add(frontier.type)
                hints = _type_hints(frontier.type)

                for i, f in enumerate(dataclasses.fields(frontier.type)):
                    hint = hints.get(f.name, f.type)
                    element = deref(hint)
                    element_is_record = kind_of_type(element) is Kind.STRUCT
                    embedded = self.is_embedded(f)
                    exported = not f.name.startswith("_")
                    declaration = f.metadata.get(self.tag_name, "") or ""

                    if not exported and not embedded:
                        continue
                    if embedded and not element_is_record and not exported:
                        continue
                    if declaration == "-":
                        continue
                    if not declaration and not (embedded and element_is_record) and not may_contain_records(hint):
                        continue

                    raw_name = f.metadata.get(self.name_key)
                    tagged = is_valid_name(raw_name)
                    index = frontier.index + (i,)
                    path = frontier.path + (f.name,)

                    if tagged or not embedded or not element_is_record:
                        level.append(_Leaf(
                            field=f,
                            hint=hint,
                            name=raw_name if tagged else f.name,
                            tagged=tagged,
                            index=index,
                            path=path,
                            ambiguous=count.get(frontier.type, 0) > 1,
                        ))
                        continue

                    next_count[element] = next_count.get(element, 0) + 1
                    if next_count[element] == 1:
                        following.append(_Frontier(element, index, path))
                    else:
                        duplicates.append(FieldDescriptor(
                            name=f.name,
                            struct_name=f"{_type_name(root)}.{f.name}",
                            attribute=f.name,
                            index=index,
                            path=path,
                            type=element,
                            kind=Kind.STRUCT,
                        ))

            names: dict[str, int] = {}
            for leaf in level:
                names[leaf.name] = names.get(leaf.name, 0) + 1
            for leaf in level:
                if names[leaf.name] > 1:
                    leaf.ambiguous = True
            leaves.extend(level)
            current = following

        fields: list[FieldDescriptor] = []
        error: RuleParseError | None = None
        known = self.promoted_names(root)
        for leaf in leaves:
            try:
                fields.append(self._describe(root, leaf, known))
            except RuleParseError as e:
                if error is None:
                    error = e

        ambiguous = frozenset(d.name for d in fields if d.ambiguous)
        if ambiguous:
            logger.warning(
                f"Ambiguous embedded fields in {_type_name(root)}: {', '.join(sorted(ambiguous))}"
            )
        logger.debug(f"Cached {len(fields)} field(s) for {_type_name(root)}")

        return TypeFields(
            fields=tuple(fields),
            duplicates=tuple(duplicates),
            ambiguous=ambiguous,
            error=error,
        )

    def _describe(self, root: Any, leaf: _Leaf, known: frozenset[str]) -> FieldDescriptor:
        declaration = leaf.field.metadata.get(self.tag_name, "") or ""
        parsed = parse_rules(declaration, leaf.hint, self.registry)
        for rule in parsed.required_rules:
            if rule.name in REFERENCE_RULES:
                references = rule.params[:1]
            elif rule.name in MULTI_REFERENCE_RULES:
                references = rule.params
            else:
                continue
            for reference in references:
                # Only the first segment is known statically.
                if reference.split(".", 1)[0] not in known:
                    raise RuleParseError(
                        rule.name,
                        declaration,
                        f"unknown field '{reference}' in {_type_name(root)}",
                    )

        element = deref(leaf.hint)
        return FieldDescriptor(
            name=leaf.name,
            struct_name=f"{_type_name(root)}.{leaf.field.name}",
            attribute=leaf.field.name,
            index=leaf.index,
            path=leaf.path,
            required_rules=parsed.required_rules,
            other_rules=parsed.other_rules,
            default_attribute=parsed.default_attribute,
            omit_empty=parsed.omit_empty,
            type=element,
            kind=kind_of_type(element),
            tagged=leaf.tagged,
            ambiguous=leaf.ambiguous,
        )

    def promoted_names(self, root: Any) -> frozenset[str]:
        """Attribute names reachable on ``root``, including promoted ones."""
        names: set[str] = set()
        visited: set[Any] = set()
        current = [root]
        while current:
            following = []
            for tp in current:
                if tp in visited or not is_record_type(tp):
                    continue
                visited.add(tp)
                hints = _type_hints(tp)
                for f in dataclasses.fields(tp):
                    names.add(f.name)
                    if self.is_embedded(f):
                        following.append(deref(hints.get(f.name, f.type)))
            current = following
        return frozenset(names)
