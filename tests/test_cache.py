"""Tests for the per-type field cache."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import pytest

from dataknobs_validator import field
from dataknobs_validator.cache import TypeFieldCache, is_valid_name
from dataknobs_validator.exceptions import RuleParseError
from dataknobs_validator.kinds import Kind


@dataclass
class Address:
    city: str = field("required", name="city", default="")
    street: str = field("between=1|50", default="x")


@dataclass
class Person:
    name: str = field("required", name="name", default="")
    age: int = field("between=0|150", name="age", default=0)
    notes: str = ""
    _secret: str = field("required", default="")
    ignored: str = field("-", default="")
    address: Address = field(default_factory=Address)
    addresses: list[Address] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    extra: Any = None


@dataclass
class Audit:
    created_by: str = field("required", default="")


@dataclass
class Timestamps:
    created_by: str = field("required", default="")


@dataclass
class Document:
    title: str = field("required", name="title", default="")
    audit: Audit = field(embedded=True, default_factory=Audit)
    stamps: Timestamps = field(embedded=True, default_factory=Timestamps)


@dataclass
class Twice:
    first: Audit = field(embedded=True, default_factory=Audit)
    second: Audit = field(embedded=True, default_factory=Audit)


@dataclass
class NamedEmbedded:
    audit: Audit = field(name="audit", embedded=True, default_factory=Audit)


@dataclass
class OptionalEmbedded:
    audit: Optional[Audit] = field(embedded=True, default=None)


@dataclass
class BadArity:
    age: int = field("between=1", default=0)


@dataclass
class BadReference:
    email: str = field("requiredWith=Phone", default="")


@dataclass
class PromotedReference:
    email: str = field("requiredWith=created_by", default="")
    audit: Audit = field(embedded=True, default_factory=Audit)


@pytest.fixture
def cache(registry):
    return TypeFieldCache(registry)


class TestFieldDiscovery:
    """Test which fields become descriptors."""

    def test_declared_and_record_fields_are_included(self, cache):
        """Test that declared fields and fields holding records are kept."""
        names = [d.name for d in cache.fields_of(Person)]
        assert names == ["name", "age", "address", "addresses", "extra"]

    def test_skipped_fields(self, cache):
        """Test that undeclared scalars, private and '-' fields are skipped."""
        names = {d.attribute for d in cache.fields_of(Person)}
        assert "notes" not in names
        assert "_secret" not in names
        assert "ignored" not in names
        assert "tags" not in names

    def test_descriptor_metadata(self, cache):
        """Test the metadata recorded on a descriptor."""
        age = cache.fields_of(Person).get("age")
        assert age.struct_name == "Person.age"
        assert age.attribute == "age"
        assert age.kind is Kind.INT
        assert age.tagged is True
        assert age.index == (1,)
        assert age.path == ("age",)
        assert [r.message_name for r in age.other_rules] == ["between.numeric"]

    def test_untagged_field_uses_attribute_name(self, cache):
        """Test that fields without a serialization name use the attribute."""
        descriptor = cache.fields_of(Address).get("street")
        assert descriptor.tagged is False
        assert descriptor.name == "street"

    def test_non_dataclass_yields_empty_entry(self, cache):
        """Test that plain classes have no fields."""
        assert len(cache.fields_of(dict)) == 0
        assert len(cache.fields_of(int)) == 0

    def test_valid_names(self):
        """Test which serialization names are usable in paths."""
        assert is_valid_name("first_name")
        assert is_valid_name("user-id")
        assert not is_valid_name("")
        assert not is_valid_name("a.b")
        assert not is_valid_name("with space")
        assert not is_valid_name(None)


class TestEmbedding:
    """Test flattening of embedded records."""

    def test_embedded_fields_are_promoted(self, cache):
        """Test that an embedded record's fields join the owner's list."""
        entry = cache.fields_of(PromotedReference)
        created_by = entry.get("created_by")
        assert created_by is not None
        assert created_by.path == ("audit", "created_by")
        assert created_by.index == (1, 0)
        assert created_by.struct_name == "PromotedReference.created_by"

    def test_named_embedded_record_is_a_leaf(self, cache):
        """Test that an embedded record with a serialization name is not flattened."""
        entry = cache.fields_of(NamedEmbedded)
        assert [d.name for d in entry] == ["audit"]
        assert entry.fields[0].kind is Kind.STRUCT

    def test_optional_embedded_record_is_flattened(self, cache):
        """Test that one Optional indirection is followed when embedding."""
        entry = cache.fields_of(OptionalEmbedded)
        assert [d.path for d in entry] == [("audit", "created_by")]

    def test_same_name_at_same_depth_is_ambiguous(self, cache):
        """Test that two embedded records exposing one name are flagged."""
        entry = cache.fields_of(Document)
        assert entry.ambiguous == frozenset({"created_by"})
        flagged = [d for d in entry if d.name == "created_by"]
        assert len(flagged) == 2
        assert all(d.ambiguous for d in flagged)
        assert entry.get("title").ambiguous is False

    def test_duplicate_embedded_type_is_recorded(self, cache):
        """Test that a type embedded twice is expanded once and marked duplicate."""
        entry = cache.fields_of(Twice)
        assert [d.attribute for d in entry.duplicates] == ["second"]
        assert [d.path for d in entry] == [("first", "created_by")]
        assert entry.fields[0].ambiguous is True

    def test_ambiguity_is_logged(self, cache, caplog):
        """Test that ambiguous names are reported once when cached."""
        with caplog.at_level(logging.WARNING, logger="dataknobs_validator.cache"):
            cache.fields_of(Document)
            cache.fields_of(Document)
        assert caplog.text.count("Ambiguous") == 1


class TestCaching:
    """Test memoization behavior."""

    def test_idempotent(self, cache):
        """Test that repeated lookups return the same content."""
        first = cache.fields_of(Person)
        second = cache.fields_of(Person)
        assert first is second
        assert [d.name for d in first] == [d.name for d in second]
        assert [d.other_rules for d in first] == [d.other_rules for d in second]

    def test_lazy_population(self, cache):
        """Test that entries are created on first use."""
        assert Person not in cache
        cache.fields_of(Person)
        assert Person in cache
        assert cache.lookup(Person) is not None

    def test_parse_error_is_stored_and_reraised(self, cache):
        """Test that a malformed declaration fails on every lookup."""
        with pytest.raises(RuleParseError):
            cache.fields_of(BadArity)
        assert cache.lookup(BadArity).error is not None
        with pytest.raises(RuleParseError):
            cache.fields_of(BadArity)

    def test_unknown_reference_is_a_parse_error(self, cache):
        """Test that required-class rules must name fields of the root type."""
        with pytest.raises(RuleParseError) as exc_info:
            cache.fields_of(BadReference)
        assert "Phone" in str(exc_info.value)
        assert exc_info.value.rule == "requiredWith"

    def test_promoted_reference_is_accepted(self, cache):
        """Test that references may name promoted embedded fields."""
        assert len(cache.fields_of(PromotedReference)) == 2

    def test_clear(self, cache):
        """Test that clear empties the cache."""
        cache.fields_of(Person)
        cache.clear()
        assert len(cache) == 0
