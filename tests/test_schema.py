"""Tests for property definitions and schemas."""

import pytest

from propstruct import DEFAULT_SOURCE, From, Prop, Schema, Value, from_field
from propstruct.rules import always_valid, string_type


class TestProp:
    """Test Prop creation and copy-on-write modifiers."""

    def test_create(self):
        """Test the defaults of a freshly created prop."""
        prop = Prop.create("test")

        assert prop.name == "test"
        assert prop.validator is always_valid
        assert prop.is_required is True
        assert prop.has_default_value is False
        assert prop.default_value is None
        assert prop.meta == {}
        assert prop.get_mapper(DEFAULT_SOURCE) == From("test")

    def test_structural_equality(self):
        """Test that identically built props compare equal."""
        assert Prop.create("login") == Prop.create("login")
        assert Prop.create("login") != Prop.create("password")

    def test_modifiers_return_copies(self):
        """Test that every with/without call leaves the original untouched."""
        prop = Prop.create("name")
        validator = string_type()

        changed = (
            prop.with_validator(validator)
            .not_required()
            .with_default_value("John Doe")
            .with_meta("label", "Full name")
            .with_mapper(from_field("full_name"), "json")
        )

        assert changed.validator is validator
        assert changed.is_required is False
        assert changed.default_value == "John Doe"
        assert changed.get_meta("label") == "Full name"
        assert changed.get_mapper("json") == From("full_name")

        assert prop == Prop.create("name")
        assert not prop.has_mapper("json")
        assert not prop.has_meta("label")

    def test_required_toggle(self):
        """Test switching the required flag back and forth."""
        prop = Prop.create("a").not_required()
        assert prop.is_required is False
        assert prop.required().is_required is True

    def test_none_is_a_valid_default(self):
        """Test that None can be set as a default value and removed again."""
        prop = Prop.create("a").with_default_value(None)
        assert prop.has_default_value is True
        assert prop.default_value is None

        prop = prop.without_default_value()
        assert prop.has_default_value is False

    def test_mappers(self):
        """Test registering and removing per-source mappers."""
        prop = Prop.create("birthday").with_mapper(Value("1988-08-08"), "xml")

        assert prop.has_mapper("xml")
        assert prop.has_mapper(DEFAULT_SOURCE)
        assert prop.get_mapper("xml") == Value("1988-08-08")

        prop = prop.without_mapper("xml")
        assert not prop.has_mapper("xml")
        assert prop.without_mapper("never-registered") == prop

        with pytest.raises(KeyError, match="no mapper"):
            prop.get_mapper("xml")

    def test_default_mapper_cannot_be_removed(self):
        """Test that removing the default mapper is rejected."""
        with pytest.raises(ValueError, match="cannot be removed"):
            Prop.create("a").without_mapper(DEFAULT_SOURCE)

    def test_meta(self):
        """Test the free-form metadata bag."""
        prop = Prop.create("password").with_meta("sensitive", True)

        assert prop.has_meta("sensitive")
        assert prop.get_meta("sensitive") is True
        assert prop.get_meta("missing", "fallback") == "fallback"
        assert not prop.without_meta("sensitive").has_meta("sensitive")

    def test_copies_do_not_share_mappings(self):
        """Test that mappers and meta of a derived prop are isolated and read-only."""
        prop = Prop.create("a").with_meta("label", "A")
        changed = prop.with_validator(string_type())

        with pytest.raises(TypeError):
            changed.meta["secret"] = True
        with pytest.raises(TypeError):
            changed.mappers["json"] = from_field("b")

        changed = changed.with_meta("secret", True).with_mapper(from_field("b"), "json")
        assert dict(prop.meta) == {"label": "A"}
        assert not prop.has_mapper("json")
        assert changed.has_meta("secret")

    def test_frozen(self):
        """Test that props cannot be changed in place."""
        prop = Prop.create("a")
        with pytest.raises(AttributeError):
            prop.name = "b"


class TestSchema:
    """Test Schema construction, lookup and copy-on-write changes."""

    def test_no_props(self):
        """Test that an empty schema is rejected."""
        with pytest.raises(ValueError):
            Schema()

    def test_props(self):
        """Test that props are kept in declaration order."""
        schema = Schema(Prop.create("login"), Prop.create("password"))

        assert len(schema) == 2
        assert schema.get_props() == {
            "login": Prop.create("login"),
            "password": Prop.create("password"),
        }
        assert schema.names == ("login", "password")
        assert [p.name for p in schema] == ["login", "password"]

    def test_last_prop_wins(self):
        """Test that a later prop replaces an earlier one with the same name."""
        schema = Schema(Prop.create("a"), Prop.create("a").not_required())

        assert len(schema) == 1
        assert schema.get_prop("a").is_required is False

    def test_has(self):
        """Test membership checks."""
        schema = Schema(Prop.create("login"), Prop.create("password"))

        assert schema.has_prop("login")
        assert "password" in schema
        assert not schema.has_prop("name")

    def test_get(self):
        """Test lookup of declared and undeclared props."""
        schema = Schema(Prop.create("login"), Prop.create("password"))

        assert schema.get_prop("login") == Prop.create("login")

        with pytest.raises(KeyError, match="does not exist"):
            schema.get_prop("name")

    def test_with(self):
        """Test adding props through copies."""
        schema = Schema(Prop.create("login"))
        extended = schema.with_prop(Prop.create("password"))

        assert len(schema) == 1
        assert len(extended) == 2
        assert extended.get_prop("password") == Prop.create("password")

        extended = extended.with_prop(Prop.create("name"), Prop.create("birthday"))
        assert len(extended) == 4
        assert extended.names == ("login", "password", "name", "birthday")

        with pytest.raises(ValueError):
            extended.with_prop()

    def test_without(self):
        """Test removing props, including ones that do not exist."""
        schema = Schema(
            Prop.create("login"),
            Prop.create("password"),
            Prop.create("name"),
            Prop.create("birthday"),
        )

        smaller = schema.without_prop("name")
        assert len(smaller) == 3
        assert "name" not in smaller
        assert "name" in schema

        assert len(smaller.without_prop("nonexistent")) == 3

    def test_equality(self):
        """Test structural equality of schemas."""
        assert Schema(Prop.create("a")) == Schema(Prop.create("a"))
        assert Schema(Prop.create("a")) != Schema(Prop.create("b"))

    def test_immutable(self):
        """Test that schemas reject attribute assignment."""
        schema = Schema(Prop.create("a"))
        with pytest.raises(AttributeError):
            schema._props = {}

    def test_rejects_non_props(self):
        """Test that only Prop instances are accepted."""
        with pytest.raises(TypeError):
            Schema("login")
