"""Struct classes shared by the test modules."""

from datetime import datetime

from propstruct import ExcludeProperty, Prop, Schema, Struct, from_field
from propstruct.rules import (
    all_of,
    alnum,
    bool_type,
    each,
    instance_of,
    int_type,
    key,
    length,
    no_whitespace,
    string_type,
)


class Model(Struct):
    schema = Schema(Prop.create("id"))


class CanBeEmptyModel(Struct):
    schema = Schema(
        Prop.create("a").not_required(),
        Prop.create("b").not_required(),
        Prop.create("c").not_required(),
    )


class CreateUserModel(Struct):
    schema = Schema(
        Prop.create("login").with_validator(
            all_of(string_type(), alnum(), no_whitespace(), length(0, 64))
        ),
        Prop.create("password").with_validator(all_of(string_type(), length(0, 256))),
        Prop.create("name")
        .with_validator(all_of(string_type(), length(0, 256)))
        .with_mapper(from_field("name").trim().default("John Doe"), "json")
        .not_required(),
        Prop.create("birthday")
        .with_validator(instance_of(datetime))
        .with_mapper(from_field("birthday").convert(datetime.fromisoformat), "json")
        .not_required(),
        Prop.create("is_active").with_validator(bool_type()).with_default_value(True),
    )

    @classmethod
    def json_serialize_value(cls, value, prop):
        if isinstance(value, datetime):
            return value.isoformat(timespec="milliseconds")
        if prop.name == "password":
            raise ExcludeProperty()
        return super().json_serialize_value(value, prop)


class AccountModel(Struct):
    """Same shape as CreateUserModel, with a schema-level default for name."""

    schema = Schema(
        Prop.create("login").with_validator(all_of(string_type(), alnum(), length(0, 64))),
        Prop.create("password").with_validator(length(0, 256)),
        Prop.create("name").with_validator(string_type()).with_default_value("John Doe"),
        Prop.create("is_active").with_validator(bool_type()).with_default_value(True),
    )


class AddressModel(Struct):
    schema = Schema(
        Prop.create("city").with_validator(string_type()),
        Prop.create("zip").with_validator(all_of(string_type(), length(5, 5))),
    )


class ContactModel(Struct):
    schema = Schema(
        Prop.create("email").with_validator(string_type()),
        Prop.create("addresses")
        .with_validator(each(instance_of(AddressModel)))
        .not_required(),
        Prop.create("location")
        .with_validator(all_of(key("lat", int_type()), key("lng", int_type())))
        .not_required(),
        Prop.create("schema").not_required(),
    )
