#!/usr/bin/env python3
"""
Walkthrough of propstruct: construction, updates, mapping and JSON output
"""

import logging
from datetime import datetime, timezone

from propstruct import (
    ExcludeProperty,
    Prop,
    Schema,
    Struct,
    ValidationError,
    from_field,
)
from propstruct.rules import (
    all_of,
    alnum,
    bool_type,
    instance_of,
    length,
    no_whitespace,
    string_type,
)


class CreateUser(Struct):
    schema = Schema(
        Prop.create("login").with_validator(
            all_of(string_type(), alnum(), no_whitespace(), length(0, 64))
        ),
        Prop.create("password")
        .with_validator(all_of(string_type(), length(0, 256)))
        .with_meta("sensitive", True),
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
        if prop.get_meta("sensitive"):
            raise ExcludeProperty()
        if isinstance(value, datetime):
            return value.isoformat(timespec="milliseconds")
        return super().json_serialize_value(value, prop)


def demo_construction():
    """Build a struct and read it back"""
    print("=== Construction ===")

    user = CreateUser(login="superhacker", password="correcthorsebatterystaple")
    print(f"Created: {user}")
    print(f"is_active was defaulted to {user.is_active}")
    print(f"name assigned? {user.has('name')}, fallback: {user.get('name', 'n/a')}")

    try:
        CreateUser({})
    except ValidationError as e:
        print(f"✓ Caught expected error: {e.errors}")
    print()


def demo_updates():
    """Derive new instances with set/delete"""
    print("=== Copy-on-write updates ===")

    user = CreateUser(login="superhacker", password="correcthorsebatterystaple")
    renamed = user.set("name", "Judy Doe")
    print(f"Original: {user}")
    print(f"Updated:  {renamed}")
    print(f"After delete: {renamed.delete('name')}")

    try:
        user.set("gender", "male")
    except ValidationError as e:
        print(f"✓ Caught expected error: {e.errors}")
    print()


def demo_mapping():
    """Map an HTTP-like payload through the json mappers"""
    print("=== Mapping ===")

    payload = {
        "login": "superhacker",
        "password": "correcthorsebatterystaple",
        "name": "   Judy Doe   ",
        "birthday": "1988-08-08T00:00:00+00:00",
    }
    user = CreateUser.map_from(payload, "json")
    print(f"Mapped: {user}")

    lazy = CreateUser.map_from(payload, "json", hydrated=["birthday"])
    print(f"Hydrated birthday: {lazy.birthday!r}")
    print()


def demo_json():
    """Project to JSON, leaving out sensitive properties"""
    print("=== JSON ===")

    user = CreateUser(
        login="superhacker",
        password="correcthorsebatterystaple",
        birthday=datetime(1988, 8, 8, tzinfo=timezone.utc),
    )
    print(user.to_json(indent=2))
    print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    demo_construction()
    demo_updates()
    demo_mapping()
    demo_json()
