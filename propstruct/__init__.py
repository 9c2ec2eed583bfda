"""
propstruct - immutable, schema-validated structs for Python

A struct is a named bag of validated properties. It is built from raw data,
validated against a schema declared once per class, updated copy-on-write,
mapped from external sources and projected to JSON.

Example:
    from propstruct import Prop, Schema, Struct, from_field
    from propstruct.rules import all_of, alnum, bool_type, length, string_type

    class CreateUser(Struct):
        schema = Schema(
            Prop.create("login").with_validator(all_of(string_type(), alnum(), length(0, 64))),
            Prop.create("password").with_validator(all_of(string_type(), length(0, 256))),
            Prop.create("name")
                .with_validator(string_type())
                .with_mapper(from_field("name").trim().default("John Doe"), "json")
                .not_required(),
            Prop.create("is_active").with_validator(bool_type()).with_default_value(True),
        )

    user = CreateUser(login="superhacker", password="correcthorsebatterystaple")
    user.is_active          # True, injected default
    user.set("login", "x")  # a new CreateUser; user is unchanged
"""

import logging

__version__ = "1.0.0"
__license__ = "MIT"

from .core import (
    HYDRATED,
    Hydrated,
    Struct,
    StructBuilder,
    StructMeta,
    ValidationResult,
    validate_data,
)
from .errors import (
    ExcludeProperty,
    RuleViolation,
    StructError,
    UndefinedPropertyError,
    ValidationError,
    collect_errors,
)
from .mapping import MISSING, Field, FieldMapper, From, SourceFieldMissing, Value, from_field
from .schema import DEFAULT_SOURCE, Prop, Schema

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_SOURCE",
    "HYDRATED",
    "MISSING",
    "ExcludeProperty",
    "Field",
    "FieldMapper",
    "From",
    "Hydrated",
    "Prop",
    "RuleViolation",
    "Schema",
    "SourceFieldMissing",
    "Struct",
    "StructBuilder",
    "StructError",
    "StructMeta",
    "UndefinedPropertyError",
    "ValidationError",
    "ValidationResult",
    "Value",
    "collect_errors",
    "from_field",
    "validate_data",
]
