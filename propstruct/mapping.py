"""Field mapping: materialize a flat mapping from external data.

Each target field is produced by a rule. ``From`` reads one source field and
runs it through an optional chain of steps::

    FieldMapper(
        Field("name", from_field("full_name").trim().default("John Doe")),
        Field("birthday", from_field("birthday").convert(date.fromisoformat)),
    ).ignore_missing().marshal(payload)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import StructError

logger = logging.getLogger(__name__)


class _Missing:
    """Marker for a field that produced no value."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class SourceFieldMissing(StructError, KeyError):
    """Raised when a mapped field is absent and missing fields are not ignored."""


def read_field(source: Any, name: str) -> Any:
    """Read ``name`` from a mapping key or an object attribute."""
    if isinstance(source, Mapping):
        return source[name] if name in source else MISSING
    if source is None or isinstance(source, (str, bytes, int, float, bool)):
        raise TypeError(f"Cannot map fields from {type(source).__name__}")
    return getattr(source, name, MISSING)


# --- Steps ---
@dataclass(frozen=True)
class _Trim:
    chars: Optional[str] = None

    def __call__(self, value: Any) -> Any:
        if value is MISSING or not isinstance(value, str):
            return value
        return value.strip(self.chars)


@dataclass(frozen=True)
class _Default:
    value: Any

    def __call__(self, value: Any) -> Any:
        return self.value if value is MISSING else value


@dataclass(frozen=True)
class _Convert:
    func: Callable[[Any], Any]

    def __call__(self, value: Any) -> Any:
        return value if value is MISSING else self.func(value)


# --- Rules ---
@dataclass(frozen=True)
class From:
    """Read ``field`` from the source, then apply the chained steps in order."""

    field: str
    steps: Tuple[Callable[[Any], Any], ...] = ()

    def trim(self, chars: Optional[str] = None) -> "From":
        return replace(self, steps=self.steps + (_Trim(chars),))

    def default(self, value: Any) -> "From":
        return replace(self, steps=self.steps + (_Default(value),))

    def convert(self, func: Callable[[Any], Any]) -> "From":
        return replace(self, steps=self.steps + (_Convert(func),))

    def resolve(self, source: Any) -> Any:
        value = read_field(source, self.field)
        for step in self.steps:
            value = step(value)
        return value


@dataclass(frozen=True)
class Value:
    """Always produce ``value``, regardless of the source."""

    value: Any

    def resolve(self, source: Any) -> Any:
        return self.value


def from_field(name: str) -> From:
    return From(name)


@dataclass(frozen=True)
class Field:
    name: str
    rule: Any


class FieldMapper:
    """Apply a set of field rules to a source, producing a dict."""

    def __init__(self, *fields: Field, ignore_missing: bool = False) -> None:
        self._fields = fields
        self._ignore_missing = ignore_missing

    @property
    def fields(self) -> Tuple[Field, ...]:
        return self._fields

    def ignore_missing(self) -> "FieldMapper":
        """Return a mapper that drops fields resolving to nothing."""
        return FieldMapper(*self._fields, ignore_missing=True)

    def marshal(self, source: Any) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for field in self._fields:
            value = field.rule.resolve(source)
            if value is MISSING:
                if not self._ignore_missing:
                    raise SourceFieldMissing(f'Source field for "{field.name}" is missing')
                logger.debug("Field %r missing in source, skipped", field.name)
                continue
            result[field.name] = value
        return result
