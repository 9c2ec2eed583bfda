"""Property definitions and the schema that groups them.

Both types are immutable: every ``with_*``/``without_*`` call returns a new
object and leaves the receiver untouched.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Tuple

from .mapping import From
from .rules import always_valid

DEFAULT_SOURCE = "default"

_NO_DEFAULT: Any = object()


@dataclass(frozen=True)
class Prop:
    """Rules for one named struct property."""

    name: str
    validator: Callable[[Any], Any] = always_valid
    is_required: bool = True
    _default: Any = field(default=_NO_DEFAULT, repr=False)
    mappers: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Each copy owns read-only views over its own dicts.
        mappers = {DEFAULT_SOURCE: From(self.name), **self.mappers}
        object.__setattr__(self, "mappers", MappingProxyType(mappers))
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    @classmethod
    def create(cls, name: str) -> "Prop":
        return cls(name)

    def with_validator(self, validator: Callable[[Any], Any]) -> "Prop":
        return replace(self, validator=validator)

    # --- Requirement ---
    def required(self) -> "Prop":
        return replace(self, is_required=True)

    def not_required(self) -> "Prop":
        return replace(self, is_required=False)

    # --- Default value ---
    @property
    def has_default_value(self) -> bool:
        return self._default is not _NO_DEFAULT

    @property
    def default_value(self) -> Any:
        return self._default if self.has_default_value else None

    def with_default_value(self, value: Any) -> "Prop":
        return replace(self, _default=value)

    def without_default_value(self) -> "Prop":
        return replace(self, _default=_NO_DEFAULT)

    # --- Mappers ---
    def has_mapper(self, source_name: str) -> bool:
        return source_name in self.mappers

    def get_mapper(self, source_name: str) -> Any:
        try:
            return self.mappers[source_name]
        except KeyError:
            raise KeyError(f'Property "{self.name}" has no mapper for source "{source_name}"') from None

    def with_mapper(self, rule: Any, source_name: str) -> "Prop":
        return replace(self, mappers={**self.mappers, source_name: rule})

    def without_mapper(self, source_name: str) -> "Prop":
        if source_name == DEFAULT_SOURCE:
            raise ValueError(f'The "{DEFAULT_SOURCE}" mapper cannot be removed')
        mappers = {k: v for k, v in self.mappers.items() if k != source_name}
        return replace(self, mappers=mappers)

    # --- Metadata ---
    def has_meta(self, key: str) -> bool:
        return key in self.meta

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.meta.get(key, default)

    def with_meta(self, key: str, value: Any) -> "Prop":
        return replace(self, meta={**self.meta, key: value})

    def without_meta(self, key: str) -> "Prop":
        return replace(self, meta={k: v for k, v in self.meta.items() if k != key})


class Schema:
    """Ordered, immutable collection of props keyed by name.

    A schema always holds at least one prop when created or extended; a later
    prop replaces an earlier one with the same name.
    """

    __slots__ = ("_props",)

    def __init__(self, *props: Prop) -> None:
        if not props:
            raise ValueError("Schema requires at least one property")
        merged: Dict[str, Prop] = {}
        for prop in props:
            if not isinstance(prop, Prop):
                raise TypeError(f"Expected Prop, got {type(prop).__name__}")
            merged[prop.name] = prop
        object.__setattr__(self, "_props", merged)

    @classmethod
    def _from_props(cls, props: Dict[str, Prop]) -> "Schema":
        schema = cls.__new__(cls)
        object.__setattr__(schema, "_props", props)
        return schema

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Schema is immutable; use with_prop() or without_prop()")

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._props)

    def get_props(self) -> Dict[str, Prop]:
        return dict(self._props)

    def has_prop(self, name: str) -> bool:
        return name in self._props

    def get_prop(self, name: str) -> Prop:
        try:
            return self._props[name]
        except KeyError:
            raise KeyError(f'Property "{name}" does not exist in schema') from None

    def with_prop(self, *props: Prop) -> "Schema":
        if not props:
            raise ValueError("with_prop() requires at least one property")
        return Schema(*self._props.values(), *props)

    def without_prop(self, name: str) -> "Schema":
        return Schema._from_props({k: v for k, v in self._props.items() if k != name})

    def __len__(self) -> int:
        return len(self._props)

    def __iter__(self) -> Iterator[Prop]:
        return iter(list(self._props.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._props

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return list(self._props.items()) == list(other._props.items())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Schema({', '.join(self._props)})"
