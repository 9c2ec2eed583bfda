import copy
import json
import logging
from collections import abc
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
)

from .errors import (
    ErrorTree,
    ExcludeProperty,
    UndefinedPropertyError,
    ValidationError,
    collect_errors,
)
from .mapping import Field, FieldMapper, Value
from .schema import DEFAULT_SOURCE, Prop, Schema

logger = logging.getLogger(__name__)


# --- Hydrated Placeholder ---
class Hydrated:
    """Marks a property as present and valid while its value is not loaded yet."""

    __slots__ = ()

    _instance: Optional["Hydrated"] = None

    def __new__(cls) -> "Hydrated":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __reduce__(self) -> Tuple[Any, ...]:
        return (Hydrated, ())

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Hydrated)

    def __hash__(self) -> int:
        return hash(Hydrated)

    def __repr__(self) -> str:
        return "HYDRATED"


HYDRATED = Hydrated()


# --- Validation Pipeline ---
@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating data against a schema.

    ``data`` is the working copy, defaults included. ``errors`` is None on
    success, otherwise the error tree keyed by property name.
    """

    data: Dict[str, Any]
    errors: Optional[Dict[Union[str, int], ErrorTree]] = None

    @property
    def ok(self) -> bool:
        return self.errors is None

    def unwrap(self) -> Dict[str, Any]:
        """Return the validated data or raise ``ValidationError``."""
        if self.errors is not None:
            raise ValidationError(self.errors)
        return self.data


def validate_data(schema: Schema, data: Mapping[str, Any], partial: bool = False) -> ValidationResult:
    """Check ``data`` against ``schema``.

    Unknown keys fail before any validator runs. Required props with a default
    get it injected when absent. In partial mode every prop is treated as
    optional, so no defaults are injected either.
    """
    if not isinstance(data, abc.Mapping):
        raise TypeError(f"Expected a mapping, got {type(data).__name__}")

    extra_keys = [k for k in data if not schema.has_prop(k)]
    if extra_keys:
        return ValidationResult(
            dict(data),
            {k: f'Property "{k}" not defined in schema' for k in extra_keys},
        )

    working = dict(data)
    if not partial:
        for prop in schema:
            if prop.is_required and prop.has_default_value and prop.name not in working:
                working[prop.name] = prop.default_value

    errors: Dict[Union[str, int], ErrorTree] = {}
    for prop in schema:
        if prop.name not in working:
            if prop.is_required and not partial:
                errors[prop.name] = f'Key "{prop.name}" must be present'
            continue

        value = working[prop.name]
        if isinstance(value, Hydrated):
            continue
        try:
            prop.validator(value)
        except (ValueError, TypeError) as e:
            errors[prop.name] = collect_errors(e)

    return ValidationResult(working, errors or None)


def _merge(data: Optional[Mapping[str, Any]], changes: Mapping[str, Any]) -> Dict[str, Any]:
    values = dict(data) if data is not None else {}
    values.update(changes)
    return values


def _restore(cls: Any, data: Dict[str, Any], partial: bool) -> "Struct":
    return cls.partial(data) if partial else cls(data)


# --- Metaclass ---
class StructMeta(type):
    """Metaclass for Struct that picks up the declared schema."""

    def __new__(mcls, name: str, bases: tuple, namespace: dict) -> Any:
        # The schema moves out of the public namespace so a property called
        # "schema" is still reachable as an attribute.
        if "schema" in namespace:
            schema = namespace.pop("schema")
            if not isinstance(schema, Schema):
                raise TypeError(
                    f"{name}.schema must be a Schema, got {type(schema).__name__}"
                )
            namespace["_schema"] = schema

        namespace.setdefault("__slots__", ())
        cls = super().__new__(mcls, name, bases, namespace)

        schema = getattr(cls, "_schema", None)
        if schema is not None:
            shadowed = [n for n in schema.names if hasattr(cls, n)]
            if shadowed:
                logger.debug(
                    "%s: properties %s are shadowed by class attributes; use get()",
                    name,
                    ", ".join(shadowed),
                )
        return cls


# --- Struct Builder Class ---
class StructBuilder:
    """Fluent interface builder for creating Struct instances.

    Only properties declared in the struct's schema get a setter.
    """

    def __init__(self, struct_class: Any) -> None:
        self._struct_class = struct_class
        self._values: Dict[str, Any] = {}

    def __getattr__(self, name: str) -> Callable[..., "StructBuilder"]:
        if name.startswith("_") or not self._struct_class.get_schema().has_prop(name):
            raise UndefinedPropertyError(
                f'{self._struct_class.__name__} has no property "{name}" to build'
            )

        def setter(value: Any) -> "StructBuilder":
            self._values[name] = value
            return self

        return setter

    def build(self, **additional_kwargs: Any) -> Any:
        """Build the final struct instance through full validation."""
        return self._struct_class({**self._values, **additional_kwargs})


# --- Main Struct Class ---
class Struct(metaclass=StructMeta):
    """Immutable value object validated against a schema.

    Subclasses declare ``schema``::

        class Point(Struct):
            schema = Schema(
                Prop.create("x").with_validator(int_type()),
                Prop.create("y").with_validator(int_type()).with_default_value(0),
            )

        p = Point(x=1)        # Point(x=1, y=0)
        q = p.set("y", 5)     # new instance, p is unchanged
    """

    __slots__ = ("_data", "_partial")

    _schema: Optional[Schema] = None
    default_source: str = DEFAULT_SOURCE

    def __init__(self, data: Optional[Mapping[str, Any]] = None, /, **kwargs: Any) -> None:
        self._assign(_merge(data, kwargs), partial=False)

    def _assign(self, values: Dict[str, Any], partial: bool) -> None:
        result = self.validate(values, partial=partial)
        if not result.ok:
            logger.debug(
                "Validation failed for %s: %s",
                self.__class__.__name__,
                ", ".join(str(k) for k in result.errors or ()),
            )
        data = result.unwrap()
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_partial", partial)

    def _derive(self, values: Dict[str, Any]) -> "Struct":
        instance = self.__class__.__new__(self.__class__)
        instance._assign(values, partial=self._partial)
        return instance

    # --- Schema and Validation ---
    @classmethod
    def get_schema(cls) -> Schema:
        if cls._schema is None:
            raise TypeError(f"{cls.__name__} does not define a schema")
        return cls._schema

    @classmethod
    def validate(cls, data: Mapping[str, Any], partial: bool = False) -> ValidationResult:
        """Validate ``data`` against this struct's schema without raising."""
        return validate_data(cls.get_schema(), data, partial=partial)

    @classmethod
    def partial(cls, data: Optional[Mapping[str, Any]] = None, /, **kwargs: Any) -> "Struct":
        """Create an instance where every property is treated as optional."""
        instance = cls.__new__(cls)
        instance._assign(_merge(data, kwargs), partial=True)
        return instance

    @classmethod
    def map_from(
        cls,
        source: Any,
        source_name: Optional[str] = None,
        hydrated: Iterable[str] = (),
        partial: bool = False,
    ) -> "Struct":
        """Build an instance from external data using per-source mappers.

        Props listed in ``hydrated`` get the HYDRATED placeholder instead of a
        mapped value. Source fields that are missing are skipped.
        """
        schema = cls.get_schema()
        source_name = source_name or cls.default_source
        if isinstance(hydrated, str):
            hydrated = (hydrated,)
        hydrated_names: Set[str] = set(hydrated)
        for name in hydrated_names:
            schema.get_prop(name)

        fields = [
            Field(prop.name, cls._resolve_mapper(prop, source_name, hydrated_names))
            for prop in schema
        ]
        data = FieldMapper(*fields).ignore_missing().marshal(source)

        instance = cls.__new__(cls)
        instance._assign(data, partial=partial)
        return instance

    @classmethod
    def _resolve_mapper(cls, prop: Prop, source_name: str, hydrated: Set[str]) -> Any:
        if prop.name in hydrated:
            logger.debug("%s.%s mapped as hydrated", cls.__name__, prop.name)
            return Value(HYDRATED)
        if prop.has_mapper(source_name):
            return prop.get_mapper(source_name)
        return prop.get_mapper(DEFAULT_SOURCE)

    # --- Read Access ---
    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name in Struct.__slots__:
            raise AttributeError(
                f"'{self.__class__.__name__}' object has no attribute '{name}'"
            )
        try:
            return self._data[name]
        except KeyError:
            raise UndefinedPropertyError(
                f'Undefined property "{name}" on {self.__class__.__name__}'
            ) from None

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    # --- Copy-on-write Updates ---
    def set(self, key: str, value: Any) -> "Struct":
        values = dict(self._data)
        values[key] = value
        return self._derive(values)

    def delete(self, key: str) -> "Struct":
        return self._derive({k: v for k, v in self._data.items() if k != key})

    def replace(self, **changes: Any) -> "Struct":
        """Create a new instance with several properties changed at once."""
        return self._derive(_merge(self._data, changes))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            f"Cannot modify immutable '{self.__class__.__name__}' instance; use set()"
        )

    def __delattr__(self, name: str) -> None:
        raise AttributeError(
            f"Cannot modify immutable '{self.__class__.__name__}' instance; use delete()"
        )

    # --- Equality ---
    def __eq__(self, other: object) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self._data == other._data  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((self.__class__, frozenset(self._data.items())))

    # --- Serialization ---
    def to_dict(self, recursive: bool = False) -> Dict[str, Any]:
        """Return the assigned data, optionally converting nested structs too."""
        if not recursive:
            return dict(self._data)
        return {name: _to_plain(value) for name, value in self._data.items()}

    def json_serialize(self) -> Dict[str, Any]:
        """Project assigned properties in schema order for a JSON encoder.

        Hydrated properties are skipped; ``json_serialize_value`` may transform
        a value or raise ExcludeProperty to drop it.
        """
        result: Dict[str, Any] = {}
        for prop in self.get_schema():
            if not self.has(prop.name):
                continue
            value = self._data[prop.name]
            if isinstance(value, Hydrated):
                continue
            try:
                result[prop.name] = self.json_serialize_value(value, prop)
            except ExcludeProperty:
                logger.debug("%s.%s excluded from JSON", self.__class__.__name__, prop.name)
        return result

    @classmethod
    def json_serialize_value(cls, value: Any, prop: Prop) -> Any:
        """Hook for subclasses: transform a value before it goes to JSON."""
        return _to_json_value(value)

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.json_serialize(), **kwargs)

    # --- Copying ---
    def __copy__(self) -> "Struct":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Struct":
        """Integration with Python's copy.deepcopy()."""
        new_obj = self.__class__.__new__(self.__class__)
        memo[id(self)] = new_obj
        object.__setattr__(new_obj, "_data", copy.deepcopy(self._data, memo))
        object.__setattr__(new_obj, "_partial", self._partial)
        return new_obj

    def __reduce__(self) -> Tuple[Any, ...]:
        return (_restore, (self.__class__, dict(self._data), self._partial))

    # --- String Representation ---
    def __repr__(self) -> str:
        """Return a detailed string representation of the struct."""
        fields_str = ", ".join(f"{k}={v!r}" for k, v in self._data.items())
        return f"{self.__class__.__name__}({fields_str})"

    # --- Builder Pattern Support ---
    @classmethod
    def builder(cls) -> StructBuilder:
        """Create a fluent builder for this struct type."""
        return StructBuilder(cls)


def _to_plain(value: Any) -> Any:
    if isinstance(value, Struct):
        return value.to_dict(recursive=True)
    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return type(value)(*(_to_plain(v) for v in value))
    if isinstance(value, (list, tuple)):
        return type(value)(_to_plain(v) for v in value)
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    return value


def _to_json_value(value: Any) -> Any:
    if isinstance(value, Struct):
        return value.json_serialize()
    if isinstance(value, (list, tuple)):
        return [_to_json_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_json_value(v) for k, v in value.items()}
    return value
