"""Validation rules for struct properties.

A validator is any callable taking a value. It accepts the value by returning
normally and rejects it by raising ``RuleViolation`` (or any ``ValueError`` /
``TypeError``). The factories below build the common rules and combine them::

    login = all_of(string_type(), alnum(), no_whitespace(), length(0, 64))
"""

import string
from collections.abc import Mapping
from typing import Any, Callable, List, Optional

from .errors import RuleViolation

Validator = Callable[[Any], Any]


def always_valid(value: Any) -> None:
    """Default validator shared by every property: accepts anything."""
    return None


def _check(rule: Validator, value: Any) -> Optional[RuleViolation]:
    try:
        rule(value)
    except (ValueError, TypeError) as exc:
        return RuleViolation.wrap(exc, rule=getattr(rule, "__name__", None))
    return None


def _rule(rule_id: str) -> Callable[[Validator], Validator]:
    """Tag a validator closure with its rule id."""

    def decorator(func: Validator) -> Validator:
        func.__name__ = rule_id
        func.__qualname__ = rule_id
        return func

    return decorator


# --- Type rules ---
def string_type() -> Validator:
    @_rule("string_type")
    def check(value: Any) -> None:
        if not isinstance(value, str):
            raise RuleViolation(f"{value!r} must be a string", rule="string_type")

    return check


def bool_type() -> Validator:
    @_rule("bool_type")
    def check(value: Any) -> None:
        if not isinstance(value, bool):
            raise RuleViolation(f"{value!r} must be a boolean", rule="bool_type")

    return check


def int_type() -> Validator:
    # bool is a subclass of int, but True is not a meaningful integer here
    @_rule("int_type")
    def check(value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise RuleViolation(f"{value!r} must be an integer", rule="int_type")

    return check


def instance_of(*classes: type) -> Validator:
    if not classes:
        raise ValueError("instance_of requires at least one class")
    names = " or ".join(c.__name__ for c in classes)

    @_rule("instance_of")
    def check(value: Any) -> None:
        if not isinstance(value, classes):
            raise RuleViolation(f"{value!r} must be an instance of {names}", rule="instance_of")

    return check


# --- String rules ---
def alnum(extra: str = "") -> Validator:
    """Only ASCII letters and digits, plus any characters in ``extra``."""
    allowed = set(string.ascii_letters + string.digits + extra)

    @_rule("alnum")
    def check(value: Any) -> None:
        if not isinstance(value, str) or not set(value) <= allowed:
            raise RuleViolation(
                f"{value!r} must contain only letters (a-z) and digits (0-9)", rule="alnum"
            )

    return check


def no_whitespace() -> Validator:
    @_rule("no_whitespace")
    def check(value: Any) -> None:
        if isinstance(value, str) and any(ch.isspace() for ch in value):
            raise RuleViolation(f"{value!r} must not contain whitespace", rule="no_whitespace")

    return check


def length(min_length: Optional[int] = None, max_length: Optional[int] = None) -> Validator:
    """Inclusive bounds on ``len(value)``."""

    @_rule("length")
    def check(value: Any) -> None:
        try:
            size = len(value)
        except TypeError:
            raise RuleViolation(f"{value!r} must have a length", rule="length")
        if min_length is not None and size < min_length:
            raise RuleViolation(
                f"{value!r} must have a length greater than {min_length}", rule="length"
            )
        if max_length is not None and size > max_length:
            raise RuleViolation(
                f"{value!r} must have a length lower than {max_length}", rule="length"
            )

    return check


# --- Composite rules ---
def all_of(*rules: Validator) -> Validator:
    """Every rule must pass. All failures are reported, not only the first."""

    @_rule("all_of")
    def check(value: Any) -> None:
        failures = [v for v in (_check(rule, value) for rule in rules) if v is not None]
        if not failures:
            return
        if len(failures) == 1 and failures[0].name is None:
            raise failures[0]
        raise RuleViolation("All of the required rules must pass", rule="all_of", children=failures)

    return check


def one_of(*rules: Validator) -> Validator:
    """At least one rule must pass."""

    @_rule("one_of")
    def check(value: Any) -> None:
        failures: List[RuleViolation] = []
        for rule in rules:
            violation = _check(rule, value)
            if violation is None:
                return
            failures.append(violation)
        raise RuleViolation("At least one of these rules must pass", rule="one_of", children=failures)

    return check


def each(rule: Validator) -> Validator:
    """Every item of an iterable must pass ``rule``; failures are keyed by index."""

    @_rule("each")
    def check(value: Any) -> None:
        if isinstance(value, (str, bytes, Mapping)):
            raise RuleViolation(f"{value!r} must be a sequence of items", rule="each")
        try:
            items = list(value)
        except TypeError:
            raise RuleViolation(f"{value!r} must be iterable", rule="each")

        failures = []
        for index, item in enumerate(items):
            violation = _check(rule, item)
            if violation is not None:
                failures.append(violation.named(index))
        if failures:
            raise RuleViolation("Each item must be valid", rule="each", children=failures)

    return check


def key(name: str, rule: Validator = always_valid, mandatory: bool = True) -> Validator:
    """Validate one key of a mapping value."""

    @_rule("key")
    def check(value: Any) -> None:
        if not isinstance(value, Mapping):
            raise RuleViolation(f"{value!r} must be a mapping", rule="key")
        if name not in value:
            if mandatory:
                raise RuleViolation(f'Key "{name}" must be present', rule="key", name=name)
            return
        violation = _check(rule, value[name])
        if violation is not None:
            raise violation.named(name)

    return check
