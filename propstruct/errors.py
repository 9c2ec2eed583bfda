"""Exceptions raised by propstruct and the error-tree aggregator."""

from typing import Any, Dict, Iterable, Optional, Tuple, Union

ErrorTree = Union[str, Dict[Union[str, int], Any]]


class StructError(Exception):
    """Base class for data-contract errors raised by propstruct."""


class ValidationError(StructError, ValueError):
    """Raised when data does not satisfy a struct's schema.

    ``errors`` mirrors the shape of the failing data: property name (or item
    index) to either a message or a nested mapping of the same kind.
    """

    def __init__(self, errors: Dict[Union[str, int], ErrorTree], message: str = "Validation error") -> None:
        super().__init__(message)
        self.errors = errors

    def __str__(self) -> str:
        keys = ", ".join(str(k) for k in self.errors)
        return f"{self.args[0]}: {keys}" if keys else self.args[0]


class UndefinedPropertyError(StructError, AttributeError):
    """Raised on attribute access of a property that is not assigned."""


class ExcludeProperty(StructError):
    """Raised by a serialization hook to leave a property out of the JSON projection."""


class RuleViolation(ValueError):
    """A failed validation rule, possibly carrying failed sub-rules."""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        name: Optional[Union[str, int]] = None,
        children: Iterable["RuleViolation"] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.rule = rule
        self.name = name
        self.children: Tuple[RuleViolation, ...] = tuple(children)

    def named(self, name: Union[str, int]) -> "RuleViolation":
        """Return a copy of this violation bound to a key or index."""
        return RuleViolation(self.message, rule=self.rule, name=name, children=self.children)

    @classmethod
    def wrap(cls, exc: Exception, rule: Optional[str] = None) -> "RuleViolation":
        """Turn any ValueError/TypeError raised by a validator into a violation.

        A ``ValidationError`` from a nested struct keeps its error tree as
        named children.
        """
        if isinstance(exc, RuleViolation):
            return exc
        if isinstance(exc, ValidationError):
            return cls(str(exc), rule=rule, children=_violations_from(exc.errors))
        return cls(str(exc), rule=rule)

    def __repr__(self) -> str:
        return (
            f"RuleViolation({self.message!r}, rule={self.rule!r}, "
            f"name={self.name!r}, children={len(self.children)})"
        )


def collect_errors(exc: Exception) -> ErrorTree:
    """Flatten a violation tree into messages keyed by property name or index.

    Plain exceptions and leaf violations collapse to their message.
    """
    if isinstance(exc, ValidationError):
        return exc.errors
    if not isinstance(exc, RuleViolation) or not exc.children:
        return exc.message if isinstance(exc, RuleViolation) else str(exc)

    errors: Dict[Union[str, int], ErrorTree] = {}
    for index, child in enumerate(exc.children):
        key = child.name if child.name is not None else child.rule
        if key is None or key in errors:
            key = index
        errors[key] = collect_errors(child)
    return errors


def _violations_from(errors: Dict[Union[str, int], ErrorTree]) -> Tuple[RuleViolation, ...]:
    return tuple(
        RuleViolation(tree, name=key)
        if isinstance(tree, str)
        else RuleViolation("", name=key, children=_violations_from(tree))
        for key, tree in errors.items()
    )
