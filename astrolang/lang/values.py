"""Runtime values, entity references, environments and chart derived state."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Union

from .errors import DivisionByZeroError, EvaluationError, TypeMismatchError

__all__ = [
    "ChartState",
    "Entity",
    "Environment",
    "Value",
    "arithmetic",
    "as_members",
    "is_constant_name",
    "type_name",
    "values_equal",
]


@dataclass(frozen=True)
class Entity:
    """Opaque handle to an astrological subject such as a planet or chart."""

    type: str
    identity: Hashable

    def __str__(self) -> str:
        return f"{self.type}:{self.identity}"


Value = Union[int, float, str, bool, frozenset, Entity, None]


def type_name(value: object) -> str:
    """Return the language-level type tag of ``value``."""

    if isinstance(value, Entity):
        return value.type
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, frozenset):
        return "set"
    if value is None:
        return "none"
    raise TypeMismatchError(f"Unsupported runtime value {value!r}")


def values_equal(left: object, right: object) -> bool:
    """Type-strict equality: values of different types are never equal."""

    if type_name(left) != type_name(right):
        return False
    return left == right


def as_members(value: object) -> Iterator[object]:
    """Yield the members a value contributes to a membership test."""

    if isinstance(value, frozenset):
        yield from value
    else:
        yield value


def is_constant_name(name: str) -> bool:
    """Return True for built-in constant spellings such as ``SUN`` or ``HOUSE1``."""

    return name[:1].isupper() and name == name.upper() and any(ch.isalpha() for ch in name)


def _number(value: object, op: str, left: object, right: object) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatchError(
            f"Operator {op!r} is not defined for {type_name(left)} and {type_name(right)}",
            operator=op,
            left_type=type_name(left),
            right_type=type_name(right),
        )
    return value


def arithmetic(op: str, left: object, right: object) -> Value:
    """Apply ``+ - * /`` with the language's strict typing rules."""

    if op == "+" and isinstance(left, str) and isinstance(right, str):
        return left + right
    a = _number(left, op, left, right)
    b = _number(right, op, left, right)
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/":
        if b == 0:
            raise DivisionByZeroError()
        return a / b
    raise TypeMismatchError(f"Unknown arithmetic operator {op!r}", operator=op)


def _accumulate(current: object, op: str, value: object) -> Value:
    if op == "=":
        return value  # type: ignore[return-value]
    if current is None:
        current = "" if isinstance(value, str) else 0
    return arithmetic("+" if op in {"+=", "+"} else "-", current, value)


class ChartState:
    """Mutable derived state owned by a single chart for one evaluation session."""

    def __init__(self, chart: Entity, initial: Mapping[str, Value] | None = None) -> None:
        if chart.type != "chart":
            raise TypeMismatchError(f"Derived state belongs to charts, not {chart.type}")
        self.chart = chart
        self._fields: dict[str, Value] = {}
        for key, value in (initial or {}).items():
            type_name(value)
            self._fields[key] = value

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __getitem__(self, name: str) -> Value:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def get(self, name: str, default: Value = None) -> Value:
        return self._fields.get(name, default)

    def apply(self, name: str, op: str, value: Value) -> Value:
        """Apply a ``set`` operator to ``name`` and return the stored value."""

        updated = _accumulate(self._fields.get(name), op, value)
        self._fields[name] = updated
        return updated

    def snapshot(self) -> dict[str, Value]:
        return dict(self._fields)


@dataclass
class Environment:
    """Variable bindings for one concept, predicate or rule invocation.

    Parameters are fixed at creation; only locals introduced by ``set`` in a
    concept body change afterwards.
    """

    kind: str
    bindings: Mapping[str, Value] = field(default_factory=dict)
    context: Entity | None = None
    locals: dict[str, Value] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.bindings = dict(self.bindings)

    @classmethod
    def for_call(
        cls,
        kind: str,
        params: Iterable[tuple[str, Value]],
        *,
        caller_context: Entity | None = None,
    ) -> "Environment":
        bindings = dict(params)
        context = caller_context
        for value in bindings.values():
            if isinstance(value, Entity) and value.type == "chart":
                context = value
                break
        return cls(kind=kind, bindings=bindings, context=context)

    def has(self, name: str) -> bool:
        return name in self.bindings or name in self.locals

    def lookup(self, name: str) -> Value:
        if name in self.bindings:
            return self.bindings[name]
        return self.locals[name]

    def assign(self, name: str, op: str, value: Value) -> Value:
        if name in self.bindings:
            raise EvaluationError(f"Cannot assign to parameter {name!r}")
        updated = _accumulate(self.locals.get(name), op, value)
        self.locals[name] = updated
        return updated

    @property
    def writes_locals(self) -> bool:
        return self.kind == "concept" or self.context is None
