"""Exceptions raised while loading and evaluating astrolang programs."""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "AmbiguousDeclarationError",
    "CyclicDependencyError",
    "DSLError",
    "DSLSyntaxError",
    "DivisionByZeroError",
    "EvaluationError",
    "ResolutionDepthError",
    "TypeMismatchError",
    "UnresolvedAttributeError",
]


class DSLError(Exception):
    """Base class for every error raised by the language."""


class DSLSyntaxError(DSLError):
    """Raised when program source does not match the grammar."""

    def __init__(
        self,
        message: str,
        line: int,
        column: int,
        *,
        found: str | None = None,
        expected: Sequence[str] = (),
    ) -> None:
        detail = f"{message} (line {line}, column {column})"
        if found is not None:
            detail = f"{detail}; found {found!r}"
        super().__init__(detail)
        self.message = message
        self.line = line
        self.column = column
        self.found = found
        self.expected = tuple(expected)


class AmbiguousDeclarationError(DSLError):
    """Two declarations claim the same ``(name, subject type, context type)`` key."""

    def __init__(
        self,
        name: str,
        subject_type: str,
        context_type: str | None,
        lines: Sequence[int] = (),
    ) -> None:
        key = f"{name!r} for {subject_type}"
        if context_type is not None:
            key = f"{key} of {context_type}"
        message = f"Ambiguous declaration {key}"
        if lines:
            message = f"{message} (lines {', '.join(str(line) for line in lines)})"
        super().__init__(message)
        self.name = name
        self.subject_type = subject_type
        self.context_type = context_type
        self.lines = tuple(lines)


class EvaluationError(DSLError):
    """Base class for errors scoped to a single rule or concept evaluation."""


class UnresolvedAttributeError(EvaluationError):
    def __init__(self, name: str, subject_type: str) -> None:
        super().__init__(f"Cannot resolve {name!r} for {subject_type}")
        self.name = name
        self.subject_type = subject_type


class CyclicDependencyError(EvaluationError):
    def __init__(self, chain: Sequence[str]) -> None:
        super().__init__(f"Cyclic dependency: {' -> '.join(chain)}")
        self.chain = tuple(chain)


class TypeMismatchError(EvaluationError):
    def __init__(
        self,
        message: str,
        *,
        operator: str | None = None,
        left_type: str | None = None,
        right_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operator = operator
        self.left_type = left_type
        self.right_type = right_type


class DivisionByZeroError(EvaluationError, ZeroDivisionError):
    def __init__(self) -> None:
        super().__init__("Division by zero")


class ResolutionDepthError(EvaluationError):
    def __init__(self, depth: int) -> None:
        super().__init__(f"Attribute resolution exceeded maximum depth of {depth}")
        self.depth = depth
