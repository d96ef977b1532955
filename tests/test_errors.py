from __future__ import annotations

import pytest

from astrolang.lang import errors


def test_hierarchy() -> None:
    for cls in (
        errors.UnresolvedAttributeError,
        errors.CyclicDependencyError,
        errors.TypeMismatchError,
        errors.DivisionByZeroError,
        errors.ResolutionDepthError,
    ):
        assert issubclass(cls, errors.EvaluationError)
    assert issubclass(errors.EvaluationError, errors.DSLError)
    assert issubclass(errors.DSLSyntaxError, errors.DSLError)
    assert not issubclass(errors.AmbiguousDeclarationError, errors.EvaluationError)


def test_syntax_error_message() -> None:
    error = errors.DSLSyntaxError("Expected 'then'", 3, 7, found="{", expected=("THEN",))

    assert str(error) == "Expected 'then' (line 3, column 7); found '{'"
    assert error.expected == ("THEN",)


def test_ambiguous_declaration_message() -> None:
    error = errors.AmbiguousDeclarationError("dignified", "planet", "chart", lines=(2, 9))

    assert "'dignified' for planet of chart" in str(error)
    assert error.lines == (2, 9)


def test_cycle_chain() -> None:
    error = errors.CyclicDependencyError(["A of chart:c", "B of chart:c", "A of chart:c"])

    assert str(error) == "Cyclic dependency: A of chart:c -> B of chart:c -> A of chart:c"


def test_unresolved_attribute() -> None:
    with pytest.raises(errors.EvaluationError) as excinfo:
        raise errors.UnresolvedAttributeError("career", "planet")

    assert excinfo.value.name == "career"
    assert excinfo.value.subject_type == "planet"
