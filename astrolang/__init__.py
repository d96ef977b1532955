"""astrolang: a declarative language for astrological knowledge bases.

Programs declare concepts (derived attributes), predicates (boolean
classifications) and production rules that accumulate derived state on a
chart. :func:`load_program` builds a registry from source text and
:func:`evaluate_chart` fires its rules against a chart using an ephemeris
adapter for raw astronomical facts.
"""

from __future__ import annotations

from .ephemeris import EphemerisAdapter, EphemerisError, StaticEphemeris
from .lang import (
    AmbiguousDeclarationError,
    ChartEvaluation,
    CyclicDependencyError,
    DivisionByZeroError,
    DSLError,
    DSLSyntaxError,
    Entity,
    EvaluationError,
    Registry,
    ResolutionDepthError,
    RuleEngine,
    RuleFailure,
    TypeMismatchError,
    UnresolvedAttributeError,
    evaluate_chart,
    evaluate_person,
    load_program,
    parse_program,
)

__version__ = "0.1.0"

__all__ = [
    "AmbiguousDeclarationError",
    "ChartEvaluation",
    "CyclicDependencyError",
    "DSLError",
    "DSLSyntaxError",
    "DivisionByZeroError",
    "Entity",
    "EphemerisAdapter",
    "EphemerisError",
    "EvaluationError",
    "Registry",
    "ResolutionDepthError",
    "RuleEngine",
    "RuleFailure",
    "StaticEphemeris",
    "TypeMismatchError",
    "UnresolvedAttributeError",
    "__version__",
    "evaluate_chart",
    "evaluate_person",
    "load_program",
    "parse_program",
]
