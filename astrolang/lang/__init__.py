"""Parser and evaluation engine for the astrolang knowledge language."""

from .ast import (
    AttributeRef,
    BinaryOp,
    Block,
    Comparison,
    ConceptDecl,
    IfStatement,
    IsCheck,
    Logical,
    Membership,
    Name,
    Number,
    Param,
    PredicateDecl,
    Program,
    RuleDecl,
    SetStatement,
    String,
)
from .engine import (
    ChartEvaluation,
    RuleEngine,
    RuleFailure,
    evaluate_chart,
    evaluate_person,
    load_program,
)
from .errors import (
    AmbiguousDeclarationError,
    CyclicDependencyError,
    DivisionByZeroError,
    DSLError,
    DSLSyntaxError,
    EvaluationError,
    ResolutionDepthError,
    TypeMismatchError,
    UnresolvedAttributeError,
)
from .parser import parse_condition, parse_expression, parse_program
from .registry import Registry
from .resolver import EvaluationSession
from .values import ChartState, Entity, Environment, type_name, values_equal

__all__ = [
    "AmbiguousDeclarationError",
    "AttributeRef",
    "BinaryOp",
    "Block",
    "ChartEvaluation",
    "ChartState",
    "Comparison",
    "ConceptDecl",
    "CyclicDependencyError",
    "DSLError",
    "DSLSyntaxError",
    "DivisionByZeroError",
    "Entity",
    "Environment",
    "EvaluationError",
    "EvaluationSession",
    "IfStatement",
    "IsCheck",
    "Logical",
    "Membership",
    "Name",
    "Number",
    "Param",
    "PredicateDecl",
    "Program",
    "Registry",
    "ResolutionDepthError",
    "RuleDecl",
    "RuleEngine",
    "RuleFailure",
    "SetStatement",
    "String",
    "TypeMismatchError",
    "UnresolvedAttributeError",
    "evaluate_chart",
    "evaluate_person",
    "load_program",
    "parse_condition",
    "parse_expression",
    "parse_program",
    "type_name",
    "values_equal",
]
