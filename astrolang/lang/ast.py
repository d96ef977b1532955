"""Abstract syntax tree produced by :mod:`astrolang.lang.parser`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union

__all__ = [
    "ANY_TYPE",
    "AttributeRef",
    "BinaryOp",
    "Block",
    "Comparison",
    "ConceptDecl",
    "Condition",
    "Declaration",
    "Expr",
    "IfStatement",
    "IsCheck",
    "Logical",
    "Membership",
    "Name",
    "Node",
    "Number",
    "Param",
    "PredicateDecl",
    "Program",
    "RuleDecl",
    "SetStatement",
    "Statement",
    "String",
]

ANY_TYPE = "any"


class Node:
    """Base class for AST nodes."""

    __slots__ = ()


class Expr(Node):
    """Base class for value expressions."""

    __slots__ = ()


class Condition(Node):
    """Base class for boolean conditions."""

    __slots__ = ()


class Statement(Node):
    """Base class for block statements."""

    __slots__ = ()


@dataclass(frozen=True)
class Number(Expr):
    value: int | float


@dataclass(frozen=True)
class String(Expr):
    value: str


@dataclass(frozen=True)
class Name(Expr):
    name: str


@dataclass(frozen=True)
class AttributeRef(Expr):
    """``attribute of subject``."""

    attribute: str
    subject: str


@dataclass(frozen=True)
class BinaryOp(Expr):
    left: Expr
    op: str
    right: Expr


@dataclass(frozen=True)
class Comparison(Condition):
    left: Expr
    op: str
    right: Expr


@dataclass(frozen=True)
class Membership(Condition):
    """``subject in (a or b or ...)``."""

    subject: Expr
    options: Tuple[Expr, ...]


@dataclass(frozen=True)
class IsCheck(Condition):
    subject: Expr
    predicate: str
    negated: bool = False


@dataclass(frozen=True)
class Logical(Condition):
    left: Condition
    op: str
    right: Condition


@dataclass(frozen=True)
class Block(Node):
    statements: Tuple[Statement, ...] = ()
    result: Expr | None = None


@dataclass(frozen=True)
class SetStatement(Statement):
    target: str
    owner: str | None
    op: str
    value: Expr


@dataclass(frozen=True)
class IfStatement(Statement):
    condition: Condition
    body: Block


@dataclass(frozen=True)
class Param(Node):
    name: str
    type: str = ANY_TYPE

    def accepts(self, type_name: str) -> bool:
        return self.type == ANY_TYPE or self.type == type_name

    def __str__(self) -> str:
        return f"[{self.name}:{self.type}]"


@dataclass(frozen=True)
class ConceptDecl(Node):
    name: str
    param: Param
    body: Block
    line: int = field(default=0, compare=False)

    kind = "concept"

    @property
    def subject(self) -> Param:
        return self.param

    @property
    def context(self) -> Param | None:
        return None


@dataclass(frozen=True)
class PredicateDecl(Node):
    name: str
    subject: Param
    guard: Condition
    context: Param | None = None
    action: Block | None = None
    line: int = field(default=0, compare=False)

    kind = "predicate"


@dataclass(frozen=True)
class RuleDecl(Node):
    label: str
    subject: Param
    guard: Condition
    action: Block
    line: int = field(default=0, compare=False)

    kind = "rule"

    @property
    def name(self) -> str:
        return self.label


Declaration = Union[ConceptDecl, PredicateDecl, RuleDecl]


@dataclass(frozen=True)
class Program(Node):
    declarations: Tuple[Declaration, ...] = ()

    @property
    def concepts(self) -> list[ConceptDecl]:
        return [decl for decl in self.declarations if isinstance(decl, ConceptDecl)]

    @property
    def predicates(self) -> list[PredicateDecl]:
        return [decl for decl in self.declarations if isinstance(decl, PredicateDecl)]

    @property
    def rules(self) -> list[RuleDecl]:
        return [decl for decl in self.declarations if isinstance(decl, RuleDecl)]

    def __add__(self, other: "Program") -> "Program":
        return Program(self.declarations + other.declarations)
