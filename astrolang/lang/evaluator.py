"""Evaluation of expressions, conditions and statement blocks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import ast
from .errors import TypeMismatchError, UnresolvedAttributeError
from .values import (
    Entity,
    Environment,
    Value,
    arithmetic,
    as_members,
    is_constant_name,
    type_name,
    values_equal,
)

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from .resolver import EvaluationSession

__all__ = ["Evaluator"]

_ORDERING = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
}


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Evaluator:
    """Evaluate AST nodes against an :class:`Environment`.

    Attribute access is delegated to the owning session, which may in turn
    invoke other concepts and predicates through this evaluator.
    """

    def __init__(self, session: "EvaluationSession") -> None:
        self._session = session

    # Expressions ---------------------------------------------------------

    def evaluate(self, expr: ast.Expr, env: Environment) -> Value:
        if isinstance(expr, ast.Number):
            return expr.value
        if isinstance(expr, ast.String):
            return expr.value
        if isinstance(expr, ast.Name):
            return self.lookup(expr.name, env)
        if isinstance(expr, ast.AttributeRef):
            subject = self._entity(expr.subject, env)
            return self._session.resolve(expr.attribute, subject, env.context)
        if isinstance(expr, ast.BinaryOp):
            left = self.evaluate(expr.left, env)
            right = self.evaluate(expr.right, env)
            return arithmetic(expr.op, left, right)
        raise TypeError(f"Unsupported expression {expr!r}")

    def lookup(self, name: str, env: Environment) -> Value:
        """Resolve a bare identifier operand."""

        if env.has(name):
            return env.lookup(name)
        if is_constant_name(name):
            return self._session.constant(name)
        if env.context is not None:
            return self._session.resolve(name, env.context, env.context)
        raise UnresolvedAttributeError(name, "environment")

    def _entity(self, name: str, env: Environment) -> Entity:
        value = self.lookup(name, env)
        if not isinstance(value, Entity):
            raise TypeMismatchError(
                f"{name!r} is a {type_name(value)}, attributes need an entity",
                left_type=type_name(value),
            )
        return value

    # Conditions ----------------------------------------------------------

    def test(self, condition: ast.Condition, env: Environment) -> bool:
        if isinstance(condition, ast.Logical):
            left = self.test(condition.left, env)
            if condition.op == "and":
                return left and self.test(condition.right, env)
            return left or self.test(condition.right, env)
        if isinstance(condition, ast.Comparison):
            return self._compare(condition, env)
        if isinstance(condition, ast.Membership):
            value = self.evaluate(condition.subject, env)
            return any(
                values_equal(value, member)
                for option in condition.options
                for member in as_members(self.evaluate(option, env))
            )
        if isinstance(condition, ast.IsCheck):
            return self._is_check(condition, env)
        raise TypeError(f"Unsupported condition {condition!r}")

    def _compare(self, condition: ast.Comparison, env: Environment) -> bool:
        left = self.evaluate(condition.left, env)
        right = self.evaluate(condition.right, env)
        op = condition.op
        if op == "=":
            return values_equal(left, right)
        if op == "!=":
            return not values_equal(left, right)
        if op == "in":
            return any(values_equal(left, member) for member in as_members(right))
        if not (_is_number(left) and _is_number(right)):
            raise TypeMismatchError(
                f"Operator {op!r} orders numbers, not {type_name(left)} and {type_name(right)}",
                operator=op,
                left_type=type_name(left),
                right_type=type_name(right),
            )
        return _ORDERING[op](left, right)

    def _is_check(self, condition: ast.IsCheck, env: Environment) -> bool:
        value = self.evaluate(condition.subject, env)
        if not isinstance(value, Entity):
            raise TypeMismatchError(
                f"'is {condition.predicate!r}' needs an entity, got {type_name(value)}",
                operator="is",
                left_type=type_name(value),
            )
        result = self._session.resolve(condition.predicate, value, env.context)
        if not isinstance(result, bool):
            raise TypeMismatchError(
                f"{condition.predicate!r} of {value.type} is a {type_name(result)}, not a boolean",
                operator="is",
                left_type=value.type,
                right_type=type_name(result),
            )
        return not result if condition.negated else result

    # Statements ----------------------------------------------------------

    def execute(self, block: ast.Block, env: Environment) -> Value:
        """Run the statements of ``block`` in order and return its yielded value."""

        for statement in block.statements:
            if isinstance(statement, ast.SetStatement):
                self._assign(statement, env)
            elif isinstance(statement, ast.IfStatement):
                if self.test(statement.condition, env):
                    self.execute(statement.body, env)
            else:
                raise TypeError(f"Unsupported statement {statement!r}")
        if block.result is None:
            return None
        return self.evaluate(block.result, env)

    def _assign(self, statement: ast.SetStatement, env: Environment) -> None:
        value = self.evaluate(statement.value, env)
        if statement.owner is not None:
            owner = self._entity(statement.owner, env)
            if owner.type != "chart":
                raise TypeMismatchError(
                    f"Only charts carry derived state, {statement.owner!r} is a {owner.type}",
                    left_type=owner.type,
                )
            self._session.state_for(owner).apply(statement.target, statement.op, value)
            return
        if env.writes_locals or env.has(statement.target):
            env.assign(statement.target, statement.op, value)
            return
        assert env.context is not None
        self._session.state_for(env.context).apply(statement.target, statement.op, value)
