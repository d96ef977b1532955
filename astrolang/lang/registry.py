"""Declaration registry keyed by ``(name, subject type, context type)``."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Mapping, Tuple, Union

from .ast import ANY_TYPE, ConceptDecl, Declaration, PredicateDecl, Program, RuleDecl
from .errors import AmbiguousDeclarationError

LOG = logging.getLogger(__name__)

__all__ = ["Callable", "Registry", "RegistryKey"]

Callable = Union[ConceptDecl, PredicateDecl]
RegistryKey = Tuple[str, str, Union[str, None]]


def _key(declaration: Callable) -> RegistryKey:
    context = declaration.context
    return (declaration.name, declaration.subject.type, context.type if context else None)


class Registry:
    """Read-only dispatch table over the declarations of a loaded program.

    Concepts and predicates share one table: a concept ``"x" of [p:planet]``
    and a predicate ``[p:planet] is "x"`` would both answer ``x of p`` and
    therefore collide. Rules are kept in declaration order.
    """

    def __init__(self, declarations: Iterable[Declaration] = ()) -> None:
        table: dict[RegistryKey, Callable] = {}
        rules: list[RuleDecl] = []
        for declaration in declarations:
            if isinstance(declaration, RuleDecl):
                rules.append(declaration)
                continue
            key = _key(declaration)
            existing = table.get(key)
            if existing is not None:
                raise AmbiguousDeclarationError(
                    key[0], key[1], key[2], lines=(existing.line, declaration.line)
                )
            table[key] = declaration
        self._table: Mapping[RegistryKey, Callable] = MappingProxyType(table)
        self._rules: tuple[RuleDecl, ...] = tuple(rules)
        LOG.debug("Registered %d callables and %d rules", len(table), len(rules))

    @classmethod
    def from_program(cls, program: Program) -> "Registry":
        return cls(program.declarations)

    @property
    def rules(self) -> tuple[RuleDecl, ...]:
        return self._rules

    @property
    def concepts(self) -> list[ConceptDecl]:
        return [decl for decl in self._table.values() if isinstance(decl, ConceptDecl)]

    @property
    def predicates(self) -> list[PredicateDecl]:
        return [decl for decl in self._table.values() if isinstance(decl, PredicateDecl)]

    def __len__(self) -> int:
        return len(self._table) + len(self._rules)

    def __iter__(self) -> Iterator[Callable]:
        return iter(self._table.values())

    def rules_for(self, subject_type: str) -> list[RuleDecl]:
        return [rule for rule in self._rules if rule.subject.accepts(subject_type)]

    def lookup(
        self, name: str, subject_type: str, context_type: str | None = None
    ) -> Callable | None:
        """Return the declaration answering ``name`` for the given types.

        Candidates are tried from most to least specific: exact subject type
        with the ambient context type, exact subject type without a context,
        then the same two forms for ``any``-typed subjects.
        """

        for candidate_subject in (subject_type, ANY_TYPE):
            if context_type is not None:
                found = self._table.get((name, candidate_subject, context_type))
                if found is None:
                    found = self._table.get((name, candidate_subject, ANY_TYPE))
                if found is not None:
                    return found
            found = self._table.get((name, candidate_subject, None))
            if found is not None:
                return found
        return None

    def declares(self, name: str) -> bool:
        return any(key[0] == name for key in self._table)
