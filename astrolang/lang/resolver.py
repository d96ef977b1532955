"""Attribute resolution with per-session memoization and cycle detection."""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING, Tuple

from .ast import ConceptDecl, PredicateDecl
from .errors import (
    CyclicDependencyError,
    ResolutionDepthError,
    TypeMismatchError,
    UnresolvedAttributeError,
)
from .evaluator import Evaluator
from .registry import Callable, Registry
from .values import ChartState, Entity, Environment, Value, type_name

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from ..ephemeris import EphemerisAdapter

LOG = logging.getLogger(__name__)

__all__ = ["DEFAULT_MAX_DEPTH", "EvaluationSession"]

DEFAULT_MAX_DEPTH = 256

# Upper bound on interpreter frames used by one nested resolution.
_FRAMES_PER_LEVEL = 8
_RECURSION_CEILING = 10_000

CacheKey = Tuple[str, Entity, "Entity | None"]


def _reserve_stack(max_depth: int) -> None:
    """Raise the interpreter recursion limit so ``max_depth`` levels fit."""

    needed = min(max_depth * _FRAMES_PER_LEVEL + 200, _RECURSION_CEILING)
    if sys.getrecursionlimit() < needed:
        LOG.debug("Raising recursion limit to %d for depth %d", needed, max_depth)
        sys.setrecursionlimit(needed)


def _describe(key: CacheKey) -> str:
    name, subject, _context = key
    return f"{name} of {subject}"


class EvaluationSession:
    """State for one chart analysis run.

    A session owns the memoization cache, the in-progress markers used for
    cycle detection and the derived state of every chart it touches. The
    registry and ephemeris adapter are shared read-only collaborators.
    """

    def __init__(
        self,
        registry: Registry,
        ephemeris: "EphemerisAdapter",
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.registry = registry
        self.ephemeris = ephemeris
        self.max_depth = max_depth
        _reserve_stack(max_depth)
        self.evaluator = Evaluator(self)
        self._cache: dict[CacheKey, Value] = {}
        self._in_progress: dict[CacheKey, None] = {}
        self._constants: dict[str, Entity] = {}
        self._states: dict[Entity, ChartState] = {}

    # Derived state ------------------------------------------------------

    def state_for(
        self, chart: Entity, initial: Mapping[str, Value] | None = None
    ) -> ChartState:
        state = self._states.get(chart)
        if state is None:
            state = ChartState(chart, initial)
            self._states[chart] = state
        return state

    # Constants ----------------------------------------------------------

    def constant(self, name: str) -> Entity:
        entity = self._constants.get(name)
        if entity is None:
            from ..ephemeris import EphemerisError

            try:
                entity = self.ephemeris.entity_by_constant(name)
            except EphemerisError as exc:
                raise UnresolvedAttributeError(name, "constant") from exc
            self._constants[name] = entity
        return entity

    # Resolution ---------------------------------------------------------

    def resolve(self, name: str, subject: Entity, context: Entity | None = None) -> Value:
        """Return attribute ``name`` of ``subject`` evaluated in ``context``."""

        if not isinstance(subject, Entity):
            raise TypeMismatchError(
                f"Cannot resolve {name!r} on a {type_name(subject)}",
                left_type=type_name(subject),
            )
        state = self._states.get(subject)
        if state is not None and name in state:
            return state[name]

        key: CacheKey = (name, subject, context)
        if key in self._cache:
            return self._cache[key]

        if self.ephemeris.provides(name, subject.type):
            value = self._fact(name, subject, context)
            self._cache[key] = value
            return value

        declaration = self.registry.lookup(
            name, subject.type, context.type if context is not None else None
        )
        if declaration is None:
            raise UnresolvedAttributeError(name, subject.type)

        if key in self._in_progress:
            chain = [_describe(pending) for pending in self._in_progress]
            start = chain.index(_describe(key))
            LOG.debug("Cycle detected while resolving %s", _describe(key))
            raise CyclicDependencyError(chain[start:] + [_describe(key)])
        if len(self._in_progress) >= self.max_depth:
            raise ResolutionDepthError(self.max_depth)

        self._in_progress[key] = None
        try:
            value = self._invoke(declaration, subject, context)
        except RecursionError as exc:
            # The interpreter stack ran out before max_depth was reached.
            raise ResolutionDepthError(len(self._in_progress)) from exc
        finally:
            del self._in_progress[key]
        self._cache[key] = value
        return value

    def _fact(self, name: str, subject: Entity, context: Entity | None) -> Value:
        from ..ephemeris import EphemerisError

        try:
            value = self.ephemeris.fact_of(name, subject, context)
        except EphemerisError as exc:
            raise UnresolvedAttributeError(name, subject.type) from exc
        type_name(value)
        return value

    def _invoke(self, declaration: Callable, subject: Entity, context: Entity | None) -> Value:
        if isinstance(declaration, ConceptDecl):
            env = Environment.for_call(
                "concept", [(declaration.param.name, subject)], caller_context=context
            )
            return self.evaluator.execute(declaration.body, env)

        assert isinstance(declaration, PredicateDecl)
        params: list[tuple[str, Value]] = [(declaration.subject.name, subject)]
        if declaration.context is not None:
            if context is None:
                raise UnresolvedAttributeError(declaration.name, subject.type)
            params.append((declaration.context.name, context))
        env = Environment.for_call("predicate", params, caller_context=context)
        holds = self.evaluator.test(declaration.guard, env)
        if holds and declaration.action is not None:
            self.evaluator.execute(declaration.action, env)
        return holds

    def cached(self) -> dict[CacheKey, Value]:
        """Return a copy of the memoization cache."""

        return dict(self._cache)
