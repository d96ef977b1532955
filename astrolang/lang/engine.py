"""Production rule engine and program-level entry points."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .ast import RuleDecl
from .errors import EvaluationError, TypeMismatchError
from .parser import parse_program
from .registry import Registry
from ..runtime_config import runtime_settings
from .resolver import EvaluationSession
from .values import Entity, Environment, Value, type_name

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from ..ephemeris import EphemerisAdapter

LOG = logging.getLogger(__name__)

__all__ = [
    "ChartEvaluation",
    "RuleEngine",
    "RuleFailure",
    "evaluate_chart",
    "evaluate_person",
    "load_program",
]


@dataclass(frozen=True)
class RuleFailure:
    """A rule whose guard or actions raised an evaluation error."""

    rule: str
    error: EvaluationError

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class ChartEvaluation:
    """Outcome of running every rule against one chart."""

    chart: Entity
    state: dict[str, Value]
    fired: list[str] = field(default_factory=list)
    errors: list[RuleFailure] = field(default_factory=list)

    def __iter__(self) -> Iterator[object]:
        yield self.state
        yield self.errors

    @property
    def ok(self) -> bool:
        return not self.errors


def load_program(text: str, *, include_prelude: bool = False) -> Registry:
    """Parse ``text`` and build a :class:`Registry`.

    Syntax and ambiguity errors abort the whole load; nothing is registered
    from a program that fails.
    """

    program = parse_program(text)
    if include_prelude:
        from ..prelude import load_prelude

        program = parse_program(load_prelude()) + program
    return Registry.from_program(program)


class RuleEngine:
    """Fire the rules of a registry against charts, one session per chart."""

    def __init__(
        self,
        registry: Registry,
        ephemeris: "EphemerisAdapter",
        *,
        max_depth: int | None = None,
    ) -> None:
        self.registry = registry
        self.ephemeris = ephemeris
        self.max_depth = max_depth or runtime_settings.max_resolution_depth

    def session(self) -> EvaluationSession:
        return EvaluationSession(self.registry, self.ephemeris, max_depth=self.max_depth)

    def evaluate_chart(
        self,
        chart: Entity,
        initial_state: Mapping[str, Value] | None = None,
        *,
        session: EvaluationSession | None = None,
    ) -> ChartEvaluation:
        if chart.type != "chart":
            raise TypeMismatchError(f"Rules are evaluated against charts, not {chart.type}")
        session = session or self.session()
        state = session.state_for(chart)
        for key, value in (initial_state or {}).items():
            state.apply(key, "=", value)

        result = ChartEvaluation(chart=chart, state={})
        for rule in self.registry.rules_for(chart.type):
            self._fire(rule, chart, session, result)
        result.state = state.snapshot()
        return result

    def evaluate_person(
        self,
        person: Entity,
        initial_state: Mapping[str, Value] | None = None,
    ) -> ChartEvaluation:
        """Build the person's chart through the ``chart`` concept, then fire rules."""

        if person.type != "person":
            raise TypeMismatchError(f"Expected a person, got {person.type}")
        session = self.session()
        if self.registry.lookup("chart", person.type) is not None:
            chart = session.resolve("chart", person)
        else:
            chart = session.resolve("natal", person)
        if not isinstance(chart, Entity) or chart.type != "chart":
            raise TypeMismatchError(
                f"'chart of person' yielded a {type_name(chart)}, not a chart",
                left_type=type_name(chart),
            )
        return self.evaluate_chart(chart, initial_state, session=session)

    def _fire(
        self,
        rule: RuleDecl,
        chart: Entity,
        session: EvaluationSession,
        result: ChartEvaluation,
    ) -> None:
        env = Environment.for_call("rule", [(rule.subject.name, chart)])
        try:
            if not session.evaluator.test(rule.guard, env):
                LOG.debug("Rule %r skipped for %s", rule.label, chart)
                return
            LOG.debug("Rule %r fired for %s", rule.label, chart)
            result.fired.append(rule.label)
            session.evaluator.execute(rule.action, env)
        except EvaluationError as exc:
            LOG.warning("Rule %r failed for %s: %s", rule.label, chart, exc)
            result.errors.append(RuleFailure(rule.label, exc))


def evaluate_chart(
    registry: Registry,
    chart: Entity,
    ephemeris: "EphemerisAdapter",
    initial_state: Mapping[str, Value] | None = None,
    *,
    max_depth: int | None = None,
) -> ChartEvaluation:
    """Evaluate every rule of ``registry`` against ``chart``."""

    engine = RuleEngine(registry, ephemeris, max_depth=max_depth)
    return engine.evaluate_chart(chart, initial_state)


def evaluate_person(
    registry: Registry,
    person: Entity,
    ephemeris: "EphemerisAdapter",
    initial_state: Mapping[str, Value] | None = None,
    *,
    max_depth: int | None = None,
) -> ChartEvaluation:
    engine = RuleEngine(registry, ephemeris, max_depth=max_depth)
    return engine.evaluate_person(person, initial_state)

