from __future__ import annotations

from collections import Counter
from pathlib import Path

import pytest

from astrolang.ephemeris import StaticEphemeris
from astrolang.lang import Entity, Environment, EvaluationSession, Registry, load_program

FIXTURES = Path(__file__).parent / "fixtures"

SAMPLE_RULES = """
// Career and partnership indications.

[c:chart] has "Raja Yoga"
when JUPITER of c in (HOUSE1 of c or HOUSE4 of c or HOUSE7 of c or HOUSE10 of c)
 and VENUS of c in (HOUSE1 of c or HOUSE4 of c or HOUSE7 of c or HOUSE10 of c)
then {
    set career of c += 5
}

[c:chart] has "Strong Sun in Aries" when sign of SUN = ARIES
then {
    set career += 3
}

[c:chart] has "Challenges in Partnership" when SATURN of c = HOUSE1 of c and MARS of c = HOUSE7 of c
then {
    set relationship -2
}
"""

PERSON_CHART = """
"chart" of [p:person] as {
    set c = natal of p
    set career of c = 0
    set relationship of c = 0
    set name of c = name of p
    c
}
"""


class CountingEphemeris:
    """Wrap an adapter and count ``fact_of`` calls per query."""

    def __init__(self, inner: StaticEphemeris) -> None:
        self.inner = inner
        self.calls: Counter = Counter()

    def provides(self, name: str, entity_type: str) -> bool:
        return self.inner.provides(name, entity_type)

    def fact_of(self, name, entity, context=None):
        self.calls[(name, entity, context)] += 1
        return self.inner.fact_of(name, entity, context)

    def entity_by_constant(self, name: str) -> Entity:
        return self.inner.entity_by_constant(name)


@pytest.fixture()
def facts_path() -> Path:
    return FIXTURES / "charts.yaml"


@pytest.fixture()
def ephemeris(facts_path: Path) -> StaticEphemeris:
    return StaticEphemeris.from_yaml(facts_path)


@pytest.fixture()
def counting_ephemeris(ephemeris: StaticEphemeris) -> CountingEphemeris:
    return CountingEphemeris(ephemeris)


@pytest.fixture()
def chart1() -> Entity:
    return Entity("chart", "chart1")


@pytest.fixture()
def chart2() -> Entity:
    return Entity("chart", "chart2")


@pytest.fixture()
def chart3() -> Entity:
    return Entity("chart", "chart3")


@pytest.fixture()
def chart4() -> Entity:
    return Entity("chart", "chart4")


@pytest.fixture()
def sample_registry() -> Registry:
    return load_program(SAMPLE_RULES)


@pytest.fixture()
def make_session(ephemeris: StaticEphemeris):
    def _factory(source: str = "", *, prelude: bool = False, **kwargs) -> EvaluationSession:
        registry = load_program(source, include_prelude=prelude)
        return EvaluationSession(registry, ephemeris, **kwargs)

    return _factory


@pytest.fixture()
def rule_env():
    def _factory(chart: Entity | None = None) -> Environment:
        params = [("c", chart)] if chart is not None else []
        return Environment.for_call("rule", params)

    return _factory
