from __future__ import annotations

import inspect
import sys

import pytest

from astrolang.lang import Entity, EvaluationSession, load_program
from astrolang.lang.errors import (
    CyclicDependencyError,
    ResolutionDepthError,
    TypeMismatchError,
    UnresolvedAttributeError,
)
from astrolang.lang.resolver import DEFAULT_MAX_DEPTH

SUN = Entity("planet", "Sun")

CYCLE = """
"A" of [x] as { B of x }
"B" of [x] as { A of x }
"C" of [x] as { 7 }
"""

CHAIN = """
"one" of [x] as { two of x }
"two" of [x] as { three of x }
"three" of [x] as { 1 }
"""

HOUSE_NUMBER = """
"house_number" of [p:planet] as {
    set h = house of p
    number of h
}
"""


def test_cycle_fails_fast(make_session, chart1) -> None:
    session = make_session(CYCLE)

    with pytest.raises(CyclicDependencyError) as excinfo:
        session.resolve("A", chart1, chart1)

    assert excinfo.value.chain == ("A of chart:chart1", "B of chart:chart1", "A of chart:chart1")


def test_in_progress_markers_are_cleared_after_errors(make_session, chart1) -> None:
    session = make_session(CYCLE)

    with pytest.raises(CyclicDependencyError):
        session.resolve("A", chart1, chart1)

    assert session._in_progress == {}
    assert session.resolve("C", chart1, chart1) == 7
    with pytest.raises(CyclicDependencyError):
        session.resolve("B", chart1, chart1)


def test_facts_are_memoized(counting_ephemeris, chart1) -> None:
    session = EvaluationSession(load_program(HOUSE_NUMBER), counting_ephemeris)

    assert session.resolve("house_number", SUN, chart1) == 2
    assert session.resolve("house_number", SUN, chart1) == 2
    assert session.resolve("sign", SUN, chart1) == Entity("sign", "Taurus")
    assert session.resolve("sign", SUN, chart1) == Entity("sign", "Taurus")

    assert all(count == 1 for count in counting_ephemeris.calls.values())
    assert counting_ephemeris.calls[("house", SUN, chart1)] == 1


def test_cache_is_keyed_by_ambient_chart(counting_ephemeris, chart1, chart2) -> None:
    session = EvaluationSession(load_program(HOUSE_NUMBER), counting_ephemeris)

    assert session.resolve("house_number", SUN, chart1) == 2
    assert session.resolve("house_number", SUN, chart2) == 6
    assert ("house_number", SUN, chart2) in session.cached()


def test_sessions_do_not_share_caches(counting_ephemeris, chart1) -> None:
    registry = load_program(HOUSE_NUMBER)

    for _ in range(2):
        EvaluationSession(registry, counting_ephemeris).resolve("house_number", SUN, chart1)

    assert counting_ephemeris.calls[("house", SUN, chart1)] == 2


def test_predicate_action_runs_once_per_key(make_session, chart1) -> None:
    session = make_session(
        '[p:planet] is "noted" of [c:chart] when 1 = 1 then { set notes += 1 }'
    )

    assert session.resolve("noted", SUN, chart1) is True
    assert session.resolve("noted", SUN, chart1) is True
    assert session.state_for(chart1).snapshot() == {"notes": 1}


def test_context_predicate_needs_a_chart(make_session) -> None:
    session = make_session('[p:planet] is "dignified" of [c:chart] when p is "exalted"')

    with pytest.raises(UnresolvedAttributeError):
        session.resolve("dignified", SUN)


def test_chart_state_is_read_before_the_cache(make_session, chart1) -> None:
    session = make_session('"career" of [c:chart] as { 10 }')

    assert session.resolve("career", chart1, chart1) == 10
    session.state_for(chart1).apply("career", "=", 3)
    assert session.resolve("career", chart1, chart1) == 3
    session.state_for(chart1).apply("career", "+=", 1)
    assert session.resolve("career", chart1, chart1) == 4


def test_ephemeris_failures_surface_as_unresolved(make_session, chart3) -> None:
    session = make_session()

    with pytest.raises(UnresolvedAttributeError) as excinfo:
        session.resolve("house", Entity("planet", "Jupiter"), chart3)

    assert excinfo.value.__cause__ is not None


def test_depth_limit(ephemeris, chart1) -> None:
    registry = load_program(CHAIN)

    assert EvaluationSession(registry, ephemeris, max_depth=3).resolve("one", chart1) == 1
    with pytest.raises(ResolutionDepthError) as excinfo:
        EvaluationSession(registry, ephemeris, max_depth=2).resolve("one", chart1)
    assert excinfo.value.depth == 2


def test_resolution_requires_an_entity(make_session) -> None:
    with pytest.raises(TypeMismatchError):
        make_session().resolve("sign", 3)


def chain_source(length: int) -> str:
    lines = [f'"c{i}" of [x] as {{ c{i + 1} of x }}' for i in range(length - 1)]
    lines.append(f'"c{length - 1}" of [x] as {{ 1 }}')
    return "\n".join(lines)


@pytest.fixture()
def restore_recursion_limit():
    limit = sys.getrecursionlimit()
    yield
    sys.setrecursionlimit(limit)


def test_default_depth_fits_the_interpreter_stack(ephemeris, chart1) -> None:
    registry = load_program(chain_source(DEFAULT_MAX_DEPTH))
    session = EvaluationSession(registry, ephemeris)

    assert session.resolve("c0", chart1) == 1


def test_stack_exhaustion_is_a_depth_error(ephemeris, chart1, restore_recursion_limit) -> None:
    registry = load_program(chain_source(300))
    session = EvaluationSession(registry, ephemeris, max_depth=1000)
    sys.setrecursionlimit(len(inspect.stack(0)) + 120)

    with pytest.raises(ResolutionDepthError):
        session.resolve("c0", chart1)

    assert session.resolve("c299", chart1) == 1
