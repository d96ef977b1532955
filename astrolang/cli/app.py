"""Primary Typer application for the astrolang CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import typer

from astrolang.boot import configure_logging
from astrolang.ephemeris import EphemerisError, StaticEphemeris
from astrolang.lang import (
    ChartEvaluation,
    DSLError,
    EvaluationError,
    Registry,
    RuleEngine,
    load_program,
)
from astrolang.lang.values import Entity, Value
from astrolang.runtime_config import RuntimeSettings

app = typer.Typer(help="astrolang command line interface.")


def _parse_value(raw: str) -> Value:
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(value, (bool, int, float, str)):
        return value
    return raw


def _parse_assignments(values: List[str]) -> Dict[str, Value]:
    state: Dict[str, Value] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Invalid assignment '{value}'. Expected KEY=VALUE.")
        state[key.strip()] = _parse_value(raw.strip())
    return state


def _jsonable(value: Value) -> object:
    if isinstance(value, Entity):
        return str(value)
    if isinstance(value, frozenset):
        return sorted(str(member) for member in value)
    return value


def _load_registry(program: Path, include_prelude: bool) -> Registry:
    try:
        return load_program(program.read_text(encoding="utf-8"), include_prelude=include_prelude)
    except DSLError as exc:
        typer.secho(f"{program}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc


def _report(result: ChartEvaluation, json_output: bool) -> None:
    if json_output:
        payload: Mapping[str, object] = {
            "chart": str(result.chart),
            "state": {key: _jsonable(value) for key, value in sorted(result.state.items())},
            "fired": list(result.fired),
            "errors": [
                {"rule": failure.rule, "message": failure.message} for failure in result.errors
            ],
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"Chart: {result.chart}")
    for label in result.fired:
        typer.secho(f"fired: {label}", fg=typer.colors.GREEN)
    for key, value in sorted(result.state.items()):
        typer.echo(f"{key} = {_jsonable(value)}")
    for failure in result.errors:
        typer.secho(f"{failure.rule}: {failure.message}", fg=typer.colors.RED, err=True)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG level regardless of LOG_LEVEL."
    ),
) -> None:
    """Configure logging before executing subcommands."""

    configure_logging(verbose=verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("check")
def check(
    program: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Program source file."
    ),
    prelude: Optional[bool] = typer.Option(
        None, "--prelude/--no-prelude", help="Load the bundled prelude before the program."
    ),
) -> None:
    """Parse and register a program, reporting its declarations."""

    include_prelude = RuntimeSettings().include_prelude if prelude is None else prelude
    registry = _load_registry(program, include_prelude)
    typer.secho(
        f"{program}: {len(registry.concepts)} concepts, "
        f"{len(registry.predicates)} predicates, {len(registry.rules)} rules",
        fg=typer.colors.GREEN,
    )


@app.command("run")
def run(
    program: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Program source file."
    ),
    facts: Optional[Path] = typer.Option(
        None, "--facts", help="YAML fact sheet (defaults to ASTROLANG_FACTS_FILE)."
    ),
    chart: Optional[str] = typer.Option(None, "--chart", help="Chart identifier to evaluate."),
    person: Optional[str] = typer.Option(None, "--person", help="Person identifier to evaluate."),
    prelude: Optional[bool] = typer.Option(
        None, "--prelude/--no-prelude", help="Load the bundled prelude before the program."
    ),
    assignments: Optional[List[str]] = typer.Option(
        None, "--set", metavar="KEY=VALUE", help="Initial derived state (repeatable)."
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit the evaluation as JSON."),
) -> None:
    """Evaluate every rule of a program against one chart or person."""

    settings = RuntimeSettings()
    if (chart is None) == (person is None):
        raise typer.BadParameter("Pass exactly one of --chart or --person.")
    facts_path = facts or settings.facts_file
    if facts_path is None:
        raise typer.BadParameter("No fact sheet given; use --facts or ASTROLANG_FACTS_FILE.")

    initial_state = _parse_assignments(assignments or [])
    include_prelude = settings.include_prelude if prelude is None else prelude
    registry = _load_registry(program, include_prelude)

    try:
        ephemeris = StaticEphemeris.from_yaml(facts_path)
        engine = RuleEngine(registry, ephemeris, max_depth=settings.max_resolution_depth)
        if chart is not None:
            result = engine.evaluate_chart(ephemeris.chart(chart), initial_state)
        else:
            assert person is not None
            result = engine.evaluate_person(ephemeris.person(person), initial_state)
    except (EphemerisError, EvaluationError, OSError) as exc:
        typer.secho(f"Evaluation failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc

    _report(result, json_output)
    if not result.ok:
        raise typer.Exit(1)


@app.command("facts")
def facts(
    path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="YAML fact sheet."
    ),
) -> None:
    """Validate a fact sheet and list its charts and persons."""

    try:
        ephemeris = StaticEphemeris.from_yaml(path)
    except EphemerisError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc

    sheet = ephemeris.facts
    for chart_id, chart_facts in sorted(sheet.charts.items()):
        typer.echo(
            f"chart {chart_id}: ascendant {chart_facts.ascendant}, "
            f"{len(chart_facts.planets)} planets"
        )
    for person_id, person_facts in sorted(sheet.persons.items()):
        typer.echo(f"person {person_id}: {person_facts.name} (chart {person_facts.chart})")


__all__ = ["app"]
