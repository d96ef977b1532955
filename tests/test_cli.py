from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from astrolang.cli import app, main

from .conftest import PERSON_CHART, SAMPLE_RULES

runner = CliRunner()


@pytest.fixture()
def program(tmp_path: Path) -> Path:
    path = tmp_path / "rules.astro"
    path.write_text(SAMPLE_RULES, encoding="utf-8")
    return path


def test_check_reports_counts(program: Path) -> None:
    result = runner.invoke(app, ["check", str(program)])

    assert result.exit_code == 0
    assert "0 concepts, 0 predicates, 3 rules" in result.output


def test_check_with_prelude(program: Path) -> None:
    result = runner.invoke(app, ["check", str(program), "--prelude"])

    assert result.exit_code == 0
    assert "18 rules" in result.output


def test_check_reports_syntax_errors(tmp_path: Path) -> None:
    broken = tmp_path / "broken.astro"
    broken.write_text('[c:chart] has "X" when\n', encoding="utf-8")

    result = runner.invoke(app, ["check", str(broken)])

    assert result.exit_code == 1
    assert "line 2" in result.output


def test_run_chart_as_json(program: Path, facts_path: Path) -> None:
    result = runner.invoke(
        app,
        [
            "run",
            str(program),
            "--facts",
            str(facts_path),
            "--chart",
            "chart1",
            "--set",
            "career=0",
            "--set",
            "relationship=0",
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["chart"] == "chart:chart1"
    assert payload["state"] == {"career": 5, "relationship": 0}
    assert payload["fired"] == ["Raja Yoga"]
    assert payload["errors"] == []


def test_run_person(tmp_path: Path, facts_path: Path) -> None:
    source = tmp_path / "person.astro"
    source.write_text(PERSON_CHART + SAMPLE_RULES, encoding="utf-8")

    result = runner.invoke(
        app, ["run", str(source), "--facts", str(facts_path), "--person", "bob"]
    )

    assert result.exit_code == 0, result.output
    assert "Chart: chart:chart2" in result.output
    assert "fired: Challenges in Partnership" in result.output
    assert "relationship = -2" in result.output
    assert "name = Bob" in result.output


def test_run_exits_nonzero_when_rules_fail(program: Path, facts_path: Path) -> None:
    result = runner.invoke(
        app, ["run", str(program), "--facts", str(facts_path), "--chart", "chart3"]
    )

    assert result.exit_code == 1
    assert "Raja Yoga" in result.output
    assert "career = 3" in result.output


def test_run_unknown_chart(program: Path, facts_path: Path) -> None:
    result = runner.invoke(
        app, ["run", str(program), "--facts", str(facts_path), "--chart", "nowhere"]
    )

    assert result.exit_code == 1
    assert "Unknown chart" in result.output


def test_run_requires_one_subject(program: Path, facts_path: Path) -> None:
    result = runner.invoke(app, ["run", str(program), "--facts", str(facts_path)])

    assert result.exit_code != 0


def test_run_uses_configured_facts_file(
    program: Path, facts_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ASTROLANG_FACTS_FILE", str(facts_path))

    result = runner.invoke(app, ["run", str(program), "--chart", "chart2", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["state"] == {"relationship": -2}


def test_facts_lists_sheet(facts_path: Path) -> None:
    result = runner.invoke(app, ["facts", str(facts_path)])

    assert result.exit_code == 0
    assert "chart chart2: ascendant Libra, 9 planets" in result.output
    assert "person alice: Alice (chart chart1)" in result.output


def test_main_returns_exit_codes(program: Path, tmp_path: Path) -> None:
    broken = tmp_path / "broken.astro"
    broken.write_text('"x" of [p] as {', encoding="utf-8")

    assert main(["check", str(program)]) == 0
    assert main(["check", str(broken)]) == 1


def test_verbose_flag_logs_at_debug(program: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "ERROR")

    result = runner.invoke(app, ["--verbose", "check", str(program)])

    assert result.exit_code == 0
    assert logging.getLogger().level == logging.DEBUG
