from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from astrolang.boot import configure_logging, resolve_level
from astrolang.runtime_config import RuntimeSettings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LOG_LEVEL", "ASTROLANG_PRELUDE", "ASTROLANG_MAX_DEPTH", "ASTROLANG_FACTS_FILE"):
        monkeypatch.delenv(name, raising=False)

    settings = RuntimeSettings(_env_file=None)

    assert settings.log_level == "INFO"
    assert settings.include_prelude is False
    assert settings.max_resolution_depth == 256
    assert settings.facts_file is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASTROLANG_PRELUDE", "true")
    monkeypatch.setenv("ASTROLANG_MAX_DEPTH", "12")
    monkeypatch.setenv("ASTROLANG_FACTS_FILE", "~/charts.yaml")

    settings = RuntimeSettings(_env_file=None)

    assert settings.include_prelude is True
    assert settings.max_resolution_depth == 12
    assert settings.facts_file == Path("~/charts.yaml").expanduser()


def test_depth_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASTROLANG_MAX_DEPTH", "0")

    with pytest.raises(ValidationError):
        RuntimeSettings(_env_file=None)


def test_configure_logging_levels(monkeypatch: pytest.MonkeyPatch) -> None:
    assert configure_logging(level="debug") == logging.DEBUG
    assert configure_logging(level="15") == 15
    assert configure_logging(level="bogus") == logging.INFO

    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    assert configure_logging() == logging.WARNING
    assert logging.getLogger().level == logging.WARNING


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, logging.INFO),
        ("", logging.INFO),
        (" warning ", logging.WARNING),
        (logging.ERROR, logging.ERROR),
        ("²", logging.INFO),
    ],
)
def test_resolve_level(value, expected) -> None:
    assert resolve_level(value) == expected


def test_configure_logging_prefers_verbose_and_explicit_settings(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    settings = RuntimeSettings(_env_file=None)

    assert configure_logging(settings=settings) == logging.ERROR
    assert configure_logging(level="info", settings=settings) == logging.INFO
    assert configure_logging(verbose=True, level="error") == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG
