"""Bundled astrolang sources: classical groupings, dignity concepts and yogas."""

from __future__ import annotations

from collections.abc import Sequence
from importlib import resources

__all__ = ["PRELUDE_MODULES", "load_prelude", "prelude_source"]

PRELUDE_MODULES: tuple[str, ...] = ("jyotish", "yogas")


def prelude_source(name: str) -> str:
    """Return the source text of one bundled module."""

    if name not in PRELUDE_MODULES:
        raise KeyError(f"Unknown prelude module {name!r}")
    return resources.files(__name__).joinpath(f"{name}.astro").read_text(encoding="utf-8")


def load_prelude(names: Sequence[str] = PRELUDE_MODULES) -> str:
    """Concatenate the requested prelude modules in order."""

    return "\n".join(prelude_source(name) for name in names)
