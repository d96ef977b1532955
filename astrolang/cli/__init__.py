"""astrolang command line interface package."""

from __future__ import annotations

from ._compat import build_parser, console_main, main
from .app import app

__all__ = ["app", "build_parser", "console_main", "main"]
