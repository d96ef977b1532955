"""Process entry points wrapping the Typer application."""

from __future__ import annotations

from collections.abc import Sequence

import click
from typer.main import get_command

from .app import app


def build_parser() -> click.Command:
    """Return the Click command representing the Typer app."""

    return get_command(app)


def main(argv: Sequence[str] | None = None) -> int:
    """Invoke the CLI with ``argv`` and return its exit code."""

    command = build_parser()
    args = list(argv) if argv is not None else None
    try:
        result = command.main(args=args, prog_name="astrolang", standalone_mode=False)
    except click.exceptions.Exit as exc:
        return int(exc.exit_code or 0)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    return result if isinstance(result, int) else 0


def console_main() -> None:
    """Invoke :func:`main` and terminate with its exit code."""

    raise SystemExit(main())


__all__ = ["build_parser", "console_main", "main"]
