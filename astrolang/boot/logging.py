"""Logging setup shared by the astrolang CLI and embedding applications."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from astrolang.runtime_config import RuntimeSettings

__all__ = ["configure_logging", "resolve_level"]

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def resolve_level(value: str | int | None, default: int = logging.INFO) -> int:
    """Map a level name such as ``"debug"`` or a number onto a logging level."""

    if isinstance(value, int):
        return value
    text = (value or "").strip().upper()
    if text.isdecimal():
        return int(text)
    level = logging.getLevelName(text) if text else None
    return level if isinstance(level, int) else default


def configure_logging(
    *,
    level: str | int | None = None,
    verbose: bool = False,
    settings: "RuntimeSettings | None" = None,
    **kwargs: Any,
) -> int:
    """Install the root handler and return the level it filters at.

    ``verbose`` forces DEBUG. Otherwise an explicit ``level`` wins over the
    ``LOG_LEVEL`` value of ``settings``, which defaults to a freshly loaded
    :class:`~astrolang.runtime_config.RuntimeSettings`. Remaining ``kwargs``
    go to :func:`logging.basicConfig`.
    """

    if verbose:
        effective = logging.DEBUG
    else:
        if level is None:
            if settings is None:
                from astrolang.runtime_config import RuntimeSettings

                settings = RuntimeSettings()
            level = settings.log_level
        effective = resolve_level(level)

    kwargs.setdefault("format", LOG_FORMAT)
    kwargs.setdefault("datefmt", DATE_FORMAT)
    kwargs.setdefault("force", True)
    logging.basicConfig(level=effective, **kwargs)
    return effective
