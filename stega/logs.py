"""
Stega logging.

Scope
- logger: the process-wide "stega" logger used by the CLI and the plugin loader
  unless another logger is injected.
- LOG_LEVELS: accepted level names (case-insensitive) and their logging values.
- setup(level): install a rich handler on the "stega" logger (idempotent) and set its level.

Notes
- Library code never configures the root logger; only the "stega" hierarchy is touched.
- Anything exposing debug/info/warning/error can stand in for the logger.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("stega")

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def level_of(name, /):
    """
    map a level name (or number) to its logging value; unknown names raise ValueError.
    """
    if isinstance(name, int):
        return name
    try:
        return LOG_LEVELS[str(name).strip().lower()]
    except KeyError:
        raise ValueError(f"unknown log level {name!r}, expected one of {', '.join(LOG_LEVELS)}") from None


def setup(level="info", /):
    """
    install a RichHandler on the "stega" logger and set its level.

    calling it again only updates the level; handlers are never stacked.
    """
    logger.setLevel(level_of(level))
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    return logger


__all__ = (
    "logger",
    "LOG_LEVELS",
    "level_of",
    "setup",
)
