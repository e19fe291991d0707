# src/klean/logging.py
"""
Logging helpers for Klean.

Every module gets a stdlib logger under the ``klean`` namespace via
``get_logger(__name__)``. Nothing is printed unless the host application (or
the CLI, through ``configure_logging``) attaches a handler.

Environment:
    KLEAN_LOG_LEVEL   DEBUG | INFO | WARNING | ERROR (default: WARNING)
"""

from __future__ import annotations

import logging
import os
from typing import Optional

_ROOT = "klean"
_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger inside the ``klean`` namespace."""
    if not name or name == _ROOT:
        return logging.getLogger(_ROOT)
    if name.startswith(_ROOT + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT}.{name}")


def _level_from_env(default: int) -> int:
    raw = os.getenv("KLEAN_LOG_LEVEL")
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Attach a stream handler to the ``klean`` root logger.

    Safe to call more than once; only the level changes on repeat calls.
    """
    root = logging.getLogger(_ROOT)
    root.setLevel(_level_from_env(logging.DEBUG if verbose else logging.WARNING))
    if not any(getattr(h, "_klean_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._klean_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root


def log_exception(logger: logging.Logger, message: str, exc: BaseException) -> None:
    """
    Log a handled exception: one line at WARNING, the traceback at DEBUG.
    """
    logger.warning("%s: %s", message, exc)
    logger.debug("Traceback for: %s", message, exc_info=exc)
