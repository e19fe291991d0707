# src/klean/errors.py
"""
Typed errors raised by Klean.

Construction and lookup problems fail immediately at the point they happen;
store problems propagate to whoever called the stage that needed the store.
Nothing here is retried internally.
"""

from __future__ import annotations


class KleanError(Exception):
    """Base class for all Klean errors."""


class InvalidArgumentError(KleanError, ValueError):
    """Malformed construction: bad tuple id, schema/value mismatch, duplicate column."""


class NotFoundError(KleanError, KeyError):
    """A column, table or rule that was asked for does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class UnknownRuleError(NotFoundError):
    """A rule name that is not in the registry and is not an import path."""


class ConfigError(KleanError):
    """A clean plan or configuration value is invalid."""


class StoreError(KleanError, IOError):
    """The store could not be reached or a read/write failed."""


class LoadError(KleanError):
    """A bulk load failed; the target table has been dropped."""

    def __init__(self, message: str, table_name: str | None = None):
        super().__init__(message)
        self.table_name = table_name


def format_error_for_cli(exc: BaseException, verbose: bool = False) -> str:
    """Render an exception as a single CLI-friendly line."""
    if verbose:
        return f"[{type(exc).__name__}] {exc!r}"
    if isinstance(exc, FileNotFoundError):
        return f"File not found: {exc.filename or exc}"
    if isinstance(exc, ConfigError):
        return f"Config error: {exc}"
    if isinstance(exc, StoreError):
        return f"Store error: {exc}"
    if isinstance(exc, LoadError):
        return f"Load failed: {exc}"
    if isinstance(exc, KleanError):
        return f"Error: {exc}"
    return "An unexpected error occurred. Use --verbose for details."
