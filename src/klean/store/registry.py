# src/klean/store/registry.py
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict
from urllib.parse import urlparse

from klean.errors import ConfigError

if TYPE_CHECKING:
    from .base import Store


# Registry: scheme -> ctor(uri)
_STORES: Dict[str, Callable[[str], "Store"]] = {}

_SCHEME_ALIASES = {
    "postgresql": "postgres",
}

_DUCKDB_SUFFIXES = (".duckdb", ".db")


def register_store(scheme: str):
    """
    Decorator to register a store class under a URI scheme.
    The class must accept the full URI as its only argument.
    """

    def deco(cls):
        if scheme in _STORES and _STORES[scheme] is not cls:
            raise ValueError(f"Store '{scheme}' is already registered.")
        _STORES[scheme] = cls
        return cls

    return deco


def _scheme_of(uri: str) -> str:
    if "://" not in uri:
        # Bare paths to database files
        if uri.lower().endswith(_DUCKDB_SUFFIXES) or uri == ":memory:":
            return "duckdb"
        return ""
    scheme = urlparse(uri).scheme.lower()
    return _SCHEME_ALIASES.get(scheme, scheme)


def open_store(uri: str) -> "Store":
    """
    Open the store a URI points at.

    Policy:
      - memory://                      -> MemoryStore
      - duckdb:///path.db, *.duckdb/db -> DuckDBStore
      - postgres://, postgresql://     -> PostgresStore
    """
    register_default_stores()
    scheme = _scheme_of(uri)
    ctor = _STORES.get(scheme)
    if ctor is None:
        raise ConfigError(
            f"No store for URI '{uri}'. Supported schemes: {', '.join(sorted(_STORES))}"
        )
    return ctor(uri)


def register_default_stores() -> None:
    """
    Eagerly import built-in stores so their @register_store decorators run.
    """
    from . import duckdb  # noqa: F401
    from . import memory  # noqa: F401
    from . import postgres  # noqa: F401
