# src/klean/store/__init__.py
from klean.store.base import REPAIR_TABLE, VIOLATION_TABLE, Store
from klean.store.registry import open_store, register_store

__all__ = ["REPAIR_TABLE", "VIOLATION_TABLE", "Store", "open_store", "register_store"]
