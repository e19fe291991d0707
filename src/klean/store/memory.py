# src/klean/store/memory.py
"""
In-process store backed by polars DataFrames.

Useful for tests, notebooks and one-shot runs where nothing has to outlive
the process.
"""

from __future__ import annotations

import itertools
from typing import Dict, List, Optional

import polars as pl

from klean.store.base import REPAIR_SCHEMA, REPAIR_TABLE, VIOLATION_SCHEMA, VIOLATION_TABLE, Store
from klean.store.registry import register_store


@register_store("memory")
class MemoryStore(Store):
    name = "memory"

    def __init__(self, uri: str = "memory://"):
        super().__init__()
        self.uri = uri
        self._tables: Dict[str, pl.DataFrame] = {}
        self._results: Dict[str, pl.DataFrame] = {}
        self._counters: Dict[str, itertools.count] = {}
        self.install()

    def add_table(self, table_name: str, frame: pl.DataFrame) -> None:
        """Register a DataFrame as a table, prepending ``tid`` (1..n) if it has none."""
        if "tid" not in frame.columns:
            frame = frame.with_row_index("tid", offset=1).with_columns(pl.col("tid").cast(pl.Int64))
        with self._write_lock:
            self._tables[table_name] = frame

    # --------------------------- Backend primitives -------------------------- #

    def _read_frame(self, table_name: str) -> pl.DataFrame:
        return self._tables[table_name]

    def _allocate_ids(self, table_name: str, count: int) -> List[int]:
        counter = self._counters[table_name]
        return [next(counter) for _ in range(count)]

    def _append(self, table_name: str, frame: pl.DataFrame) -> None:
        self._results[table_name] = pl.concat([self._results[table_name], frame])

    def _select(self, table_name: str, rule_id: Optional[str]) -> pl.DataFrame:
        frame = self._results[table_name]
        if rule_id is None:
            return frame
        return frame.filter(pl.col("rid") == rule_id)

    def _delete(self, table_name: str, rule_id: Optional[str]) -> int:
        frame = self._results[table_name]
        kept = frame.clear() if rule_id is None else frame.filter(pl.col("rid") != rule_id)
        self._results[table_name] = kept
        return frame.height - kept.height

    def table_exists(self, table_name: str) -> bool:
        return table_name in self._tables

    def create_table(self, table_name: str, template: pl.DataFrame) -> None:
        with self._write_lock:
            self._tables[table_name] = template.clear()

    def insert_batch(self, table_name: str, batch: pl.DataFrame) -> int:
        with self._write_lock:
            self._tables[table_name] = pl.concat([self._tables[table_name], batch])
        return batch.height

    def drop_table(self, table_name: str) -> None:
        with self._write_lock:
            self._tables.pop(table_name, None)

    def install(self) -> None:
        with self._write_lock:
            if VIOLATION_TABLE not in self._results:
                self._results[VIOLATION_TABLE] = pl.DataFrame(schema=VIOLATION_SCHEMA)
                self._counters[VIOLATION_TABLE] = itertools.count(1)
            if REPAIR_TABLE not in self._results:
                self._results[REPAIR_TABLE] = pl.DataFrame(schema=REPAIR_SCHEMA)
                self._counters[REPAIR_TABLE] = itertools.count(1)

    def uninstall(self) -> None:
        with self._write_lock:
            self._results.clear()
            self._counters.clear()

    def __repr__(self) -> str:
        return f"MemoryStore(tables={sorted(self._tables)})"
