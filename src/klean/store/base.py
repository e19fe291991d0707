# src/klean/store/base.py
"""
Store protocol definition.

A store is the only thing the core reads tables from and writes violations
and fixes to. Backends implement a handful of primitive operations; the
entity <-> row mapping, vid assignment and write serialization live here so
every backend behaves the same.

Persisted shapes:

    klean_violation(vid, rid, tablename, tupleid, attribute, value, cellpos)
        one row per cell; cellpos keeps the cell order within a violation

    klean_repair(id, vid, rid,
                 c1_tupleid, c1_tablename, c1_attribute, c1_value,
                 op,
                 c2_tupleid, c2_tablename, c2_attribute, c2_value)

Design principles:
- Append-only writes: every call adds rows, nothing is updated in place
- The store assigns surrogate ids (vid, repair id), never the rule
- Writes are serialized with a lock, so worker threads may share a store
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import polars as pl

from klean.datamodel import Cell, Column, Fix, TupleCollection, Violation
from klean.errors import NotFoundError
from klean.logging import get_logger

_logger = get_logger(__name__)

VIOLATION_TABLE = "klean_violation"
REPAIR_TABLE = "klean_repair"

VIOLATION_SCHEMA: Dict[str, pl.DataType] = {
    "vid": pl.Int64,
    "rid": pl.Utf8,
    "tablename": pl.Utf8,
    "tupleid": pl.Int64,
    "attribute": pl.Utf8,
    "value": pl.Utf8,
    "cellpos": pl.Int32,
}

REPAIR_SCHEMA: Dict[str, pl.DataType] = {
    "id": pl.Int64,
    "vid": pl.Int64,
    "rid": pl.Utf8,
    "c1_tupleid": pl.Int64,
    "c1_tablename": pl.Utf8,
    "c1_attribute": pl.Utf8,
    "c1_value": pl.Utf8,
    "op": pl.Utf8,
    "c2_tupleid": pl.Int64,
    "c2_tablename": pl.Utf8,
    "c2_attribute": pl.Utf8,
    "c2_value": pl.Utf8,
}


def esc_ident(name: str) -> str:
    """Quote a (possibly schema-qualified) SQL identifier."""
    return ".".join('"' + part.replace('"', '""') + '"' for part in name.split("."))


def violation_frame(violations: Iterable[Violation]) -> pl.DataFrame:
    rows = []
    for violation in violations:
        for pos, row in enumerate(violation.to_rows()):
            row["cellpos"] = pos
            rows.append(row)
    return pl.DataFrame(rows, schema=VIOLATION_SCHEMA)


def repair_frame(rule_id: str, fixes: Iterable[Fix], ids: List[int]) -> pl.DataFrame:
    rows = []
    for fix_id, fix in zip(ids, fixes):
        row = {"id": fix_id, "rid": rule_id}
        row.update(fix.to_row())
        rows.append(row)
    return pl.DataFrame(rows, schema=REPAIR_SCHEMA)


def violations_from_frame(frame: pl.DataFrame) -> List[Violation]:
    """Rebuild Violation entities (values come back as text)."""
    if frame.is_empty():
        return []
    frame = frame.sort(["vid", "cellpos"])
    out: List[Violation] = []
    for (vid,), part in frame.group_by(["vid"], maintain_order=True):
        cells = [
            Cell(Column(r["tablename"], r["attribute"]), int(r["tupleid"]), r["value"])
            for r in part.iter_rows(named=True)
        ]
        out.append(Violation.from_cells(part["rid"][0], cells).with_vid(int(vid)))
    return out


class Store(ABC):
    """
    Abstract base class for violation/fix stores.
    """

    name: str = "store"

    def __init__(self) -> None:
        self._write_lock = threading.RLock()

    # --------------------------- Backend primitives -------------------------- #

    @abstractmethod
    def _read_frame(self, table_name: str) -> pl.DataFrame:
        """Whole table as a DataFrame. Called only for existing tables."""
        ...

    @abstractmethod
    def _allocate_ids(self, table_name: str, count: int) -> List[int]:
        """``count`` fresh, increasing surrogate ids for VIOLATION_TABLE or REPAIR_TABLE."""
        ...

    @abstractmethod
    def _append(self, table_name: str, frame: pl.DataFrame) -> None:
        ...

    @abstractmethod
    def _select(self, table_name: str, rule_id: Optional[str]) -> pl.DataFrame:
        """Rows of a result table, optionally filtered by rule id."""
        ...

    @abstractmethod
    def _delete(self, table_name: str, rule_id: Optional[str]) -> int:
        ...

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        ...

    @abstractmethod
    def create_table(self, table_name: str, template: pl.DataFrame) -> None:
        """Create (or replace) an empty table with ``template``'s columns and types."""
        ...

    @abstractmethod
    def insert_batch(self, table_name: str, batch: pl.DataFrame) -> int:
        """Append one batch of rows; returns the number of rows written."""
        ...

    @abstractmethod
    def drop_table(self, table_name: str) -> None:
        ...

    @abstractmethod
    def install(self) -> None:
        """Create the violation/repair tables and id sequences if missing."""
        ...

    @abstractmethod
    def uninstall(self) -> None:
        """Drop the violation/repair tables and id sequences."""
        ...

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
        return None

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --------------------------------- Read --------------------------------- #

    def read_table(self, table_name: str) -> TupleCollection:
        """
        Materialize a table. Tuple ids come from its ``tid`` column, or
        1..n in row order when the table has none.
        """
        if not self.table_exists(table_name):
            raise NotFoundError(f"Table '{table_name}' not found in {self!r}")
        frame = self._read_frame(table_name)
        if "tid" in frame.columns:
            frame = frame.sort("tid")
        _logger.debug("Read %d rows from %s", frame.height, table_name)
        return TupleCollection.from_polars(frame, table_name)

    # --------------------------------- Write -------------------------------- #

    def write_violations(self, rule_id: str, violations: Iterable[Violation]) -> List[Violation]:
        """
        Persist violations for ``rule_id`` and return copies carrying their vid.
        Safe to call repeatedly; no deduplication across calls.
        """
        pending = list(violations)
        if not pending:
            return []
        with self._write_lock:
            self.install()
            vids = self._allocate_ids(VIOLATION_TABLE, len(pending))
            persisted = [
                Violation(rule_id, v.cells, vid=vid) for v, vid in zip(pending, vids)
            ]
            self._append(VIOLATION_TABLE, violation_frame(persisted))
        _logger.debug("Persisted %d violations for %s", len(persisted), rule_id)
        return persisted

    def write_fixes(self, rule_id: str, fixes: Iterable[Fix]) -> int:
        """
        Persist fixes for ``rule_id``. Fixes equal by (vid, left, right) within
        this call are written once. Returns the number of rows written.
        """
        unique = list(dict.fromkeys(fixes))
        if not unique:
            return 0
        with self._write_lock:
            self.install()
            ids = self._allocate_ids(REPAIR_TABLE, len(unique))
            self._append(REPAIR_TABLE, repair_frame(rule_id, unique, ids))
        _logger.debug("Persisted %d fixes for %s", len(unique), rule_id)
        return len(unique)

    # ------------------------------- Queries -------------------------------- #

    def violations_frame(self, rule_id: Optional[str] = None) -> pl.DataFrame:
        self.install()
        return self._select(VIOLATION_TABLE, rule_id)

    def fixes_frame(self, rule_id: Optional[str] = None) -> pl.DataFrame:
        self.install()
        return self._select(REPAIR_TABLE, rule_id)

    def read_violations(self, rule_id: Optional[str] = None) -> List[Violation]:
        return violations_from_frame(self.violations_frame(rule_id))

    def violation_row_count(self, rule_id: Optional[str] = None) -> int:
        """Number of persisted violation cells (one row per cell)."""
        return self.violations_frame(rule_id).height

    def violation_count(self, rule_id: Optional[str] = None) -> int:
        """Number of distinct persisted violations."""
        frame = self.violations_frame(rule_id)
        return 0 if frame.is_empty() else frame["vid"].n_unique()

    def fix_count(self, rule_id: Optional[str] = None) -> int:
        return self.fixes_frame(rule_id).height

    def clear(self, rule_id: Optional[str] = None) -> int:
        """Delete violations and fixes (of one rule, or all). Returns rows deleted."""
        with self._write_lock:
            self.install()
            deleted = self._delete(REPAIR_TABLE, rule_id)
            deleted += self._delete(VIOLATION_TABLE, rule_id)
        return deleted
