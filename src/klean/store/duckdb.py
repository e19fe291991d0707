# src/klean/store/duckdb.py
"""
DuckDB store.

One DuckDB database (a file, or in-memory) holds the source tables and the
violation/repair tables. Every call works on its own cursor, which is opened
for the duration of the call and closed on every exit path; cursors of one
DuckDB connection can be used from different threads.

Data moves between DuckDB and polars through Arrow.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, List, Optional

import duckdb
import polars as pl

from klean.errors import StoreError
from klean.logging import get_logger
from klean.store.base import (
    REPAIR_SCHEMA,
    REPAIR_TABLE,
    VIOLATION_SCHEMA,
    VIOLATION_TABLE,
    Store,
    esc_ident,
)
from klean.store.registry import register_store

_logger = get_logger(__name__)

_SEQUENCES = {
    VIOLATION_TABLE: "klean_vid_seq",
    REPAIR_TABLE: "klean_repair_seq",
}

_BATCH_VIEW = "_klean_batch"

_DUCK_TYPES = {
    pl.Int64: "BIGINT",
    pl.Int32: "INTEGER",
    pl.Utf8: "VARCHAR",
}


def _ddl(table_name: str, schema) -> str:
    cols = ", ".join(f"{esc_ident(c)} {_DUCK_TYPES[t]}" for c, t in schema.items())
    return f"CREATE TABLE IF NOT EXISTS {esc_ident(table_name)} ({cols})"


def _path_from_uri(uri: str) -> str:
    if uri.startswith("duckdb://"):
        path = uri[len("duckdb://"):]
        return path or ":memory:"
    return uri


@register_store("duckdb")
class DuckDBStore(Store):
    """
    URI format: duckdb:///abs/path/file.db, duckdb://relative.db,
                duckdb://:memory:, or a bare path ending in .duckdb/.db
    """

    name = "duckdb"

    def __init__(self, uri: str = "duckdb://:memory:"):
        super().__init__()
        self.uri = uri
        self.path = _path_from_uri(uri)
        if self.path != ":memory:":
            parent = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(parent, exist_ok=True)
        try:
            self._con: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(self.path)
        except duckdb.Error as e:
            raise StoreError(f"Cannot open DuckDB database '{self.path}': {e}") from e
        self._installed = False

    @contextmanager
    def _cursor(self) -> Iterator[duckdb.DuckDBPyConnection]:
        if self._con is None:
            raise StoreError(f"{self!r} is closed")
        cur = self._con.cursor()
        try:
            yield cur
        except duckdb.Error as e:
            raise StoreError(f"DuckDB error: {e}") from e
        finally:
            cur.close()

    def _insert_frame(self, cur: duckdb.DuckDBPyConnection, table_name: str, frame: pl.DataFrame) -> None:
        cols = ", ".join(esc_ident(c) for c in frame.columns)
        cur.register(_BATCH_VIEW, frame.to_arrow())
        try:
            cur.execute(
                f"INSERT INTO {esc_ident(table_name)} ({cols}) SELECT {cols} FROM {_BATCH_VIEW}"
            )
        finally:
            cur.unregister(_BATCH_VIEW)

    # --------------------------- Backend primitives -------------------------- #

    def _read_frame(self, table_name: str) -> pl.DataFrame:
        with self._cursor() as cur:
            table = cur.execute(f"SELECT * FROM {esc_ident(table_name)}").fetch_arrow_table()
        return pl.from_arrow(table)

    def _allocate_ids(self, table_name: str, count: int) -> List[int]:
        seq = _SEQUENCES[table_name]
        with self._cursor() as cur:
            rows = cur.execute(f"SELECT nextval('{seq}') FROM range({int(count)})").fetchall()
        return sorted(int(r[0]) for r in rows)

    def _append(self, table_name: str, frame: pl.DataFrame) -> None:
        with self._cursor() as cur:
            self._insert_frame(cur, table_name, frame)

    def _select(self, table_name: str, rule_id: Optional[str]) -> pl.DataFrame:
        schema = VIOLATION_SCHEMA if table_name == VIOLATION_TABLE else REPAIR_SCHEMA
        order = "vid, cellpos" if table_name == VIOLATION_TABLE else "id"
        sql = f"SELECT * FROM {esc_ident(table_name)}"
        params: list = []
        if rule_id is not None:
            sql += " WHERE rid = ?"
            params.append(rule_id)
        with self._cursor() as cur:
            table = cur.execute(f"{sql} ORDER BY {order}", params).fetch_arrow_table()
        frame = pl.from_arrow(table)
        return frame.cast(schema) if frame.columns == list(schema) else frame

    def _delete(self, table_name: str, rule_id: Optional[str]) -> int:
        with self._cursor() as cur:
            if rule_id is None:
                before = cur.execute(f"SELECT COUNT(*) FROM {esc_ident(table_name)}").fetchone()[0]
                cur.execute(f"DELETE FROM {esc_ident(table_name)}")
            else:
                before = cur.execute(
                    f"SELECT COUNT(*) FROM {esc_ident(table_name)} WHERE rid = ?", [rule_id]
                ).fetchone()[0]
                cur.execute(f"DELETE FROM {esc_ident(table_name)} WHERE rid = ?", [rule_id])
        return int(before)

    def table_exists(self, table_name: str) -> bool:
        with self._cursor() as cur:
            row = cur.execute(
                "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?",
                [table_name],
            ).fetchone()
        return bool(row and row[0])

    def create_table(self, table_name: str, template: pl.DataFrame) -> None:
        with self._cursor() as cur:
            cur.execute(f"DROP TABLE IF EXISTS {esc_ident(table_name)}")
            cur.register(_BATCH_VIEW, template.clear().to_arrow())
            try:
                cur.execute(f"CREATE TABLE {esc_ident(table_name)} AS SELECT * FROM {_BATCH_VIEW}")
            finally:
                cur.unregister(_BATCH_VIEW)
        _logger.debug("Created table %s (%s)", table_name, ", ".join(template.columns))

    def insert_batch(self, table_name: str, batch: pl.DataFrame) -> int:
        with self._write_lock, self._cursor() as cur:
            self._insert_frame(cur, table_name, batch)
        return batch.height

    def drop_table(self, table_name: str) -> None:
        with self._cursor() as cur:
            cur.execute(f"DROP TABLE IF EXISTS {esc_ident(table_name)}")

    def install(self) -> None:
        if self._installed:
            return
        with self._write_lock, self._cursor() as cur:
            cur.execute(_ddl(VIOLATION_TABLE, VIOLATION_SCHEMA))
            cur.execute(_ddl(REPAIR_TABLE, REPAIR_SCHEMA))
            for seq in _SEQUENCES.values():
                cur.execute(f"CREATE SEQUENCE IF NOT EXISTS {seq} START 1")
        self._installed = True
        _logger.debug("Installed result tables in %s", self.path)

    def uninstall(self) -> None:
        with self._write_lock, self._cursor() as cur:
            cur.execute(f"DROP TABLE IF EXISTS {esc_ident(REPAIR_TABLE)}")
            cur.execute(f"DROP TABLE IF EXISTS {esc_ident(VIOLATION_TABLE)}")
            for seq in _SEQUENCES.values():
                cur.execute(f"DROP SEQUENCE IF EXISTS {seq}")
        self._installed = False

    def close(self) -> None:
        if self._con is not None:
            self._con.close()
            self._con = None

    def __repr__(self) -> str:
        return f"DuckDBStore(path={self.path})"
