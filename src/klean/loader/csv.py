# src/klean/loader/csv.py
"""
Bulk CSV loader.

Reads a delimited file with polars, prepends a generated ``tid`` identity
column (1..n in file order) and streams the rows into a store table in
bounded batches. Each batch is a fresh DataFrame slice handed to the store's
``insert_batch``; no buffer is shared between loads.

The target table is either fully loaded or dropped: any failure after the
table was created drops it again before the error propagates.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import polars as pl

from klean.config.settings import DEFAULT_BATCH_SIZE
from klean.datamodel.column import TID_COLUMN
from klean.errors import InvalidArgumentError, LoadError
from klean.logging import get_logger, log_exception
from klean.store.base import Store

_logger = get_logger(__name__)


@dataclass(frozen=True)
class LoadResult:
    table_name: str
    row_count: int
    elapsed_ms: int
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "row_count": self.row_count,
            "elapsed_ms": self.elapsed_ms,
            "skipped": self.skipped,
        }


def default_table_name(path: Union[str, Path]) -> str:
    return f"csv_{Path(path).stem}"


class CSVLoader:
    """
    Load CSV files into a store.

    Example:
        >>> store = open_store("duckdb:///hospital.db")
        >>> CSVLoader(batch_size=4096).load(store, "hospital.csv")
        LoadResult(table_name='csv_hospital', row_count=40000, ...)
    """

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE, separator: str = ","):
        if batch_size < 1:
            raise InvalidArgumentError(f"batch_size must be >= 1, got {batch_size}")
        self.batch_size = batch_size
        self.separator = separator

    def read(self, path: Union[str, Path]) -> pl.DataFrame:
        """Parse the file (a header line is required) and add ``tid``."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"CSV file not found: {p}")
        try:
            frame = pl.read_csv(p, separator=self.separator)
        except pl.exceptions.PolarsError as e:
            raise LoadError(f"Cannot parse {p.name}: {e}") from e
        if any(c.lower() == TID_COLUMN for c in frame.columns):
            raise InvalidArgumentError(
                f"{p.name} already has a '{TID_COLUMN}' column; it is generated on load"
            )
        return frame.with_row_index(TID_COLUMN, offset=1).with_columns(
            pl.col(TID_COLUMN).cast(pl.Int64)
        )

    def load(
        self,
        store: Store,
        path: Union[str, Path],
        table_name: Optional[str] = None,
        overwrite: bool = True,
    ) -> LoadResult:
        """
        Create (or replace) ``table_name`` and bulk-insert the file into it.

        With ``overwrite=False`` an existing table is left untouched and the
        result is marked ``skipped``.
        """
        table_name = table_name or default_table_name(path)
        t0 = time.perf_counter()

        if not overwrite and store.table_exists(table_name):
            _logger.info("Found table %s exists and chose not to overwrite.", table_name)
            return LoadResult(table_name, 0, 0, skipped=True)

        frame = self.read(path)

        created = False
        try:
            store.create_table(table_name, frame)
            created = True
            _logger.info("Created table %s", table_name)
            rows = 0
            for batch in frame.iter_slices(n_rows=self.batch_size):
                rows += store.insert_batch(table_name, batch)
        except Exception as e:
            if created:
                log_exception(_logger, f"Load into {table_name} failed; dropping the table", e)
                store.drop_table(table_name)
            raise LoadError(f"Cannot load {Path(path).name} into {table_name}: {e}", table_name) from e

        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        _logger.info("Dumped %d rows into %s in %d ms.", rows, table_name, elapsed_ms)
        return LoadResult(table_name, rows, elapsed_ms)
