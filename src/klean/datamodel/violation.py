# src/klean/datamodel/violation.py
"""Violation: the set of cells that jointly break one rule."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple as PyTuple

from klean.datamodel.cell import Cell
from klean.datamodel.column import Column
from klean.datamodel.tuples import Tuple
from klean.errors import InvalidArgumentError


def _dedupe(cells: Iterable[Cell]) -> PyTuple[Cell, ...]:
    # First occurrence wins; order is preserved.
    return tuple(dict.fromkeys(cells))


@dataclass(frozen=True)
class Violation:
    """
    A rule id plus the cells that participate in the broken constraint.

    ``vid`` is None until the store persists the violation; ``with_vid``
    returns the persisted copy. Cells are deduplicated by (column, tuple_id)
    and keep the order they were added in.
    """

    rule_id: str
    cells: PyTuple[Cell, ...] = field(default=())
    vid: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.rule_id:
            raise InvalidArgumentError("Violation needs a rule id")
        object.__setattr__(self, "cells", _dedupe(self.cells))

    @classmethod
    def from_tuples(cls, rule_id: str, *tuples: Tuple) -> "Violation":
        """All in-scope cells of each tuple, tuple by tuple in schema order."""
        return cls(rule_id, tuple(c for t in tuples for c in t.iter_cells()))

    @classmethod
    def from_cells(cls, rule_id: str, cells: Iterable[Cell]) -> "Violation":
        return cls(rule_id, tuple(cells))

    def with_vid(self, vid: int) -> "Violation":
        return replace(self, vid=vid)

    def add_cells(self, cells: Iterable[Cell]) -> "Violation":
        """Return a violation holding these cells as well."""
        return replace(self, cells=self.cells + tuple(cells))

    # ------------------------------------------------------------------ #

    @property
    def tuple_ids(self) -> List[int]:
        return list(dict.fromkeys(c.tuple_id for c in self.cells))

    @property
    def table_names(self) -> List[str]:
        return list(dict.fromkeys(c.table_name for c in self.cells))

    def cells_for(self, column: Column) -> List[Cell]:
        return [c for c in self.cells if c.column == column]

    def cell_set(self) -> frozenset:
        return frozenset(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def to_rows(self) -> List[Dict[str, Any]]:
        """One row per cell, in the store's violation-table shape."""
        return [
            {
                "vid": self.vid,
                "rid": self.rule_id,
                "tablename": c.table_name,
                "tupleid": c.tuple_id,
                "attribute": c.attribute_name,
                "value": None if c.value is None else str(c.value),
            }
            for c in self.cells
        ]
