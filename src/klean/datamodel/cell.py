# src/klean/datamodel/cell.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from klean.datamodel.column import Column


@dataclass(frozen=True)
class Cell:
    """
    One addressable slot: (column, tuple_id, value).

    Two cells are the same slot iff column and tuple_id match; the value is
    carried along but ignored by equality and hashing.
    """

    column: Column
    tuple_id: int
    value: Any = field(default=None, compare=False, hash=False)

    @property
    def table_name(self) -> str:
        return self.column.table_name

    @property
    def attribute_name(self) -> str:
        return self.column.attribute_name

    def __str__(self) -> str:
        return f"{self.column.full_name}[{self.tuple_id}]={self.value!r}"
