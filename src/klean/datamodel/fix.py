# src/klean/datamodel/fix.py
"""
Fix: a proposed equality between two cells, and its builder.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from klean.datamodel.cell import Cell
from klean.datamodel.violation import Violation
from klean.errors import InvalidArgumentError

# The only operation a pairwise-consistency repair proposes.
EQ = "EQ"


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class Fix:
    """
    Reconcile ``left`` with ``right`` (make their values equal).

    Equality is by (vid, left, right); cells compare by slot, not value.
    """

    vid: Optional[int]
    left: Cell
    right: Cell

    @property
    def op(self) -> str:
        return EQ

    def to_row(self) -> Dict[str, Any]:
        return {
            "vid": self.vid,
            "c1_tupleid": self.left.tuple_id,
            "c1_tablename": self.left.table_name,
            "c1_attribute": self.left.attribute_name,
            "c1_value": _text(self.left.value),
            "op": self.op,
            "c2_tupleid": self.right.tuple_id,
            "c2_tablename": self.right.table_name,
            "c2_attribute": self.right.attribute_name,
            "c2_value": _text(self.right.value),
        }

    def __str__(self) -> str:
        return f"{self.left} {self.op} {self.right} (vid={self.vid})"


class FixBuilder:
    """
    Accumulates a left and a right cell and emits one Fix per ``build()``.

    A builder is scoped to one violation and reusable across the candidates
    generated for it::

        builder = FixBuilder(violation)
        fix = builder.left(cell).right(candidate).build()
    """

    def __init__(self, violation: Violation):
        self._vid = violation.vid
        self._left: Optional[Cell] = None
        self._right: Optional[Cell] = None

    def left(self, cell: Cell) -> "FixBuilder":
        self._left = cell
        return self

    def right(self, cell: Cell) -> "FixBuilder":
        self._right = cell
        return self

    def build(self) -> Fix:
        if self._left is None or self._right is None:
            raise InvalidArgumentError("A fix needs both a left and a right cell")
        fix = Fix(self._vid, self._left, self._right)
        self._left = None
        self._right = None
        return fix
