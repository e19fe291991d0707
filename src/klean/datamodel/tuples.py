# src/klean/datamodel/tuples.py
"""
Tuple (one row) and TuplePair.

Tuples are built by the store-read path and never mutated. Projection returns
a new Tuple sharing the same values with a wider or narrower cell scope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Iterator, Optional, Sequence, Union

from klean.datamodel.cell import Cell
from klean.datamodel.column import Column, Schema
from klean.errors import InvalidArgumentError

ColumnRef = Union[Column, str]


class Tuple:
    """
    One row of a table.

    Attributes:
        tuple_id: row identity, >= 1, unique within a detection run
        schema: the table's Schema
        values: fixed-length values, aligned with ``schema``
        scope: columns reported by ``get_cells``; None means every column
    """

    __slots__ = ("_tuple_id", "_schema", "_values", "_scope")

    def __init__(
        self,
        tuple_id: int,
        schema: Schema,
        values: Sequence[Any],
        scope: Optional[Iterable[Column]] = None,
    ):
        if schema is None or values is None:
            raise InvalidArgumentError("Tuple needs a schema and values")
        if isinstance(tuple_id, bool) or not isinstance(tuple_id, int) or tuple_id < 1:
            raise InvalidArgumentError(f"Tuple id must be an integer >= 1, got {tuple_id!r}")
        if len(schema) != len(values):
            raise InvalidArgumentError(
                f"Tuple {tuple_id} of '{schema.table_name}' has {len(values)} values "
                f"but the schema has {len(schema)} columns"
            )
        self._tuple_id = tuple_id
        self._schema = schema
        self._values = tuple(values)
        self._scope: Optional[FrozenSet[Column]] = None
        if scope is not None:
            scope = frozenset(scope)
            for column in scope:
                schema.get(column)
            self._scope = scope

    # ------------------------------------------------------------------ #

    @property
    def tuple_id(self) -> int:
        return self._tuple_id

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def table_name(self) -> str:
        return self._schema.table_name

    @property
    def values(self) -> tuple:
        return self._values

    @property
    def scope(self) -> Optional[FrozenSet[Column]]:
        return self._scope

    def _column(self, key: ColumnRef) -> Column:
        if isinstance(key, Column):
            return key
        return self._schema.resolve(key)

    def get(self, key: ColumnRef) -> Any:
        """
        Value of a column. A string is an attribute name of this tuple's table
        (or a qualified ``table.attr``).
        """
        return self._values[self._schema.get(self._column(key))]

    def get_cell(self, key: ColumnRef) -> Cell:
        column = self._column(key)
        return Cell(column, self._tuple_id, self._values[self._schema.get(column)])

    def iter_cells(self) -> Iterator[Cell]:
        """Cells in schema order, skipping ``tid`` and anything out of scope."""
        for offset, column in enumerate(self._schema):
            if column.is_tid:
                continue
            if self._scope is not None and column not in self._scope:
                continue
            yield Cell(column, self._tuple_id, self._values[offset])

    def get_cells(self) -> FrozenSet[Cell]:
        return frozenset(self.iter_cells())

    def project(self, columns: Iterable[Column]) -> "Tuple":
        """Widen the cell scope by ``columns`` (the first projection narrows from 'all')."""
        columns = frozenset(columns)
        scope = columns if self._scope is None else self._scope | columns
        return Tuple(self._tuple_id, self._schema, self._values, scope=scope)

    # ------------------------------------------------------------------ #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tuple):
            return NotImplemented
        return (
            self._tuple_id == other._tuple_id
            and self.table_name == other.table_name
            and self._values == other._values
        )

    def __hash__(self) -> int:
        return hash((self.table_name, self._tuple_id))

    def __repr__(self) -> str:
        pairs = ", ".join(
            f"{c.attribute_name}={v!r}" for c, v in zip(self._schema, self._values)
        )
        return f"Tuple({self.table_name}#{self._tuple_id}: {pairs})"


@dataclass(frozen=True)
class TuplePair:
    """An ordered (left, right) pair handed to a rule's detect stage."""

    left: Tuple
    right: Tuple

    def swapped(self) -> "TuplePair":
        return TuplePair(self.right, self.left)

    def __iter__(self) -> Iterator[Tuple]:
        yield self.left
        yield self.right
