# src/klean/datamodel/collection.py
"""
TupleCollection: an ordered, groupable, projectable view over one table.

Operations return new collections; the tuples themselves are shared by
reference, so a group produced by ``group_on`` owns no copies of the rows.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import polars as pl

from klean.datamodel.column import TID_COLUMN, Column, Schema
from klean.datamodel.tuples import ColumnRef, Tuple
from klean.errors import InvalidArgumentError


class _NaN:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NaN"


NAN_KEY = _NaN()


def value_key(value: Any) -> Any:
    """Comparison key of a value: float NaN maps to one shared sentinel."""
    if isinstance(value, float) and math.isnan(value):
        return NAN_KEY
    return value


def _sort_key(value: Any) -> tuple:
    # NaN sorts after every number, nulls after everything.
    if value is None:
        return (2, 0)
    if value_key(value) is NAN_KEY:
        return (1, 0)
    return (0, value)


class TupleCollection:
    """Ordered tuples of a single table."""

    __slots__ = ("_schema", "_tuples", "_scope")

    def __init__(
        self,
        schema: Schema,
        tuples: Iterable[Tuple] = (),
        scope: Optional[Sequence[Column]] = None,
    ):
        self._schema = schema
        self._tuples: List[Tuple] = list(tuples)
        for t in self._tuples:
            if t.schema is not schema and t.schema != schema:
                raise InvalidArgumentError(
                    f"Tuple {t.tuple_id} belongs to '{t.table_name}', "
                    f"not '{schema.table_name}'"
                )
        self._scope = tuple(scope) if scope is not None else None

    # ----------------------------- Constructors ----------------------------- #

    @classmethod
    def from_rows(
        cls, table_name: str, attribute_names: Sequence[str], rows: Iterable[Sequence[Any]]
    ) -> "TupleCollection":
        """
        Build a collection from plain rows. If ``tid`` is one of the attributes
        it provides the tuple ids, otherwise ids are 1..n in row order.
        """
        schema = Schema.of(table_name, attribute_names)
        names = [a.lower() for a in attribute_names]
        tid_offset = names.index(TID_COLUMN) if TID_COLUMN in names else None
        tuples = []
        for i, row in enumerate(rows, start=1):
            tid = int(row[tid_offset]) if tid_offset is not None else i
            tuples.append(Tuple(tid, schema, row))
        return cls(schema, tuples)

    @classmethod
    def from_polars(cls, df: pl.DataFrame, table_name: str) -> "TupleCollection":
        return cls.from_rows(table_name, df.columns, df.iter_rows())

    def to_polars(self) -> pl.DataFrame:
        return pl.DataFrame(
            [t.values for t in self._tuples],
            schema=self._schema.attribute_names,
            orient="row",
        )

    # ------------------------------ Accessors ------------------------------ #

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def table_name(self) -> str:
        return self._schema.table_name

    @property
    def scope(self) -> Optional[tuple]:
        """Columns projected so far, in projection order; None if unprojected."""
        return self._scope

    def size(self) -> int:
        return len(self._tuples)

    def get(self, index: int) -> Tuple:
        return self._tuples[index]

    def __len__(self) -> int:
        return len(self._tuples)

    def __getitem__(self, index: int) -> Tuple:
        return self._tuples[index]

    def __iter__(self) -> Iterator[Tuple]:
        return iter(self._tuples)

    def __repr__(self) -> str:
        return f"TupleCollection({self.table_name!r}, size={len(self._tuples)})"

    def _resolve(self, columns: Iterable[ColumnRef]) -> List[Column]:
        resolved = []
        for c in columns:
            if isinstance(c, Column):
                self._schema.get(c)
                resolved.append(c)
            else:
                resolved.append(self._schema.resolve(c))
        return resolved

    def _derive(self, tuples: Iterable[Tuple]) -> "TupleCollection":
        return TupleCollection(self._schema, tuples, scope=self._scope)

    # ------------------------------ Operations ----------------------------- #

    def project(self, columns: Iterable[ColumnRef]) -> "TupleCollection":
        """
        Narrow the comparable columns to ``columns``. Values of other columns
        stay retrievable; only the cells reported by ``Tuple.get_cells`` change.
        Successive projections compose by union.
        """
        resolved = self._resolve(columns)
        scope = list(self._scope or ())
        for column in resolved:
            if column not in scope:
                scope.append(column)
        projected = [t.project(scope) for t in self._tuples]
        return TupleCollection(self._schema, projected, scope=scope)

    def group_on(self, columns: Iterable[ColumnRef]) -> List["TupleCollection"]:
        """
        Partition into one collection per distinct value combination of
        ``columns``. Null equals null and NaN equals NaN; members keep input order; groups come
        back in first-seen order.
        """
        resolved = self._resolve(columns)
        if not resolved:
            return [self._derive(self._tuples)]
        offsets = [self._schema.get(c) for c in resolved]
        groups: Dict[tuple, List[Tuple]] = {}
        for t in self._tuples:
            key = tuple(value_key(t.values[o]) for o in offsets)
            groups.setdefault(key, []).append(t)
        return [self._derive(members) for members in groups.values()]

    def order_by(self, columns: Iterable[ColumnRef]) -> "TupleCollection":
        """Stable ascending sort on ``columns`` (left to right priority, nulls last)."""
        offsets = [self._schema.get(c) for c in self._resolve(columns)]
        if not offsets:
            return self._derive(self._tuples)
        ordered = sorted(
            self._tuples,
            key=lambda t: tuple(_sort_key(t.values[o]) for o in offsets),
        )
        return self._derive(ordered)
