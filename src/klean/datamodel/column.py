# src/klean/datamodel/column.py
"""
Column and Schema descriptors.

A Column names one attribute of one table. A Schema is the ordered,
duplicate-free list of Columns for a table plus a reverse index used for
O(1) offset lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Sequence

from klean.errors import InvalidArgumentError, NotFoundError

# Synthetic row-identity column created by the loader.
TID_COLUMN = "tid"


@dataclass(frozen=True)
class Column:
    """One attribute, identified by (table_name, attribute_name)."""

    table_name: str
    attribute_name: str

    def __post_init__(self) -> None:
        if not self.table_name or not self.attribute_name:
            raise InvalidArgumentError(
                f"Column needs both a table and an attribute name, "
                f"got ({self.table_name!r}, {self.attribute_name!r})"
            )

    @classmethod
    def parse(
        cls,
        name: str,
        default_table: str | None = None,
        tables: Iterable[str] | None = None,
    ) -> "Column":
        """
        Parse ``"table.attr"``; a bare ``"attr"`` needs ``default_table``.

        When ``tables`` is given, a dotted name only counts as qualified if its
        prefix is one of them; otherwise the whole name is an attribute of
        ``default_table`` (CSV headers such as ``addr.city``).

        >>> Column.parse("hospital.zipcode")
        Column(table_name='hospital', attribute_name='zipcode')
        """
        name = name.strip()
        if "." in name:
            table, attr = name.rsplit(".", 1)
            table = table.strip()
            if tables is None or default_table is None or table in set(tables):
                return cls(table, attr.strip())
        if default_table is None:
            raise InvalidArgumentError(
                f"Column '{name}' is not qualified and no default table was given"
            )
        return cls(default_table, name)

    @property
    def full_name(self) -> str:
        return f"{self.table_name}.{self.attribute_name}"

    @property
    def is_tid(self) -> bool:
        return self.attribute_name.lower() == TID_COLUMN

    def __str__(self) -> str:
        return self.full_name


class Schema:
    """
    Ordered columns of one table with a Column -> offset index.

    Schemas are created once per table when it is read and shared by every
    Tuple built from that read.
    """

    __slots__ = ("_table_name", "_columns", "_index")

    def __init__(self, table_name: str, columns: Sequence[Column]):
        if not table_name:
            raise InvalidArgumentError("Schema needs a table name")
        index: Dict[Column, int] = {}
        for offset, column in enumerate(columns):
            if column.table_name != table_name:
                raise InvalidArgumentError(
                    f"Column {column} does not belong to table '{table_name}'"
                )
            if column in index:
                raise InvalidArgumentError(f"Duplicate column {column} in schema")
            index[column] = offset
        self._table_name = table_name
        self._columns = tuple(columns)
        self._index = index

    @classmethod
    def of(cls, table_name: str, attribute_names: Iterable[str]) -> "Schema":
        return cls(table_name, [Column(table_name, a) for a in attribute_names])

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def columns(self) -> tuple:
        return self._columns

    @property
    def attribute_names(self) -> List[str]:
        return [c.attribute_name for c in self._columns]

    def get(self, column: Column) -> int:
        """Offset of ``column``; raises NotFoundError if it is not in the schema."""
        try:
            return self._index[column]
        except KeyError:
            raise NotFoundError(
                f"Column {column} not found in schema of '{self._table_name}'"
            ) from None

    def resolve(self, name: str) -> Column:
        """
        Resolve an attribute name against this table. The name is looked up as
        an attribute of this table first, then as a qualified ``table.attr``.
        """
        own = Column(self._table_name, name.strip())
        if own in self._index:
            return own
        column = Column.parse(name, default_table=self._table_name)
        self.get(column)
        return column

    def __contains__(self, column: object) -> bool:
        return column in self._index

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return self._table_name == other._table_name and self._columns == other._columns

    def __hash__(self) -> int:
        return hash((self._table_name, self._columns))

    def __repr__(self) -> str:
        return f"Schema({self._table_name!r}, {self.attribute_names})"
