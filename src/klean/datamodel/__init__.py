# src/klean/datamodel/__init__.py
from klean.datamodel.cell import Cell
from klean.datamodel.collection import TupleCollection
from klean.datamodel.column import TID_COLUMN, Column, Schema
from klean.datamodel.fix import EQ, Fix, FixBuilder
from klean.datamodel.tuples import Tuple, TuplePair
from klean.datamodel.violation import Violation

__all__ = [
    "Cell",
    "Column",
    "EQ",
    "Fix",
    "FixBuilder",
    "Schema",
    "TID_COLUMN",
    "Tuple",
    "TupleCollection",
    "TuplePair",
    "Violation",
]
