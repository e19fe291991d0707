# src/klean/rules/base.py
"""
Rule contract.

Every rule moves through the same stages, in order:

    initialize -> horizontal_scope -> block -> iterator -> detect -> repair

The executor only ever calls these six methods; it never looks at a rule's
comparison logic. New rules are new subclasses, not new executor paths.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from klean.datamodel import (
    Column,
    Fix,
    TupleCollection,
    TuplePair,
    Violation,
)
from klean.errors import InvalidArgumentError
from klean.rules.pairing import all_pairs, contiguous_run_pairs


class BaseRule(ABC):
    """
    Abstract base class for all cleaning rules.
    """

    rule_name: str = "rule"

    def __init__(self, name: str, params: Optional[Dict[str, Any]] = None):
        self.name = name
        self.params: Dict[str, Any] = dict(params or {})
        # Bound by initialize()
        self.rule_id: Optional[str] = None
        self.table_names: List[str] = []

    def __str__(self) -> str:
        return f"{self.name}({self.params})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.rule_id!r}, tables={self.table_names})"

    @property
    def is_initialized(self) -> bool:
        return self.rule_id is not None

    # ------------------------------- Stages -------------------------------- #

    def initialize(self, rule_id: str, table_names: Sequence[str]) -> None:
        """Bind the rule id and target tables. Subclasses resolve columns here."""
        if not rule_id:
            raise InvalidArgumentError(f"Rule '{self.name}' needs a non-empty id")
        if not table_names:
            raise InvalidArgumentError(f"Rule '{rule_id}' needs at least one target table")
        self.rule_id = rule_id
        self.table_names = list(table_names)

    def horizontal_scope(self, collections: List[TupleCollection]) -> List[TupleCollection]:
        """Restrict each table to the columns the rule needs. Default: unchanged."""
        return collections

    def block(self, collections: List[TupleCollection]) -> List[TupleCollection]:
        """Partition into independent groups. Default: one group per table."""
        return collections

    def iterator(self, group: TupleCollection) -> List[TuplePair]:
        """Pairs to compare within one group. Default: every pair."""
        return list(all_pairs(group))

    @abstractmethod
    def detect(self, pair: TuplePair) -> List[Violation]:
        """Violations witnessed by one pair."""
        ...

    @abstractmethod
    def repair(self, violation: Violation) -> List[Fix]:
        """Candidate fixes for one (persisted) violation."""
        ...

    # ------------------------------ Helpers -------------------------------- #

    def _get_required_param(self, key: str, param_type: Any = str) -> Any:
        """
        Get a required parameter, raising a clear error if missing or wrong type.

        Args:
            key: Parameter name
            param_type: Expected type, or a tuple of accepted types

        Raises:
            InvalidArgumentError: If parameter is missing or has wrong type
        """
        if key not in self.params:
            raise InvalidArgumentError(
                f"Rule '{self.name}' requires parameter '{key}' but it was not provided"
            )
        value = self.params[key]
        if not isinstance(value, param_type):
            types = param_type if isinstance(param_type, tuple) else (param_type,)
            expected = " or ".join(t.__name__ for t in types)
            raise InvalidArgumentError(
                f"Rule '{self.name}' parameter '{key}' must be {expected}, "
                f"got {type(value).__name__}"
            )
        return value

    def _resolve_columns(self, names: Sequence[Any]) -> List[Column]:
        """
        Qualify names against the first target table. A dotted name is only
        read as ``table.attr`` when its prefix is one of the target tables.
        """
        default_table = self.table_names[0] if self.table_names else None
        return [
            n if isinstance(n, Column) else Column.parse(str(n), default_table, self.table_names)
            for n in names
        ]


class PairTupleRule(BaseRule):
    """
    A rule over pairs of tuples from one table, with the standard pipeline:

      - scope:    project to ``block_columns + compare_columns``
      - block:    group on ``block_columns``
      - iterator: order each group by ``compare_columns``, then
                  contiguous-run pairing

    Subclasses set ``block_columns`` and ``compare_columns`` in ``initialize``.
    """

    def __init__(self, name: str, params: Optional[Dict[str, Any]] = None):
        super().__init__(name, params)
        self.block_columns: List[Column] = []
        self.compare_columns: List[Column] = []

    def horizontal_scope(self, collections: List[TupleCollection]) -> List[TupleCollection]:
        scoped = []
        for collection in collections:
            own = [
                c
                for c in self.block_columns + self.compare_columns
                if c.table_name == collection.table_name
            ]
            scoped.append(collection.project(own) if own else collection)
        return scoped

    def block(self, collections: List[TupleCollection]) -> List[TupleCollection]:
        groups: List[TupleCollection] = []
        for collection in collections:
            keys = [c for c in self.block_columns if c.table_name == collection.table_name]
            groups.extend(collection.group_on(keys))
        return groups

    def iterator(self, group: TupleCollection) -> List[TuplePair]:
        if len(group) < 2:
            return []
        if not self.compare_columns:
            return list(all_pairs(group))
        ordered = group.order_by(self.compare_columns)
        return list(contiguous_run_pairs(ordered, self.compare_columns))
