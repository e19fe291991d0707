# src/klean/rules/builtin/fd.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple as PyTuple

from klean.datamodel import Cell, Column, Fix, FixBuilder, TuplePair, Violation
from klean.errors import InvalidArgumentError
from klean.rules.base import PairTupleRule
from klean.rules.pairing import values_differ
from klean.rules.registry import register_rule


def parse_fd(expression: str) -> PyTuple[List[str], List[str]]:
    """
    Split ``"zipcode, state | city"`` into (["zipcode", "state"], ["city"]).
    """
    if expression.count("|") != 1:
        raise InvalidArgumentError(
            f"FD '{expression}' must have the form 'lhs1, lhs2 | rhs1, rhs2'"
        )
    lhs_raw, rhs_raw = expression.split("|")
    lhs = [c.strip() for c in lhs_raw.split(",") if c.strip()]
    rhs = [c.strip() for c in rhs_raw.split(",") if c.strip()]
    if not lhs or not rhs:
        raise InvalidArgumentError(f"FD '{expression}' needs columns on both sides of '|'")
    return lhs, rhs


@register_rule("fd")
class FunctionalDependencyRule(PairTupleRule):
    """
    Functional dependency ``lhs -> rhs`` on one table.

    Params (either form):
        lhs: ["zipcode"], rhs: ["city"]
        fd:  "zipcode | city"

    Tuples are blocked on the lhs, so every pair the iterator yields already
    agrees on it; detect only has to look at the rhs.
    """

    def __init__(self, name: str, params: Optional[Dict[str, Any]] = None):
        super().__init__(name, params)
        if "fd" in self.params:
            self._lhs_names, self._rhs_names = parse_fd(self._get_required_param("fd", str))
        else:
            self._lhs_names = self._as_names("lhs")
            self._rhs_names = self._as_names("rhs")

    def _as_names(self, key: str) -> List[str]:
        value = self._get_required_param(key, (list, str))
        names = [value] if isinstance(value, str) else [str(v) for v in value]
        if not names:
            raise InvalidArgumentError(f"Rule '{self.name}' parameter '{key}' is empty")
        return names

    @property
    def lhs(self) -> List[Column]:
        return self.block_columns

    @property
    def rhs(self) -> List[Column]:
        return self.compare_columns

    def initialize(self, rule_id: str, table_names: Sequence[str]) -> None:
        super().initialize(rule_id, table_names)
        self.block_columns = self._resolve_columns(self._lhs_names)
        self.compare_columns = self._resolve_columns(self._rhs_names)
        tables = {c.table_name for c in self.block_columns + self.compare_columns}
        if len(tables) != 1:
            raise InvalidArgumentError(
                f"Rule '{rule_id}' spans tables {sorted(tables)}; an FD covers one table"
            )

    def detect(self, pair: TuplePair) -> List[Violation]:
        left, right = pair
        # One violation per pair, however many rhs columns differ.
        if values_differ(left, right, self.compare_columns):
            return [Violation.from_tuples(self.rule_id, left, right)]
        return []

    def repair(self, violation: Violation) -> List[Fix]:
        """
        Keep the first cell seen per rhs column as the candidate and propose
        ``later cell == candidate`` for every later occurrence. The candidate
        is never replaced, so n occurrences give n - 1 fixes.
        """
        fixes: List[Fix] = []
        candidates: Dict[Column, Cell] = {}
        builder = FixBuilder(violation)
        rhs = set(self.compare_columns)
        for cell in violation.cells:
            if cell.column not in rhs:
                continue
            candidate = candidates.get(cell.column)
            if candidate is None:
                candidates[cell.column] = cell
            else:
                fixes.append(builder.left(cell).right(candidate).build())
        return fixes
