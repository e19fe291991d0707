from __future__ import annotations

"""
Rule executor: drives one initialized rule through its stages.

Flow
----
  1) Read every target table from the store
  2) horizontal_scope -> block
  3) Per group: iterator -> detect, persist the group's violations
  4) Repair every persisted violation of the rule, persist the fixes

Principles
----------
- Rule-agnostic: only the six stage methods of a rule are ever called
- Groups are independent: with ``workers > 1`` they run on a thread pool
- Fail fast: the first stage error aborts the rule's pass and propagates
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from klean.config.settings import ExecutorConfig
from klean.datamodel import Fix, TupleCollection, Violation
from klean.engine.stats import RunTimers, now_ms
from klean.errors import InvalidArgumentError
from klean.logging import get_logger
from klean.rules.base import BaseRule
from klean.store.base import Store

_logger = get_logger(__name__)


# --------------------------------- Results ---------------------------------- #

@dataclass
class DetectResult:
    rule_id: str
    tables: List[str]
    row_count: int
    group_count: int
    pair_count: int
    violations: List[Violation] = field(default_factory=list)

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    @property
    def cell_count(self) -> int:
        return sum(len(v) for v in self.violations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "tables": list(self.tables),
            "row_count": self.row_count,
            "group_count": self.group_count,
            "pair_count": self.pair_count,
            "violation_count": self.violation_count,
            "cell_count": self.cell_count,
        }


@dataclass
class RepairResult:
    rule_id: str
    violation_count: int
    fixes: List[Fix] = field(default_factory=list)
    written: int = 0

    @property
    def fix_count(self) -> int:
        return len(self.fixes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "violation_count": self.violation_count,
            "fix_count": self.fix_count,
            "written": self.written,
        }


@dataclass
class ExecutionResult:
    rule_id: str
    detect: DetectResult
    repair: RepairResult
    timers: RunTimers

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "detect": self.detect.to_dict(),
            "repair": self.repair.to_dict(),
            "timers": self.timers.to_dict(),
        }


class ResultSink:
    """Collects what worker threads produce."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._violations: List[Violation] = []
        self._pairs = 0

    def add(self, pair_count: int, violations: List[Violation]) -> None:
        with self._lock:
            self._pairs += pair_count
            self._violations.extend(violations)

    @property
    def pair_count(self) -> int:
        return self._pairs

    def violations(self) -> List[Violation]:
        # Persisted violations carry a vid; keep the store's order
        with self._lock:
            return sorted(self._violations, key=lambda v: v.vid or 0)


# --------------------------------- Executor --------------------------------- #

class CleanExecutor:
    """
    Runs detection and repair of one rule against one store.

    Example:
        >>> rule = FunctionalDependencyRule("fd", {"fd": "zipcode | city"})
        >>> rule.initialize("fd0", ["hospital"])
        >>> result = CleanExecutor(rule, store).run()
        >>> result.detect.violation_count
        3
    """

    def __init__(self, rule: BaseRule, store: Store, config: Optional[ExecutorConfig] = None):
        if not rule.is_initialized:
            raise InvalidArgumentError(f"Rule '{rule.name}' must be initialized before execution")
        self.rule = rule
        self.store = store
        self.config = config or ExecutorConfig()
        self.timers = RunTimers()

    @property
    def rule_id(self) -> str:
        return self.rule.rule_id  # type: ignore[return-value]

    # --------------------------------------------------------------------- #

    def _process_group(self, group: TupleCollection, sink: ResultSink) -> None:
        pairs = self.rule.iterator(group)
        found: List[Violation] = []
        for pair in pairs:
            found.extend(self.rule.detect(pair))
        persisted = self.store.write_violations(self.rule_id, found)
        if self.config.verbose:
            _logger.debug(
                "%s: group of %d rows, %d pairs, %d violations",
                self.rule_id,
                len(group),
                len(pairs),
                len(persisted),
            )
        sink.add(len(pairs), persisted)

    def _run_groups(self, groups: List[TupleCollection], sink: ResultSink) -> None:
        workers = self.config.workers
        if workers <= 1 or len(groups) <= 1:
            for group in groups:
                self._process_group(group, sink)
            return

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="klean") as pool:
            futures = [pool.submit(self._process_group, g, sink) for g in groups]
            try:
                for future in futures:
                    future.result()
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    def detect(self) -> DetectResult:
        rid = self.rule_id
        _logger.info("Detecting %s on %s", rid, ", ".join(self.rule.table_names))

        t = now_ms()
        collections = [self.store.read_table(name) for name in self.rule.table_names]
        self.timers.read_ms = now_ms() - t
        row_count = sum(len(c) for c in collections)

        t = now_ms()
        scoped = self.rule.horizontal_scope(collections)
        self.timers.scope_ms = now_ms() - t

        t = now_ms()
        groups = self.rule.block(scoped)
        self.timers.block_ms = now_ms() - t
        _logger.debug("%s: %d rows in %d groups", rid, row_count, len(groups))

        t = now_ms()
        sink = ResultSink()
        self._run_groups(groups, sink)
        self.timers.detect_ms = now_ms() - t

        result = DetectResult(
            rule_id=rid,
            tables=list(self.rule.table_names),
            row_count=row_count,
            group_count=len(groups),
            pair_count=sink.pair_count,
            violations=sink.violations(),
        )
        _logger.info(
            "%s: %d violations from %d pairs in %d ms",
            rid,
            result.violation_count,
            result.pair_count,
            self.timers.detect_ms,
        )
        return result

    def repair(self, violations: Optional[List[Violation]] = None) -> RepairResult:
        """
        Ask the rule for fixes of every violation. Without an explicit list,
        the rule's violations are read back from the store.
        """
        rid = self.rule_id
        t = now_ms()
        if violations is None:
            violations = self.store.read_violations(rid)

        fixes: List[Fix] = []
        for violation in violations:
            if violation.vid is None:
                raise InvalidArgumentError(
                    f"{rid}: only persisted violations can be repaired (missing vid)"
                )
            fixes.extend(self.rule.repair(violation))

        written = self.store.write_fixes(rid, fixes) if self.config.persist_fixes else 0
        self.timers.repair_ms = now_ms() - t
        _logger.info("%s: %d fixes for %d violations", rid, len(fixes), len(violations))
        return RepairResult(rid, len(violations), fixes, written)

    def run(self, repair: bool = True) -> ExecutionResult:
        """Detect, then (unless ``repair=False``) repair what was found."""
        detected = self.detect()
        if repair:
            repaired = self.repair(detected.violations)
        else:
            repaired = RepairResult(self.rule_id, detected.violation_count)
        return ExecutionResult(self.rule_id, detected, repaired, self.timers)
