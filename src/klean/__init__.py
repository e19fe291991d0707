# src/klean/__init__.py
"""
Klean - rule-based data cleaning over relational tables

Usage:
    # CLI
    $ klean load data/hospital.csv --store duckdb:///hospital.db
    $ klean clean plan.yml

    # Python API - run a clean plan
    import klean
    results = klean.run_plan("plan.yml")
    for r in results:
        print(r.rule_id, r.detect.violation_count, r.repair.fix_count)

    # Python API - one rule, explicit store
    from klean.rules.builtin import FunctionalDependencyRule
    store = klean.open_store("duckdb:///hospital.db")
    rule = FunctionalDependencyRule("fd", {"fd": "zipcode | city"})
    rule.initialize("fd0", ["csv_hospital"])
    result = klean.CleanExecutor(rule, store).run()
"""

from klean.version import VERSION as __version__

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from klean.config import CleanPlan, CleanPlanLoader, ExecutorConfig, RuleSpec, SourceSpec
from klean.datamodel import (
    Cell,
    Column,
    Fix,
    FixBuilder,
    Schema,
    Tuple,
    TupleCollection,
    TuplePair,
    Violation,
)
from klean.engine import CleanExecutor, DetectResult, ExecutionResult, RepairResult
from klean.errors import (
    ConfigError,
    InvalidArgumentError,
    KleanError,
    LoadError,
    NotFoundError,
    StoreError,
    UnknownRuleError,
)
from klean.loader import CSVLoader, LoadResult
from klean.logging import get_logger
from klean.rules import BaseRule, PairTupleRule, register_rule
from klean.rules.factory import RuleFactory
from klean.store import Store, open_store

_logger = get_logger(__name__)


def _coerce_plan(plan: Union[str, Path, Dict[str, Any], CleanPlan]) -> CleanPlan:
    if isinstance(plan, CleanPlan):
        return plan
    if isinstance(plan, dict):
        return CleanPlanLoader.from_dict(plan)
    return CleanPlanLoader.from_path(plan)


def run_plan(
    plan: Union[str, Path, Dict[str, Any], CleanPlan],
    store: Optional[Store] = None,
    config: Optional[ExecutorConfig] = None,
    *,
    repair: bool = True,
) -> List[ExecutionResult]:
    """
    Run every rule of a clean plan, one after another.

    Args:
        plan: A CleanPlan, its dict form, or a path to a YAML/JSON plan.
        store: Store to use. When omitted, the plan's ``source.uri`` is opened
            and closed again once all rules have run.
        config: Executor settings; defaults to ``ExecutorConfig()``.
        repair: Set to False to only detect.

    Returns:
        One ExecutionResult per rule, in plan order.

    Raises:
        ConfigError: The plan is invalid.
        LoadError: The plan's CSV could not be loaded.
        KleanError: Any rule stage failed; later rules are not run.
    """
    plan = _coerce_plan(plan)
    config = config or ExecutorConfig()
    owns_store = store is None
    if store is None:
        store = open_store(plan.source.uri)

    try:
        table = plan.source.table
        if plan.source.csv:
            loaded = CSVLoader(batch_size=config.batch_size, separator=plan.source.separator).load(
                store, plan.source.csv, table_name=table, overwrite=plan.source.overwrite
            )
            table = loaded.table_name

        factory = RuleFactory(plan.rules, default_table=table)
        rules = factory.build_rules()
        _logger.debug("Built rules: %s", RuleFactory.summarize_rules(rules))

        results: List[ExecutionResult] = []
        for rule in rules:
            results.append(CleanExecutor(rule, store, config).run(repair=repair))
        return results
    finally:
        if owns_store:
            store.close()


__all__ = [
    "__version__",
    "run_plan",
    # Data model
    "Cell",
    "Column",
    "Fix",
    "FixBuilder",
    "Schema",
    "Tuple",
    "TupleCollection",
    "TuplePair",
    "Violation",
    # Rules
    "BaseRule",
    "PairTupleRule",
    "RuleFactory",
    "register_rule",
    # Execution
    "CleanExecutor",
    "DetectResult",
    "ExecutionResult",
    "RepairResult",
    # Config
    "CleanPlan",
    "CleanPlanLoader",
    "ExecutorConfig",
    "RuleSpec",
    "SourceSpec",
    # Storage
    "CSVLoader",
    "LoadResult",
    "Store",
    "open_store",
    # Errors
    "ConfigError",
    "InvalidArgumentError",
    "KleanError",
    "LoadError",
    "NotFoundError",
    "StoreError",
    "UnknownRuleError",
]
