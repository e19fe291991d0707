# src/klean/rules/__init__.py
from klean.rules.base import BaseRule, PairTupleRule
from klean.rules.pairing import all_pairs, contiguous_run_pairs, values_differ
from klean.rules.registry import get_rule, register_rule, registered_rules

__all__ = [
    "BaseRule",
    "PairTupleRule",
    "all_pairs",
    "contiguous_run_pairs",
    "get_rule",
    "register_rule",
    "registered_rules",
    "values_differ",
]
