# src/klean/rules/factory.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from klean.config.models import RuleSpec
from klean.errors import InvalidArgumentError, KleanError, UnknownRuleError
from klean.rules.base import BaseRule
from klean.rules.registry import get_rule, register_default_rules


def _derive_rule_id(spec: RuleSpec, index: int) -> str:
    """
    Stable rule id for a spec.

    Policy:
      - If spec.id is set -> return it as-is (caller must ensure uniqueness)
      - Otherwise -> {name}{index}, e.g. fd0, fd1
    """
    if spec.id:
        return spec.id
    short = spec.name.rsplit(":", 1)[-1]
    return f"{short}{index}"


class RuleFactory:
    """
    Translate RuleSpec objects into initialized rule instances.

    Responsibilities:
      - Resolve the rule class from the registry (or an import path)
      - Instantiate with (name, params)
      - Assign rule_id per our identity policy and run the Initialize stage
      - Provide helpful errors on unknown/failed rules
    """

    def __init__(self, rule_specs: List[RuleSpec], default_table: Optional[str] = None):
        self.rule_specs = rule_specs
        self.default_table = default_table
        register_default_rules()

    def build_rules(self) -> List[BaseRule]:
        rules: List[BaseRule] = []
        seen: set = set()

        for index, spec in enumerate(self.rule_specs):
            rule_cls = get_rule(spec.name)
            if not (isinstance(rule_cls, type) and issubclass(rule_cls, BaseRule)):
                raise UnknownRuleError(f"'{spec.name}' is not a BaseRule subclass")

            tables = spec.tables or ([self.default_table] if self.default_table else [])
            rule_id = _derive_rule_id(spec, index)
            if rule_id in seen:
                raise InvalidArgumentError(f"Duplicate rule id '{rule_id}'")
            seen.add(rule_id)

            try:
                rule: BaseRule = rule_cls(spec.name, spec.params)
                rule.initialize(rule_id, tables)
            except KleanError:
                raise
            except Exception as e:
                raise InvalidArgumentError(f"Failed to instantiate rule '{spec.name}': {e}") from e
            rules.append(rule)

        return rules

    @staticmethod
    def summarize_rules(rules: List[BaseRule]) -> List[Dict[str, Any]]:
        """Return a summary of all rule configurations (for debug/reporting)."""
        return [
            {
                "rule_id": rule.rule_id,
                "tables": rule.table_names,
                "params": rule.params,
                "class": rule.__class__.__name__,
            }
            for rule in rules
        ]
