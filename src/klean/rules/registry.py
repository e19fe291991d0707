# src/klean/rules/registry.py
from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Dict, List, Type

from klean.errors import UnknownRuleError

if TYPE_CHECKING:
    from klean.rules.base import BaseRule


# Registry: rule name -> rule class
_RULES: Dict[str, Type["BaseRule"]] = {}


def register_rule(name: str):
    """
    Decorator to register a rule class under a stable name.
    The class must subclass BaseRule and accept (name, params).
    """

    def deco(cls: Type["BaseRule"]) -> Type["BaseRule"]:
        if name in _RULES and _RULES[name] is not cls:
            raise ValueError(f"Rule '{name}' is already registered.")
        _RULES[name] = cls
        cls.rule_name = name
        return cls

    return deco


def get_rule(name: str) -> Type["BaseRule"]:
    """
    Resolve a rule class by registered name, or by import path
    ``"package.module:ClassName"`` for user-defined rules.
    """
    if name in _RULES:
        return _RULES[name]

    if ":" in name:
        module_name, _, class_name = name.partition(":")
        try:
            module = importlib.import_module(module_name)
            return getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise UnknownRuleError(f"Cannot import rule class '{name}': {e}") from e

    raise UnknownRuleError(
        f"Unknown rule '{name}'. Registered rules: {', '.join(sorted(_RULES)) or '<none>'}"
    )


def registered_rules() -> List[str]:
    return sorted(_RULES)


def register_default_rules() -> None:
    """
    Eagerly import built-in rules so their @register_rule decorators run.
    """
    from klean.rules.builtin import fd  # noqa: F401
