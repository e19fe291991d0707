# src/klean/config/__init__.py
from klean.config.loader import CleanPlanLoader
from klean.config.models import CleanPlan, RuleSpec, SourceSpec
from klean.config.settings import ExecutorConfig

__all__ = ["CleanPlan", "CleanPlanLoader", "ExecutorConfig", "RuleSpec", "SourceSpec"]
