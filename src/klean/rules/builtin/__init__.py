# Import all builtin rules to register them
from klean.rules.builtin.fd import FunctionalDependencyRule

__all__ = [
    "FunctionalDependencyRule",
]
