# src/klean/config/settings.py
"""
Executor settings.

Settings are an explicit value handed to each executor; nothing here is
process-wide, so executors with different settings can run side by side.

Environment (read by ``ExecutorConfig.from_env``):
    KLEAN_WORKERS      worker threads for group-parallel detection (default 1)
    KLEAN_VERBOSE      1/true/yes to enable verbose logging
    KLEAN_BATCH_SIZE   rows per bulk-insert batch (default 1024)
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from klean.errors import ConfigError

DEFAULT_BATCH_SIZE = 1024


def _env_bool(raw: Optional[str]) -> Optional[bool]:
    if raw is None:
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


class ExecutorConfig(BaseModel, frozen=True):
    workers: int = Field(1, ge=1, description="Worker threads; groups are processed in parallel when > 1.")
    verbose: bool = Field(False, description="Log per-group detail at DEBUG.")
    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1, description="Rows per bulk-insert batch.")
    persist_fixes: bool = Field(True, description="Write fixes to the store during repair.")

    @classmethod
    def from_env(cls, **overrides: Any) -> "ExecutorConfig":
        """Build from KLEAN_* variables; explicit non-None overrides win."""
        values: Dict[str, Any] = {}
        try:
            if os.getenv("KLEAN_WORKERS"):
                values["workers"] = int(os.environ["KLEAN_WORKERS"])
            if os.getenv("KLEAN_BATCH_SIZE"):
                values["batch_size"] = int(os.environ["KLEAN_BATCH_SIZE"])
        except ValueError as e:
            raise ConfigError(f"Invalid KLEAN_* setting: {e}") from e
        verbose = _env_bool(os.getenv("KLEAN_VERBOSE"))
        if verbose is not None:
            values["verbose"] = verbose
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigError(str(e)) from e
