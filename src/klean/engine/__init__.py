from klean.engine.executor import (
    CleanExecutor,
    DetectResult,
    ExecutionResult,
    RepairResult,
    ResultSink,
)
from klean.engine.stats import RunTimers, now_ms

__all__ = [
    "CleanExecutor",
    "DetectResult",
    "ExecutionResult",
    "RepairResult",
    "ResultSink",
    "RunTimers",
    "now_ms",
]
