# src/klean/engine/stats.py
from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class RunTimers:
    read_ms: int = 0
    scope_ms: int = 0
    block_ms: int = 0
    detect_ms: int = 0
    repair_ms: int = 0

    @property
    def total_ms(self) -> int:
        return self.read_ms + self.scope_ms + self.block_ms + self.detect_ms + self.repair_ms

    def to_dict(self) -> Dict[str, int]:
        d = asdict(self)
        d["total_ms"] = self.total_ms
        return d


def now_ms() -> int:
    return int(time.time() * 1000)
