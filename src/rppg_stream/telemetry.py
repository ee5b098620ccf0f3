"""Running processing-time statistics per message kind."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass
class PerfEntry:
    count: int = 0
    total: float = 0.0  # ms
    avg: float = 0.0  # ms


@dataclass
class PerfStats:
    report_every: int = 30
    entries: Dict[str, PerfEntry] = field(default_factory=dict)

    def record(self, name: str, dt_ms: float) -> PerfEntry:
        e = self.entries.setdefault(name, PerfEntry())
        e.count += 1
        e.total += float(dt_ms)
        e.avg = e.total / e.count
        if self.report_every > 0 and e.count % self.report_every == 0:
            logger.info("perf %s: n=%d avg=%.2f ms", name, e.count, e.avg)
        return e

    def reset(self) -> None:
        self.entries.clear()

    def as_dict(self) -> Dict[str, dict]:
        return {k: asdict(v) for k, v in self.entries.items()}
