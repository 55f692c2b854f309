"""
Phase profiling for the SQL load generator.

`profile_block` wraps one generation phase (schema, ddl, seed or workload)
and records its wall-clock duration and the process RSS high-water mark
observed at its boundaries.

Usage:
    from sqlloadgen.utils.profiler import profile_block

    with profile_block("seed") as stats:
        seed_data(...)

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for phase measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["duration_seconds"] = round(self.duration_seconds, 3)
        return data


def _rss(process: psutil.Process) -> Optional[int]:
    try:
        return process.memory_info().rss
    except psutil.Error:
        return None


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Context manager measuring one block of work.

    Generation is single-threaded and CPU-bound, so RSS is sampled on entry
    and exit instead of from a background thread.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    rss_before = _rss(process)

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        samples = [v for v in (rss_before, _rss(process)) if v is not None]
        stats.peak_rss_bytes = max(samples) if samples else None


__all__ = ["ProfileStats", "profile_block"]
