"""
Per-store metrics collection.

Tracks:
- Dispatch latency histogram
- Dispatch / queued / dropped counters
- Error counts by subsystem (transition, subscriber)

Each store owns its own StoreMetrics; there is no process-wide instance.
"""
from __future__ import annotations

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class LatencyStats:
    """Statistics for a latency measurement."""
    count: int = 0
    total_ms: float = 0.0
    min_ms: float = float("inf")
    max_ms: float = 0.0

    # For percentile calculation (approximate)
    _samples: List[float] = field(default_factory=list)
    _max_samples: int = 1000

    def record(self, ms: float) -> None:
        """Record a latency sample."""
        self.count += 1
        self.total_ms += ms
        self.min_ms = min(self.min_ms, ms)
        self.max_ms = max(self.max_ms, ms)

        self._samples.append(ms)
        if len(self._samples) > self._max_samples:
            self._samples = self._samples[-self._max_samples:]

    @property
    def avg_ms(self) -> float:
        return self.total_ms / max(1, self.count)

    def percentile(self, p: float) -> float:
        """Get percentile (0-100) over the retained samples."""
        if not self._samples:
            return 0.0
        ordered = sorted(self._samples)
        idx = min(int(len(ordered) * p / 100), len(ordered) - 1)
        return ordered[idx]

    def to_dict(self) -> Dict:
        """Export as dictionary."""
        return {
            "count": self.count,
            "avg_ms": round(self.avg_ms, 3),
            "min_ms": round(self.min_ms, 3) if self.count > 0 else 0,
            "max_ms": round(self.max_ms, 3),
            "p50_ms": round(self.percentile(50), 3),
            "p95_ms": round(self.percentile(95), 3),
            "p99_ms": round(self.percentile(99), 3),
        }


class Counter:
    """Thread-safe counter."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> int:
        """Increment and return new value."""
        with self._lock:
            self._value += n
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def reset(self) -> int:
        """Reset and return old value."""
        with self._lock:
            old = self._value
            self._value = 0
            return old


class StoreMetrics:
    """
    Metrics for a single store.

    Example:
        >>> metrics = StoreMetrics()
        >>> with metrics.time_operation("dispatch"):
        ...     store.dispatch(action)
        >>> metrics.record_error("subscriber", "ValueError")
        >>> metrics.summary()["totals"]["errors"]
        1
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._start_time = datetime.now()
        self._latencies: Dict[str, LatencyStats] = defaultdict(LatencyStats)
        self._counters: Dict[str, Counter] = defaultdict(Counter)
        self._errors: Dict[str, Counter] = defaultdict(Counter)

    def record_latency(self, operation: str, ms: float) -> None:
        """Record a latency measurement."""
        with self._lock:
            self._latencies[operation].record(ms)

    def time_operation(self, operation: str) -> "LatencyContext":
        """Context manager for timing an operation."""
        return LatencyContext(self, operation)

    def increment(self, counter: str, n: int = 1) -> int:
        """Increment a counter."""
        with self._lock:
            c = self._counters[counter]
        return c.inc(n)

    def record_error(self, subsystem: str, error_type: str = "unknown") -> None:
        """Record an error."""
        with self._lock:
            c = self._errors[f"{subsystem}.{error_type}"]
        c.inc()

    def get_counter(self, counter: str) -> int:
        with self._lock:
            c = self._counters.get(counter)
        return c.value if c else 0

    def get_errors(self, subsystem: Optional[str] = None) -> int:
        """Error count, optionally restricted to one subsystem."""
        with self._lock:
            items = list(self._errors.items())
        return sum(
            c.value for key, c in items
            if subsystem is None or key.split(".", 1)[0] == subsystem
        )

    def get_total_errors(self) -> int:
        return self.get_errors()

    def summary(self) -> Dict:
        """Get full metrics summary."""
        uptime = (datetime.now() - self._start_time).total_seconds()
        with self._lock:
            return {
                "uptime_seconds": round(uptime, 1),
                "latencies": {
                    op: stats.to_dict()
                    for op, stats in self._latencies.items()
                },
                "counters": {
                    name: c.value
                    for name, c in self._counters.items()
                },
                "errors": {
                    name: c.value
                    for name, c in self._errors.items()
                },
                "totals": {
                    "errors": sum(c.value for c in self._errors.values()),
                },
            }

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self._latencies.clear()
            self._counters.clear()
            self._errors.clear()
            self._start_time = datetime.now()


class LatencyContext:
    """Context manager for timing operations."""

    def __init__(self, collector: StoreMetrics, operation: str):
        self.collector = collector
        self.operation = operation
        self.start_time: Optional[float] = None
        self.elapsed_ms: Optional[float] = None

    def __enter__(self) -> "LatencyContext":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.start_time is not None:
            self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
            if exc_type is None:
                self.collector.record_latency(self.operation, self.elapsed_ms)
