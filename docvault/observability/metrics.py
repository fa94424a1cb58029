"""Prometheus-style counters. Thread-safe, in-memory. Local sink for rejections and swallowed side-write failures."""

import threading
from typing import Any


class MetricsCollector:
    """
    In-memory counter registry. Thread-safe. Exposes increment, get, export_metrics.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, float] = {}
        self._counters_by_labels: dict[str, dict[str, float]] = {}

    def increment(
        self,
        name: str,
        value: float = 1.0,
        *,
        category: str | None = None,
    ) -> None:
        """Increment a counter. Optional category for dimensional metrics."""
        with self._lock:
            if category is not None:
                key = f"{name}:category={category}"
                labelled = self._counters_by_labels.setdefault(name, {})
                labelled[key] = labelled.get(key, 0) + value
            self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str, category: str | None = None) -> float:
        with self._lock:
            if category is None:
                return self._counters.get(name, 0)
            return self._counters_by_labels.get(name, {}).get(f"{name}:category={category}", 0)

    def export_metrics(self) -> dict[str, Any]:
        """Export all counters as a dict (simulated Prometheus-style)."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "counters_by_labels": {
                    k: dict(v) for k, v in self._counters_by_labels.items()
                },
            }

    def reset(self) -> None:
        """Reset all metrics (for tests)."""
        with self._lock:
            self._counters.clear()
            self._counters_by_labels.clear()
