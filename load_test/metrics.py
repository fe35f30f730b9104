"""
Custom metrics for the boutique journey.

Locust only tracks request statistics, so the journey's own observables
(error rate, page load trends, request counter, named checks) live in a
``MetricsStore``. Values are plain samples; aggregation happens once, when
the summary is built.
"""

import threading
from typing import Dict, List, Optional

COUNTER = "counter"
RATE = "rate"
TREND = "trend"

ERRORS = "errors"
HOMEPAGE_LOAD_TIME = "homepage_load_time"
PRODUCT_PAGE_LOAD_TIME = "product_page_load_time"
CHECKOUT_TIME = "checkout_time"
TOTAL_REQUESTS = "total_requests"
ITERATIONS = "iterations"

CUSTOM_METRICS = {
    ERRORS: RATE,
    HOMEPAGE_LOAD_TIME: TREND,
    PRODUCT_PAGE_LOAD_TIME: TREND,
    CHECKOUT_TIME: TREND,
    TOTAL_REQUESTS: COUNTER,
    ITERATIONS: COUNTER,
}

TREND_STATS = ("avg", "min", "med", "max", "p(90)", "p(95)", "p(99)")


def percentile(values: List[float], pct: float) -> float:
    """Linear-interpolated percentile of ``values`` (``pct`` in 0-100)."""
    if not values:
        return 0.0
    ordered = sorted(values)
    rank = (len(ordered) - 1) * pct / 100
    low = int(rank)
    high = min(low + 1, len(ordered) - 1)
    return ordered[low] + (ordered[high] - ordered[low]) * (rank - low)


def trend_values(samples: List[float]) -> Dict[str, float]:
    if not samples:
        return {stat: 0.0 for stat in TREND_STATS}
    return {
        "avg": sum(samples) / len(samples),
        "min": min(samples),
        "med": percentile(samples, 50),
        "max": max(samples),
        "p(90)": percentile(samples, 90),
        "p(95)": percentile(samples, 95),
        "p(99)": percentile(samples, 99),
    }


def rate_values(passes: int, total: int) -> Dict[str, float]:
    return {
        "rate": passes / total if total else 0.0,
        "passes": passes,
        "fails": total - passes,
    }


def counter_values(count: float, duration_s: Optional[float] = None) -> Dict[str, float]:
    return {
        "count": count,
        "rate": count / duration_s if duration_s else 0.0,
    }


class MetricsStore:
    """Thread-safe sample buffer for counters, rates, trends and checks.

    The journey only writes through ``add`` and ``check``; everything else
    is for the event handlers that summarise or ship the samples.
    """

    def __init__(self, metrics: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._kinds = dict(CUSTOM_METRICS if metrics is None else metrics)
        self._samples = {name: [] for name in self._kinds}
        self._checks = {}

    def add(self, name: str, value) -> None:
        if name not in self._kinds:
            raise KeyError(f"Unknown metric: {name}")
        if self._kinds[name] == RATE:
            value = bool(value)
        with self._lock:
            self._samples[name].append(value)

    def check(self, name: str, passed: bool) -> bool:
        with self._lock:
            counts = self._checks.setdefault(name, [0, 0])
            counts[0 if passed else 1] += 1
        return passed

    def samples(self, name: str) -> list:
        with self._lock:
            return list(self._samples[name])

    def kind(self, name: str) -> str:
        return self._kinds[name]

    def names(self) -> List[str]:
        return list(self._kinds)

    def check_counts(self) -> Dict[str, List[int]]:
        with self._lock:
            return {name: list(counts) for name, counts in self._checks.items()}

    def drain(self) -> dict:
        """Hand over and clear everything buffered so far."""
        with self._lock:
            payload = {"samples": self._samples, "checks": self._checks}
            self._samples = {name: [] for name in self._kinds}
            self._checks = {}
        return payload

    def merge(self, payload: dict) -> None:
        """Fold in a payload produced by ``drain`` on another process."""
        with self._lock:
            for name, values in payload.get("samples", {}).items():
                if name in self._samples:
                    self._samples[name].extend(values)
            for name, (passes, fails) in payload.get("checks", {}).items():
                counts = self._checks.setdefault(name, [0, 0])
                counts[0] += passes
                counts[1] += fails

    def reset(self) -> None:
        self.drain()

    def to_metrics(self, duration_s: Optional[float] = None) -> Dict[str, dict]:
        """Aggregate every metric that received at least one sample."""
        metrics = {}
        with self._lock:
            snapshot = {name: list(values) for name, values in self._samples.items()}

        for name, values in snapshot.items():
            if not values:
                continue
            kind = self._kinds[name]
            if kind == TREND:
                aggregated = trend_values(values)
            elif kind == RATE:
                aggregated = rate_values(sum(values), len(values))
            else:
                aggregated = counter_values(sum(values), duration_s)
            metrics[name] = {
                "type": kind,
                "contains": "time" if kind == TREND else "default",
                "values": aggregated,
            }
        return metrics

    def to_checks(self) -> List[dict]:
        return [
            {"name": name, "passes": passes, "fails": fails}
            for name, (passes, fails) in self.check_counts().items()
        ]


metrics_store = MetricsStore()
