from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

_RUNS = Counter()

_PROM_RUNS = PromCounter(
    "otppkg_package_runs_total",
    "Packaging pipeline runs",
    ["operation", "outcome"],
)


def reset_metrics() -> None:
    """Test helper: clears the in-process counters."""
    _RUNS.clear()


def inc_run(operation: str, outcome: str) -> None:
    _RUNS[f"{operation}_total"] += 1
    _RUNS[f"{operation}|{outcome}"] += 1
    _PROM_RUNS.labels(operation=operation, outcome=outcome).inc()


def snapshot() -> Dict[str, int]:
    return dict(_RUNS)
