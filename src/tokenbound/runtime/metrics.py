from __future__ import annotations

"""In-process counters and gauges, exposed as Prometheus text on /v1/metrics.

Counters are process-wide and are not rolled back with a reverted
transaction: `account_execute_rejected` counts rejections that left no trace
in ledger state.
"""

import os
import threading
import time
from typing import Dict

_lock = threading.Lock()
_counters: Dict[str, int] = {}
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    return (os.environ.get("TOKENBOUND_METRICS_ENABLED") or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def inc_counter(name: str, value: int = 1) -> None:
    if not name:
        return
    with _lock:
        _counters[name] = _counters.get(name, 0) + int(value)


def set_gauge(name: str, value: int) -> None:
    if not name:
        return
    with _lock:
        _gauges[name] = int(value)


def counter(name: str) -> int:
    with _lock:
        return _counters.get(name, 0)


def gauge(name: str) -> int:
    with _lock:
        return _gauges.get(name, 0)


def reset() -> None:
    """Drop all counters and gauges (tests only)."""
    with _lock:
        _counters.clear()
        _gauges.clear()


def snapshot() -> dict:
    now = int(time.time() * 1000)
    with _lock:
        return {
            "ts_ms": now,
            "started_ms": _started_ms,
            "uptime_ms": now - _started_ms,
            "counters": dict(_counters),
            "gauges": dict(_gauges),
        }


def format_prometheus(prefix: str = "tokenbound_") -> str:
    """Prometheus text exposition (format 0.0.4), integer samples only."""
    pre = (prefix or "").strip() or "tokenbound_"
    snap = snapshot()

    lines = [f"# TYPE {pre}uptime_ms gauge", f"{pre}uptime_ms {snap['uptime_ms']}"]
    for kind, values in (("counter", snap["counters"]), ("gauge", snap["gauges"])):
        for name in sorted(values):
            lines.append(f"# TYPE {pre}{name} {kind}")
            lines.append(f"{pre}{name} {values[name]}")
    return "\n".join(lines) + "\n"
