from __future__ import annotations

"""In-process ledger metrics.

A series is a metric name plus a small label set (pool_id, op, code). User
ids never become labels. Values are integers: counts of operations and token
amounts in minor units.
"""

import os
import threading
import time
from typing import Any, Dict, List, Tuple

Labels = Tuple[Tuple[str, str], ...]
SeriesKey = Tuple[str, Labels]

_lock = threading.Lock()
_counters: Dict[SeriesKey, int] = {}
_gauges: Dict[SeriesKey, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("STAKELEDGER_METRICS_ENABLED") or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def _key(name: str, labels: Dict[str, Any]) -> SeriesKey:
    n = str(name or "").strip()
    if not n:
        raise ValueError("metric name must be non-empty")
    return n, tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def series_name(name: str, labels: Labels) -> str:
    """`name{k="v",...}` as it appears in the exposition text."""
    if not labels:
        return name
    inner = ",".join('{}="{}"'.format(k, v.replace("\\", "\\\\").replace('"', '\\"')) for k, v in labels)
    return f"{name}{{{inner}}}"


def inc_counter(name: str, value: int = 1, **labels: Any) -> None:
    key = _key(name, labels)
    with _lock:
        _counters[key] = int(_counters.get(key, 0)) + int(value)


def set_gauge(name: str, value: int, **labels: Any) -> None:
    key = _key(name, labels)
    with _lock:
        _gauges[key] = int(value)


def counter_value(name: str, **labels: Any) -> int:
    with _lock:
        return int(_counters.get(_key(name, labels), 0))


def gauge_value(name: str, **labels: Any) -> int:
    with _lock:
        return int(_gauges.get(_key(name, labels), 0))


def reset() -> None:
    with _lock:
        _counters.clear()
        _gauges.clear()


def snapshot() -> dict:
    """Point-in-time copy keyed by rendered series name."""
    with _lock:
        counters = {series_name(n, lb): v for (n, lb), v in _counters.items()}
        gauges = {series_name(n, lb): v for (n, lb), v in _gauges.items()}
    now_ms = int(time.time() * 1000)
    return {
        "ts_ms": now_ms,
        "uptime_ms": now_ms - _started_ms,
        "counters": counters,
        "gauges": gauges,
    }


def _family_lines(pre: str, kind: str, table: Dict[SeriesKey, int]) -> List[str]:
    lines: List[str] = []
    last = None
    for name, labels in sorted(table.keys()):
        if name != last:
            lines.append(f"# TYPE {pre}{name} {kind}")
            last = name
        lines.append(f"{pre}{series_name(name, labels)} {int(table[(name, labels)])}")
    return lines


def format_prometheus(prefix: str = "stakeledger_") -> str:
    """Prometheus text exposition, one TYPE line per metric family."""
    pre = str(prefix or "").strip() or "stakeledger_"
    with _lock:
        counters = dict(_counters)
        gauges = dict(_gauges)

    lines = [
        f"# TYPE {pre}uptime_ms gauge",
        f"{pre}uptime_ms {int(time.time() * 1000) - _started_ms}",
    ]
    lines += _family_lines(pre, "counter", counters)
    lines += _family_lines(pre, "gauge", gauges)
    return "\n".join(lines) + "\n"
