"""In-memory request and search metrics for /metrics endpoint (production: replace with Prometheus or similar)."""
import time
from collections.abc import MutableMapping
from threading import Lock

_start_time = time.monotonic()
_counts: MutableMapping[str, int] = {}
_lock = Lock()


def _incr(key: str, n: int = 1) -> None:
    with _lock:
        _counts[key] = _counts.get(key, 0) + n


def record_request(status_code: int) -> None:
    if 200 <= status_code < 300:
        bucket = "2xx"
    elif 400 <= status_code < 500:
        bucket = "4xx"
    elif status_code >= 500:
        bucket = "5xx"
    else:
        bucket = "other"
    _incr(bucket)


def record_search(cells_queried: int, cells_failed: int) -> None:
    """Count one proximity search and its per-cell outcomes."""
    with _lock:
        _counts["searches"] = _counts.get("searches", 0) + 1
        _counts["cells_queried"] = _counts.get("cells_queried", 0) + cells_queried
        _counts["cell_failures"] = _counts.get("cell_failures", 0) + cells_failed
        if cells_failed:
            _counts["searches_degraded"] = _counts.get("searches_degraded", 0) + 1


def reset_metrics() -> None:
    with _lock:
        _counts.clear()


def get_metrics() -> dict:
    with _lock:
        counts = dict(_counts)
    uptime_seconds = time.monotonic() - _start_time
    return {
        "requests_total": counts.get("2xx", 0) + counts.get("4xx", 0) + counts.get("5xx", 0) + counts.get("other", 0),
        "requests_2xx": counts.get("2xx", 0),
        "requests_4xx": counts.get("4xx", 0),
        "requests_5xx": counts.get("5xx", 0),
        "searches_total": counts.get("searches", 0),
        "search_cells_queried": counts.get("cells_queried", 0),
        "search_cell_failures": counts.get("cell_failures", 0),
        "searches_degraded": counts.get("searches_degraded", 0),
        "uptime_seconds": round(uptime_seconds, 1),
    }
