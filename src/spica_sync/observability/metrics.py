"""In-memory metrics for API traffic and applied changes."""

from collections import Counter, defaultdict
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class LoggerBackend:
    """
    Aggregates counters and timings in memory for the end-of-run report.
    """

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.timings: dict[str, list[float]] = defaultdict(list)

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        """Increment a counter."""
        self.counters[self._format_key(name, tags)] += value

    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing in milliseconds."""
        self.timings[self._format_key(name, tags)].append(value)

    def _format_key(self, name: str, tags: dict[str, str] | None) -> str:
        if not tags:
            return name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}[{tag_str}]"

    def get_summary(self) -> dict[str, Any]:
        """Return counters plus count/avg/min/max per timing series."""
        timings = {
            name: {
                "count": len(values),
                "avg": sum(values) / len(values),
                "min": min(values),
                "max": max(values),
            }
            for name, values in self.timings.items()
            if values
        }
        return {"counters": dict(self.counters), "timings": timings}

    def reset(self) -> None:
        self.counters.clear()
        self.timings.clear()


class MetricsCollector:
    """
    Central collector for synchronization metrics.
    """

    def __init__(self) -> None:
        self.backend = LoggerBackend()

    def count_request(self, instance: str, method: str, status: int | str) -> None:
        """Record one API request against an instance."""
        self.backend.increment(
            "instance_api_requests_total",
            tags={"instance": instance, "method": method, "status": str(status)},
        )

    def record_request_latency(self, instance: str, method: str, duration_ms: float) -> None:
        """Record API request latency."""
        self.backend.timing(
            "instance_api_latency_ms",
            duration_ms,
            tags={"instance": instance, "method": method},
        )

    def count_apply(self, module: str, action: str, success: bool) -> None:
        """Record the outcome of one apply call."""
        self.backend.increment(
            "sync_apply_total",
            tags={
                "module": module,
                "action": action,
                "status": "succeeded" if success else "failed",
            },
        )

    def get_summary(self) -> dict[str, Any]:
        return self.backend.get_summary()


_GLOBAL_COLLECTOR: MetricsCollector | None = None


def get_global_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _GLOBAL_COLLECTOR
    if _GLOBAL_COLLECTOR is None:
        _GLOBAL_COLLECTOR = MetricsCollector()
    return _GLOBAL_COLLECTOR
