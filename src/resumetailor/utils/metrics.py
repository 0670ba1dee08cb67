"""Performance metrics collection and timing utilities."""

import threading
import time
from contextlib import contextmanager

import structlog

logger = structlog.get_logger(__name__)


@contextmanager
def timed_operation(operation_name: str, **context):
    """
    Context manager for timing operations.

    Args:
        operation_name: Name of the operation being timed
        **context: Extra fields logged with the timing (e.g., job_id)

    Example:
        with timed_operation("scoring", attempt=2):
            scores = scorer.score(original, candidate, jd)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.info(
            "operation_timing",
            operation=operation_name,
            duration_ms=round(elapsed * 1000, 1),
            **context,
        )


class GatewayMetrics:
    """Counters for completion gateway traffic. Safe to share across threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self.calls = 0
        self.cache_hits = 0
        self.provider_calls = 0
        self.retries = 0
        self.failures = 0
        self.latencies: dict[str, list[float]] = {}

    def record_cache_hit(self) -> None:
        with self._lock:
            self.calls += 1
            self.cache_hits += 1

    def record_provider_call(self, model: str, duration: float) -> None:
        with self._lock:
            self.provider_calls += 1
            self.latencies.setdefault(model, []).append(duration)

    def record_retry(self) -> None:
        with self._lock:
            self.retries += 1

    def record_result(self, success: bool) -> None:
        with self._lock:
            self.calls += 1
            if not success:
                self.failures += 1

    @property
    def cache_hit_rate(self) -> float:
        return self.cache_hits / self.calls if self.calls else 0.0

    def summary(self) -> dict:
        """Snapshot suitable for structured logging."""
        with self._lock:
            average_latency = {
                model: round(sum(times) / len(times), 3)
                for model, times in self.latencies.items()
                if times
            }
            return {
                "calls": self.calls,
                "cache_hits": self.cache_hits,
                "provider_calls": self.provider_calls,
                "retries": self.retries,
                "failures": self.failures,
                "average_latency_seconds": average_latency,
            }

    def log_summary(self) -> None:
        logger.info("gateway_metrics", **self.summary())
