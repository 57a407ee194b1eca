"""In-process counters for retries and throttling."""

import logging
import threading
from collections import defaultdict
from typing import Any, Dict

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects retry metrics for monitoring and alerting.

    Keys are suffixed with the caller's label; the dispatcher uses
    ``"<METHOD> <path>"``. Entries are never evicted, so labels should come
    from a fixed set of endpoints rather than per-request values. Call
    :meth:`reset` to drop them.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._metrics: Dict[str, Dict[str, Any]] = defaultdict(lambda: defaultdict(int))

    def record_throttle(self, label: str) -> None:
        """Record a 429 throttle response."""
        with self._lock:
            self._metrics["counters"][f"api_throttles_total.{label}"] += 1
        logger.debug(f"Throttle recorded: {label}")

    def record_retry(self, label: str, attempt: int, backoff: float) -> None:
        """Record a retry attempt."""
        with self._lock:
            self._metrics["counters"][f"retry_attempts_total.{label}"] += 1
            self._metrics["gauges"][f"retry_backoff_seconds.{label}"] = backoff
        logger.debug(f"Retry {attempt} for {label} with {backoff:.2f}s backoff")

    def record_success_after_retry(self, label: str, attempts: int) -> None:
        """Record successful completion after retries."""
        with self._lock:
            self._metrics["counters"][f"success_after_retry.{label}"] += 1
        logger.info(f"Success after {attempts} attempts for {label}")

    def record_exhausted(self, label: str) -> None:
        """Record a request that failed after using up its retries."""
        with self._lock:
            self._metrics["counters"][f"retries_exhausted.{label}"] += 1

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Get a snapshot of all collected metrics."""
        with self._lock:
            return {kind: dict(values) for kind, values in self._metrics.items()}

    def reset(self) -> None:
        """Drop all collected metrics."""
        with self._lock:
            self._metrics.clear()


# Global metrics instance
metrics = MetricsCollector()
