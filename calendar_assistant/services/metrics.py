"""CloudWatch custom metrics for outbound calls, with background batching.

Every call to an external service (Anthropic, Google Calendar, LINE) is
wrapped in :meth:`MetricsClient.track`, which records one request count,
its latency, and on failure an error count keyed by exception type.

Locally (``METRICS_ENABLED != "true"``) data points are buffered and logged
at DEBUG level but never sent.

Usage
-----
>>> from calendar_assistant.services.metrics import metrics
>>> with metrics.track("google_calendar", "events.insert"):
...     client.insert_event(body)
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "LineCalendarBot"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # PutMetricData limit per call


def _dimensions(**pairs: str) -> list[dict[str, str]]:
    return [{"Name": name, "Value": value} for name, value in pairs.items()]


class MetricsClient:
    """Buffers metric data points and flushes them to CloudWatch."""

    def __init__(self, *, enabled: bool | None = None) -> None:
        if enabled is None:
            enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self._enabled = enabled
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None

        if self._enabled:
            self._start_flush_thread()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    # ── Recording ─────────────────────────────────────────────────────

    @contextmanager
    def track(self, service: str, operation: str) -> Iterator[None]:
        """Time the wrapped block and record success or failure.

        Exceptions are recorded and re-raised unchanged.
        """
        t0 = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.record(
                service, operation,
                latency_ms=(time.perf_counter() - t0) * 1000,
                error_type=type(exc).__name__,
            )
            raise
        self.record(service, operation, latency_ms=(time.perf_counter() - t0) * 1000)

    def record(
        self,
        service: str,
        operation: str,
        *,
        latency_ms: float,
        error_type: str | None = None,
    ) -> None:
        """Buffer the data points for one external call."""
        now = datetime.now(UTC)
        status = "failure" if error_type else "success"
        points = [
            {
                "MetricName": "ExternalAPI/RequestCount",
                "Dimensions": _dimensions(Service=service, Operation=operation, Status=status),
                "Timestamp": now,
                "Value": 1,
                "Unit": "Count",
            },
            {
                "MetricName": "ExternalAPI/Latency",
                "Dimensions": _dimensions(Service=service, Operation=operation),
                "Timestamp": now,
                "Value": latency_ms,
                "Unit": "Milliseconds",
            },
        ]
        if error_type:
            points.append(
                {
                    "MetricName": "ExternalAPI/ErrorCount",
                    "Dimensions": _dimensions(Service=service, ErrorType=error_type),
                    "Timestamp": now,
                    "Value": 1,
                    "Unit": "Count",
                }
            )

        with self._lock:
            self._buffer.extend(points)
        logger.debug(
            "Metric: %s %s %s latency=%.1fms", service, operation, status, latency_ms,
        )

    # ── Publishing ────────────────────────────────────────────────────

    def flush(self) -> int:
        """Send buffered metrics to CloudWatch.  Returns the number sent."""
        with self._lock:
            if not self._buffer:
                return 0
            batch = self._buffer[:]
            self._buffer.clear()

        if not self._enabled:
            logger.debug("Metrics flush skipped (not enabled): %d items", len(batch))
            return 0

        sent = 0
        try:
            cw = self._get_cw_client()
            for i in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[i : i + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    def _get_cw_client(self):
        if self._cw_client is None:
            import boto3

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    def _start_flush_thread(self) -> None:
        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        threading.Thread(target=_loop, daemon=True, name="metrics-flush").start()
        atexit.register(self.flush)
        logger.info("Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS)


metrics = MetricsClient()
