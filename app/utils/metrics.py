"""
Per-review metrics.

One :class:`ReviewMetrics` lives for one pipeline run. It counts chunks
and posted comments, times outbound calls per service and logs a summary
line when the run ends. Metrics are emitted as structured log lines only.
"""

import time
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


def _latency_stats(samples: List[float]) -> Dict[str, float]:
    return {
        "count": len(samples),
        "min_ms": round(min(samples), 2),
        "max_ms": round(max(samples), 2),
        "avg_ms": round(sum(samples) / len(samples), 2),
    }


class ReviewMetrics:
    """Counters and timings for a single pull request review."""

    def __init__(self, pr_number: int, repository: str):
        self.pr_number = pr_number
        self.repository = repository
        self.log = logger.with_context(pr_number=pr_number, repository=repository)

        self.status = "running"
        self.error_message: Optional[str] = None
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None
        self._started_at: Optional[float] = None

        self.total_chunks = 0
        self.reviewed_chunks = 0
        self.failed_chunks = 0
        self.comments_posted = 0

        self.api_latencies: Dict[str, List[float]] = defaultdict(list)

    @property
    def api_calls(self) -> Dict[str, int]:
        """Number of recorded calls per service."""
        return {service: len(samples) for service, samples in self.api_latencies.items()}

    def start(self) -> None:
        self.start_time = datetime.now(timezone.utc)
        self._started_at = time.perf_counter()
        self.status = "running"
        self.log.info(f"Review metrics started for PR #{self.pr_number}")

    def complete(self, status: str = "completed", error_message: Optional[str] = None) -> None:
        """
        Close the run and log its totals.

        Args:
            status: 'completed', 'skipped' or 'failed'
            error_message: Reason the run did not complete
        """
        self.end_time = datetime.now(timezone.utc)
        self.status = status
        self.error_message = error_message
        if self._started_at is not None:
            self.duration_ms = int((time.perf_counter() - self._started_at) * 1000)

        self.log.info(
            f"Review metrics for PR #{self.pr_number}: {status}",
            extra={
                "status": status,
                "duration_ms": self.duration_ms,
                "total_chunks": self.total_chunks,
                "reviewed_chunks": self.reviewed_chunks,
                "failed_chunks": self.failed_chunks,
                "comments_posted": self.comments_posted,
            },
        )

    def record_chunks(self, total: int, reviewed: int = 0, failed: int = 0) -> None:
        self.total_chunks, self.reviewed_chunks, self.failed_chunks = total, reviewed, failed

    def record_comments_posted(self, count: int) -> None:
        self.comments_posted += count

    def record_api_call(self, service: str, duration_ms: float) -> None:
        """Add one call of ``service`` taking ``duration_ms`` milliseconds."""
        self.api_latencies[service].append(duration_ms)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Snapshot of the run as a plain dict."""
        summary: Dict[str, Any] = {
            "pr_number": self.pr_number,
            "repository": self.repository,
            "status": self.status,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "total_chunks": self.total_chunks,
            "reviewed_chunks": self.reviewed_chunks,
            "failed_chunks": self.failed_chunks,
            "comments_posted": self.comments_posted,
            "api_calls": self.api_calls,
        }
        latencies = {
            service: _latency_stats(samples)
            for service, samples in self.api_latencies.items()
            if samples
        }
        if latencies:
            summary["api_latencies"] = latencies
        if self.error_message:
            summary["error_message"] = self.error_message
        return summary


@asynccontextmanager
async def track_api_call(
    metrics: Optional[ReviewMetrics],
    service: str,
    logger_adapter,
    endpoint: str = "",
    method: str = "",
):
    """
    Time the wrapped call, record it on ``metrics`` and log it.

    Exceptions are logged and re-raised unchanged.

    Usage:
        async with track_api_call(metrics, "reviewer", logger, endpoint=key, method="REVIEW"):
            outcome = await reviewer.review_chunk(chunk, context)
    """
    started = time.perf_counter()
    failure: Optional[BaseException] = None
    try:
        yield
    except Exception as e:
        failure = e
        raise
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        if metrics is not None:
            metrics.record_api_call(service, elapsed_ms)
        log_api_call(
            logger_adapter,
            service=service,
            endpoint=endpoint,
            method=method,
            duration_ms=elapsed_ms,
            error=str(failure) if failure is not None else None,
        )


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """Emit ``metric_name`` as a structured log line tagged with ``tags``."""
    logger.info(
        f"Metric: {metric_name}={value}",
        extra={"metric_name": metric_name, "metric_value": value, "metric_tags": tags},
    )
