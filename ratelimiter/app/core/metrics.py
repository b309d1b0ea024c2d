"""Metrics collection for admission decisions.

The collector is constructed by the host at startup and handed to each
limiter; limiters call ``record_request`` after every decision. Output is
Prometheus text exposition format.
"""

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ratelimiter.app.core.logging import get_logger

logger = get_logger(__name__)

# Upper bounds (seconds) of the latency histogram buckets
LATENCY_BUCKETS: Tuple[float, ...] = (0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1)


@dataclass
class MetricsCollector:
    """Collects admission metrics.

    This class is safe to share between tasks and collects:
    - Total, allowed and blocked decision counts
    - Check latency histogram
    - Backend failures by reason
    """

    _total: int = 0
    _allowed: int = 0
    _blocked: int = 0

    # Non-cumulative per-bucket counts; the last slot is +Inf
    _latency_counts: List[int] = field(
        default_factory=lambda: [0] * (len(LATENCY_BUCKETS) + 1)
    )
    _latency_sum: float = 0.0

    _backend_failures: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    _start_time: float = field(default_factory=time.time)

    async def record_request(self, allowed: bool, elapsed: float) -> None:
        """Record one admission decision.

        Args:
            allowed: Whether the request was admitted
            elapsed: Time spent deciding, in seconds
        """
        async with self._lock:
            self._total += 1
            if allowed:
                self._allowed += 1
            else:
                self._blocked += 1
            self._latency_sum += elapsed
            for index, bound in enumerate(LATENCY_BUCKETS):
                if elapsed <= bound:
                    self._latency_counts[index] += 1
                    break
            else:
                self._latency_counts[-1] += 1

    async def record_backend_failure(self, reason: str) -> None:
        """Record a remote backend failure.

        Args:
            reason: Failure reason (connection_error, timeout, ...)
        """
        async with self._lock:
            self._backend_failures[reason] += 1

    async def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics.

        Returns:
            Dictionary with metrics summary
        """
        async with self._lock:
            allow_rate = self._allowed / self._total if self._total > 0 else 0
            avg_latency = self._latency_sum / self._total if self._total > 0 else 0
            return {
                "uptime_seconds": round(time.time() - self._start_time, 2),
                "total": self._total,
                "allowed": self._allowed,
                "blocked": self._blocked,
                "allow_rate": round(allow_rate, 4),
                "average_latency_ms": round(avg_latency * 1000, 4),
                "backend_failures": dict(self._backend_failures),
            }

    async def get_prometheus_metrics(self) -> str:
        """Get metrics in Prometheus text format.

        Returns:
            Prometheus-formatted metrics string
        """
        async with self._lock:
            lines = []

            lines.append("# HELP rate_limiter_requests_total Total number of requests processed")
            lines.append("# TYPE rate_limiter_requests_total counter")
            lines.append(f"rate_limiter_requests_total {self._total}")

            lines.append("\n# HELP rate_limiter_requests_allowed Number of requests allowed")
            lines.append("# TYPE rate_limiter_requests_allowed counter")
            lines.append(f"rate_limiter_requests_allowed {self._allowed}")

            lines.append("\n# HELP rate_limiter_requests_blocked Number of requests blocked")
            lines.append("# TYPE rate_limiter_requests_blocked counter")
            lines.append(f"rate_limiter_requests_blocked {self._blocked}")

            lines.append(
                "\n# HELP rate_limiter_request_duration_seconds Request processing latency in seconds"
            )
            lines.append("# TYPE rate_limiter_request_duration_seconds histogram")
            cumulative = 0
            for bound, count in zip(LATENCY_BUCKETS, self._latency_counts):
                cumulative += count
                lines.append(
                    f'rate_limiter_request_duration_seconds_bucket{{le="{bound}"}} {cumulative}'
                )
            cumulative += self._latency_counts[-1]
            lines.append(
                f'rate_limiter_request_duration_seconds_bucket{{le="+Inf"}} {cumulative}'
            )
            lines.append(f"rate_limiter_request_duration_seconds_sum {self._latency_sum}")
            lines.append(f"rate_limiter_request_duration_seconds_count {self._total}")

            lines.append(
                "\n# HELP rate_limiter_backend_failures_total Remote backend failures by reason"
            )
            lines.append("# TYPE rate_limiter_backend_failures_total counter")
            for reason, count in self._backend_failures.items():
                lines.append(
                    f'rate_limiter_backend_failures_total{{reason="{reason}"}} {count}'
                )

            return "\n".join(lines) + "\n"
