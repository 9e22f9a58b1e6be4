from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional


@dataclass
class RequestMetric:
    method: str
    path: str
    status_code: int
    duration_ms: float
    user_id: Optional[int] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class RequestMetrics:
    """Bounded ring buffer of recent request timings. Observability only."""

    def __init__(self, maxlen: int = 1000, slow_ms: int = 1000):
        self.requests: deque[RequestMetric] = deque(maxlen=maxlen)
        self.slow_ms = slow_ms

    def record(self, metric: RequestMetric) -> None:
        self.requests.append(metric)

    def is_slow(self, metric: RequestMetric) -> bool:
        return metric.duration_ms > self.slow_ms

    def summary(self, window_minutes: int = 30) -> dict:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=window_minutes)
        recent = [m for m in self.requests if m.timestamp > cutoff]
        total = len(recent)
        errors = sum(1 for m in recent if m.status_code >= 400)
        return {
            "timeWindow": f"{window_minutes} minutes",
            "total": total,
            "averageResponseTime": round(sum(m.duration_ms for m in recent) / total) if total else 0,
            "slowRequests": sum(1 for m in recent if self.is_slow(m)),
            "errorRate": round(errors * 100 / total) if total else 0,
            "statusCodes": dict(Counter(str(m.status_code) for m in recent)),
        }
