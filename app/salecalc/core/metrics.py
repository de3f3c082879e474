from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.salecalc.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = bool(settings.METRICS_ENABLED)
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._receipt_drift_total = None
        self._validation_rejections_total = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._receipt_drift_total = Counter(
            "receipt_drift_total",
            "Persisted sale fields that no longer match a recomputation.",
            ["field"],
            registry=self._registry,
        )
        self._validation_rejections_total = Counter(
            "validation_rejections_total",
            "Hard validation failures by error code.",
            ["code"],
            registry=self._registry,
        )

    def reset(self) -> None:
        if not self.enabled:
            return
        self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def increment_receipt_drift(self, field: str, count: int = 1) -> None:
        if not self.enabled:
            return
        self._receipt_drift_total.labels(field=field).inc(count)

    def increment_validation_rejection(self, code: str) -> None:
        if not self.enabled:
            return
        self._validation_rejections_total.labels(code=code).inc()

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        if not self.enabled:
            return None
        return self._registry.get_sample_value(name, labels or {})

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
