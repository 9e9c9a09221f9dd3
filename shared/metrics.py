"""
Exporter self-instrumentation.

These series describe the exporter itself (HTTP traffic, scrape passes,
fetch task outcomes) and are registered next to the Cloudflare series so a
single scrape of the metrics endpoint returns both.
"""

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


class MetricsCollector:
    """Centralized self-metrics for the exporter."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up exporter metrics."""

        self._metrics["exporter_info"] = Info(
            "exporter",
            "Exporter information",
            registry=self.registry
        )
        self._metrics["exporter_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["exporter_http_requests_total"] = Counter(
            "exporter_http_requests_total",
            "Total HTTP requests served by the exporter",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["exporter_http_request_duration_seconds"] = Histogram(
            "exporter_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Scrape metrics
        self._metrics["exporter_scrape_duration_seconds"] = Histogram(
            "exporter_scrape_duration_seconds",
            "Duration of a complete scrape pass in seconds",
            buckets=(1, 2.5, 5, 10, 20, 30, 60, 120, 300),
            registry=self.registry
        )

        self._metrics["exporter_fetch_tasks_total"] = Counter(
            "exporter_fetch_tasks_total",
            "Fetch tasks run, by family and outcome",
            ["family", "scope_type", "outcome"],
            registry=self.registry
        )

        self._metrics["exporter_passes_in_flight"] = Gauge(
            "exporter_passes_in_flight",
            "Scrape passes currently running",
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["exporter_http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["exporter_http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_fetch(self, family: str, scope_type: str, ok: bool):
        """Record the outcome of a single fetch task."""
        self._metrics["exporter_fetch_tasks_total"].labels(
            family=family,
            scope_type=scope_type,
            outcome="success" if ok else "error"
        ).inc()

    @contextmanager
    def track_pass(self):
        """Context manager timing a scrape pass and counting it as in flight."""
        in_flight = self._metrics["exporter_passes_in_flight"]
        in_flight.inc()
        start_time = time.time()
        try:
            yield
        finally:
            self._metrics["exporter_scrape_duration_seconds"].observe(time.time() - start_time)
            in_flight.dec()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
