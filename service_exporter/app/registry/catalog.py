"""
Catalogue of every Cloudflare series the exporter can expose.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class MetricKind(str, Enum):
    """Metric types."""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricSpec:
    """Name, help text, label names and kind of one series family."""
    name: str
    documentation: str
    labels: Tuple[str, ...]
    kind: MetricKind = MetricKind.COUNTER


ZONE = ("zone", "account")


def _counter(name: str, documentation: str, *labels: str) -> MetricSpec:
    return MetricSpec(name, documentation, labels, MetricKind.COUNTER)


def _gauge(name: str, documentation: str, *labels: str) -> MetricSpec:
    return MetricSpec(name, documentation, labels, MetricKind.GAUGE)


CATALOG: Tuple[MetricSpec, ...] = (
    # zone_http
    _counter("cloudflare_zone_requests_total", "Number of requests for zone", *ZONE),
    _counter("cloudflare_zone_requests_cached_total", "Number of cached requests for zone", *ZONE),
    _counter("cloudflare_zone_requests_ssl_encrypted_total", "Number of encrypted requests for zone", *ZONE),
    _counter("cloudflare_zone_requests_content_type_total", "Number of request for zone per content type", *ZONE, "content_type"),
    _counter("cloudflare_zone_requests_country_total", "Number of request for zone per country", *ZONE, "country"),
    _counter("cloudflare_zone_requests_status_total", "Number of request for zone per HTTP status", *ZONE, "status"),
    _counter("cloudflare_zone_requests_browser_map_page_views_count_total", "Number of successful requests for HTML pages per zone", *ZONE, "family"),
    _counter("cloudflare_zone_requests_http_version_total", "Number of requests for zone per client HTTP protocol", *ZONE, "protocol"),
    _counter("cloudflare_zone_requests_ssl_protocol_total", "Number of requests for zone per client SSL protocol", *ZONE, "protocol"),
    _counter("cloudflare_zone_requests_ip_class_total", "Number of requests for zone per client IP class", *ZONE, "ip_class"),
    _counter("cloudflare_zone_requests_origin_status_country_host_total", "Count of not cached requests for zone per origin HTTP status per country per host", *ZONE, "status", "country", "host"),
    _counter("cloudflare_zone_requests_status_country_host_total", "Count of requests for zone per edge HTTP status per country per host", *ZONE, "status", "country", "host"),
    _counter("cloudflare_zone_bandwidth_total", "Total bandwidth per zone in bytes", *ZONE),
    _counter("cloudflare_zone_bandwidth_cached_total", "Cached bandwidth per zone in bytes", *ZONE),
    _counter("cloudflare_zone_bandwidth_ssl_encrypted_total", "Encrypted bandwidth per zone in bytes", *ZONE),
    _counter("cloudflare_zone_bandwidth_content_type_total", "Bandwidth per zone per content type", *ZONE, "content_type"),
    _counter("cloudflare_zone_bandwidth_country_total", "Bandwidth per country per zone", *ZONE, "country"),
    _counter("cloudflare_zone_threats_total", "Threats per zone", *ZONE),
    _counter("cloudflare_zone_threats_country_total", "Threats per zone per country", *ZONE, "country"),
    _counter("cloudflare_zone_threats_type_total", "Threats per zone per type", *ZONE, "type"),
    _counter("cloudflare_zone_pageviews_total", "Pageviews per zone", *ZONE),
    _gauge("cloudflare_zone_uniques_total", "Uniques per zone", *ZONE),
    _gauge("cloudflare_zone_cache_hit_ratio", "Share of requests served from cache per zone", *ZONE),
    # zone_colocation
    _counter("cloudflare_zone_colocation_visits_total", "Total visits per colocation", *ZONE, "colocation", "host"),
    _counter("cloudflare_zone_colocation_edge_response_bytes_total", "Edge response bytes per colocation", *ZONE, "colocation", "host"),
    _counter("cloudflare_zone_colocation_requests_total", "Total requests per colocation", *ZONE, "colocation", "host"),
    # zone_firewall
    _counter("cloudflare_zone_firewall_events_count_total", "Count of Firewall events", *ZONE, "action", "source", "rule", "host", "country"),
    # zone_health_checks
    _counter("cloudflare_zone_health_check_events_origin_count_total", "Number of Heath check events per region per origin", *ZONE, "health_status", "origin_ip", "region", "fqdn"),
    # zone_load_balancer
    _counter("cloudflare_zone_pool_requests_total", "Requests per pool", *ZONE, "load_balancer_name", "pool_name", "origin_name", "steering_policy", "region"),
    _gauge("cloudflare_zone_pool_health_status", "Reports the health of a pool, 1 for healthy, 0 for unhealthy", *ZONE, "load_balancer_name", "pool_name"),
    _gauge("cloudflare_zone_pool_rtt_ms", "Average round trip time to a pool in milliseconds", *ZONE, "load_balancer_name", "pool_name"),
    _gauge("cloudflare_zone_lb_origin_health_status", "Reports the health of an origin, 1 for healthy, 0 for unhealthy", *ZONE, "load_balancer_name", "origin_name", "ipv4"),
    # zone_logpush
    _counter("cloudflare_logpush_failed_jobs_zone_count_total", "Number of failed logpush jobs on the zone level", *ZONE, "destination", "job_id", "final"),
    # account_workers
    _counter("cloudflare_worker_requests_count_total", "Number of requests sent to worker by script name", "script_name", "account", "status"),
    _counter("cloudflare_worker_errors_count_total", "Number of errors by script name", "script_name", "account", "status"),
    _gauge("cloudflare_worker_cpu_time", "CPU time quantiles by script name", "script_name", "account", "status", "quantile"),
    _gauge("cloudflare_worker_duration", "Duration quantiles by script name (GB*s)", "script_name", "account", "status", "quantile"),
    # account_logpush
    _counter("cloudflare_logpush_failed_jobs_account_count_total", "Number of failed logpush jobs on the account level", "account", "destination", "job_id", "final"),
    # account_pool_health
    _gauge("cloudflare_lb_pool_health_status", "Reports the health of a load balancer pool, 1 for healthy, 0 for unhealthy", "account", "pool_id", "pool_name"),
    _gauge("cloudflare_lb_pool_origin_enabled", "Reports whether an origin of a load balancer pool is enabled", "account", "pool_name", "origin_name", "origin_address"),
    # account_zero_trust
    _counter("cloudflare_zero_trust_access_logins_count_total", "Number of Access login attempts", "account", "app_id", "country", "successful"),
    _counter("cloudflare_zero_trust_gateway_dns_queries_count_total", "Number of Gateway DNS queries by resolver decision", "account", "decision", "location"),
)


def catalog_by_name() -> Dict[str, MetricSpec]:
    return {spec.name: spec for spec in CATALOG}
