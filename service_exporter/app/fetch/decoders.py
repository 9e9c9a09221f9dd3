"""
Decoders turning typed response rows into flat samples.

Every decoder has the signature ``decode(row, scope, extras) -> List[Sample]``.
Zone rows whose zoneTag is not part of the scope's batch yield nothing.
"""

from typing import Any, Dict, List

from ..registry.aggregator import Sample
from .schemas import (
    AccountWorkersRow,
    AccountZeroTrustRow,
    LogpushRow,
    Pool,
    ZoneColoRow,
    ZoneFirewallRow,
    ZoneHealthCheckRow,
    ZoneHttpRow,
    ZoneLoadBalancerRow,
)
from .tasks import Scope

QUANTILES = ("P50", "P75", "P99", "P999")


class SampleBuffer:
    """Collects samples that share a base label set."""

    def __init__(self, base_labels: Dict[str, str]):
        self.base_labels = base_labels
        self.samples: List[Sample] = []

    def add(self, name: str, value: float, **labels: Any) -> None:
        merged = dict(self.base_labels)
        merged.update({key: str(val) for key, val in labels.items()})
        self.samples.append(Sample(name, merged, float(value)))


def _flag(value: Any) -> str:
    return "true" if value else "false"


def decode_zone_http(row: ZoneHttpRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    base = scope.base_labels(row.zone_tag)
    if base is None:
        return []
    out = SampleBuffer(base)

    for group in row.http_requests1m_groups:
        totals = group.sum
        out.add("cloudflare_zone_requests_total", totals.requests)
        out.add("cloudflare_zone_requests_cached_total", totals.cached_requests)
        out.add("cloudflare_zone_requests_ssl_encrypted_total", totals.encrypted_requests)
        out.add("cloudflare_zone_bandwidth_total", totals.bytes)
        out.add("cloudflare_zone_bandwidth_cached_total", totals.cached_bytes)
        out.add("cloudflare_zone_bandwidth_ssl_encrypted_total", totals.encrypted_bytes)
        out.add("cloudflare_zone_threats_total", totals.threats)
        out.add("cloudflare_zone_pageviews_total", totals.page_views)
        out.add("cloudflare_zone_uniques_total", group.uniq.uniques)
        if totals.requests:
            out.add("cloudflare_zone_cache_hit_ratio", totals.cached_requests / totals.requests)

        for entry in totals.content_type_map:
            out.add("cloudflare_zone_requests_content_type_total", entry.requests,
                    content_type=entry.edge_response_content_type_name)
            out.add("cloudflare_zone_bandwidth_content_type_total", entry.bytes,
                    content_type=entry.edge_response_content_type_name)

        for entry in totals.country_map:
            out.add("cloudflare_zone_requests_country_total", entry.requests, country=entry.client_country_name)
            out.add("cloudflare_zone_bandwidth_country_total", entry.bytes, country=entry.client_country_name)
            out.add("cloudflare_zone_threats_country_total", entry.threats, country=entry.client_country_name)

        for entry in totals.response_status_map:
            out.add("cloudflare_zone_requests_status_total", entry.requests, status=entry.edge_response_status)

        for entry in totals.browser_map:
            out.add("cloudflare_zone_requests_browser_map_page_views_count_total", entry.page_views,
                    family=entry.ua_browser_family)

        for entry in totals.client_http_version_map:
            out.add("cloudflare_zone_requests_http_version_total", entry.requests, protocol=entry.protocol)

        for entry in totals.client_ssl_map:
            out.add("cloudflare_zone_requests_ssl_protocol_total", entry.requests, protocol=entry.protocol)

        for entry in totals.ip_class_map:
            out.add("cloudflare_zone_requests_ip_class_total", entry.requests, ip_class=entry.ip_type)

        for entry in totals.threat_pathing_map:
            out.add("cloudflare_zone_threats_type_total", entry.requests, type=entry.threat_pathing_name)

    for group in row.origin_status_groups:
        dims = group.dimensions
        out.add("cloudflare_zone_requests_origin_status_country_host_total", group.count,
                status=dims.origin_response_status,
                country=dims.client_country_name,
                host=dims.client_request_http_host)

    for group in row.edge_status_groups:
        dims = group.dimensions
        out.add("cloudflare_zone_requests_status_country_host_total", group.count,
                status=dims.edge_response_status,
                country=dims.client_country_name,
                host=dims.client_request_http_host)

    return out.samples


def decode_zone_colocation(row: ZoneColoRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    base = scope.base_labels(row.zone_tag)
    if base is None:
        return []
    out = SampleBuffer(base)

    for group in row.colo_groups:
        labels = {"colocation": group.dimensions.colo_code, "host": group.dimensions.client_request_http_host}
        out.add("cloudflare_zone_colocation_requests_total", group.count, **labels)
        out.add("cloudflare_zone_colocation_visits_total", group.sum.visits, **labels)
        out.add("cloudflare_zone_colocation_edge_response_bytes_total", group.sum.edge_response_bytes, **labels)

    return out.samples


def decode_zone_firewall(row: ZoneFirewallRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    base = scope.base_labels(row.zone_tag)
    if base is None:
        return []
    out = SampleBuffer(base)
    rules = extras.get("firewall_rules", {}).get(row.zone_tag, {})

    for group in row.firewall_events_adaptive_groups:
        dims = group.dimensions
        out.add("cloudflare_zone_firewall_events_count_total", group.count,
                action=dims.action,
                source=dims.source,
                rule=rules.get(dims.rule_id) or dims.rule_id,
                host=dims.client_request_http_host,
                country=dims.client_country_name)

    return out.samples


def decode_zone_health_checks(row: ZoneHealthCheckRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    base = scope.base_labels(row.zone_tag)
    if base is None:
        return []
    out = SampleBuffer(base)

    for group in row.health_check_events_adaptive_groups:
        dims = group.dimensions
        out.add("cloudflare_zone_health_check_events_origin_count_total", group.count,
                health_status=dims.health_status,
                origin_ip=dims.origin_ip,
                region=dims.region,
                fqdn=dims.fqdn)

    return out.samples


def decode_zone_load_balancer(row: ZoneLoadBalancerRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    base = scope.base_labels(row.zone_tag)
    if base is None:
        return []
    out = SampleBuffer(base)

    for group in row.load_balancing_requests_adaptive_groups:
        dims = group.dimensions
        out.add("cloudflare_zone_pool_requests_total", group.count,
                load_balancer_name=dims.lb_name,
                pool_name=dims.selected_pool_name,
                origin_name=dims.selected_origin_name,
                steering_policy=dims.steering_policy,
                region=dims.region)

    for request in row.load_balancing_requests_adaptive:
        for pool in request.pools:
            out.add("cloudflare_zone_pool_health_status", pool.healthy,
                    load_balancer_name=request.lb_name, pool_name=pool.pool_name)
            out.add("cloudflare_zone_pool_rtt_ms", pool.avg_rtt_ms,
                    load_balancer_name=request.lb_name, pool_name=pool.pool_name)
        for origin in request.origins:
            out.add("cloudflare_zone_lb_origin_health_status", origin.health,
                    load_balancer_name=request.lb_name,
                    origin_name=origin.origin_name,
                    ipv4=origin.ipv4)

    return out.samples


def decode_zone_logpush(row: LogpushRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    base = scope.base_labels(row.zone_tag)
    if base is None:
        return []
    return _logpush_samples(row, base, "cloudflare_logpush_failed_jobs_zone_count_total")


def decode_account_logpush(row: LogpushRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    return _logpush_samples(row, scope.base_labels(), "cloudflare_logpush_failed_jobs_account_count_total")


def _logpush_samples(row: LogpushRow, base: Dict[str, str], metric: str) -> List[Sample]:
    out = SampleBuffer(base)
    for group in row.logpush_health_adaptive_groups:
        dims = group.dimensions
        out.add(metric, group.count,
                destination=dims.destination_type,
                job_id=dims.job_id,
                final=_flag(dims.final))
    return out.samples


def decode_account_workers(row: AccountWorkersRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    out = SampleBuffer(scope.base_labels())

    for invocation in row.workers_invocations_adaptive:
        labels = {"script_name": invocation.dimensions.script_name, "status": invocation.dimensions.status}
        out.add("cloudflare_worker_requests_count_total", invocation.sum.requests, **labels)
        out.add("cloudflare_worker_errors_count_total", invocation.sum.errors, **labels)

        quantiles = invocation.quantiles
        cpu = (quantiles.cpu_time_p50, quantiles.cpu_time_p75, quantiles.cpu_time_p99, quantiles.cpu_time_p999)
        duration = (quantiles.duration_p50, quantiles.duration_p75, quantiles.duration_p99, quantiles.duration_p999)
        for quantile, cpu_value, duration_value in zip(QUANTILES, cpu, duration):
            out.add("cloudflare_worker_cpu_time", cpu_value, quantile=quantile, **labels)
            out.add("cloudflare_worker_duration", duration_value, quantile=quantile, **labels)

    return out.samples


def decode_account_zero_trust(row: AccountZeroTrustRow, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    out = SampleBuffer(scope.base_labels())

    for group in row.access_login_requests_adaptive_groups:
        dims = group.dimensions
        out.add("cloudflare_zero_trust_access_logins_count_total", group.count,
                app_id=dims.app_id,
                country=dims.country,
                successful=_flag(dims.is_successful))

    for group in row.gateway_resolver_queries_adaptive_groups:
        dims = group.dimensions
        out.add("cloudflare_zero_trust_gateway_dns_queries_count_total", group.count,
                decision=dims.resolver_decision,
                location=dims.location_name)

    return out.samples


def decode_pool_health(row: Pool, scope: Scope, extras: Dict[str, Any]) -> List[Sample]:
    out = SampleBuffer(scope.base_labels())

    if row.healthy is not None:
        out.add("cloudflare_lb_pool_health_status", 1 if row.healthy else 0,
                pool_id=row.id, pool_name=row.name)

    for origin in row.origins:
        out.add("cloudflare_lb_pool_origin_enabled", 1 if origin.enabled else 0,
                pool_name=row.name,
                origin_name=origin.name,
                origin_address=origin.address)

    return out.samples
