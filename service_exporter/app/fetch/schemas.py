"""
Typed views of the GraphQL and REST rows each family decodes.

Field names follow the API's camelCase through an alias generator; the few
fields whose casing the generator cannot reproduce carry explicit aliases.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GraphModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# zone_http

class BrowserEntry(GraphModel):
    page_views: int = 0
    ua_browser_family: str = ""


class HttpVersionEntry(GraphModel):
    protocol: str = Field("", alias="clientHTTPProtocol")
    requests: int = 0


class SslProtocolEntry(GraphModel):
    protocol: str = Field("", alias="clientSSLProtocol")
    requests: int = 0


class ContentTypeEntry(GraphModel):
    bytes: int = 0
    requests: int = 0
    edge_response_content_type_name: str = ""


class CountryEntry(GraphModel):
    bytes: int = 0
    client_country_name: str = ""
    requests: int = 0
    threats: int = 0


class IpClassEntry(GraphModel):
    ip_type: str = ""
    requests: int = 0


class ResponseStatusEntry(GraphModel):
    edge_response_status: int = 0
    requests: int = 0


class ThreatPathingEntry(GraphModel):
    threat_pathing_name: str = ""
    requests: int = 0


class HttpSum(GraphModel):
    browser_map: List[BrowserEntry] = Field(default_factory=list)
    bytes: int = 0
    cached_bytes: int = 0
    cached_requests: int = 0
    client_http_version_map: List[HttpVersionEntry] = Field(default_factory=list, alias="clientHTTPVersionMap")
    client_ssl_map: List[SslProtocolEntry] = Field(default_factory=list, alias="clientSSLMap")
    content_type_map: List[ContentTypeEntry] = Field(default_factory=list)
    country_map: List[CountryEntry] = Field(default_factory=list)
    encrypted_bytes: int = 0
    encrypted_requests: int = 0
    ip_class_map: List[IpClassEntry] = Field(default_factory=list)
    page_views: int = 0
    requests: int = 0
    response_status_map: List[ResponseStatusEntry] = Field(default_factory=list)
    threat_pathing_map: List[ThreatPathingEntry] = Field(default_factory=list)
    threats: int = 0


class HttpUniq(GraphModel):
    uniques: int = 0


class Http1mGroup(GraphModel):
    uniq: HttpUniq = Field(default_factory=HttpUniq)
    sum: HttpSum = Field(default_factory=HttpSum)


class StatusCountryHostDims(GraphModel):
    origin_response_status: int = 0
    edge_response_status: int = 0
    client_country_name: str = ""
    client_request_http_host: str = Field("", alias="clientRequestHTTPHost")


class StatusCountryHostGroup(GraphModel):
    count: int = 0
    dimensions: StatusCountryHostDims = Field(default_factory=StatusCountryHostDims)


class ZoneHttpRow(GraphModel):
    zone_tag: str
    http_requests1m_groups: List[Http1mGroup] = Field(default_factory=list, alias="httpRequests1mGroups")
    origin_status_groups: List[StatusCountryHostGroup] = Field(default_factory=list)
    edge_status_groups: List[StatusCountryHostGroup] = Field(default_factory=list)


# zone_colocation

class ColoDims(GraphModel):
    colo_code: str = ""
    client_request_http_host: str = Field("", alias="clientRequestHTTPHost")


class ColoSum(GraphModel):
    edge_response_bytes: int = 0
    visits: int = 0


class ColoGroup(GraphModel):
    count: int = 0
    dimensions: ColoDims = Field(default_factory=ColoDims)
    sum: ColoSum = Field(default_factory=ColoSum)


class ZoneColoRow(GraphModel):
    zone_tag: str
    colo_groups: List[ColoGroup] = Field(default_factory=list)


# zone_firewall

class FirewallDims(GraphModel):
    action: str = ""
    source: str = ""
    rule_id: str = ""
    client_country_name: str = ""
    client_request_http_host: str = Field("", alias="clientRequestHTTPHost")


class FirewallGroup(GraphModel):
    count: int = 0
    dimensions: FirewallDims = Field(default_factory=FirewallDims)


class ZoneFirewallRow(GraphModel):
    zone_tag: str
    firewall_events_adaptive_groups: List[FirewallGroup] = Field(default_factory=list)


# zone_health_checks

class HealthCheckDims(GraphModel):
    health_status: str = ""
    origin_ip: str = Field("", alias="originIP")
    region: str = ""
    fqdn: str = ""


class HealthCheckGroup(GraphModel):
    count: int = 0
    dimensions: HealthCheckDims = Field(default_factory=HealthCheckDims)


class ZoneHealthCheckRow(GraphModel):
    zone_tag: str
    health_check_events_adaptive_groups: List[HealthCheckGroup] = Field(default_factory=list)


# zone_load_balancer

class LbGroupDims(GraphModel):
    lb_name: str = ""
    region: str = ""
    selected_origin_name: str = ""
    selected_pool_name: str = ""
    steering_policy: str = ""


class LbGroup(GraphModel):
    count: int = 0
    dimensions: LbGroupDims = Field(default_factory=LbGroupDims)


class LbPool(GraphModel):
    id: str = ""
    pool_name: str = ""
    healthy: int = 0
    avg_rtt_ms: int = 0


class LbOrigin(GraphModel):
    origin_name: str = ""
    health: int = 0
    ipv4: str = ""
    selected: int = 0


class LbRequest(GraphModel):
    lb_name: str = ""
    region: str = ""
    selected_pool_name: str = ""
    steering_policy: str = ""
    pools: List[LbPool] = Field(default_factory=list)
    origins: List[LbOrigin] = Field(default_factory=list)


class ZoneLoadBalancerRow(GraphModel):
    zone_tag: str
    load_balancing_requests_adaptive_groups: List[LbGroup] = Field(default_factory=list)
    load_balancing_requests_adaptive: List[LbRequest] = Field(default_factory=list)


# logpush (zone and account)

class LogpushDims(GraphModel):
    job_id: int = 0
    status: int = 0
    destination_type: str = ""
    final: int = 0


class LogpushGroup(GraphModel):
    count: int = 0
    dimensions: LogpushDims = Field(default_factory=LogpushDims)


class LogpushRow(GraphModel):
    zone_tag: str = ""
    logpush_health_adaptive_groups: List[LogpushGroup] = Field(default_factory=list)


# account_workers

class WorkerDims(GraphModel):
    script_name: str = ""
    status: str = ""


class WorkerSum(GraphModel):
    requests: int = 0
    errors: int = 0
    duration: float = 0.0


class WorkerQuantiles(GraphModel):
    cpu_time_p50: float = 0.0
    cpu_time_p75: float = 0.0
    cpu_time_p99: float = 0.0
    cpu_time_p999: float = 0.0
    duration_p50: float = 0.0
    duration_p75: float = 0.0
    duration_p99: float = 0.0
    duration_p999: float = 0.0


class WorkerInvocation(GraphModel):
    dimensions: WorkerDims = Field(default_factory=WorkerDims)
    sum: WorkerSum = Field(default_factory=WorkerSum)
    quantiles: WorkerQuantiles = Field(default_factory=WorkerQuantiles)


class AccountWorkersRow(GraphModel):
    workers_invocations_adaptive: List[WorkerInvocation] = Field(default_factory=list)


# account_zero_trust

class AccessLoginDims(GraphModel):
    is_successful: int = 0
    app_id: str = ""
    country: str = ""


class AccessLoginGroup(GraphModel):
    count: int = 0
    dimensions: AccessLoginDims = Field(default_factory=AccessLoginDims)


class GatewayQueryDims(GraphModel):
    resolver_decision: int = 0
    location_name: str = ""


class GatewayQueryGroup(GraphModel):
    count: int = 0
    dimensions: GatewayQueryDims = Field(default_factory=GatewayQueryDims)


class AccountZeroTrustRow(GraphModel):
    access_login_requests_adaptive_groups: List[AccessLoginGroup] = Field(default_factory=list)
    gateway_resolver_queries_adaptive_groups: List[GatewayQueryGroup] = Field(default_factory=list)


# account_pool_health (REST)

class PoolOrigin(GraphModel):
    name: str = ""
    address: str = ""
    enabled: bool = True


class Pool(GraphModel):
    id: str
    name: str = ""
    enabled: bool = True
    healthy: Optional[bool] = None
    origins: List[PoolOrigin] = Field(default_factory=list)
