"""
Declarative descriptors for every metric family.

A GraphQL family lists the datasets it selects; ``query_builder`` renders
them into one query per (family, scope). REST families supply their own
``fetch`` coroutine instead. Either way the fetched rows are validated
against ``model`` and handed to ``decode``.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from shared.logging import get_logger

from ..adapters.cloudflare_client import CloudflareClient
from ..registry.aggregator import Sample
from ..window import TimeWindow
from . import decoders, schemas
from .tasks import Scope, ScopeType

logger = get_logger("exporter.families")

RANGE = "range"
MINUTE = "minute"


@dataclass(frozen=True)
class Dataset:
    """One dataset selection inside a family query."""
    field: str
    selection: str
    alias: Optional[str] = None
    filter: str = ""
    window: str = RANGE


Decoder = Callable[[Any, Scope, Dict[str, Any]], List[Sample]]
Fetcher = Callable[[CloudflareClient, Scope, TimeWindow], Awaitable[List[Dict[str, Any]]]]
Enricher = Callable[[CloudflareClient, Scope], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class FamilyDescriptor:
    name: str
    scope: ScopeType
    model: Type[BaseModel]
    decode: Decoder
    metrics: Tuple[str, ...]
    datasets: Tuple[Dataset, ...] = ()
    fetch: Optional[Fetcher] = None
    enrich: Optional[Enricher] = None

    @property
    def is_graphql(self) -> bool:
        return self.fetch is None


async def list_account_pools(api: CloudflareClient, scope: Scope, window: TimeWindow) -> List[Dict[str, Any]]:
    return await api.list_pools(scope.account.id)


async def lookup_firewall_rules(api: CloudflareClient, scope: Scope) -> Dict[str, Any]:
    """Rule ID to description per zone; a zone whose lookup fails gets no names."""

    async def _lookup(zone_id: str) -> Dict[str, str]:
        try:
            return await api.get_firewall_rule_descriptions(zone_id)
        except Exception as e:
            logger.error("Failed to fetch firewall rules", zone_id=zone_id, error=str(e))
            return {}

    lookups = await asyncio.gather(*(_lookup(zone_id) for zone_id in scope.zone_ids))
    return {"firewall_rules": dict(zip(scope.zone_ids, lookups))}


HTTP_1M_SELECTION = """
uniq {
    uniques
}
sum {
    browserMap {
        pageViews
        uaBrowserFamily
    }
    bytes
    cachedBytes
    cachedRequests
    clientHTTPVersionMap {
        clientHTTPProtocol
        requests
    }
    clientSSLMap {
        clientSSLProtocol
        requests
    }
    contentTypeMap {
        bytes
        requests
        edgeResponseContentTypeName
    }
    countryMap {
        bytes
        clientCountryName
        requests
        threats
    }
    encryptedBytes
    encryptedRequests
    ipClassMap {
        ipType
        requests
    }
    pageViews
    requests
    responseStatusMap {
        edgeResponseStatus
        requests
    }
    threatPathingMap {
        requests
        threatPathingName
    }
    threats
}
dimensions {
    datetime
}
"""

LOGPUSH_SELECTION = """
count
dimensions {
    jobId
    status
    destinationType
    datetime
    final
}
"""


ZONE_HTTP = FamilyDescriptor(
    name="zone_http",
    scope=ScopeType.ZONE_BATCH,
    model=schemas.ZoneHttpRow,
    decode=decoders.decode_zone_http,
    datasets=(
        Dataset("httpRequests1mGroups", HTTP_1M_SELECTION, window=MINUTE),
        Dataset(
            "httpRequestsAdaptiveGroups",
            """
            count
            dimensions {
                originResponseStatus
                clientCountryName
                clientRequestHTTPHost
            }
            """,
            alias="originStatusGroups",
            filter='cacheStatus_notin: ["hit"]',
        ),
        Dataset(
            "httpRequestsAdaptiveGroups",
            """
            count
            dimensions {
                edgeResponseStatus
                clientCountryName
                clientRequestHTTPHost
            }
            """,
            alias="edgeStatusGroups",
        ),
    ),
    metrics=(
        "cloudflare_zone_requests_total",
        "cloudflare_zone_requests_cached_total",
        "cloudflare_zone_requests_ssl_encrypted_total",
        "cloudflare_zone_requests_content_type_total",
        "cloudflare_zone_requests_country_total",
        "cloudflare_zone_requests_status_total",
        "cloudflare_zone_requests_browser_map_page_views_count_total",
        "cloudflare_zone_requests_http_version_total",
        "cloudflare_zone_requests_ssl_protocol_total",
        "cloudflare_zone_requests_ip_class_total",
        "cloudflare_zone_requests_origin_status_country_host_total",
        "cloudflare_zone_requests_status_country_host_total",
        "cloudflare_zone_bandwidth_total",
        "cloudflare_zone_bandwidth_cached_total",
        "cloudflare_zone_bandwidth_ssl_encrypted_total",
        "cloudflare_zone_bandwidth_content_type_total",
        "cloudflare_zone_bandwidth_country_total",
        "cloudflare_zone_threats_total",
        "cloudflare_zone_threats_country_total",
        "cloudflare_zone_threats_type_total",
        "cloudflare_zone_pageviews_total",
        "cloudflare_zone_uniques_total",
        "cloudflare_zone_cache_hit_ratio",
    ),
)

ZONE_COLOCATION = FamilyDescriptor(
    name="zone_colocation",
    scope=ScopeType.ZONE_BATCH,
    model=schemas.ZoneColoRow,
    decode=decoders.decode_zone_colocation,
    datasets=(
        Dataset(
            "httpRequestsAdaptiveGroups",
            """
            count
            avg {
                sampleInterval
            }
            dimensions {
                clientRequestHTTPHost
                coloCode
                datetime
            }
            sum {
                edgeResponseBytes
                visits
            }
            """,
            alias="coloGroups",
        ),
    ),
    metrics=(
        "cloudflare_zone_colocation_visits_total",
        "cloudflare_zone_colocation_edge_response_bytes_total",
        "cloudflare_zone_colocation_requests_total",
    ),
)

ZONE_FIREWALL = FamilyDescriptor(
    name="zone_firewall",
    scope=ScopeType.ZONE_BATCH,
    model=schemas.ZoneFirewallRow,
    decode=decoders.decode_zone_firewall,
    enrich=lookup_firewall_rules,
    datasets=(
        Dataset(
            "firewallEventsAdaptiveGroups",
            """
            count
            dimensions {
                action
                source
                ruleId
                clientRequestHTTPHost
                clientCountryName
            }
            """,
        ),
    ),
    metrics=("cloudflare_zone_firewall_events_count_total",),
)

ZONE_HEALTH_CHECKS = FamilyDescriptor(
    name="zone_health_checks",
    scope=ScopeType.ZONE_BATCH,
    model=schemas.ZoneHealthCheckRow,
    decode=decoders.decode_zone_health_checks,
    datasets=(
        Dataset(
            "healthCheckEventsAdaptiveGroups",
            """
            count
            dimensions {
                healthStatus
                originIP
                region
                fqdn
            }
            """,
        ),
    ),
    metrics=("cloudflare_zone_health_check_events_origin_count_total",),
)

ZONE_LOAD_BALANCER = FamilyDescriptor(
    name="zone_load_balancer",
    scope=ScopeType.ZONE_BATCH,
    model=schemas.ZoneLoadBalancerRow,
    decode=decoders.decode_zone_load_balancer,
    datasets=(
        Dataset(
            "loadBalancingRequestsAdaptiveGroups",
            """
            count
            dimensions {
                region
                lbName
                selectedPoolName
                proxied
                selectedOriginName
                selectedPoolAvgRttMs
                selectedPoolHealthy
                steeringPolicy
            }
            """,
        ),
        Dataset(
            "loadBalancingRequestsAdaptive",
            """
            lbName
            proxied
            region
            selectedPoolHealthy
            selectedPoolId
            selectedPoolName
            sessionAffinityStatus
            steeringPolicy
            selectedPoolAvgRttMs
            pools {
                id
                poolName
                healthy
                avgRttMs
            }
            origins {
                originName
                health
                ipv4
                selected
            }
            """,
        ),
    ),
    metrics=(
        "cloudflare_zone_pool_requests_total",
        "cloudflare_zone_pool_health_status",
        "cloudflare_zone_pool_rtt_ms",
        "cloudflare_zone_lb_origin_health_status",
    ),
)

ZONE_LOGPUSH = FamilyDescriptor(
    name="zone_logpush",
    scope=ScopeType.ZONE_BATCH,
    model=schemas.LogpushRow,
    decode=decoders.decode_zone_logpush,
    datasets=(Dataset("logpushHealthAdaptiveGroups", LOGPUSH_SELECTION, filter="status_neq: 200"),),
    metrics=("cloudflare_logpush_failed_jobs_zone_count_total",),
)

ACCOUNT_WORKERS = FamilyDescriptor(
    name="account_workers",
    scope=ScopeType.ACCOUNT,
    model=schemas.AccountWorkersRow,
    decode=decoders.decode_account_workers,
    datasets=(
        Dataset(
            "workersInvocationsAdaptive",
            """
            dimensions {
                scriptName
                status
                datetime
            }
            sum {
                requests
                errors
                duration
            }
            quantiles {
                cpuTimeP50
                cpuTimeP75
                cpuTimeP99
                cpuTimeP999
                durationP50
                durationP75
                durationP99
                durationP999
            }
            """,
        ),
    ),
    metrics=(
        "cloudflare_worker_requests_count_total",
        "cloudflare_worker_errors_count_total",
        "cloudflare_worker_cpu_time",
        "cloudflare_worker_duration",
    ),
)

ACCOUNT_LOGPUSH = FamilyDescriptor(
    name="account_logpush",
    scope=ScopeType.ACCOUNT,
    model=schemas.LogpushRow,
    decode=decoders.decode_account_logpush,
    datasets=(Dataset("logpushHealthAdaptiveGroups", LOGPUSH_SELECTION, filter="status_neq: 200"),),
    metrics=("cloudflare_logpush_failed_jobs_account_count_total",),
)

ACCOUNT_POOL_HEALTH = FamilyDescriptor(
    name="account_pool_health",
    scope=ScopeType.ACCOUNT,
    model=schemas.Pool,
    decode=decoders.decode_pool_health,
    fetch=list_account_pools,
    metrics=(
        "cloudflare_lb_pool_health_status",
        "cloudflare_lb_pool_origin_enabled",
    ),
)

ACCOUNT_ZERO_TRUST = FamilyDescriptor(
    name="account_zero_trust",
    scope=ScopeType.ACCOUNT,
    model=schemas.AccountZeroTrustRow,
    decode=decoders.decode_account_zero_trust,
    datasets=(
        Dataset(
            "accessLoginRequestsAdaptiveGroups",
            """
            count
            dimensions {
                isSuccessful
                appId
                country
            }
            """,
        ),
        Dataset(
            "gatewayResolverQueriesAdaptiveGroups",
            """
            count
            dimensions {
                resolverDecision
                locationName
            }
            """,
        ),
    ),
    metrics=(
        "cloudflare_zero_trust_access_logins_count_total",
        "cloudflare_zero_trust_gateway_dns_queries_count_total",
    ),
)


ACCOUNT_FAMILIES: Tuple[FamilyDescriptor, ...] = (
    ACCOUNT_WORKERS,
    ACCOUNT_LOGPUSH,
    ACCOUNT_POOL_HEALTH,
    ACCOUNT_ZERO_TRUST,
)

ZONE_FAMILIES: Tuple[FamilyDescriptor, ...] = (
    ZONE_HTTP,
    ZONE_COLOCATION,
    ZONE_FIREWALL,
    ZONE_HEALTH_CHECKS,
    ZONE_LOAD_BALANCER,
    ZONE_LOGPUSH,
)

ALL_FAMILIES: Tuple[FamilyDescriptor, ...] = ACCOUNT_FAMILIES + ZONE_FAMILIES
