"""
Cloudflare analytics exporter service.
"""

import argparse
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import httpx
from prometheus_client import CollectorRegistry, disable_created_metrics
from pydantic import ValidationError

from shared.base_service import BaseService
from shared.config import ExporterConfig, get_config
from shared.errors import ConfigurationError, ExporterError
from shared.logging import configure_logging, get_logger

from .adapters import CloudflareClient, QueryClient, build_http_client
from .fetch import ALL_FAMILIES, FetchOrchestrator
from .inventory import InventoryResolver
from .registry import CATALOG, MetricAggregator
from .scheduler import ScrapeScheduler


class ExporterService(BaseService):
    """Exporter service implementation."""

    def __init__(
        self,
        config: Optional[ExporterConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        config = config or get_config()
        super().__init__("exporter", config, registry=CollectorRegistry())

        # Registration and credentials are checked before anything is scheduled.
        self.aggregator = MetricAggregator(CATALOG, config.denied_metrics, registry=self.registry)
        self.aggregator.verify(ALL_FAMILIES)

        self.http_client = build_http_client(config, transport)
        self.api = CloudflareClient(self.http_client, config.api_base_url)
        self.query_client = QueryClient(self.http_client, config.graphql_endpoint)

        self.resolver = InventoryResolver(
            self.api,
            allow=config.zone_ids,
            deny=config.excluded_zone_ids,
            include_free=config.free_tier
        )
        self.orchestrator = FetchOrchestrator(
            self.resolver,
            self.query_client,
            self.api,
            self.aggregator,
            families=ALL_FAMILIES,
            batch_size=config.zone_batch_size,
            scrape_delay=config.scrape_delay,
            query_limit=config.query_limit,
            task_timeout=config.task_timeout,
            enrich_timeout=config.enrich_timeout,
            metrics=self.metrics
        )
        self.scheduler = ScrapeScheduler(self.orchestrator, interval=config.scrape_interval)

        if config.enable_pprof:
            self._setup_debug_routes()

        self.logger.info(
            "Exporter configured",
            auth_scheme=self.http_client.auth.scheme,
            metrics_path=config.normalized_metrics_path,
            denied_metrics=sorted(self.aggregator.denylist),
            allowed_zones=len(config.zone_ids),
            excluded_zones=len(config.excluded_zone_ids),
            free_tier=config.free_tier,
            scrape_interval=config.scrape_interval,
            scrape_delay=config.scrape_delay
        )

        # Expose service instance via app state for introspection/testing
        self.app.state.exporter_service = self

    def _setup_debug_routes(self):
        """Runtime introspection, enabled with ENABLE_PPROF."""

        @self.app.get("/debug/tasks")
        async def debug_tasks():
            tasks = []
            for task in asyncio.all_tasks():
                tasks.append({
                    "name": task.get_name(),
                    "coroutine": repr(task.get_coro()),
                    "done": task.done()
                })
            return {
                "count": len(tasks),
                "passes_in_flight": self.scheduler.in_flight,
                "tasks": tasks
            }

    def _health_details(self) -> Dict[str, Any]:
        return {
            "ticks": self.scheduler.ticks,
            "passes_in_flight": self.scheduler.in_flight
        }

    async def on_startup(self):
        await self.scheduler.start()

    async def on_shutdown(self):
        await self.scheduler.stop()
        await self.http_client.aclose()


def build_parser() -> argparse.ArgumentParser:
    """Command-line flags mirroring the environment variables."""
    parser = argparse.ArgumentParser(
        prog="cloudflare-exporter",
        description="Export Cloudflare analytics as Prometheus metrics."
    )
    parser.add_argument("--listen", help="addr:port to listen on (LISTEN)")
    parser.add_argument("--metrics-path", help="path the metrics are served on (METRICS_PATH)")
    parser.add_argument("--cf-api-token", help="cloudflare api token (CF_API_TOKEN)")
    parser.add_argument("--cf-api-email", help="cloudflare api email (CF_API_EMAIL)")
    parser.add_argument("--cf-api-key", help="cloudflare api key (CF_API_KEY)")
    parser.add_argument("--cf-zones", help="zones to export, comma delimited list (CF_ZONES)")
    parser.add_argument("--cf-exclude-zones", help="zones to exclude, comma delimited list (CF_EXCLUDE_ZONES)")
    parser.add_argument("--scrape-interval", type=int, help="seconds between scrape passes (SCRAPE_INTERVAL)")
    parser.add_argument("--scrape-delay", type=int, help="data latency in seconds (SCRAPE_DELAY)")
    parser.add_argument("--request-timeout", type=float, help="upstream request timeout in seconds (REQUEST_TIMEOUT)")
    parser.add_argument("--zone-batch-size", type=int, help="zones per GraphQL query, at most 10 (ZONE_BATCH_SIZE)")
    parser.add_argument("--metrics-denylist", help="metrics to not expose, comma delimited list (METRICS_DENYLIST)")
    parser.add_argument("--log-level", help="debug, info, warn or error (LOG_LEVEL)")
    parser.add_argument("--free-tier", action="store_const", const=True, help="include free plan zones (FREE_TIER)")
    parser.add_argument("--enable-pprof", action="store_const", const=True, help="expose /debug/tasks (ENABLE_PPROF)")
    return parser


def load_config(argv: Optional[Sequence[str]] = None) -> ExporterConfig:
    """Environment settings with command-line flags applied on top."""
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    try:
        return get_config(**overrides)
    except ValidationError as e:
        errors: List[str] = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError("Invalid settings", details={"errors": errors}) from e


def create_app():
    """Create FastAPI application."""
    disable_created_metrics()
    service = ExporterService(load_config([]))
    return service.app


def main(argv: Optional[Sequence[str]] = None) -> int:
    logger = get_logger("exporter.main")
    try:
        config = load_config(argv)
        configure_logging("exporter", config.log_level)
        disable_created_metrics()
        service = ExporterService(config)
    except ExporterError as e:
        configure_logging("exporter")
        logger.error("Exporter failed to start", code=e.code, message=e.message, details=e.details)
        return 1

    service.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
