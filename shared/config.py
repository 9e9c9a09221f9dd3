"""
Shared configuration management for the Cloudflare exporter.

Settings are read from the environment (and an optional ``.env`` file) using
the exporter's established variable names: ``CF_API_TOKEN``,
``CF_ZONES``, ``SCRAPE_DELAY`` and so on. Command-line flags are passed in as
keyword overrides and win over the environment.
"""

import os
from typing import List, Optional, Set, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# The GraphQL API rejects zoneTag_in filters naming more zones than this.
MAX_ZONES_PER_QUERY = 10

LOG_LEVELS = ("debug", "info", "warning", "warn", "error", "critical")


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-delimited setting, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # HTTP surface
    listen: str = Field(default=":8080", description="addr:port, omit addr to listen on all interfaces")
    metrics_path: str = Field(default="/metrics")
    enable_pprof: bool = Field(default=False, description="expose /debug/tasks")

    # Observability
    log_level: str = Field(default="info")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        value = (value or "info").lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"unsupported log level: {value}")
        return "warning" if value == "warn" else value

    @property
    def host(self) -> str:
        host, _ = self._split_listen()
        return host

    @property
    def port(self) -> int:
        _, port = self._split_listen()
        return port

    @property
    def normalized_metrics_path(self) -> str:
        if not self.metrics_path.startswith("/"):
            return "/" + self.metrics_path
        return self.metrics_path

    def _split_listen(self) -> Tuple[str, int]:
        host, _, port = self.listen.rpartition(":")
        return host or "0.0.0.0", int(port)


class ExporterConfig(BaseConfig):
    """Exporter-specific configuration."""

    service_name: str = "exporter"

    # Credentials
    cf_api_token: str = Field(default="", description="cloudflare api token (preferred)")
    cf_api_email: str = Field(default="", description="cloudflare api email, works with cf_api_key")
    cf_api_key: str = Field(default="", description="cloudflare api key, works with cf_api_email")

    # Upstream endpoints
    api_base_url: str = Field(default="https://api.cloudflare.com/client/v4")
    graphql_endpoint: str = Field(default="https://api.cloudflare.com/client/v4/graphql/")
    request_timeout: float = Field(default=10.0, gt=0)

    # Zone selection
    cf_zones: str = Field(default="", description="zones to export, comma delimited list")
    cf_exclude_zones: str = Field(default="", description="zones to exclude, comma delimited list")
    free_tier: bool = Field(default=False, description="include zones on the free plan")
    zone_batch_size: int = Field(default=MAX_ZONES_PER_QUERY, gt=0)

    # Scraping
    scrape_interval: int = Field(default=60, gt=0, description="seconds between scrape passes")
    scrape_delay: int = Field(default=300, ge=0, description="seconds subtracted from now for data latency")
    query_limit: int = Field(default=9999, gt=0)

    # Exposition
    metrics_denylist: str = Field(default="", description="metrics to not expose, comma delimited list")

    @field_validator("zone_batch_size")
    @classmethod
    def _cap_batch_size(cls, value: int) -> int:
        if value > MAX_ZONES_PER_QUERY:
            raise ValueError(f"zone_batch_size may not exceed {MAX_ZONES_PER_QUERY}")
        return value

    @property
    def has_credentials(self) -> bool:
        return bool(self.cf_api_token) or bool(self.cf_api_email and self.cf_api_key)

    @property
    def zone_ids(self) -> List[str]:
        """Allow-listed zone IDs, falling back to the deprecated ZONE_* variables."""
        if self.cf_zones:
            return split_csv(self.cf_zones)
        return [
            value.strip()
            for key, value in sorted(os.environ.items())
            if key.startswith("ZONE_") and key != "ZONE_BATCH_SIZE" and value.strip()
        ]

    @property
    def excluded_zone_ids(self) -> List[str]:
        return split_csv(self.cf_exclude_zones)

    @property
    def denied_metrics(self) -> Set[str]:
        return set(split_csv(self.metrics_denylist))

    @property
    def task_timeout(self) -> float:
        """Upper bound for the upstream fetch of a single task."""
        return self.request_timeout * 2

    @property
    def enrich_timeout(self) -> float:
        """Budget for per-zone lookups run before a fetch.

        A ruleset listing followed by up to two ruleset reads, in sequence.
        """
        return self.request_timeout * 3


def get_config(service_name: str = "exporter", **overrides) -> ExporterConfig:
    """Get configuration for the exporter, with explicit overrides applied."""
    return ExporterConfig(service_name=service_name, **overrides)
