"""
Credential injection for Cloudflare API requests.
"""

from typing import Generator, Optional

import httpx

from shared.config import ExporterConfig
from shared.errors import ConfigurationError


class CloudflareAuth(httpx.Auth):
    """Attaches either a bearer token or the email + key header pair.

    The token wins when both credential sets are configured. Credentials are
    fixed at construction; there is no rotation path.
    """

    def __init__(self, api_token: str = "", api_email: str = "", api_key: str = ""):
        if not api_token and not (api_email and api_key):
            raise ConfigurationError(
                "Please provide CF_API_KEY+CF_API_EMAIL or CF_API_TOKEN"
            )
        if api_token:
            self._headers = {"Authorization": f"Bearer {api_token}"}
        else:
            self._headers = {"X-Auth-Email": api_email, "X-Auth-Key": api_key}

    @property
    def scheme(self) -> str:
        return "token" if "Authorization" in self._headers else "email_key"

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers.update(self._headers)
        yield request

    @classmethod
    def from_config(cls, config: ExporterConfig) -> "CloudflareAuth":
        return cls(
            api_token=config.cf_api_token,
            api_email=config.cf_api_email,
            api_key=config.cf_api_key,
        )


def build_http_client(config: ExporterConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Create the single HTTP client shared by the REST and GraphQL adapters."""
    return httpx.AsyncClient(
        auth=CloudflareAuth.from_config(config),
        timeout=httpx.Timeout(config.request_timeout),
        headers={"User-Agent": "cloudflare-exporter/1.0.0"},
        transport=transport,
    )
