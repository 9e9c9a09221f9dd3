"""
Adapters package for the exporter.

HTTP client wrappers for the Cloudflare APIs:

- auth: credential header injection shared by every request
- cloudflare_client: REST v4 inventory and ruleset lookups
- graphql_client: analytics queries

Adapters raise shared errors and never retry; the next scrape pass is the
retry.
"""

from .auth import CloudflareAuth, build_http_client
from .cloudflare_client import CloudflareClient
from .graphql_client import QueryClient

__all__ = [
    "CloudflareAuth",
    "build_http_client",
    "CloudflareClient",
    "QueryClient",
]
