"""
GraphQL analytics query client.
"""

from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.errors import QueryError


class QueryClient:
    """Executes analytics queries against the Cloudflare GraphQL endpoint.

    One instance is shared by every fetch task. It holds no per-call state
    and takes no lock, so concurrent calls proceed in parallel over the
    underlying connection pool.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint: str = "https://api.cloudflare.com/client/v4/graphql/",
        timeout: Optional[float] = None
    ):
        self.http_client = http_client
        self.endpoint = endpoint
        self.timeout = timeout
        self.logger = get_logger("exporter.graphql_client")

    async def run(
        self,
        query: str,
        variables: Dict[str, Any],
        timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Run a query and return its ``data`` object."""
        timeout = timeout if timeout is not None else self.timeout
        payload = {"query": query, "variables": variables}

        try:
            if timeout is not None:
                response = await self.http_client.post(self.endpoint, json=payload, timeout=timeout)
            else:
                response = await self.http_client.post(self.endpoint, json=payload)
        except httpx.TimeoutException as e:
            raise QueryError("Query timed out", {"timeout": timeout}, code="UPSTREAM_TIMEOUT") from e
        except httpx.RequestError as e:
            raise QueryError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise QueryError(
                f"Unexpected status {response.status_code}",
                {"status_code": response.status_code, "body": response.text[:500]}
            )

        try:
            body = response.json()
        except ValueError as e:
            raise QueryError("Response is not valid JSON", {"body": response.text[:500]}) from e

        errors = body.get("errors")
        if errors:
            messages = [error.get("message", str(error)) for error in errors]
            raise QueryError("; ".join(messages), {"errors": errors})

        data = body.get("data")
        if not isinstance(data, dict):
            raise QueryError("Response carries no data object")

        self.logger.debug("GraphQL query completed", variables=variables)
        return data
