"""
Cloudflare REST (v4) client for inventory and configuration lookups.
"""

from typing import Any, Dict, List, Optional

import httpx

from shared.logging import get_logger
from shared.errors import ExternalServiceError

from ..inventory.models import Account, Zone

# Largest page size the accounts and zones listings accept.
API_PER_PAGE_LIMIT = 50

FIREWALL_MANAGED_PHASE = "http_request_firewall_managed"


class CloudflareClient:
    """Thin wrapper over the v4 REST endpoints the exporter needs."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout: Optional[float] = None
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = get_logger("exporter.cloudflare_client")

    async def list_accounts(self) -> List[Account]:
        """List every account visible to the configured credentials."""
        results = await self._paginate("/accounts", {})
        return [Account.from_api(item) for item in results]

    async def list_zones(self, account: Account) -> List[Zone]:
        """List the zones owned by one account."""
        results = await self._paginate("/zones", {"account.id": account.id})
        return [Zone.from_api(item, account) for item in results]

    async def list_rulesets(self, zone_id: str) -> List[Dict[str, Any]]:
        envelope = await self._get(f"/zones/{zone_id}/rulesets")
        return envelope.get("result") or []

    async def get_ruleset(self, zone_id: str, ruleset_id: str) -> Dict[str, Any]:
        envelope = await self._get(f"/zones/{zone_id}/rulesets/{ruleset_id}")
        return envelope.get("result") or {}

    async def get_firewall_rule_descriptions(self, zone_id: str) -> Dict[str, str]:
        """Map managed firewall rule IDs of a zone to their descriptions.

        A ruleset that cannot be fetched is skipped; failing to list the
        rulesets at all raises.
        """
        descriptions: Dict[str, str] = {}
        for ruleset in await self.list_rulesets(zone_id):
            if ruleset.get("phase") != FIREWALL_MANAGED_PHASE:
                continue
            try:
                detail = await self.get_ruleset(zone_id, ruleset["id"])
            except ExternalServiceError as e:
                self.logger.error(
                    "Failed to fetch ruleset",
                    zone_id=zone_id,
                    ruleset_id=ruleset.get("id"),
                    error=str(e)
                )
                continue
            for rule in detail.get("rules") or []:
                descriptions[rule["id"]] = rule.get("description") or ""
        return descriptions

    async def list_pools(self, account_id: str) -> List[Dict[str, Any]]:
        """List load balancer pools of an account."""
        envelope = await self._get(f"/accounts/{account_id}/load_balancers/pools")
        return envelope.get("result") or []

    async def _paginate(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Follow result_info pages until the listing is exhausted."""
        results: List[Dict[str, Any]] = []
        page = 1
        while True:
            envelope = await self._get(
                path, {**params, "page": page, "per_page": API_PER_PAGE_LIMIT}
            )
            results.extend(envelope.get("result") or [])

            info = envelope.get("result_info") or {}
            total_pages = info.get("total_pages") or 1
            if page >= total_pages:
                return results
            page += 1

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if self.timeout is not None:
                response = await self.http_client.get(url, params=params, timeout=self.timeout)
            else:
                response = await self.http_client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise ExternalServiceError(
                service="cloudflare_api",
                message=f"Timeout requesting {path}",
                details={"path": path},
                code="UPSTREAM_TIMEOUT"
            ) from e
        except httpx.RequestError as e:
            raise ExternalServiceError(
                service="cloudflare_api",
                message=f"Request to {path} failed: {e}",
                details={"path": path}
            ) from e

        try:
            envelope = response.json()
        except ValueError:
            envelope = {}

        if response.status_code != 200 or not envelope.get("success", False):
            raise ExternalServiceError(
                service="cloudflare_api",
                message=f"Unexpected status {response.status_code} for {path}",
                details={
                    "path": path,
                    "status_code": response.status_code,
                    "errors": envelope.get("errors") or response.text[:500]
                }
            )

        self.logger.debug("Cloudflare API response", path=path, status_code=response.status_code)
        return envelope
