"""
Account and zone discovery for a scrape pass.
"""

from typing import TYPE_CHECKING, Iterable, List, Sequence, Tuple

from shared.logging import get_logger

from .models import Account, Zone

if TYPE_CHECKING:
    from ..adapters.cloudflare_client import CloudflareClient

logger = get_logger("exporter.inventory")


def filter_allowed(zones: Sequence[Zone], allow: Iterable[str]) -> List[Zone]:
    """Keep only allow-listed zones. An empty allow-list keeps everything."""
    allowed = set(allow)
    if not allowed:
        return list(zones)

    filtered = [zone for zone in zones if zone.id in allowed]
    for zone in filtered:
        logger.info("Filtering zone", zone_id=zone.id, zone=zone.name)
    return filtered


def filter_excluded(zones: Sequence[Zone], deny: Iterable[str]) -> List[Zone]:
    """Drop deny-listed zones, preserving order."""
    denied = set(deny)
    if not denied:
        return list(zones)

    filtered = []
    for zone in zones:
        if zone.id in denied:
            logger.info("Exclude zone", zone_id=zone.id, zone=zone.name)
            continue
        filtered.append(zone)
    return filtered


def filter_plans(zones: Sequence[Zone], include_free: bool) -> List[Zone]:
    """Drop free-plan zones unless included, and deduplicate by zone ID."""
    seen = set()
    filtered = []
    for zone in zones:
        if zone.is_free_plan and not include_free:
            continue
        if zone.id in seen:
            continue
        seen.add(zone.id)
        filtered.append(zone)
    return filtered


class InventoryResolver:
    """Lists accounts and zones and applies the zone selection pipeline."""

    def __init__(
        self,
        api: "CloudflareClient",
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
        include_free: bool = False
    ):
        self.api = api
        self.allow = list(allow)
        self.deny = list(deny)
        self.include_free = include_free
        self.logger = get_logger("exporter.inventory.resolver")

    async def list_accounts(self) -> List[Account]:
        """List accounts; on failure the pass proceeds without any."""
        try:
            return await self.api.list_accounts()
        except Exception as e:
            self.logger.error("Failed to list accounts", error=str(e))
            return []

    async def list_zones(self, accounts: Sequence[Account]) -> List[Zone]:
        """List zones of every account, skipping accounts whose listing fails."""
        zones: List[Zone] = []
        for account in accounts:
            try:
                zones.extend(await self.api.list_zones(account))
            except Exception as e:
                self.logger.error("Failed to list zones", account_id=account.id, error=str(e))
        return zones

    def filter_zones(self, zones: Sequence[Zone]) -> List[Zone]:
        """Allow-list, then deny-list, then plan filter."""
        selected = filter_allowed(zones, self.allow)
        selected = filter_excluded(selected, self.deny)
        return filter_plans(selected, self.include_free)

    async def resolve(self) -> Tuple[List[Account], List[Zone]]:
        accounts = await self.list_accounts()
        zones = self.filter_zones(await self.list_zones(accounts))
        self.logger.debug("Inventory resolved", accounts=len(accounts), zones=len(zones))
        return accounts, zones
