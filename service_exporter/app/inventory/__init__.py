"""
Account and zone discovery, filtering and batching.
"""

from .models import Account, Zone, FREE_PLAN_ID
from .batching import batch_zones
from .resolver import InventoryResolver

__all__ = ["Account", "Zone", "FREE_PLAN_ID", "batch_zones", "InventoryResolver"]
