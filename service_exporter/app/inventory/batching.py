"""
Zone batching for the GraphQL analytics API.

The API rejects queries whose ``zoneTag_in`` filter names more zones than
its limit, so every zone-scoped query is issued per batch.
"""

from typing import List, Sequence, TypeVar

from .models import Zone

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into contiguous chunks of at most ``size``, preserving order."""
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


def batch_zones(zones: Sequence[Zone], limit: int) -> List[List[Zone]]:
    """Partition zones into query-sized batches. No zones means no batches."""
    return chunked(zones, limit)
