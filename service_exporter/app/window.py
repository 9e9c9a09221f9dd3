"""
Query time windows.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

WINDOW_LENGTH = timedelta(seconds=60)


@dataclass(frozen=True)
class TimeWindow:
    """Half-open one-minute interval ``[start, end)`` in UTC."""
    start: datetime
    end: datetime

    @classmethod
    def current(cls, delay_seconds: int, now: Optional[datetime] = None) -> "TimeWindow":
        """The latest complete minute that is at least ``delay_seconds`` old.

        Every fetch task calls this itself, so tasks started around a minute
        boundary can end up with adjacent windows.
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        shifted = now.astimezone(timezone.utc) - timedelta(seconds=delay_seconds)
        end = shifted.replace(second=0, microsecond=0)
        return cls(start=end - WINDOW_LENGTH, end=end)

    def as_variables(self) -> dict:
        return {
            "mintime": self.start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "maxtime": self.end.strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
