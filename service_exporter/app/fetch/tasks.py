"""
Fetch scopes and the task group that runs one scrape pass.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from ..inventory.models import Account, Zone


class ScopeType(str, Enum):
    """Unit a single fetch task covers."""
    ACCOUNT = "account"
    ZONE_BATCH = "zone_batch"


@dataclass(frozen=True)
class Scope:
    """Either one account or one batch of zones."""
    type: ScopeType
    account: Optional[Account] = None
    zones: Tuple[Zone, ...] = ()
    index: int = 0

    @classmethod
    def for_account(cls, account: Account) -> "Scope":
        return cls(type=ScopeType.ACCOUNT, account=account)

    @classmethod
    def for_batch(cls, zones, index: int = 0) -> "Scope":
        return cls(type=ScopeType.ZONE_BATCH, zones=tuple(zones), index=index)

    @property
    def identifier(self) -> str:
        if self.type == ScopeType.ACCOUNT:
            return self.account.id
        return f"batch-{self.index}:" + ",".join(zone.id for zone in self.zones)

    @property
    def zone_ids(self) -> List[str]:
        return [zone.id for zone in self.zones]

    def zone(self, zone_id: str) -> Optional[Zone]:
        for zone in self.zones:
            if zone.id == zone_id:
                return zone
        return None

    def base_labels(self, zone_id: Optional[str] = None) -> Optional[Dict[str, str]]:
        """Labels every sample of this scope carries, None for a foreign zone."""
        if self.type == ScopeType.ACCOUNT:
            return {"account": self.account.label}
        zone = self.zone(zone_id)
        if zone is None:
            return None
        return {"zone": zone.name, "account": zone.account_label}


@dataclass(frozen=True)
class FetchTask:
    """One (family, scope) unit of work."""
    family: str
    scope: Scope

    @property
    def name(self) -> str:
        return f"{self.family}[{self.scope.identifier}]"


@dataclass
class TaskResult:
    """Outcome of a fetch task. Failures are data, not exceptions."""
    task: FetchTask
    ok: bool
    samples: int = 0
    error: Optional[str] = None
    duration: float = 0.0


@dataclass
class PassReport:
    """Summary of one orchestration pass."""
    pass_id: str
    accounts: int = 0
    zones: int = 0
    batches: int = 0
    results: List[TaskResult] = field(default_factory=list)

    @property
    def failed(self) -> List[TaskResult]:
        return [result for result in self.results if not result.ok]

    @property
    def succeeded(self) -> List[TaskResult]:
        return [result for result in self.results if result.ok]


class TaskGroup:
    """Spawn independent units of work and join all of them.

    Units are expected to report their own failures as results; anything
    that still escapes a unit is turned into a failed result here so that
    siblings are never affected.
    """

    def __init__(self):
        self._tasks: List[Tuple[FetchTask, "asyncio.Task[Any]"]] = []

    def spawn(self, fetch_task: FetchTask, coro: Awaitable[TaskResult]) -> None:
        self._tasks.append((fetch_task, asyncio.ensure_future(coro)))

    def __len__(self) -> int:
        return len(self._tasks)

    async def join(self) -> List[TaskResult]:
        if not self._tasks:
            return []
        outcomes = await asyncio.gather(*(task for _, task in self._tasks), return_exceptions=True)
        results = []
        for (fetch_task, _), outcome in zip(self._tasks, outcomes):
            if isinstance(outcome, BaseException):
                results.append(TaskResult(task=fetch_task, ok=False, error=repr(outcome)))
            else:
                results.append(outcome)
        return results
