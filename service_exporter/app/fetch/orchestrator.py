"""
Scrape pass orchestration.

One pass resolves the inventory, partitions zones into batches and runs one
fetch task per (account, account family) and (zone batch, zone family). Tasks
run concurrently and report failures as results; nothing a task raises
reaches its siblings or the caller of ``run_pass``.
"""

import asyncio
import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from shared.errors import DecodeError
from shared.logging import get_logger, set_pass_id, set_task_context
from shared.metrics import MetricsCollector

from ..adapters.cloudflare_client import CloudflareClient
from ..adapters.graphql_client import QueryClient
from ..inventory.batching import batch_zones
from ..inventory.models import Account, Zone
from ..inventory.resolver import InventoryResolver
from ..registry.aggregator import MetricAggregator, Sample
from ..window import TimeWindow
from .families import ALL_FAMILIES, FamilyDescriptor
from .query_builder import build_query, build_variables, extract_rows
from .tasks import FetchTask, PassReport, Scope, ScopeType, TaskGroup, TaskResult


class FetchOrchestrator:
    """Runs scrape passes against the shared clients and aggregator."""

    def __init__(
        self,
        resolver: InventoryResolver,
        query_client: QueryClient,
        api: CloudflareClient,
        aggregator: MetricAggregator,
        families: Iterable[FamilyDescriptor] = ALL_FAMILIES,
        batch_size: int = 10,
        scrape_delay: int = 300,
        query_limit: int = 9999,
        task_timeout: float = 20.0,
        enrich_timeout: Optional[float] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.resolver = resolver
        self.query_client = query_client
        self.api = api
        self.aggregator = aggregator
        self.families = list(families)
        self.batch_size = batch_size
        self.scrape_delay = scrape_delay
        self.query_limit = query_limit
        self.task_timeout = task_timeout
        self.enrich_timeout = enrich_timeout if enrich_timeout is not None else task_timeout
        self.metrics = metrics
        self.clock = clock
        self.logger = get_logger("exporter.orchestrator")

        # Queries only depend on the descriptor, render them once.
        self._queries: Dict[str, str] = {
            family.name: build_query(family)
            for family in self.families
            if family.is_graphql
        }

    def plan_tasks(self, accounts: Sequence[Account], batches: Sequence[Sequence[Zone]]) -> List[FetchTask]:
        """One task per account and account family, and per batch and zone family."""
        account_families = [family for family in self.families if family.scope == ScopeType.ACCOUNT]
        zone_families = [family for family in self.families if family.scope == ScopeType.ZONE_BATCH]

        tasks = []
        for account in accounts:
            scope = Scope.for_account(account)
            tasks.extend(FetchTask(family.name, scope) for family in account_families)

        for index, batch in enumerate(batches):
            scope = Scope.for_batch(batch, index)
            tasks.extend(FetchTask(family.name, scope) for family in zone_families)

        return tasks

    async def run_pass(self) -> PassReport:
        """Run one complete scrape pass and wait for all of its tasks."""
        pass_id = set_pass_id()
        if self.metrics:
            with self.metrics.track_pass():
                return await self._run_pass(pass_id)
        return await self._run_pass(pass_id)

    async def _run_pass(self, pass_id: str) -> PassReport:
        accounts, zones = await self.resolver.resolve()
        batches = batch_zones(zones, self.batch_size)
        tasks = self.plan_tasks(accounts, batches)

        self.logger.info(
            "Scrape pass started",
            accounts=len(accounts),
            zones=len(zones),
            batches=len(batches),
            tasks=len(tasks)
        )

        group = TaskGroup()
        by_name = {family.name: family for family in self.families}
        for fetch_task in tasks:
            group.spawn(fetch_task, self._run_task(by_name[fetch_task.family], fetch_task))
        results = await group.join()

        report = PassReport(
            pass_id=pass_id,
            accounts=len(accounts),
            zones=len(zones),
            batches=len(batches),
            results=results
        )
        self.logger.info(
            "Scrape pass finished",
            succeeded=len(report.succeeded),
            failed=len(report.failed)
        )
        return report

    async def _run_task(self, family: FamilyDescriptor, fetch_task: FetchTask) -> TaskResult:
        scope = fetch_task.scope
        set_task_context(family.name, scope.identifier)
        start_time = time.time()

        try:
            applied = await asyncio.wait_for(
                self._fetch_and_apply(family, scope),
                timeout=self._task_budget(family)
            )
        except Exception as e:
            error = str(e) or type(e).__name__
            self.logger.error(
                "Fetch task failed",
                family=family.name,
                scope_type=scope.type.value,
                scope=scope.identifier,
                error=error
            )
            self._record(family, scope, ok=False)
            return TaskResult(
                task=fetch_task,
                ok=False,
                error=error,
                duration=time.time() - start_time
            )

        self._record(family, scope, ok=True)
        return TaskResult(task=fetch_task, ok=True, samples=applied, duration=time.time() - start_time)

    async def _fetch_and_apply(self, family: FamilyDescriptor, scope: Scope) -> int:
        window = TimeWindow.current(self.scrape_delay, now=self.clock() if self.clock else None)

        extras = await self._enrich(family, scope)

        if family.is_graphql:
            data = await self.query_client.run(
                self._queries[family.name],
                build_variables(family, scope, window, self.query_limit)
            )
            rows = extract_rows(data, family.scope)
        else:
            rows = await family.fetch(self.api, scope, window)

        samples = self._decode(family, scope, rows, extras)
        return self.aggregator.apply(samples, window, source=scope.identifier)

    def _task_budget(self, family: FamilyDescriptor) -> float:
        if family.enrich is None:
            return self.task_timeout
        return self.task_timeout + self.enrich_timeout

    async def _enrich(self, family: FamilyDescriptor, scope: Scope) -> Dict[str, Any]:
        """Run the family's lookups; a timeout leaves the fetch without them."""
        if family.enrich is None:
            return {}
        try:
            return await asyncio.wait_for(family.enrich(self.api, scope), timeout=self.enrich_timeout)
        except asyncio.TimeoutError:
            self.logger.warning(
                "Enrichment timed out, continuing without it",
                family=family.name,
                scope=scope.identifier,
                timeout=self.enrich_timeout
            )
            return {}

    def _decode(
        self,
        family: FamilyDescriptor,
        scope: Scope,
        rows: Sequence[Dict[str, Any]],
        extras: Dict[str, Any]
    ) -> List[Sample]:
        # Validate every row before decoding any, so a bad payload writes nothing.
        try:
            models = [family.model.model_validate(row) for row in rows]
        except ValidationError as e:
            raise DecodeError(
                f"Unexpected {family.name} payload",
                details={"errors": e.error_count()}
            ) from e

        samples: List[Sample] = []
        for model in models:
            samples.extend(family.decode(model, scope, extras))
        return samples

    def _record(self, family: FamilyDescriptor, scope: Scope, ok: bool):
        if self.metrics:
            self.metrics.record_fetch(family.name, scope.type.value, ok)
