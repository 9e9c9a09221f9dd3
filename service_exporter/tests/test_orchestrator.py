"""
Unit tests for the fetch orchestrator and task group.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from prometheus_client import CollectorRegistry

from service_exporter.app.fetch import ACCOUNT_FAMILIES, ALL_FAMILIES, ZONE_FAMILIES, FetchOrchestrator
from service_exporter.app.fetch.tasks import FetchTask, Scope, TaskGroup, TaskResult
from service_exporter.app.inventory import InventoryResolver
from service_exporter.app.registry import MetricAggregator
from shared.errors import QueryError
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeCloudflareAPI, FakeQueryClient, TestDataFactory

NOW = datetime(2024, 1, 1, 12, 10, 30, tzinfo=timezone.utc)


def http_responder(failing_zone_ids=()):
    """Answer zone_http queries with one row per zone; fail batches containing a failing zone."""

    def respond(query, variables):
        zone_ids = variables.get("zoneIDs", [])
        if any(zone_id in failing_zone_ids for zone_id in zone_ids):
            raise QueryError("upstream exploded")
        if "httpRequests1mGroups" in query:
            return {"viewer": {"zones": [TestDataFactory.zone_http_row(zone_id) for zone_id in zone_ids]}}
        if "workersInvocationsAdaptive" in query:
            return {"viewer": {"accounts": [TestDataFactory.workers_row()]}}
        return {"viewer": {"zones": [], "accounts": []}}

    return respond


class TestFetchOrchestrator:
    """Test cases for FetchOrchestrator."""

    @pytest.fixture
    def account(self):
        return TestDataFactory.create_account(1)

    @pytest.fixture
    def zones(self, account):
        return TestDataFactory.create_zones(25, account)

    @pytest.fixture
    def api(self, account, zones):
        return FakeCloudflareAPI(accounts=[account], zones={account.id: zones})

    @pytest.fixture
    def aggregator(self):
        return MetricAggregator()

    def make_orchestrator(self, api, query_client, aggregator, clock=lambda: NOW, **kwargs):
        return FetchOrchestrator(
            InventoryResolver(api),
            query_client,
            api,
            aggregator,
            families=ALL_FAMILIES,
            batch_size=10,
            scrape_delay=300,
            clock=clock,
            **kwargs
        )

    def labels(self, zone):
        return {"zone": zone.name, "account": zone.account_label}

    def test_plan_tasks(self, account, zones, aggregator, api):
        orchestrator = self.make_orchestrator(api, FakeQueryClient(), aggregator)
        batches = [zones[:10], zones[10:20], zones[20:]]

        tasks = orchestrator.plan_tasks([account], batches)

        assert len(tasks) == len(ACCOUNT_FAMILIES) + 3 * len(ZONE_FAMILIES)
        assert {task.family for task in tasks[:len(ACCOUNT_FAMILIES)]} == {f.name for f in ACCOUNT_FAMILIES}

    @pytest.mark.asyncio
    async def test_twenty_five_zones_end_to_end(self, api, aggregator):
        query_client = FakeQueryClient()
        orchestrator = self.make_orchestrator(api, query_client, aggregator)

        report = await orchestrator.run_pass()

        assert report.zones == 25
        assert report.batches == 3
        assert len(report.results) == len(ACCOUNT_FAMILIES) + 3 * len(ZONE_FAMILIES)
        assert report.failed == []

        zone_calls = [call for call in query_client.calls if "zoneIDs" in call["variables"]]
        assert len(zone_calls) == 3 * len(ZONE_FAMILIES)
        assert sorted(len(call["variables"]["zoneIDs"]) for call in zone_calls) == \
            [5] * len(ZONE_FAMILIES) + [10] * (2 * len(ZONE_FAMILIES))

        graphql_account_families = [f for f in ACCOUNT_FAMILIES if f.is_graphql]
        account_calls = [call for call in query_client.calls if "accountID" in call["variables"]]
        assert len(account_calls) == len(graphql_account_families)

    @pytest.mark.asyncio
    async def test_failing_batch_does_not_affect_siblings(self, api, zones, aggregator):
        query_client = FakeQueryClient(http_responder(failing_zone_ids={zones[10].id}))
        orchestrator = self.make_orchestrator(api, query_client, aggregator)

        report = await orchestrator.run_pass()

        assert len(report.failed) == len(ZONE_FAMILIES)
        assert all(result.task.scope.index == 1 for result in report.failed)
        assert "upstream exploded" in report.failed[0].error

        assert aggregator.value("cloudflare_zone_requests_total", self.labels(zones[0])) == 100
        assert aggregator.value("cloudflare_zone_requests_total", self.labels(zones[10])) is None
        assert aggregator.value("cloudflare_zone_requests_total", self.labels(zones[24])) == 100

    @pytest.mark.asyncio
    async def test_repeated_pass_for_same_window_is_idempotent(self, api, zones, aggregator):
        orchestrator = self.make_orchestrator(api, FakeQueryClient(http_responder()), aggregator)
        labels = self.labels(zones[0])

        await orchestrator.run_pass()
        await orchestrator.run_pass()

        assert aggregator.value("cloudflare_zone_requests_total", labels) == 100
        assert aggregator.value("cloudflare_zone_uniques_total", labels) == 7

    @pytest.mark.asyncio
    async def test_next_window_accumulates(self, api, zones, aggregator):
        clock = {"now": NOW}
        orchestrator = self.make_orchestrator(
            api, FakeQueryClient(http_responder()), aggregator, clock=lambda: clock["now"]
        )

        await orchestrator.run_pass()
        clock["now"] = NOW + timedelta(seconds=60)
        await orchestrator.run_pass()

        assert aggregator.value("cloudflare_zone_requests_total", self.labels(zones[0])) == 200

    @pytest.mark.asyncio
    async def test_decode_error_writes_nothing(self, api, zones, aggregator):
        def respond(query, variables):
            if "httpRequests1mGroups" in query:
                rows = [TestDataFactory.zone_http_row(zone_id) for zone_id in variables["zoneIDs"]]
                rows[-1]["httpRequests1mGroups"] = "not a list"
                return {"viewer": {"zones": rows}}
            return {"viewer": {"zones": [], "accounts": []}}

        orchestrator = self.make_orchestrator(api, FakeQueryClient(respond), aggregator)

        report = await orchestrator.run_pass()

        failed = {result.task.family for result in report.failed}
        assert failed == {"zone_http"}
        assert aggregator.value("cloudflare_zone_requests_total", self.labels(zones[0])) is None

    @pytest.mark.asyncio
    async def test_slow_task_times_out(self, api, aggregator):
        class SlowQueryClient:
            async def run(self, query, variables, timeout=None):
                await asyncio.sleep(5)

        orchestrator = self.make_orchestrator(api, SlowQueryClient(), aggregator, task_timeout=0.05)

        report = await orchestrator.run_pass()

        # Only the REST pool family does not go through GraphQL.
        assert len(report.succeeded) == 1
        assert report.succeeded[0].task.family == "account_pool_health"
        assert report.failed[0].error == "TimeoutError"

    @pytest.mark.asyncio
    async def test_pool_health_via_rest(self, account, aggregator):
        api = FakeCloudflareAPI(
            accounts=[account],
            pools={account.id: [{"id": "pool-1", "name": "primary", "healthy": True, "origins": []}]}
        )
        orchestrator = self.make_orchestrator(api, FakeQueryClient(), aggregator)

        await orchestrator.run_pass()

        labels = {"account": account.label, "pool_id": "pool-1", "pool_name": "primary"}
        assert aggregator.value("cloudflare_lb_pool_health_status", labels) == 1

    @pytest.mark.asyncio
    async def test_firewall_rules_are_resolved(self, account, aggregator):
        zone = TestDataFactory.create_zone(1, account)
        api = FakeCloudflareAPI(
            accounts=[account],
            zones={account.id: [zone]},
            firewall_rules={zone.id: {"r1": "Block bots"}}
        )

        def respond(query, variables):
            if "firewallEventsAdaptiveGroups" in query:
                return {"viewer": {"zones": [{
                    "zoneTag": zone.id,
                    "firewallEventsAdaptiveGroups": [{
                        "count": 2,
                        "dimensions": {"action": "block", "source": "waf", "ruleId": "r1",
                                       "clientRequestHTTPHost": "h", "clientCountryName": "DE"},
                    }],
                }]}}
            return {"viewer": {"zones": [], "accounts": []}}

        orchestrator = self.make_orchestrator(api, FakeQueryClient(respond), aggregator)

        await orchestrator.run_pass()

        labels = {"zone": zone.name, "account": zone.account_label, "action": "block",
                  "source": "waf", "rule": "Block bots", "host": "h", "country": "DE"}
        assert aggregator.value("cloudflare_zone_firewall_events_count_total", labels) == 2

    @pytest.mark.asyncio
    async def test_accounts_sharing_a_label_are_summed(self, aggregator):
        first = TestDataFactory.create_account(1, name="Acme")
        second = TestDataFactory.create_account(2, name="acme")
        api = FakeCloudflareAPI(accounts=[first, second])
        orchestrator = self.make_orchestrator(api, FakeQueryClient(http_responder()), aggregator)

        await orchestrator.run_pass()
        await orchestrator.run_pass()

        labels = {"script_name": "worker-a", "account": "acme", "status": "success"}
        assert aggregator.value("cloudflare_worker_requests_count_total", labels) == 20

    @pytest.mark.asyncio
    async def test_slow_firewall_lookup_does_not_fail_the_task(self, account, aggregator):
        zone = TestDataFactory.create_zone(1, account)

        class SlowRulesAPI(FakeCloudflareAPI):
            async def get_firewall_rule_descriptions(self, zone_id):
                await asyncio.sleep(5)
                return {}

        api = SlowRulesAPI(accounts=[account], zones={account.id: [zone]})

        def respond(query, variables):
            if "firewallEventsAdaptiveGroups" in query:
                return {"viewer": {"zones": [{
                    "zoneTag": zone.id,
                    "firewallEventsAdaptiveGroups": [{
                        "count": 4,
                        "dimensions": {"action": "block", "source": "waf", "ruleId": "r1",
                                       "clientRequestHTTPHost": "h", "clientCountryName": "DE"},
                    }],
                }]}}
            return {"viewer": {"zones": [], "accounts": []}}

        orchestrator = self.make_orchestrator(
            api, FakeQueryClient(respond), aggregator, task_timeout=1.0, enrich_timeout=0.05
        )

        report = await orchestrator.run_pass()

        assert report.failed == []
        labels = {"zone": zone.name, "account": zone.account_label, "action": "block",
                  "source": "waf", "rule": "r1", "host": "h", "country": "DE"}
        assert aggregator.value("cloudflare_zone_firewall_events_count_total", labels) == 4

    @pytest.mark.asyncio
    async def test_fetch_outcomes_are_counted(self, api, zones):
        registry = CollectorRegistry()
        aggregator = MetricAggregator(registry=registry)
        metrics = MetricsCollector("exporter", registry)
        query_client = FakeQueryClient(http_responder(failing_zone_ids={zones[0].id}))
        orchestrator = self.make_orchestrator(api, query_client, aggregator, metrics=metrics)

        await orchestrator.run_pass()

        failed = registry.get_sample_value(
            "exporter_fetch_tasks_total",
            {"family": "zone_http", "scope_type": "zone_batch", "outcome": "error"}
        )
        succeeded = registry.get_sample_value(
            "exporter_fetch_tasks_total",
            {"family": "zone_http", "scope_type": "zone_batch", "outcome": "success"}
        )
        assert failed == 1
        assert succeeded == 2
        assert registry.get_sample_value("exporter_passes_in_flight") == 0

    @pytest.mark.asyncio
    async def test_empty_inventory(self, aggregator):
        orchestrator = self.make_orchestrator(FakeCloudflareAPI(), FakeQueryClient(), aggregator)

        report = await orchestrator.run_pass()

        assert report.results == []


class TestTaskGroup:
    """Test cases for TaskGroup."""

    @pytest.mark.asyncio
    async def test_escaped_exception_becomes_failed_result(self):
        scope = Scope.for_account(TestDataFactory.create_account())
        good = FetchTask("good", scope)
        bad = FetchTask("bad", scope)

        async def succeed():
            return TaskResult(task=good, ok=True, samples=3)

        async def explode():
            raise RuntimeError("boom")

        group = TaskGroup()
        group.spawn(good, succeed())
        group.spawn(bad, explode())

        results = await group.join()

        assert len(group) == 2
        assert results[0].ok and results[0].samples == 3
        assert not results[1].ok
        assert "boom" in results[1].error

    @pytest.mark.asyncio
    async def test_empty_group(self):
        assert await TaskGroup().join() == []
