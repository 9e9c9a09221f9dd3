"""
Unit tests for zone discovery, filtering and batching.
"""

import pytest

from service_exporter.app.inventory import InventoryResolver, batch_zones
from service_exporter.app.inventory.batching import chunked
from service_exporter.app.inventory.models import FREE_PLAN_ID, Account, Zone
from service_exporter.app.inventory.resolver import filter_allowed, filter_excluded, filter_plans
from shared.test_helpers import FakeCloudflareAPI, TestDataFactory


class TestBatching:
    """Test cases for zone batching."""

    def test_twenty_five_zones_make_three_batches(self):
        zones = TestDataFactory.create_zones(25)

        batches = batch_zones(zones, 10)

        assert [len(batch) for batch in batches] == [10, 10, 5]
        assert [zone for batch in batches for zone in batch] == zones

    def test_exact_multiple(self):
        batches = batch_zones(TestDataFactory.create_zones(20), 10)
        assert [len(batch) for batch in batches] == [10, 10]

    def test_no_zones_no_batches(self):
        assert batch_zones([], 10) == []

    def test_batch_sizes_never_exceed_limit(self):
        for count in (1, 9, 10, 11, 31):
            batches = batch_zones(TestDataFactory.create_zones(count), 10)
            assert sum(len(batch) for batch in batches) == count
            assert all(0 < len(batch) <= 10 for batch in batches)
            assert len(batches) == -(-count // 10)

    @pytest.mark.parametrize("limit", [0, -1])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValueError):
            chunked([1, 2, 3], limit)


class TestZoneModels:
    """Test cases for inventory entities."""

    def test_zone_from_api_parses_plan_and_account(self):
        payload = {
            "id": "z1",
            "name": "example.com",
            "account": {"id": "a1", "name": "My Account"},
            "plan": {"id": FREE_PLAN_ID},
        }

        zone = Zone.from_api(payload)

        assert zone.account_id == "a1"
        assert zone.account_label == "my-account"
        assert zone.is_free_plan

    def test_zone_without_plan(self):
        zone = Zone.from_api({"id": "z1", "name": "example.com"}, Account("a1", "Owner"))

        assert zone.plan_id is None
        assert not zone.is_free_plan
        assert zone.account_name == "Owner"


class TestZoneFilters:
    """Test cases for the allow, deny and plan filters."""

    @pytest.fixture
    def zones(self):
        return TestDataFactory.create_zones(4)

    def test_empty_allow_list_keeps_everything(self, zones):
        assert filter_allowed(zones, []) == zones

    def test_allow_list_keeps_members_in_input_order(self, zones):
        allow = [zones[2].id, zones[0].id, "unknown"]
        assert filter_allowed(zones, allow) == [zones[0], zones[2]]

    def test_deny_list_drops_members(self, zones):
        assert filter_excluded(zones, [zones[1].id]) == [zones[0], zones[2], zones[3]]

    def test_free_plan_dropped_unless_included(self):
        paid = TestDataFactory.create_zone(1)
        free = TestDataFactory.create_zone(2, free=True)

        assert filter_plans([paid, free], include_free=False) == [paid]
        assert filter_plans([paid, free], include_free=True) == [paid, free]

    def test_plan_filter_deduplicates(self, zones):
        assert filter_plans(zones + zones[:2], include_free=False) == zones
        assert filter_plans(zones + zones[:2], include_free=True) == zones

    def test_pipeline_order(self, zones):
        free = TestDataFactory.create_zone(9, free=True)
        resolver = InventoryResolver(
            FakeCloudflareAPI(),
            allow=[zones[0].id, zones[1].id, free.id],
            deny=[zones[1].id],
            include_free=False
        )

        assert resolver.filter_zones(zones + [free]) == [zones[0]]


class TestInventoryResolver:
    """Test cases for InventoryResolver."""

    @pytest.mark.asyncio
    async def test_resolve_lists_zones_of_every_account(self):
        first = TestDataFactory.create_account(1)
        second = TestDataFactory.create_account(2)
        api = FakeCloudflareAPI(
            accounts=[first, second],
            zones={
                first.id: TestDataFactory.create_zones(2, first),
                second.id: TestDataFactory.create_zones(1, second, start=3),
            }
        )

        accounts, zones = await InventoryResolver(api).resolve()

        assert accounts == [first, second]
        assert [zone.name for zone in zones] == ["zone1.example.com", "zone2.example.com", "zone3.example.com"]

    @pytest.mark.asyncio
    async def test_failing_account_is_skipped(self):
        first = TestDataFactory.create_account(1)
        second = TestDataFactory.create_account(2)
        api = FakeCloudflareAPI(
            accounts=[first, second],
            zones={second.id: TestDataFactory.create_zones(2, second)},
            failing_accounts=[first.id]
        )

        accounts, zones = await InventoryResolver(api).resolve()

        assert len(accounts) == 2
        assert len(zones) == 2
        assert all(zone.account_id == second.id for zone in zones)

    @pytest.mark.asyncio
    async def test_account_listing_failure_yields_empty_inventory(self):
        api = FakeCloudflareAPI()

        async def broken():
            raise RuntimeError("boom")

        api.list_accounts = broken

        accounts, zones = await InventoryResolver(api).resolve()

        assert accounts == []
        assert zones == []
