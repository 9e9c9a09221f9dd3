"""
Unit tests for the metric aggregator.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from service_exporter.app.fetch import ALL_FAMILIES
from service_exporter.app.registry import CATALOG, MetricAggregator, Sample, catalog_by_name, fold_samples
from service_exporter.app.window import TimeWindow
from shared.errors import ConfigurationError, RegistrationError

ZONE_LABELS = {"zone": "example.com", "account": "acme"}
WORKER_LABELS = {"script_name": "worker-a", "account": "acme", "status": "success"}


def window_at(minute: int) -> TimeWindow:
    end = datetime(2024, 1, 1, 12, minute, tzinfo=timezone.utc)
    return TimeWindow(start=end - timedelta(seconds=60), end=end)


class TestMetricAggregator:
    """Test cases for MetricAggregator."""

    @pytest.fixture
    def aggregator(self):
        return MetricAggregator()

    def test_registers_whole_catalogue(self, aggregator):
        assert aggregator.registered == {spec.name for spec in CATALOG}

    def test_every_family_metric_is_registered(self, aggregator):
        aggregator.verify(ALL_FAMILIES)

    def test_verify_rejects_unknown_metric(self, aggregator):
        family = SimpleNamespace(name="broken", metrics=("cloudflare_zone_requests_total", "not_a_metric"))

        with pytest.raises(RegistrationError) as exc:
            aggregator.verify([family])

        assert exc.value.details["missing"] == ["not_a_metric"]

    def test_denied_metric_not_registered_or_exposed(self):
        aggregator = MetricAggregator(denylist=["cloudflare_zone_requests_total"])

        assert "cloudflare_zone_requests_total" not in aggregator.registered
        assert aggregator.update("cloudflare_zone_requests_total", ZONE_LABELS, 5) is False
        assert b"cloudflare_zone_requests_total" not in aggregator.render()
        assert b"cloudflare_zone_requests_cached_total" in aggregator.render()

    def test_unknown_denylist_entry_is_fatal(self):
        with pytest.raises(ConfigurationError) as exc:
            MetricAggregator(denylist=["cloudflare_zone_requests_total", "typo_metric"])

        assert exc.value.details["unknown"] == ["typo_metric"]

    def test_unknown_metric_update_raises(self, aggregator):
        with pytest.raises(RegistrationError):
            aggregator.update("not_a_metric", {}, 1)

    def test_label_mismatch_raises(self, aggregator):
        with pytest.raises(RegistrationError):
            aggregator.update("cloudflare_zone_requests_total", {"zone": "example.com"}, 1)

    def test_gauge_is_set(self, aggregator):
        aggregator.update("cloudflare_zone_uniques_total", ZONE_LABELS, 7)
        aggregator.update("cloudflare_zone_uniques_total", ZONE_LABELS, 3)

        assert aggregator.value("cloudflare_zone_uniques_total", ZONE_LABELS) == 3

    def test_counter_applied_once_per_window(self, aggregator):
        window = window_at(10)

        assert aggregator.update("cloudflare_zone_requests_cached_total", ZONE_LABELS, 4, window)
        assert not aggregator.update("cloudflare_zone_requests_cached_total", ZONE_LABELS, 4, window)

        assert aggregator.value("cloudflare_zone_requests_cached_total", ZONE_LABELS) == 4

    def test_counter_accumulates_across_windows(self, aggregator):
        aggregator.update("cloudflare_zone_requests_total", ZONE_LABELS, 4, window_at(10))
        aggregator.update("cloudflare_zone_requests_total", ZONE_LABELS, 6, window_at(11))

        assert aggregator.value("cloudflare_zone_requests_total", ZONE_LABELS) == 10

    def test_late_older_window_is_discarded(self, aggregator):
        aggregator.update("cloudflare_zone_requests_total", ZONE_LABELS, 4, window_at(11))

        assert not aggregator.update("cloudflare_zone_requests_total", ZONE_LABELS, 6, window_at(10))
        assert aggregator.value("cloudflare_zone_requests_total", ZONE_LABELS) == 4

    def test_window_guard_is_per_label_set(self, aggregator):
        other = {"zone": "other.com", "account": "acme"}
        window = window_at(10)

        aggregator.update("cloudflare_zone_requests_total", ZONE_LABELS, 1, window)
        aggregator.update("cloudflare_zone_requests_total", other, 2, window)

        assert aggregator.value("cloudflare_zone_requests_total", other) == 2

    def test_distinct_sources_sum_into_one_series(self, aggregator):
        window = window_at(10)

        assert aggregator.update("cloudflare_worker_requests_count_total", WORKER_LABELS, 10, window, "acc-1")
        assert aggregator.update("cloudflare_worker_requests_count_total", WORKER_LABELS, 10, window, "acc-2")
        assert not aggregator.update("cloudflare_worker_requests_count_total", WORKER_LABELS, 10, window, "acc-1")

        assert aggregator.value("cloudflare_worker_requests_count_total", WORKER_LABELS) == 20

    def test_counter_exposed_under_catalogue_name(self, aggregator):
        aggregator.update("cloudflare_zone_requests_cached_total", ZONE_LABELS, 3)

        lines = aggregator.render().decode().splitlines()

        assert 'cloudflare_zone_requests_cached_total{zone="example.com",account="acme"} 3.0' in lines

    def test_every_catalogue_name_is_exposed_verbatim(self, aggregator):
        text = aggregator.render().decode()

        for spec in CATALOG:
            assert f"# TYPE {spec.name} {spec.kind.value}" in text

    def test_denylist_accepts_name_without_total_suffix(self):
        aggregator = MetricAggregator(denylist=["cloudflare_worker_requests_count"])

        assert aggregator.denylist == {"cloudflare_worker_requests_count_total"}
        assert b"cloudflare_worker_requests_count" not in aggregator.render()

    def test_negative_counter_increment_dropped(self, aggregator):
        assert not aggregator.update("cloudflare_zone_requests_total", ZONE_LABELS, -1)

    def test_apply_folds_before_updating(self, aggregator):
        samples = [
            Sample("cloudflare_zone_requests_total", dict(ZONE_LABELS), 2),
            Sample("cloudflare_zone_requests_total", dict(ZONE_LABELS), 3),
        ]

        applied = aggregator.apply(samples, window_at(10))

        assert applied == 1
        assert aggregator.value("cloudflare_zone_requests_total", ZONE_LABELS) == 5

    def test_missing_series_has_no_value(self, aggregator):
        assert aggregator.value("cloudflare_zone_requests_total", ZONE_LABELS) is None


class TestFoldSamples:
    """Test cases for duplicate folding."""

    def test_counters_are_summed_and_gauges_keep_last(self):
        specs = catalog_by_name()
        samples = [
            Sample("cloudflare_zone_requests_total", {"zone": "a", "account": "x"}, 1),
            Sample("cloudflare_zone_uniques_total", {"zone": "a", "account": "x"}, 5),
            Sample("cloudflare_zone_requests_total", {"account": "x", "zone": "a"}, 2),
            Sample("cloudflare_zone_uniques_total", {"zone": "a", "account": "x"}, 9),
        ]

        folded = fold_samples(samples, specs)

        assert [(sample.name, sample.value) for sample in folded] == [
            ("cloudflare_zone_requests_total", 3),
            ("cloudflare_zone_uniques_total", 9),
        ]

    def test_distinct_label_sets_are_kept(self):
        samples = [
            Sample("cloudflare_zone_requests_total", {"zone": "a", "account": "x"}, 1),
            Sample("cloudflare_zone_requests_total", {"zone": "b", "account": "x"}, 1),
        ]

        assert len(fold_samples(samples, catalog_by_name())) == 2
