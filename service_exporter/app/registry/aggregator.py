"""
Process-wide metric registry updated in place by fetch tasks.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from shared.logging import get_logger
from shared.errors import ConfigurationError, RegistrationError

from ..window import TimeWindow
from .catalog import CATALOG, MetricKind, MetricSpec


@dataclass
class Sample:
    """One value for one label set of a catalogue metric."""
    name: str
    labels: Dict[str, str]
    value: float = 0.0

    def key(self) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        return self.name, tuple(sorted(self.labels.items()))


def fold_samples(samples: Iterable[Sample], specs: Dict[str, MetricSpec]) -> List[Sample]:
    """Merge samples sharing a name and label set.

    Counters are summed; for gauges the last sample in input order wins.
    Output order follows the first occurrence of each key.
    """
    merged: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], Sample] = {}
    for sample in samples:
        key = sample.key()
        existing = merged.get(key)
        if existing is None:
            merged[key] = Sample(sample.name, dict(sample.labels), sample.value)
            continue
        spec = specs.get(sample.name)
        if spec is not None and spec.kind == MetricKind.COUNTER:
            existing.value += sample.value
        else:
            existing.value = sample.value
    return list(merged.values())


def build_denylist(names: Iterable[str], specs: Dict[str, MetricSpec]) -> Set[str]:
    """Validate configured metric names against the catalogue.

    Counter names may be given with or without their `_total` suffix.
    """
    denied = set()
    unknown = []
    for name in names:
        name = (name or "").strip()
        if not name:
            continue
        if name not in specs and f"{name}_total" in specs:
            name = f"{name}_total"
        if name in specs:
            denied.add(name)
        else:
            unknown.append(name)
    unknown = sorted(set(unknown))
    if unknown:
        raise ConfigurationError(
            "Unknown metrics in denylist",
            details={"unknown": unknown}
        )
    return denied


class MetricAggregator:
    """Registers catalogue metrics and applies samples to them.

    Counters are incremented at most once per label set, source scope and
    time window, so two passes that resolve the same window do not double
    count while distinct scopes writing one label set still sum.
    """

    def __init__(
        self,
        catalog: Iterable[MetricSpec] = CATALOG,
        denylist: Iterable[str] = (),
        registry: Optional[CollectorRegistry] = None
    ):
        self.registry = registry or CollectorRegistry()
        self.specs: Dict[str, MetricSpec] = {spec.name: spec for spec in catalog}
        self.denylist = build_denylist(denylist, self.specs)
        self.logger = get_logger("exporter.aggregator")

        self._instruments: Dict[str, Any] = {}
        self._applied_windows: Dict[Tuple[str, Tuple[str, ...], str], datetime] = {}
        self._lock = threading.Lock()
        self._register()

    def _register(self):
        for spec in self.specs.values():
            if spec.name in self.denylist:
                self.logger.info("Metric denied, not registering", metric=spec.name)
                continue
            instrument_cls = Counter if spec.kind == MetricKind.COUNTER else Gauge
            self._instruments[spec.name] = instrument_cls(
                spec.name,
                spec.documentation,
                list(spec.labels),
                registry=self.registry
            )

    @property
    def registered(self) -> Set[str]:
        return set(self._instruments)

    def verify(self, families: Iterable[Any]):
        """Fail start-up when a family writes a metric the catalogue lacks."""
        missing = sorted({
            name
            for family in families
            for name in family.metrics
            if name not in self.specs
        })
        if missing:
            raise RegistrationError(
                "Families reference unregistered metrics",
                details={"missing": missing}
            )

    def update(
        self,
        name: str,
        labels: Dict[str, str],
        value: float,
        window: Optional[TimeWindow] = None,
        source: str = ""
    ) -> bool:
        """Apply one value. Returns False when it was discarded."""
        if name in self.denylist:
            return False

        spec = self.specs.get(name)
        if spec is None:
            raise RegistrationError(f"Metric {name} is not registered", details={"metric": name})

        if set(labels) != set(spec.labels):
            raise RegistrationError(
                f"Label mismatch for {name}",
                details={"expected": list(spec.labels), "got": sorted(labels)}
            )
        values = tuple(str(labels[label]) for label in spec.labels)
        instrument = self._instruments[name].labels(*values)

        with self._lock:
            if spec.kind == MetricKind.GAUGE:
                instrument.set(value)
                return True

            if window is not None:
                key = (name, values, source)
                last = self._applied_windows.get(key)
                if last is not None and window.start <= last:
                    self.logger.debug(
                        "Window already applied, skipping counter",
                        metric=name,
                        source=source,
                        window_start=window.start.isoformat()
                    )
                    return False
                self._applied_windows[key] = window.start

            if value < 0:
                self.logger.warning("Negative counter increment dropped", metric=name, value=value)
                return False
            instrument.inc(value)
            return True

    def apply(
        self,
        samples: Iterable[Sample],
        window: Optional[TimeWindow] = None,
        source: str = ""
    ) -> int:
        """Fold and apply one scope's samples. Returns how many were applied."""
        applied = 0
        for sample in fold_samples(samples, self.specs):
            if self.update(sample.name, sample.labels, sample.value, window, source):
                applied += 1
        return applied

    def value(self, name: str, labels: Dict[str, str]) -> Optional[float]:
        """Current exposed value of a series, or None if absent."""
        spec = self.specs.get(name)
        if spec is None or name not in self._instruments:
            return None
        return self.registry.get_sample_value(name, labels)

    def render(self) -> bytes:
        """Prometheus text exposition of the registry."""
        return generate_latest(self.registry)
