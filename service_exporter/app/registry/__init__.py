"""
Metric catalogue and the registry fetch tasks write into.
"""

from .catalog import CATALOG, MetricKind, MetricSpec, catalog_by_name
from .aggregator import MetricAggregator, Sample, fold_samples

__all__ = ["CATALOG", "MetricKind", "MetricSpec", "catalog_by_name", "MetricAggregator", "Sample", "fold_samples"]
