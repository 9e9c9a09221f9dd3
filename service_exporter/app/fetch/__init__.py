"""
Per-pass fetching: family descriptors, queries, decoders and orchestration.
"""

from .families import ACCOUNT_FAMILIES, ALL_FAMILIES, ZONE_FAMILIES, Dataset, FamilyDescriptor
from .orchestrator import FetchOrchestrator
from .query_builder import build_query, build_variables
from .tasks import FetchTask, PassReport, Scope, ScopeType, TaskGroup, TaskResult

__all__ = [
    "ACCOUNT_FAMILIES",
    "ALL_FAMILIES",
    "ZONE_FAMILIES",
    "Dataset",
    "FamilyDescriptor",
    "FetchOrchestrator",
    "build_query",
    "build_variables",
    "FetchTask",
    "PassReport",
    "Scope",
    "ScopeType",
    "TaskGroup",
    "TaskResult",
]
