"""
Renders GraphQL queries and variables from family descriptors.
"""

import textwrap
from typing import Any, Dict, List

from ..window import TimeWindow
from .families import MINUTE, Dataset, FamilyDescriptor
from .tasks import Scope, ScopeType


def _window_filter(dataset: Dataset) -> str:
    if dataset.window == MINUTE:
        # 1m groups are keyed by the minute they start at
        predicates = ["datetime: $mintime"]
    else:
        predicates = ["datetime_geq: $mintime", "datetime_lt: $maxtime"]
    if dataset.filter:
        predicates.append(dataset.filter)
    return ", ".join(predicates)


def _indent(text: str, level: int) -> str:
    return textwrap.indent(textwrap.dedent(text).strip(), "    " * level)


def _render_dataset(dataset: Dataset, level: int) -> str:
    head = f"{dataset.alias}: {dataset.field}" if dataset.alias else dataset.field
    pad = "    " * level
    return (
        f"{pad}{head}(limit: $limit, filter: {{ {_window_filter(dataset)} }}) {{\n"
        f"{_indent(dataset.selection, level + 1)}\n"
        f"{pad}}}"
    )


def _variable_declarations(descriptor: FamilyDescriptor) -> str:
    if descriptor.scope == ScopeType.ACCOUNT:
        declarations = ["$accountID: String!"]
    else:
        declarations = ["$zoneIDs: [String!]"]
    declarations.append("$mintime: Time!")
    if any(dataset.window != MINUTE for dataset in descriptor.datasets):
        declarations.append("$maxtime: Time!")
    declarations.append("$limit: Int!")
    return ", ".join(declarations)


def build_query(descriptor: FamilyDescriptor) -> str:
    """Render the query selecting every dataset of a GraphQL family."""
    if not descriptor.datasets:
        raise ValueError(f"family {descriptor.name} has no GraphQL datasets")

    lines: List[str] = [f"query ({_variable_declarations(descriptor)}) {{", "    viewer {"]
    if descriptor.scope == ScopeType.ACCOUNT:
        lines.append("        accounts(filter: { accountTag: $accountID }) {")
    else:
        lines.append("        zones(filter: { zoneTag_in: $zoneIDs }) {")
        lines.append("            zoneTag")
    for dataset in descriptor.datasets:
        lines.append(_render_dataset(dataset, 3))
    lines.extend(["        }", "    }", "}"])
    return "\n".join(lines)


def build_variables(
    descriptor: FamilyDescriptor,
    scope: Scope,
    window: TimeWindow,
    limit: int
) -> Dict[str, Any]:
    """Variables matching the declarations of ``build_query``."""
    variables: Dict[str, Any] = {"limit": limit}
    if descriptor.scope == ScopeType.ACCOUNT:
        variables["accountID"] = scope.account.id
    else:
        variables["zoneIDs"] = scope.zone_ids

    window_vars = window.as_variables()
    variables["mintime"] = window_vars["mintime"]
    if "$maxtime" in _variable_declarations(descriptor):
        variables["maxtime"] = window_vars["maxtime"]
    return variables


def extract_rows(data: Dict[str, Any], scope_type: ScopeType) -> List[Dict[str, Any]]:
    """Pull the per-zone or per-account rows out of a ``viewer`` response."""
    viewer = data.get("viewer") or {}
    key = "accounts" if scope_type == ScopeType.ACCOUNT else "zones"
    rows = viewer.get(key)
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise TypeError(f"viewer.{key} is not a list")
    return rows
