"""
Post-link annotation of the execution graph.

Depth, time percentage, severity, top consumers, root selection and the
multi-parent diagnostic. All functions take the flat node list; edges are
resolved through an id -> index map built on demand.
"""

from __future__ import annotations

from collections import defaultdict, deque

from profilesense.parser.config import SeverityThresholds
from profilesense.parser.models import (
    ExecutionTreeNode,
    HotspotSeverity,
    NodeType,
)

ROOT_FRAGMENT_ID = "Fragment 0"
ROOT_PIPELINE_ID = "Pipeline 0"


def _index_by_id(nodes: list[ExecutionTreeNode]) -> dict[str, int]:
    # Last node wins if two nodes share an id
    return {node.id: index for index, node in enumerate(nodes)}


def select_root_index(nodes: list[ExecutionTreeNode]) -> int | None:
    """
    Pick the node closest to the client.

    First RESULT_SINK operator, else the first node of Fragment 0 /
    Pipeline 0, else the first node. None for an empty list.
    """
    for index, node in enumerate(nodes):
        if "RESULT_SINK" in node.operator_name:
            return index

    for index, node in enumerate(nodes):
        if node.fragment_id == ROOT_FRAGMENT_ID and node.pipeline_id == ROOT_PIPELINE_ID:
            return index

    return 0 if nodes else None


def placeholder_root() -> ExecutionTreeNode:
    """Synthetic root for a graph without operators."""
    return ExecutionTreeNode(
        id="root",
        operator_name="UNKNOWN",
        node_type=NodeType.UNKNOWN,
    )


def compute_depths(nodes: list[ExecutionTreeNode], root_index: int) -> None:
    """
    Set each reachable node's depth to its BFS distance from the root.

    Nodes not reachable from the root keep their current depth (0).
    """
    index_by_id = _index_by_id(nodes)
    visited = {root_index}
    queue: deque[tuple[int, int]] = deque([(root_index, 0)])

    while queue:
        index, depth = queue.popleft()
        node = nodes[index]
        node.depth = depth

        for child_id in node.children:
            child_index = index_by_id.get(child_id)
            if child_index is None or child_index in visited:
                continue
            visited.add(child_index)
            queue.append((child_index, depth + 1))


def classify_severity(
    percentage: float,
    thresholds: SeverityThresholds,
) -> HotspotSeverity:
    """Map a time percentage to a severity. Comparisons are inclusive."""
    if percentage >= thresholds.critical:
        return HotspotSeverity.CRITICAL
    if percentage >= thresholds.high:
        return HotspotSeverity.HIGH
    if percentage >= thresholds.medium:
        return HotspotSeverity.MEDIUM
    if percentage >= thresholds.low:
        return HotspotSeverity.LOW
    return HotspotSeverity.NONE


def annotate_time(
    nodes: list[ExecutionTreeNode],
    thresholds: SeverityThresholds,
) -> int:
    """
    Set time percentage and severity on every node with a decoded time.

    The total is the sum of every node's own execution time. Nothing is
    annotated when the total is zero.

    Returns:
        Total execution time in nanoseconds
    """
    total = sum(
        node.metrics.operator_total_time or 0
        for node in nodes
    )
    if total == 0:
        return 0

    for node in nodes:
        own = node.metrics.operator_total_time
        if own is None:
            continue

        percentage = own / total * 100.0
        node.time_percentage = percentage

        severity = classify_severity(percentage, thresholds)
        if severity is not HotspotSeverity.NONE:
            node.is_hotspot = True
            node.hotspot_severity = severity

    return total


def mark_top_consumers(nodes: list[ExecutionTreeNode]) -> None:
    """
    Flag the two nodes with the highest own execution time.

    Missing times count as zero; ties keep parse order.
    """
    ranked = sorted(
        nodes,
        key=lambda node: node.metrics.operator_total_time or 0,
        reverse=True,
    )

    if ranked:
        ranked[0].is_most_consuming = True
    if len(ranked) > 1:
        ranked[1].is_second_most_consuming = True


def find_multi_parent_nodes(nodes: list[ExecutionTreeNode]) -> dict[str, list[str]]:
    """
    Child ids referenced by more than one parent, with the parent ids.

    Only reports; the graph is left untouched.
    """
    parents: dict[str, list[str]] = defaultdict(list)
    for node in nodes:
        for child_id in node.children:
            parents[child_id].append(node.id)

    return {
        child_id: parent_ids
        for child_id, parent_ids in parents.items()
        if len(parent_ids) > 1
    }
