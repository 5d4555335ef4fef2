"""
Hotspot detection over an annotated execution graph.

The graph builder already classified every node; this module turns the
flagged nodes into ranked, human-readable Hotspot records.
"""

from __future__ import annotations

import logging

from profilesense.analyzer.models import Hotspot
from profilesense.graph.metrics import classify_severity
from profilesense.parser.config import SeverityThresholds
from profilesense.parser.models import (
    ExecutionTreeNode,
    HotspotSeverity,
    NodeType,
    Profile,
)

logger = logging.getLogger(__name__)

_SCAN_IMPACT = {
    HotspotSeverity.CRITICAL: (
        "Critical impact on query performance. "
        "Scan operation is the primary bottleneck."
    ),
    HotspotSeverity.HIGH: (
        "High impact on query performance. Consider optimizing scan filters."
    ),
}

_TYPE_IMPACT = {
    NodeType.HASH_JOIN: (
        "Join operation may be processing large datasets or using "
        "suboptimal join strategy."
    ),
    NodeType.AGGREGATE: (
        "Aggregation operation may be processing many distinct values "
        "or large datasets."
    ),
    NodeType.SORT: "Sort operation may be processing large datasets.",
    NodeType.EXCHANGE: (
        "Data shuffle between nodes may be causing network bottleneck."
    ),
}

_DEFAULT_IMPACT = "This operator is consuming significant execution time."


def node_path(node: ExecutionTreeNode) -> str:
    """Location of a node, e.g. "Fragment 1 > Pipeline 0 > OLAP_SCAN_OPERATOR (Plan Node 3)"."""
    parts = [p for p in (node.fragment_id, node.pipeline_id) if p]
    parts.append(node.operator_name)
    path = " > ".join(parts)

    if node.plan_node_id is not None:
        path += f" (Plan Node {node.plan_node_id})"
    return path


def describe(node: ExecutionTreeNode) -> str:
    pct = (
        f"{node.time_percentage:.1f}%"
        if node.time_percentage is not None
        else "N/A"
    )
    return f"{node.operator_name} operator consuming {pct} of total execution time"


def impact(node: ExecutionTreeNode, severity: HotspotSeverity) -> str:
    """Impact text by operator category and, for scans, severity."""
    if node.node_type == NodeType.TABLE_SCAN:
        return _SCAN_IMPACT.get(severity, "Moderate impact on query performance.")
    return _TYPE_IMPACT.get(node.node_type, _DEFAULT_IMPACT)


def node_severity(
    node: ExecutionTreeNode,
    thresholds: SeverityThresholds,
) -> HotspotSeverity:
    """The node's own severity, else one derived from its time percentage."""
    if node.hotspot_severity != HotspotSeverity.NONE:
        return node.hotspot_severity
    if node.time_percentage is None:
        return HotspotSeverity.NONE
    return classify_severity(node.time_percentage, thresholds)


def detect_hotspots(
    profile: Profile,
    thresholds: SeverityThresholds | None = None,
) -> list[Hotspot]:
    """
    All hotspots of a profile, most severe first.

    Nodes of equal severity keep graph order.
    """
    thresholds = thresholds or SeverityThresholds()
    hotspots: list[Hotspot] = []

    for node in profile.execution_tree.nodes:
        severity = node_severity(node, thresholds)
        if severity == HotspotSeverity.NONE:
            continue

        hotspots.append(
            Hotspot(
                node_id=node.id,
                node_path=node_path(node),
                operator_name=node.operator_name,
                severity=severity,
                description=describe(node),
                impact=impact(node, severity),
                time_percentage=node.time_percentage,
            )
        )

    hotspots.sort(key=lambda h: h.severity.rank, reverse=True)
    logger.debug("Detected %d hotspots", len(hotspots))
    return hotspots
