"""
Output renderers for different formats.

Separates presentation logic from analysis logic. JSON output is produced
from the pydantic models directly; there is no manual dict construction.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING

from profilesense.parser.models import HotspotSeverity

if TYPE_CHECKING:
    from profilesense.analyzer.models import ProfileAnalysis
    from profilesense.parser.models import ExecutionTree, ExecutionTreeNode


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


def render(
    analysis: "ProfileAnalysis",
    format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """
    Render a profile analysis in the specified format.

    Args:
        analysis: Analysis to render
        format: Output format (text, json, markdown)

    Returns:
        Formatted string
    """
    if format == OutputFormat.TEXT:
        return render_text(analysis)
    elif format == OutputFormat.JSON:
        return render_json(analysis)
    elif format == OutputFormat.MARKDOWN:
        return render_markdown(analysis)
    else:
        raise ValueError(f"Unknown output format: {format}")


_SEVERITY_ICONS = {
    HotspotSeverity.CRITICAL: "🔴",
    HotspotSeverity.HIGH: "🟠",
    HotspotSeverity.MEDIUM: "🟡",
    HotspotSeverity.LOW: "🔵",
    HotspotSeverity.NONE: "⚪",
}


def _severity_icon(severity: HotspotSeverity) -> str:
    return _SEVERITY_ICONS.get(severity, "⚪")


def format_duration_ns(ns: int | None) -> str:
    """Compact display of a nanosecond duration."""
    if ns is None:
        return "N/A"
    if ns >= 1_000_000_000:
        return f"{ns / 1_000_000_000:.3f}s"
    if ns >= 1_000_000:
        return f"{ns / 1_000_000:.3f}ms"
    if ns >= 1_000:
        return f"{ns / 1_000:.3f}us"
    return f"{ns}ns"


def _node_label(node: "ExecutionTreeNode") -> str:
    time = node.metrics.operator_total_time_raw or format_duration_ns(
        node.metrics.operator_total_time
    )
    label = f"{node.operator_name} [{node.id}] {time}"

    if node.time_percentage is not None:
        label += f" ({node.time_percentage:.1f}%)"
    if node.is_hotspot:
        label += f" {_severity_icon(node.hotspot_severity)}"
    if node.table_name:
        label += f" table={node.table_name}"
    return label


def render_tree(tree: "ExecutionTree") -> list[str]:
    """
    Execution graph as indented lines, walked from the root.

    A node reachable through several parents is expanded once; later
    occurrences print as a back-reference. Nodes unreachable from the root
    are listed afterwards.
    """
    index = {node.id: node for node in tree.nodes}
    printed: set[str] = set()
    lines: list[str] = []

    stack: list[tuple[str, int]] = [(tree.root.id, 0)]
    while stack:
        node_id, level = stack.pop()
        indent = "  " * level
        node = index.get(node_id)

        if node is None:
            lines.append(f"{indent}{_node_label(tree.root)}")
            continue
        if node_id in printed:
            lines.append(f"{indent}↳ {node.operator_name} [{node_id}] (see above)")
            continue

        printed.add(node_id)
        lines.append(f"{indent}{_node_label(node)}")
        for child_id in reversed(node.children):
            stack.append((child_id, level + 1))

    unreached = [node for node in tree.nodes if node.id not in printed]
    if unreached:
        lines.append("")
        lines.append("Unreached from root:")
        for node in unreached:
            lines.append(f"  {_node_label(node)}")

    return lines


# =============================================================================
# Text renderer (terminal)
# =============================================================================


def render_text(analysis: "ProfileAnalysis") -> str:
    """Render an analysis as plain terminal text."""
    summary = analysis.profile.summary
    tree = analysis.profile.execution_tree
    lines: list[str] = []

    lines.append("=" * 60)
    lines.append("ProfileSense Analysis Report")
    lines.append("=" * 60)
    lines.append("")

    lines.append("Summary:")
    lines.append(f"  Profile ID: {summary.query_id}")
    lines.append(f"  State: {summary.query_state}")
    lines.append(f"  Total Time: {summary.total_time}")
    if summary.user:
        lines.append(f"  User: {summary.user}")
    if summary.default_db:
        lines.append(f"  Database: {summary.default_db}")
    lines.append(
        f"  Score: {analysis.performance_score}/100 ({analysis.score_category})"
    )
    lines.append("")
    lines.append(analysis.conclusion)
    lines.append("")

    lines.append("-" * 60)
    lines.append(f"EXECUTION GRAPH ({len(tree.nodes)} nodes)")
    lines.append("-" * 60)
    lines.extend(render_tree(tree))
    lines.append("")

    if analysis.hotspots:
        lines.append("-" * 60)
        lines.append("HOTSPOTS")
        lines.append("-" * 60)

        for i, hotspot in enumerate(analysis.hotspots, 1):
            lines.append("")
            lines.append(
                f"[{i}] {_severity_icon(hotspot.severity)} "
                f"{hotspot.severity.value.upper()}: {hotspot.description}"
            )
            lines.append(f"    Location: {hotspot.node_path}")
            lines.append(f"    Impact: {hotspot.impact}")
    else:
        lines.append("✓ No hotspots found")

    lines.append("")
    lines.append("=" * 60)

    return "\n".join(lines)


# =============================================================================
# JSON renderer
# =============================================================================


def render_json(analysis: "ProfileAnalysis", indent: int = 2) -> str:
    """
    Render an analysis as JSON.

    Suitable for API responses and log aggregation. Pipeline raw text is
    omitted; everything else mirrors the models.
    """
    data = analysis.model_dump(
        mode="json",
        exclude={"profile": {"fragments": {"__all__": {"pipelines": {"__all__": {"raw_text"}}}}}},
    )
    return json.dumps(data, indent=indent, ensure_ascii=False)


# =============================================================================
# Markdown renderer
# =============================================================================


def render_markdown(analysis: "ProfileAnalysis") -> str:
    """
    Render an analysis as Markdown.

    Suitable for GitHub comments/issues, Slack messages, documentation.
    """
    summary = analysis.profile.summary
    tree = analysis.profile.execution_tree
    lines: list[str] = []

    lines.append("# ProfileSense Analysis Report")
    lines.append("")

    if analysis.has_critical:
        lines.append("🔴 **Critical bottlenecks found**")
    elif analysis.hotspots:
        lines.append("🟡 **Hotspots found**")
    else:
        lines.append("✅ **No hotspots found**")
    lines.append("")
    lines.append(analysis.conclusion)
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Profile ID | `{summary.query_id}` |")
    lines.append(f"| State | {summary.query_state} |")
    lines.append(f"| Total Time | {summary.total_time} |")
    lines.append(
        f"| Score | {analysis.performance_score}/100 ({analysis.score_category}) |"
    )
    lines.append(f"| Nodes | {len(tree.nodes)} |")
    lines.append(f"| Hotspots | {len(analysis.hotspots)} |")
    lines.append("")

    if analysis.hotspots:
        lines.append("## Hotspots")
        lines.append("")
        lines.append("| # | Severity | Operator | Time % | Location |")
        lines.append("|---|----------|----------|--------|----------|")
        for i, hotspot in enumerate(analysis.hotspots, 1):
            pct = (
                f"{hotspot.time_percentage:.1f}%"
                if hotspot.time_percentage is not None
                else "N/A"
            )
            lines.append(
                f"| {i} | {_severity_icon(hotspot.severity)} {hotspot.severity.value} | "
                f"`{hotspot.operator_name}` | {pct} | {hotspot.node_path} |"
            )
        lines.append("")

    lines.append("<details>")
    lines.append("<summary>Execution Graph</summary>")
    lines.append("")
    lines.append("```")
    lines.extend(render_tree(tree))
    lines.append("```")
    lines.append("")
    lines.append("</details>")

    return "\n".join(lines)
