"""
Execution graph construction from segmented fragments.

Build order:
1. Materialize one node per operator, re-segmenting each pipeline's raw
   text so the full ParsedOperator (metric trees, typed ids) is available
2. Link nodes with the heuristics in profilesense.graph.linker
3. Annotate depth, time percentage, severity and top consumers
4. Report multi-parent nodes as a diagnostic

The result is deliberately not guaranteed to be a tree.
"""

from __future__ import annotations

import logging

from profilesense.graph.linker import link_nodes
from profilesense.graph.metrics import (
    annotate_time,
    compute_depths,
    find_multi_parent_nodes,
    mark_top_consumers,
    placeholder_root,
    select_root_index,
)
from profilesense.parser.config import SeverityThresholds
from profilesense.parser.models import (
    ExecutionTree,
    ExecutionTreeNode,
    Fragment,
    NodeType,
    OperatorMetrics,
)
from profilesense.parser.operators import (
    ParsedOperator,
    exec_time_display,
    exec_time_ns,
    extract_parsed_operators,
    input_rows,
    peak_memory,
    rows_produced,
)

logger = logging.getLogger(__name__)

# Substring -> type, first match wins. Order matters: "LOCAL_EXCHANGE_SINK"
# is an exchange, "HASH_JOIN_SINK" a hash join.
_NODE_TYPE_RULES: tuple[tuple[tuple[str, ...], NodeType], ...] = (
    (("SCAN",), NodeType.TABLE_SCAN),
    (("EXCHANGE",), NodeType.EXCHANGE),
    (("HASH_JOIN",), NodeType.HASH_JOIN),
    (("AGGREGATE", "AGGREGATION"), NodeType.AGGREGATE),
    (("SORT",), NodeType.SORT),
    (("LIMIT",), NodeType.LIMIT),
    (("PROJECT",), NodeType.PROJECT),
    (("FILTER",), NodeType.FILTER),
    (("UNION",), NodeType.UNION),
    (("RESULT_SINK",), NodeType.RESULT_SINK),
    (("DATA_STREAM_SINK", "STREAM_SINK"), NodeType.DATA_STREAM_SINK),
)


def classify_node_type(operator_name: str) -> NodeType:
    """Categorize an operator by case-insensitive substring match."""
    upper = operator_name.upper()
    for needles, node_type in _NODE_TYPE_RULES:
        if any(needle in upper for needle in needles):
            return node_type
    return NodeType.UNKNOWN


def node_id_for(parsed: ParsedOperator, fragment_id: str, pipeline_id: str) -> str:
    """
    Synthesize a graph-unique node id.

    Native ids repeat across fragments, so the fragment and pipeline are
    part of the id. Data stream sinks have no native id and use their
    destination id instead.
    """
    if parsed.dest_id is not None:
        return f"{fragment_id}-{pipeline_id}-dest{parsed.dest_id}"
    return f"{fragment_id}-{pipeline_id}-id{parsed.id}"


def _unique_metrics(parsed: ParsedOperator) -> dict[str, str]:
    unique: dict[str, str] = {
        item.key: item.value for item in parsed.plan_info
    }
    if parsed.table_name is not None:
        unique["table_name"] = parsed.table_name
    if parsed.nereids_id is not None:
        unique["nereids_id"] = str(parsed.nereids_id)
    if parsed.dest_id is not None:
        unique["dest_id"] = str(parsed.dest_id)
    if parsed.exchange_type is not None:
        unique["exchange_type"] = parsed.exchange_type
    return unique


def create_node(
    parsed: ParsedOperator,
    fragment_id: str,
    pipeline_id: str,
) -> ExecutionTreeNode:
    """Materialize an unlinked graph node from a parsed operator."""
    return ExecutionTreeNode(
        id=node_id_for(parsed, fragment_id, pipeline_id),
        operator_name=parsed.name,
        node_type=classify_node_type(parsed.name),
        plan_node_id=parsed.id,
        metrics=OperatorMetrics(
            operator_total_time=exec_time_ns(parsed),
            operator_total_time_raw=exec_time_display(parsed),
            rows_returned=rows_produced(parsed),
            input_rows=input_rows(parsed),
            memory_used=peak_memory(parsed),
        ),
        fragment_id=fragment_id,
        pipeline_id=pipeline_id,
        table_name=parsed.table_name,
        unique_metrics=_unique_metrics(parsed),
        plan_info=parsed.plan_info,
        common_counters=parsed.common_counters,
        custom_counters=parsed.custom_counters,
    )


def materialize_nodes(fragments: list[Fragment]) -> list[ExecutionTreeNode]:
    """One node per operator, in fragment, pipeline, operator order."""
    nodes: list[ExecutionTreeNode] = []
    for fragment in fragments:
        for pipeline in fragment.pipelines:
            for parsed in extract_parsed_operators(pipeline.raw_text):
                nodes.append(create_node(parsed, fragment.id, pipeline.id))
    return nodes


def build_execution_tree(
    fragments: list[Fragment],
    thresholds: SeverityThresholds | None = None,
) -> ExecutionTree:
    """
    Build the annotated execution graph for a list of fragments.

    Args:
        fragments: Output of profilesense.parser.fragments.extract_fragments
        thresholds: Severity thresholds; defaults to 50/30/15/5 percent

    Returns:
        ExecutionTree whose root is a copy of the selected root node, or a
        placeholder when there are no operators at all
    """
    thresholds = thresholds or SeverityThresholds()

    nodes = materialize_nodes(fragments)
    link_nodes(nodes)

    root_index = select_root_index(nodes)
    if root_index is not None:
        compute_depths(nodes, root_index)

    annotate_time(nodes, thresholds)
    mark_top_consumers(nodes)

    multi_parent = find_multi_parent_nodes(nodes)
    for child_id, parents in multi_parent.items():
        logger.warning(
            "Node %s has %d parents: %s", child_id, len(parents), ", ".join(parents)
        )

    if root_index is None:
        root = placeholder_root()
    else:
        root = nodes[root_index].model_copy(deep=True)

    logger.debug(
        "Built execution graph: %d nodes, root %s", len(nodes), root.id
    )
    return ExecutionTree(root=root, nodes=nodes)
