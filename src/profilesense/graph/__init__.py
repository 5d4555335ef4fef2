"""Execution graph reconstruction from parsed fragments."""

from profilesense.graph.builder import (
    build_execution_tree,
    classify_node_type,
    create_node,
    node_id_for,
)
from profilesense.graph.linker import expected_sink_name, link_nodes
from profilesense.graph.metrics import (
    classify_severity,
    find_multi_parent_nodes,
    select_root_index,
)

__all__ = [
    "build_execution_tree",
    "classify_node_type",
    "classify_severity",
    "create_node",
    "expected_sink_name",
    "find_multi_parent_nodes",
    "link_nodes",
    "node_id_for",
    "select_root_index",
]
