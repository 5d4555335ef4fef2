"""
Heuristic edge discovery between execution graph nodes.

Edges run consumer -> producer: a node's children feed data into it.
Four independent passes each only add edges:

1. Pipeline chain: inside one pipeline, operator i pulls from operator i+1
2. Sink correlation: SORT_OPERATOR reads what SORT_SINK_OPERATOR (same
   fragment, other pipeline, same native id) wrote. When no sink matches
   by name, a sink sharing the operator's nereids id is used instead
3. Exchange correlation: EXCHANGE_OPERATOR(id=N) receives from
   DATA_STREAM_SINK_OPERATOR(dest_id=N), usually in another fragment
4. Local exchange correlation: LOCAL_EXCHANGE_OPERATOR(id=N) receives from
   LOCAL_EXCHANGE_SINK_OPERATOR(id=N) in the same fragment

The passes can give one node several parents. That is tolerated; see
profilesense.graph.metrics.find_multi_parent_nodes.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from profilesense.parser.models import ExecutionTreeNode

logger = logging.getLogger(__name__)

_OPERATOR_SUFFIX = "_OPERATOR"


def add_child(parent: ExecutionTreeNode, child_id: str) -> bool:
    """Append a child id unless already present. Returns True if added."""
    if child_id in parent.children:
        return False
    parent.children.append(child_id)
    return True


def expected_sink_name(operator_name: str) -> str:
    """
    Name of the sink that feeds an operator across a pipeline break.

    >>> expected_sink_name("HASH_JOIN_OPERATOR")
    'HASH_JOIN_SINK_OPERATOR'
    """
    if operator_name.endswith(_OPERATOR_SUFFIX):
        return operator_name[: -len(_OPERATOR_SUFFIX)] + "_SINK" + _OPERATOR_SUFFIX
    return f"{operator_name}_SINK"


def _int_metric(node: ExecutionTreeNode, key: str) -> int | None:
    value = node.unique_metrics.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def link_pipeline_chains(nodes: list[ExecutionTreeNode]) -> int:
    """Pass 1: chain consecutive operators of each pipeline."""
    groups: dict[tuple[str | None, str | None], list[ExecutionTreeNode]] = defaultdict(list)
    for node in nodes:
        groups[(node.fragment_id, node.pipeline_id)].append(node)

    added = 0
    for group in groups.values():
        for parent, child in zip(group, group[1:]):
            added += add_child(parent, child.id)
    return added


def _is_nereids_sink(node: ExecutionTreeNode) -> bool:
    name = node.operator_name
    return (
        "SINK" in name
        and "DATA_STREAM_SINK" not in name
        and "RESULT_SINK" not in name
    )


def link_sinks(nodes: list[ExecutionTreeNode]) -> int:
    """
    Pass 2: connect operators to the sinks that materialize their input.

    Name match first; the nereids-id fallback is only tried when the name
    match finds nothing.
    """
    by_nereids: dict[tuple[str | None, int], list[ExecutionTreeNode]] = defaultdict(list)
    for node in nodes:
        nereids_id = _int_metric(node, "nereids_id")
        if nereids_id is not None:
            by_nereids[(node.fragment_id, nereids_id)].append(node)

    added = 0
    for node in nodes:
        if "SINK" in node.operator_name:
            continue

        sink_name = expected_sink_name(node.operator_name)
        match = next(
            (
                other
                for other in nodes
                if other is not node
                and other.fragment_id == node.fragment_id
                and other.pipeline_id != node.pipeline_id
                and other.operator_name == sink_name
                and other.plan_node_id == node.plan_node_id
            ),
            None,
        )

        if match is None:
            nereids_id = _int_metric(node, "nereids_id")
            if nereids_id is not None:
                match = next(
                    (
                        other
                        for other in by_nereids[(node.fragment_id, nereids_id)]
                        if other is not node
                        and other.pipeline_id != node.pipeline_id
                        and _is_nereids_sink(other)
                    ),
                    None,
                )

        if match is not None:
            added += add_child(node, match.id)

    return added


def link_exchanges(nodes: list[ExecutionTreeNode]) -> int:
    """Pass 3: exchange(id=N) <- data stream sink(dest_id=N)."""
    sinks_by_dest: dict[int, ExecutionTreeNode] = {}
    exchanges_by_id: dict[int, ExecutionTreeNode] = {}

    for node in nodes:
        name = node.operator_name
        if "DATA_STREAM_SINK" in name:
            dest_id = _int_metric(node, "dest_id")
            if dest_id is not None:
                sinks_by_dest[dest_id] = node
        elif (
            "EXCHANGE_OPERATOR" in name
            and "SINK" not in name
            and "LOCAL" not in name
            and node.plan_node_id is not None
        ):
            exchanges_by_id[node.plan_node_id] = node

    added = 0
    for dest_id, sink in sinks_by_dest.items():
        exchange = exchanges_by_id.get(dest_id)
        if exchange is not None:
            added += add_child(exchange, sink.id)
    return added


def link_local_exchanges(nodes: list[ExecutionTreeNode]) -> int:
    """Pass 4: local exchange <- local exchange sink, per fragment."""
    exchanges: dict[tuple[str | None, int], ExecutionTreeNode] = {}
    sinks: dict[tuple[str | None, int], ExecutionTreeNode] = {}

    for node in nodes:
        if node.plan_node_id is None:
            continue
        key = (node.fragment_id, node.plan_node_id)
        if "LOCAL_EXCHANGE_SINK" in node.operator_name:
            sinks[key] = node
        elif "LOCAL_EXCHANGE_OPERATOR" in node.operator_name:
            exchanges[key] = node

    added = 0
    for key, exchange in exchanges.items():
        sink = sinks.get(key)
        if sink is not None:
            added += add_child(exchange, sink.id)
    return added


def link_nodes(nodes: list[ExecutionTreeNode]) -> None:
    """Run every linking pass in order, mutating the nodes' child lists."""
    chain = link_pipeline_chains(nodes)
    sink = link_sinks(nodes)
    exchange = link_exchanges(nodes)
    local = link_local_exchanges(nodes)

    logger.debug(
        "Linked edges: chain=%d sink=%d exchange=%d local_exchange=%d",
        chain,
        sink,
        exchange,
        local,
    )
