"""
Pydantic models for parsed Doris query profiles.

The structure is:
- Profile: Top-level result of one parse call
- ProfileSummary: Query identity and metadata from the Summary sections
- Fragment -> Pipeline -> Operator: The MergedProfile hierarchy as printed
- ExecutionTree: The reconstructed operator graph, annotated with timing

Graph edges are stored as child node ids, not object references. The graph
may assign one node to several parents; see profilesense.graph.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field


class NodeType(str, Enum):
    """Operator category derived from the operator name."""

    TABLE_SCAN = "table_scan"
    EXCHANGE = "exchange"
    HASH_JOIN = "hash_join"
    AGGREGATE = "aggregate"
    SORT = "sort"
    LIMIT = "limit"
    PROJECT = "project"
    FILTER = "filter"
    UNION = "union"
    RESULT_SINK = "result_sink"
    DATA_STREAM_SINK = "data_stream_sink"
    UNKNOWN = "unknown"


class HotspotSeverity(str, Enum):
    """
    Severity of a node's share of total execution time.

    CRITICAL: >= 50% of operator time
    HIGH: >= 30%
    MEDIUM: >= 15%
    LOW: >= 5%
    NONE: below every threshold, or no timing data
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        """Enable sorting by severity (NONE < LOW < ... < CRITICAL)."""
        if not isinstance(other, HotspotSeverity):
            return NotImplemented
        return self.rank < other.rank


_SEVERITY_RANK = {
    HotspotSeverity.NONE: 0,
    HotspotSeverity.LOW: 1,
    HotspotSeverity.MEDIUM: 2,
    HotspotSeverity.HIGH: 3,
    HotspotSeverity.CRITICAL: 4,
}


class MetricItem(BaseModel):
    """
    One "- Key: Value" counter line.

    Indented sub-statistics below a counter become its children, so a
    counter section is a forest of MetricItems.
    """

    key: str
    value: str = ""
    children: list[MetricItem] = Field(default_factory=list)

    def walk(self) -> Iterator[MetricItem]:
        """Yield this item and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


def find_metric(items: list[MetricItem], key: str) -> MetricItem | None:
    """First top-level item with the given key."""
    for item in items:
        if item.key == key:
            return item
    return None


class ProfileSummary(BaseModel):
    """Query identity and metadata from the Summary / Execution Summary blocks."""

    model_config = ConfigDict(frozen=True)

    query_id: str = ""
    start_time: str = ""
    end_time: str = ""
    total_time: str = Field(
        default="",
        description="Total time as printed, e.g. '1sec240ms'",
    )
    total_time_ms: float | None = Field(
        default=None,
        description="Total time decoded to milliseconds",
    )
    query_state: str = ""
    sql_statement: str = ""
    doris_version: str = ""
    query_type: str | None = None
    user: str | None = None
    default_db: str | None = None
    default_catalog: str | None = None
    workload_group: str | None = None
    variables: dict[str, str] = Field(
        default_factory=dict,
        description="Changed session variables, VarName -> CurrentValue",
    )
    session_variables: list[dict[str, str]] = Field(
        default_factory=list,
        description="ChangedSessionVariables JSON array as decoded",
    )


class Operator(BaseModel):
    """
    One operator as printed inside a pipeline.

    `metrics` is a flat projection of the operator: header-derived ids
    (nereids_id, dest_id, exchange_type, table_name), plan info keys with a
    "plan_" prefix, and every common/custom counter.
    """

    id: str
    name: str
    metrics: dict[str, str] = Field(default_factory=dict)


class Pipeline(BaseModel):
    """A pipeline block: counters, operators, and the text it was cut from."""

    id: str
    metrics: dict[str, str] = Field(default_factory=dict)
    operators: list[Operator] = Field(default_factory=list)
    raw_text: str = Field(
        default="",
        repr=False,
        description="Verbatim pipeline block, re-segmented by the graph builder",
    )


class Fragment(BaseModel):
    """A physical execution unit of the distributed plan."""

    id: str
    pipelines: list[Pipeline] = Field(default_factory=list)


class OperatorMetrics(BaseModel):
    """Decoded headline metrics of one operator."""

    operator_total_time: int | None = Field(
        default=None,
        description="Average ExecTime across instances, in nanoseconds",
    )
    operator_total_time_raw: str | None = Field(
        default=None,
        description="ExecTime display value, e.g. '683.359ms'",
    )
    rows_returned: int | None = None
    input_rows: int | None = None
    memory_used: int | None = Field(
        default=None,
        description="Peak memory in bytes",
    )


class ExecutionTreeNode(BaseModel):
    """
    A node of the reconstructed execution graph.

    `children` holds the ids of the operators feeding data into this one
    (consumer -> producer), so sources such as table scans are leaves.
    """

    id: str
    operator_name: str
    node_type: NodeType = NodeType.UNKNOWN
    plan_node_id: int | None = None
    metrics: OperatorMetrics = Field(default_factory=OperatorMetrics)
    children: list[str] = Field(default_factory=list)
    depth: int = 0
    is_hotspot: bool = False
    hotspot_severity: HotspotSeverity = HotspotSeverity.NONE
    fragment_id: str | None = None
    pipeline_id: str | None = None
    table_name: str | None = None
    time_percentage: float | None = None
    is_most_consuming: bool = False
    is_second_most_consuming: bool = False
    unique_metrics: dict[str, str] = Field(default_factory=dict)
    plan_info: list[MetricItem] = Field(default_factory=list)
    common_counters: list[MetricItem] = Field(default_factory=list)
    custom_counters: list[MetricItem] = Field(default_factory=list)


class ExecutionTree(BaseModel):
    """
    The operator graph of one query.

    `root` is a copy of the node chosen as root; `nodes` is the flat list in
    parse order (fragment, pipeline, operator).
    """

    root: ExecutionTreeNode
    nodes: list[ExecutionTreeNode] = Field(default_factory=list)

    def node_by_id(self, node_id: str) -> ExecutionTreeNode | None:
        """Look up a node by its synthesized id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def children_of(self, node: ExecutionTreeNode) -> list[ExecutionTreeNode]:
        """Resolve a node's child ids, skipping ids not present in the graph."""
        index = {n.id: n for n in self.nodes}
        return [index[child_id] for child_id in node.children if child_id in index]

    def hotspots(self) -> list[ExecutionTreeNode]:
        """Nodes flagged as hotspots, in graph order."""
        return [n for n in self.nodes if n.is_hotspot]


class Profile(BaseModel):
    """Result of parsing one profile dump."""

    summary: ProfileSummary
    fragments: list[Fragment] = Field(default_factory=list)
    execution_tree: ExecutionTree

    @property
    def all_operators(self) -> list[Operator]:
        """Every operator across fragments and pipelines, in print order."""
        return [
            op
            for fragment in self.fragments
            for pipeline in fragment.pipelines
            for op in pipeline.operators
        ]
