"""Doris profile dump parsing module."""

from profilesense.parser.composer import parse_profile, parse_profile_file
from profilesense.parser.config import (
    DEFAULT_CONFIG,
    STRICT_CONFIG,
    ParserConfig,
    SeverityThresholds,
)
from profilesense.parser.models import (
    ExecutionTree,
    ExecutionTreeNode,
    Fragment,
    HotspotSeverity,
    MetricItem,
    NodeType,
    Operator,
    OperatorMetrics,
    Pipeline,
    Profile,
    ProfileSummary,
)

__all__ = [
    "DEFAULT_CONFIG",
    "STRICT_CONFIG",
    "ExecutionTree",
    "ExecutionTreeNode",
    "Fragment",
    "HotspotSeverity",
    "MetricItem",
    "NodeType",
    "Operator",
    "OperatorMetrics",
    "ParserConfig",
    "Pipeline",
    "Profile",
    "ProfileSummary",
    "SeverityThresholds",
    "parse_profile",
    "parse_profile_file",
]
