"""
Precompiled recognizers for the Doris profile text format.

The segmenters receive a ProfilePatterns instance instead of compiling
their own expressions. PATTERNS is built once at import and never mutated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


# Top-level section markers, in document order
SUMMARY_MARKER = "Summary:"
EXECUTION_SUMMARY_MARKER = "Execution Summary:"
SESSION_VARIABLES_MARKER = "ChangedSessionVariables:"
MERGED_PROFILE_MARKER = "MergedProfile:"

SECTION_MARKERS: tuple[str, ...] = (
    SUMMARY_MARKER,
    EXECUTION_SUMMARY_MARKER,
    SESSION_VARIABLES_MARKER,
    MERGED_PROFILE_MARKER,
)

FRAGMENTS_MARKER = "Fragments:"

# Operator body markers
COMMON_COUNTERS_MARKER = "CommonCounters:"
CUSTOM_COUNTERS_MARKER = "CustomCounters:"
PLAN_INFO_MARKER = "- PlanInfo"
RUNTIME_FILTER_MARKER = "RuntimeFilterInfo:"


@dataclass(frozen=True)
class ProfilePatterns:
    """Immutable set of compiled line recognizers."""

    # "   - Key: Value"
    key_value: re.Pattern[str]

    # "Fragment 0:"
    fragment_header: re.Pattern[str]

    # "Pipeline 0(instance_num=1):"
    pipeline_header: re.Pattern[str]

    # "DATA_STREAM_SINK_OPERATOR(dest_id=25)"
    stream_sink_header: re.Pattern[str]

    # "LOCAL_EXCHANGE_OPERATOR(PASSTHROUGH)(id=-10)"
    local_exchange_header: re.Pattern[str]

    # "SORT_OPERATOR(nereids_id=1966)(id=28)" or "RESULT_SINK_OPERATOR(id=0)"
    standard_header: re.Pattern[str]

    # "FILE_SCAN_OPERATOR (id=20. nereids_id=1791. table name = web_sales)"
    dotted_header: re.Pattern[str]


def compile_patterns() -> ProfilePatterns:
    """Compile the recognizer set."""
    return ProfilePatterns(
        key_value=re.compile(r"^\s*-\s+([^:]+):\s*(.*)$"),
        fragment_header=re.compile(r"^\s*Fragment\s+(\d+):"),
        pipeline_header=re.compile(r"^\s*Pipeline\s+(\d+)\(instance_num=(\d+)\):"),
        stream_sink_header=re.compile(r"^([A-Z][A-Z0-9_]*)\(dest_id=(-?\d+)\)"),
        local_exchange_header=re.compile(
            r"^([A-Z][A-Z0-9_]*)\(([A-Z][A-Z0-9_]*)\)\(id=(-?\d+)\)"
        ),
        standard_header=re.compile(
            r"^([A-Z][A-Z0-9_]*)(?:\(nereids_id=(\d+)\)\s*)?\(id=(-?\d+)"
        ),
        dotted_header=re.compile(
            r"^([A-Z][A-Z0-9_]*)\s+\(id=(-?\d+)\.?\s*(?:nereids_id=(\d+))?"
        ),
    )


PATTERNS = compile_patterns()
