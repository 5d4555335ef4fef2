"""
Operator segmentation within a pipeline block.

An operator block is a header line followed by indented counter sections:

    HASH_JOIN_OPERATOR(nereids_id=1850)(id=17):
       - PlanInfo
          - join op: INNER JOIN(BROADCAST)
       CommonCounters:
          - ExecTime: avg 1.210ms, max 2.001ms, min 0.998ms
          - RowsProduced: sum 183.75K (183750), avg 3.828K (3828)
       CustomCounters:
          - ProbeRows: sum 183.75K (183750)
            - ProbeWhenBuildSideEmpty: sum 0

Four header grammars exist, tried in this order:
1. Data stream sink: DATA_STREAM_SINK_OPERATOR(dest_id=25)
2. Local exchange:   LOCAL_EXCHANGE_OPERATOR(PASSTHROUGH)(id=-10)
3. Standard:         SORT_OPERATOR(nereids_id=1966)(id=28)
4. Dotted:           FILE_SCAN_OPERATOR (id=20. nereids_id=1791. table name = web_sales)

Counter lines nest by indentation, two spaces per level, into MetricItem
trees. Unrecognized lines are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from profilesense.parser.blocks import find_block_end, indent_of
from profilesense.parser.models import MetricItem, Operator, find_metric
from profilesense.parser.patterns import (
    COMMON_COUNTERS_MARKER,
    CUSTOM_COUNTERS_MARKER,
    PATTERNS,
    PLAN_INFO_MARKER,
    RUNTIME_FILTER_MARKER,
    ProfilePatterns,
)
from profilesense.parser.values import (
    decode_aggregate,
    decode_bytes,
    decode_count,
    decode_duration,
    first_value,
    is_aggregate,
    split_aggregate,
)

logger = logging.getLogger(__name__)

# Native id assigned to data stream sinks, whose header carries none
STREAM_SINK_NATIVE_ID = -1

_TABLE_NAME_PREFIX = "table name = "

_NON_HEADER_PREFIXES = (
    "-",
    COMMON_COUNTERS_MARKER.rstrip(":"),
    CUSTOM_COUNTERS_MARKER.rstrip(":"),
    RUNTIME_FILTER_MARKER.rstrip(":"),
)

# Section names used by the block state machine
PLAN_INFO = "plan_info"
COMMON_COUNTERS = "common_counters"
CUSTOM_COUNTERS = "custom_counters"


@dataclass
class ParsedOperator:
    """
    Full parse of one operator block.

    Header-derived ids stay typed here; Operator.metrics flattens them to
    strings for external consumption.
    """

    name: str
    id: int
    nereids_id: int | None = None
    dest_id: int | None = None
    exchange_type: str | None = None
    table_name: str | None = None
    plan_info: list[MetricItem] = field(default_factory=list)
    common_counters: list[MetricItem] = field(default_factory=list)
    custom_counters: list[MetricItem] = field(default_factory=list)

    def section(self, name: str) -> list[MetricItem]:
        return getattr(self, name)


def is_operator_header(line: str, patterns: ProfilePatterns = PATTERNS) -> bool:
    """True if the line opens an operator block."""
    trimmed = line.strip()

    if trimmed.startswith(_NON_HEADER_PREFIXES):
        return False

    return any(
        pattern.match(trimmed)
        for pattern in (
            patterns.stream_sink_header,
            patterns.local_exchange_header,
            patterns.standard_header,
            patterns.dotted_header,
        )
    )


def _table_name(header: str) -> str | None:
    pos = header.find(_TABLE_NAME_PREFIX)
    if pos == -1:
        return None

    rest = header[pos + len(_TABLE_NAME_PREFIX):]
    end = rest.find(")")
    return (rest[:end] if end != -1 else rest).strip()


def parse_header(
    header: str,
    patterns: ProfilePatterns = PATTERNS,
) -> ParsedOperator | None:
    """
    Parse an operator header line into an operator with empty sections.

    Returns None when the line matches none of the header grammars.
    """
    trimmed = header.strip().rstrip(":")

    match = patterns.stream_sink_header.match(trimmed)
    if match:
        return ParsedOperator(
            name=match.group(1),
            id=STREAM_SINK_NATIVE_ID,
            dest_id=int(match.group(2)),
        )

    match = patterns.local_exchange_header.match(trimmed)
    if match:
        return ParsedOperator(
            name=match.group(1),
            id=int(match.group(3)),
            exchange_type=match.group(2),
        )

    match = patterns.standard_header.match(trimmed)
    if match:
        return ParsedOperator(
            name=match.group(1),
            id=int(match.group(3)),
            nereids_id=int(match.group(2)) if match.group(2) else None,
            table_name=_table_name(trimmed),
        )

    match = patterns.dotted_header.match(trimmed)
    if match:
        return ParsedOperator(
            name=match.group(1),
            id=int(match.group(2)),
            nereids_id=int(match.group(3)) if match.group(3) else None,
            table_name=_table_name(trimmed),
        )

    return None


def _section_switch(trimmed: str) -> str | None:
    if trimmed == COMMON_COUNTERS_MARKER:
        return COMMON_COUNTERS
    if trimmed == CUSTOM_COUNTERS_MARKER:
        return CUSTOM_COUNTERS
    if trimmed == PLAN_INFO_MARKER:
        return PLAN_INFO
    # Runtime filter details are reported alongside the custom counters
    if trimmed.startswith(RUNTIME_FILTER_MARKER):
        return CUSTOM_COUNTERS
    return None


def parse_operator_block(
    lines: list[str],
    patterns: ProfilePatterns = PATTERNS,
) -> ParsedOperator | None:
    """
    Parse one operator block (header line first).

    Returns None if the first line is not a recognizable header.
    """
    if not lines:
        return None

    operator = parse_header(lines[0], patterns)
    if operator is None:
        return None

    current: str | None = None
    # (indent, item) of the open metric path in the current section
    stack: list[tuple[int, MetricItem]] = []

    for line in lines[1:]:
        trimmed = line.strip()
        if not trimmed:
            continue

        switched = _section_switch(trimmed)
        if switched is not None:
            current = switched
            stack = []
            continue

        match = patterns.key_value.match(line)
        if match is None or current is None:
            continue

        item = MetricItem(key=match.group(1).strip(), value=match.group(2).strip())
        indent = indent_of(line)

        while stack and stack[-1][0] + 2 > indent:
            stack.pop()

        if stack:
            stack[-1][1].children.append(item)
        else:
            operator.section(current).append(item)

        stack.append((indent, item))

    return operator


def _is_pipeline_or_fragment(trimmed: str, patterns: ProfilePatterns) -> bool:
    return bool(
        patterns.pipeline_header.match(trimmed)
        or patterns.fragment_header.match(trimmed)
    )


def extract_parsed_operators(
    text: str,
    patterns: ProfilePatterns = PATTERNS,
) -> list[ParsedOperator]:
    """
    Split pipeline text into operator blocks and parse each one.

    An operator ends at the next operator header indented no deeper than
    its own, or at any pipeline or fragment header.
    """
    lines = text.split("\n")
    operators: list[ParsedOperator] = []

    index = 0
    while index < len(lines):
        if not is_operator_header(lines[index], patterns):
            index += 1
            continue

        end = find_block_end(
            lines,
            index,
            lambda trimmed: is_operator_header(trimmed, patterns),
            hard_stop=lambda trimmed: _is_pipeline_or_fragment(trimmed, patterns),
        )

        parsed = parse_operator_block(lines[index:end], patterns)
        if parsed is None:
            logger.debug("Skipping unparseable operator header: %r", lines[index].strip())
        else:
            operators.append(parsed)

        index = end

    return operators


def operator_metrics(parsed: ParsedOperator) -> dict[str, str]:
    """
    Flatten a parsed operator into one string map.

    Header ids first, then plan info with a "plan_" prefix, then common and
    custom counters. Nested counters are included; later keys win.
    """
    metrics: dict[str, str] = {}

    if parsed.nereids_id is not None:
        metrics["nereids_id"] = str(parsed.nereids_id)
    if parsed.dest_id is not None:
        metrics["dest_id"] = str(parsed.dest_id)
    if parsed.exchange_type is not None:
        metrics["exchange_type"] = parsed.exchange_type
    if parsed.table_name is not None:
        metrics["table_name"] = parsed.table_name

    for root in parsed.plan_info:
        for item in root.walk():
            metrics[f"plan_{item.key}"] = item.value

    for section in (parsed.common_counters, parsed.custom_counters):
        for root in section:
            for item in root.walk():
                metrics[item.key] = item.value

    return metrics


def extract_operators(
    text: str,
    patterns: ProfilePatterns = PATTERNS,
) -> list[Operator]:
    """Public projection of extract_parsed_operators()."""
    return [
        Operator(id=str(parsed.id), name=parsed.name, metrics=operator_metrics(parsed))
        for parsed in extract_parsed_operators(text, patterns)
    ]


# ── Metric accessors ─────────────────────────────────────────────────────


def _common_value(parsed: ParsedOperator, key: str) -> str | None:
    item = find_metric(parsed.common_counters, key)
    return item.value if item is not None else None


def _total_count(value: str) -> int | None:
    if not is_aggregate(value):
        return decode_count(value)
    return decode_aggregate(value).total


def exec_time_ns(parsed: ParsedOperator) -> int | None:
    """Average ExecTime across instances, in nanoseconds."""
    value = _common_value(parsed, "ExecTime")
    if value is None:
        return None
    if not is_aggregate(value):
        return decode_duration(value)
    return decode_aggregate(value).avg


def exec_time_display(parsed: ParsedOperator) -> str | None:
    """Representative ExecTime display string, e.g. "95.241us"."""
    value = _common_value(parsed, "ExecTime")
    return first_value(value) if value is not None else None


def rows_produced(parsed: ParsedOperator) -> int | None:
    """RowsProduced sum across instances, else the average."""
    value = _common_value(parsed, "RowsProduced")
    return _total_count(value) if value is not None else None


def input_rows(parsed: ParsedOperator) -> int | None:
    """InputRows sum across instances, else the average."""
    value = _common_value(parsed, "InputRows")
    return _total_count(value) if value is not None else None


def peak_memory(parsed: ParsedOperator) -> int | None:
    """
    MemoryUsagePeak in bytes.

    Byte sizes are decoded per aggregate label (sum, else avg). Values the
    byte decoder rejects fall back to the generic aggregate decoder.
    """
    value = _common_value(parsed, "MemoryUsagePeak")
    if value is None:
        return None

    if not is_aggregate(value):
        return decode_bytes(value)

    parts = split_aggregate(value)

    for label in ("sum", "avg"):
        if label in parts:
            decoded = decode_bytes(parts[label])
            if decoded is not None:
                return decoded

    return decode_aggregate(value).total
