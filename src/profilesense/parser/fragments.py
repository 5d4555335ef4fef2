"""
Fragment and pipeline segmentation of the MergedProfile body.

    Fragments:
      Fragment 0:
        Pipeline 0(instance_num=1):
           - WaitWorkerTime: avg 18.605us, max 18.605us, min 18.605us
          RESULT_SINK_OPERATOR(id=2147483647):
            ...
      Fragment 1:
        ...

Fragments end at the next fragment header at the same or lower
indentation; pipelines end at the next pipeline or fragment header.
"""

from __future__ import annotations

import logging

from profilesense.parser.blocks import find_block_end
from profilesense.parser.models import Fragment, Pipeline
from profilesense.parser.operators import extract_operators, is_operator_header
from profilesense.parser.patterns import FRAGMENTS_MARKER, PATTERNS, ProfilePatterns

logger = logging.getLogger(__name__)


def _start_line(lines: list[str]) -> int:
    for index, line in enumerate(lines):
        if line.strip().startswith(FRAGMENTS_MARKER):
            return index
    return 0


def extract_fragments(
    text: str,
    patterns: ProfilePatterns = PATTERNS,
) -> list[Fragment]:
    """
    Split a MergedProfile body into fragments.

    Scanning starts at the "Fragments:" line when there is one. A fragment
    without any parseable pipeline is still returned, with no pipelines.
    Returns an empty list when no fragment header is found.
    """
    lines = text.split("\n")
    fragments: list[Fragment] = []

    index = _start_line(lines)
    while index < len(lines):
        match = patterns.fragment_header.match(lines[index].strip())
        if match is None:
            index += 1
            continue

        end = find_block_end(
            lines,
            index,
            lambda trimmed: bool(patterns.fragment_header.match(trimmed)),
        )
        fragments.append(
            parse_fragment("\n".join(lines[index:end]), match.group(1), patterns)
        )
        index = end

    logger.debug("Segmented %d fragments", len(fragments))
    return fragments


def parse_fragment(
    text: str,
    fragment_id: str,
    patterns: ProfilePatterns = PATTERNS,
) -> Fragment:
    """
    Parse one fragment block.

    Args:
        text: Fragment block, header line included
        fragment_id: Numeric id from the header ("0" for "Fragment 0:")
    """
    return Fragment(
        id=f"Fragment {fragment_id}",
        pipelines=extract_pipelines(text, patterns),
    )


def _ends_pipeline(trimmed: str, patterns: ProfilePatterns) -> bool:
    return bool(
        patterns.pipeline_header.match(trimmed)
        or patterns.fragment_header.match(trimmed)
    )


def extract_pipelines(
    text: str,
    patterns: ProfilePatterns = PATTERNS,
) -> list[Pipeline]:
    """Split a fragment block into pipelines, in order of appearance."""
    lines = text.split("\n")
    pipelines: list[Pipeline] = []

    index = 0
    while index < len(lines):
        match = patterns.pipeline_header.match(lines[index].strip())
        if match is None:
            index += 1
            continue

        end = find_block_end(
            lines,
            index,
            lambda trimmed: _ends_pipeline(trimmed, patterns),
        )
        block = "\n".join(lines[index:end])

        pipelines.append(
            parse_pipeline(block, match.group(1), match.group(2), patterns)
        )

        index = end

    return pipelines


def pipeline_counters(
    text: str,
    patterns: ProfilePatterns = PATTERNS,
) -> dict[str, str]:
    """`- Key: Value` lines of a pipeline block before its first operator."""
    counters: dict[str, str] = {}

    for line in text.split("\n")[1:]:
        if is_operator_header(line, patterns):
            break

        match = patterns.key_value.match(line)
        if match is None:
            continue

        key = match.group(1).strip()
        if key:
            counters[key] = match.group(2).strip()

    return counters


def parse_pipeline(
    text: str,
    pipeline_id: str,
    instance_num: str,
    patterns: ProfilePatterns = PATTERNS,
) -> Pipeline:
    """
    Parse one pipeline block.

    The header's instance count is stored as the "instance_num" counter.
    The block text is kept verbatim for re-segmentation by the graph
    builder.
    """
    metrics = {"instance_num": instance_num}
    metrics.update(pipeline_counters(text, patterns))

    return Pipeline(
        id=f"Pipeline {pipeline_id}",
        metrics=metrics,
        operators=extract_operators(text, patterns),
        raw_text=text,
    )
