"""
Single entry point for parsing Doris profile dumps.

This module handles:
- Rejecting empty or oversized input
- Parsing the Summary and ChangedSessionVariables sections
- Segmenting the MergedProfile body into fragments and pipelines
- Building the annotated execution graph
- Enforcing the node-count limit

Error handling philosophy: optional parts (session variables, individual
operators) are dropped with a debug log; anything that prevents building a
graph raises a typed ParseError and no partial Profile is returned.
"""

from __future__ import annotations

import logging
from pathlib import Path

from profilesense.exceptions import InvalidFormatError, ParseError, ProfileIOError
from profilesense.graph.builder import build_execution_tree
from profilesense.parser.config import DEFAULT_CONFIG, ParserConfig
from profilesense.parser.fragments import extract_fragments
from profilesense.parser.models import Profile
from profilesense.parser.sections import (
    extract_merged_profile,
    parse_session_variables,
    parse_summary,
)

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024


def _check_input_size(text: str, config: ParserConfig) -> None:
    size_mb = len(text.encode("utf-8")) / _BYTES_PER_MB
    if size_mb > config.max_input_size_mb:
        raise InvalidFormatError(
            f"Profile too large: {size_mb:.1f}MB exceeds limit of "
            f"{config.max_input_size_mb}MB",
            detail="Increase ParserConfig.max_input_size_mb to parse larger profiles",
            source="size_check",
        )


def parse_profile(text: str, config: ParserConfig | None = None) -> Profile:
    """
    Parse a Doris profile dump into a Profile.

    Args:
        text: Full profile text as printed by Doris
        config: Resource limits and severity thresholds. If None, uses
            DEFAULT_CONFIG; pass get_config().parser_config() to apply
            PROFILESENSE_* settings.

    Returns:
        Profile with summary, fragments and the annotated execution graph

    Raises:
        InvalidFormatError: Empty or oversized input, no fragments, or too
            many graph nodes
        MissingFieldError: No Summary or no MergedProfile section

    Example:
        >>> profile = parse_profile(Path("profile.txt").read_text())
        >>> profile.summary.query_id
        '37f4f7ab99a741ed-8fd24882055ce279'
        >>> [n.operator_name for n in profile.execution_tree.hotspots()]
        ['OLAP_SCAN_OPERATOR']
    """
    if not text.strip():
        raise InvalidFormatError("Empty profile text", source="input")

    config = config or DEFAULT_CONFIG
    _check_input_size(text, config)

    summary = parse_summary(text)

    try:
        session_variables = parse_session_variables(text)
    except ParseError as e:
        logger.debug("Session variables unavailable: %s", e.message)
    else:
        summary = summary.model_copy(
            update={
                "session_variables": session_variables,
                "variables": {
                    var["VarName"]: var.get("CurrentValue", "")
                    for var in session_variables
                    if "VarName" in var
                },
            }
        )

    merged = extract_merged_profile(text)

    fragments = extract_fragments(merged)
    if not fragments:
        raise InvalidFormatError(
            "No fragments found in MergedProfile",
            source="merged_profile",
        )

    tree = build_execution_tree(fragments, config.thresholds)

    if len(tree.nodes) > config.max_nodes:
        raise InvalidFormatError(
            f"Profile has {len(tree.nodes):,} operators, exceeds limit of "
            f"{config.max_nodes:,}",
            detail="Increase ParserConfig.max_nodes to parse larger profiles",
            source="node_count",
        )

    logger.debug(
        "Parsed profile %s: %d fragments, %d nodes",
        summary.query_id,
        len(fragments),
        len(tree.nodes),
    )
    return Profile(summary=summary, fragments=fragments, execution_tree=tree)


def parse_profile_file(
    path: str | Path,
    config: ParserConfig | None = None,
) -> Profile:
    """
    Parse a profile dump from a UTF-8 text file.

    Raises:
        ProfileIOError: If the file cannot be read
        ParseError: If the content cannot be parsed
    """
    filepath = Path(path)

    try:
        text = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ProfileIOError(
            f"File is not valid UTF-8: {filepath}",
            detail=str(e),
            source="file_read",
        ) from e
    except OSError as e:
        raise ProfileIOError(
            f"Cannot read file: {filepath}",
            detail=str(e),
            source="file_read",
        ) from e

    return parse_profile(text, config)
