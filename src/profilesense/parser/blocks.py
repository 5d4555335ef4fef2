"""
Indentation-delimited block detection shared by every segmenter.

A block starts at a header line and runs until the first later non-blank
line that is indented no deeper than the header and is itself a
sibling-or-higher header. Fragments, pipelines and operators all use this
rule; operators additionally stop at any pipeline or fragment header.
"""

from __future__ import annotations

from typing import Callable, Sequence

LinePredicate = Callable[[str], bool]


def indent_of(line: str) -> int:
    """Count of leading whitespace characters."""
    return len(line) - len(line.lstrip())


def find_block_end(
    lines: Sequence[str],
    start: int,
    is_terminator: LinePredicate,
    *,
    hard_stop: LinePredicate | None = None,
) -> int:
    """
    Index one past the last line of the block whose header is lines[start].

    Args:
        lines: The text split into lines
        start: Index of the header line
        is_terminator: Called with a trimmed line at indent <= the header's;
            True ends the block there
        hard_stop: Called with every trimmed non-blank line; True ends the
            block regardless of indentation

    Returns:
        End index (exclusive). len(lines) when no terminator follows.
    """
    base_indent = indent_of(lines[start])

    for index in range(start + 1, len(lines)):
        line = lines[index]
        trimmed = line.strip()
        if not trimmed:
            continue

        if indent_of(line) <= base_indent and is_terminator(trimmed):
            return index

        if hard_stop is not None and hard_stop(trimmed):
            return index

    return len(lines)
