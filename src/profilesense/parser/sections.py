"""
Top-level section extraction for Doris profile dumps.

A dump is laid out as a sequence of unindented section headers:

    Summary:
       - Profile ID: ...
    Execution Summary:
       - Parse SQL Time: ...
    ChangedSessionVariables:
    [ {"VarName": ..., "CurrentValue": ..., "DefaultValue": ...} ]
    MergedProfile:
         Fragments:
           Fragment 0:
             ...

Each section runs from its marker to the next known top-level marker.
"""

from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from profilesense.exceptions import InvalidFormatError, MissingFieldError
from profilesense.parser.models import ProfileSummary
from profilesense.parser.patterns import (
    EXECUTION_SUMMARY_MARKER,
    MERGED_PROFILE_MARKER,
    PATTERNS,
    SECTION_MARKERS,
    SESSION_VARIABLES_MARKER,
    SUMMARY_MARKER,
)
from profilesense.parser.values import decode_duration_ms

logger = logging.getLogger(__name__)

# Summary key -> ProfileSummary field
_SUMMARY_FIELDS: dict[str, str] = {
    "Profile ID": "query_id",
    "Task Type": "query_type",
    "Start Time": "start_time",
    "End Time": "end_time",
    "Total": "total_time",
    "Task State": "query_state",
    "Doris Version": "doris_version",
    "Sql Statement": "sql_statement",
    "User": "user",
    "Default Db": "default_db",
    "Default Catalog": "default_catalog",
    "Workload Group": "workload_group",
}

_SESSION_VARIABLES = TypeAdapter(list[dict[str, str]])


def _is_section_header(trimmed: str) -> bool:
    if trimmed.startswith(("-", "[", "{")):
        return False
    return trimmed.startswith(SECTION_MARKERS)


def extract_section(doc: str, marker: str) -> str:
    """
    Return the body of the section introduced by `marker`.

    The body starts right after the first occurrence of the marker and ends
    before the next line (other than the marker line itself) that begins
    with a top-level section marker.

    Raises:
        MissingFieldError: If the marker does not occur in the document
    """
    pos = doc.find(marker)
    if pos == -1:
        raise MissingFieldError(f"{marker} section", source="sections")

    remaining = doc[pos + len(marker):]

    offset = 0
    for index, line in enumerate(remaining.split("\n")):
        if index > 0 and _is_section_header(line.strip()):
            return remaining[:offset]
        offset += len(line) + 1

    return remaining


def _key_values(block: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in block.splitlines():
        match = PATTERNS.key_value.match(line)
        if match is None:
            continue
        key = match.group(1).strip()
        if key:
            fields[key] = match.group(2).strip()
    return fields


def parse_summary(doc: str) -> ProfileSummary:
    """
    Parse the Summary section, merged with Execution Summary when present.

    Only known keys are kept; everything else in the block is dropped.
    Session variables are not filled in here; see parse_session_variables().

    Raises:
        MissingFieldError: If the document has no Summary section
    """
    fields = _key_values(extract_section(doc, SUMMARY_MARKER))

    if EXECUTION_SUMMARY_MARKER in doc:
        fields.update(_key_values(extract_section(doc, EXECUTION_SUMMARY_MARKER)))

    values = {
        field: fields[key]
        for key, field in _SUMMARY_FIELDS.items()
        if key in fields
    }
    total_time = values.get("total_time", "")
    logger.debug("Summary keys: %d parsed, %d projected", len(fields), len(values))

    return ProfileSummary(
        total_time_ms=decode_duration_ms(total_time) if total_time else None,
        **values,
    )


def _bracket_span(text: str, start: int) -> str:
    """Text from the '[' at `start` through its matching ']'."""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    raise InvalidFormatError(
        "Unbalanced brackets in ChangedSessionVariables",
        source="session_variables",
    )


def parse_session_variables(doc: str) -> list[dict[str, str]]:
    """
    Decode the ChangedSessionVariables JSON array.

    Raises:
        MissingFieldError: If the section marker is absent
        InvalidFormatError: If no array follows the marker, the array is
            never closed, or it is not a JSON array of string maps
    """
    pos = doc.find(SESSION_VARIABLES_MARKER)
    if pos == -1:
        raise MissingFieldError(
            f"{SESSION_VARIABLES_MARKER} section",
            source="session_variables",
        )

    after = doc[pos + len(SESSION_VARIABLES_MARKER):]
    start = after.find("[")
    if start == -1:
        raise InvalidFormatError(
            "No JSON array found after ChangedSessionVariables",
            source="session_variables",
        )

    payload = _bracket_span(after, start)

    try:
        return _SESSION_VARIABLES.validate_json(payload)
    except ValidationError as e:
        raise InvalidFormatError(
            "Failed to parse ChangedSessionVariables JSON",
            detail=str(e),
            source="session_variables",
        ) from e


def extract_merged_profile(doc: str) -> str:
    """Body of the MergedProfile section."""
    return extract_section(doc, MERGED_PROFILE_MARKER)
