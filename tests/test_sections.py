"""
Tests for top-level section extraction.

Test philosophy:
- Sections end at the next known top-level marker, never at counter lines
- Summary projection keeps known keys and drops the rest
- Session variables are decoded from JSON, tolerating brackets in strings
"""

from __future__ import annotations

import pytest

from profilesense.exceptions import (
    InvalidFormatError,
    MissingFieldError,
    ParseErrorKind,
    UnexpectedEofError,
)
from profilesense.parser.sections import (
    extract_merged_profile,
    extract_section,
    parse_session_variables,
    parse_summary,
)


DOC = """Summary:
   - Profile ID: abc-1
   - Task Type: QUERY
   - Total: 1sec240ms
   - Task State: OK
   - User: root
   - Default Db: tpch
   - Sql Statement: SELECT a FROM t WHERE b = 'x:y'
   - Unknown Key: dropped
Execution Summary:
   - Workload Group: normal
   - Doris Version: doris-2.1.3
ChangedSessionVariables:
[
  {"VarName": "sql_mode", "CurrentValue": "[STRICT]", "DefaultValue": ""},
  {"VarName": "enable_profile", "CurrentValue": "true", "DefaultValue": "false"}
]
MergedProfile:
     Fragments:
       Fragment 0:
"""


# =============================================================================
# Section Extraction
# =============================================================================


class TestExtractSection:
    """Test marker-delimited section bodies."""

    def test_stops_at_next_marker(self) -> None:
        """The Summary body ends before Execution Summary."""
        body = extract_section(DOC, "Summary:")

        assert "Profile ID: abc-1" in body
        assert "Workload Group" not in body

    def test_last_section_runs_to_end(self) -> None:
        body = extract_merged_profile(DOC)

        assert "Fragments:" in body
        assert "Fragment 0:" in body

    def test_counter_lines_are_not_markers(self) -> None:
        """A '- Summary: ...' counter line does not end the section."""
        doc = "Summary:\n   - Profile ID: a\n   - Summary: nested\n   - User: u\n"

        body = extract_section(doc, "Summary:")

        assert "User: u" in body

    def test_missing_marker(self) -> None:
        with pytest.raises(MissingFieldError) as exc_info:
            extract_section("Summary:\n   - Profile ID: a\n", "MergedProfile:")

        assert exc_info.value.kind == ParseErrorKind.MISSING_FIELD
        assert "MergedProfile:" in exc_info.value.field


# =============================================================================
# Summary
# =============================================================================


class TestParseSummary:
    """Test the summary projection."""

    def test_known_fields(self) -> None:
        summary = parse_summary(DOC)

        assert summary.query_id == "abc-1"
        assert summary.query_type == "QUERY"
        assert summary.query_state == "OK"
        assert summary.user == "root"
        assert summary.default_db == "tpch"
        assert summary.total_time == "1sec240ms"
        assert summary.total_time_ms == 1240.0

    def test_values_keep_colons(self) -> None:
        """Only the first colon separates key from value."""
        summary = parse_summary(DOC)

        assert summary.sql_statement == "SELECT a FROM t WHERE b = 'x:y'"

    def test_execution_summary_is_merged(self) -> None:
        summary = parse_summary(DOC)

        assert summary.workload_group == "normal"
        assert summary.doris_version == "doris-2.1.3"

    def test_missing_optional_fields(self) -> None:
        summary = parse_summary("Summary:\n   - Profile ID: only\n")

        assert summary.query_id == "only"
        assert summary.user is None
        assert summary.total_time == ""
        assert summary.total_time_ms is None

    def test_missing_summary(self) -> None:
        with pytest.raises(MissingFieldError):
            parse_summary("MergedProfile:\n")


# =============================================================================
# Session Variables
# =============================================================================


class TestParseSessionVariables:
    """Test ChangedSessionVariables decoding."""

    def test_decodes_array(self) -> None:
        variables = parse_session_variables(DOC)

        assert len(variables) == 2
        assert variables[0]["VarName"] == "sql_mode"
        assert variables[1]["CurrentValue"] == "true"

    def test_brackets_inside_strings(self) -> None:
        """A ']' inside a JSON string does not close the array."""
        variables = parse_session_variables(DOC)

        assert variables[0]["CurrentValue"] == "[STRICT]"

    def test_missing_marker(self) -> None:
        with pytest.raises(MissingFieldError):
            parse_session_variables("Summary:\n")

    def test_no_array(self) -> None:
        with pytest.raises(InvalidFormatError):
            parse_session_variables("ChangedSessionVariables:\nnone\n")

    def test_unbalanced_brackets(self) -> None:
        doc = 'ChangedSessionVariables:\n[\n  {"VarName": "a", "CurrentValue": "b"}\n'

        with pytest.raises(InvalidFormatError) as exc_info:
            parse_session_variables(doc)

        assert exc_info.value.kind == ParseErrorKind.INVALID_FORMAT
        assert not isinstance(exc_info.value, UnexpectedEofError)
        assert "Unbalanced" in exc_info.value.message

    def test_invalid_json(self) -> None:
        with pytest.raises(InvalidFormatError) as exc_info:
            parse_session_variables("ChangedSessionVariables:\n[{\"VarName\": }]\n")

        assert exc_info.value.source == "session_variables"

    def test_not_string_maps(self) -> None:
        with pytest.raises(InvalidFormatError):
            parse_session_variables("ChangedSessionVariables:\n[1, 2]\n")
