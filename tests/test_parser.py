"""
Tests for the profile parser entry point.

Test philosophy:
- Test the happy path (real profile dumps parse into a full Profile)
- Test edge cases (missing optional sections, operator-less fragments)
- Test error cases (empty input, missing sections, resource limits)
- Parsing is deterministic: the same text always yields the same Profile

Each fixture is a trimmed real-world Doris profile.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator

import pytest

from profilesense import (
    InvalidFormatError,
    MissingFieldError,
    ParseError,
    ParserConfig,
    Profile,
    ProfileIOError,
    parse_profile,
    parse_profile_file,
)
from profilesense.config import CONFIG_FILE_ENV, get_config, reset_config
from profilesense.exceptions import ParseErrorKind


# =============================================================================
# Fixtures
# =============================================================================

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    """Load a profile text fixture."""
    return (FIXTURES_DIR / f"{name}.txt").read_text(encoding="utf-8")


@pytest.fixture
def minimal_text() -> str:
    """A single result sink - the smallest parseable profile."""
    return load_fixture("minimal_profile")


@pytest.fixture
def complex_text() -> str:
    """Remote file scan behind an exchange - one dominant operator."""
    return load_fixture("complex_profile")


@pytest.fixture
def join_text() -> str:
    """Aggregated hash join with local exchanges and nested counters."""
    return load_fixture("join_profile")


# =============================================================================
# Happy Path Tests
# =============================================================================


class TestParseValidProfile:
    """Test parsing of complete profile dumps."""

    def test_parse_minimal(self, minimal_text: str) -> None:
        """The smallest profile parses and roots at the result sink."""
        profile = parse_profile(minimal_text)

        assert isinstance(profile, Profile)
        assert profile.summary.query_id == "test-123"
        assert profile.summary.query_state == "OK"
        assert len(profile.execution_tree.nodes) >= 1
        assert "RESULT_SINK" in profile.execution_tree.root.operator_name

    def test_parse_complex_summary(self, complex_text: str) -> None:
        summary = parse_profile(complex_text).summary

        assert summary.query_id == "37f4f7ab99a741ed-8fd24882055ce279"
        assert summary.query_type == "QUERY"
        assert summary.total_time == "1sec240ms"
        assert summary.total_time_ms == 1240.0
        assert summary.user == "root"
        assert summary.default_catalog == "iceberg"
        assert summary.default_db == "tpcds1000_parquet"
        assert summary.workload_group == "normal"
        assert summary.sql_statement == "SELECT * FROM test"

    def test_session_variables(self, complex_text: str) -> None:
        summary = parse_profile(complex_text).summary

        assert summary.variables == {"enable_profile": "true"}
        assert summary.session_variables == [
            {
                "VarName": "enable_profile",
                "CurrentValue": "true",
                "DefaultValue": "false",
            }
        ]

    def test_session_variables_are_optional(self, minimal_text: str) -> None:
        """A profile without ChangedSessionVariables still parses."""
        summary = parse_profile(minimal_text).summary

        assert summary.variables == {}
        assert summary.session_variables == []

    def test_broken_session_variables_are_dropped(self, minimal_text: str) -> None:
        text = minimal_text.replace(
            "MergedProfile:",
            'ChangedSessionVariables:\n[{"VarName": }]\nMergedProfile:',
        )

        profile = parse_profile(text)

        assert profile.summary.variables == {}
        assert profile.summary.query_id == "test-123"

    def test_fragments(self, complex_text: str) -> None:
        profile = parse_profile(complex_text)

        assert [f.id for f in profile.fragments] == ["Fragment 0", "Fragment 1"]
        assert [op.name for op in profile.all_operators] == [
            "RESULT_SINK_OPERATOR",
            "SORT_OPERATOR",
            "DATA_STREAM_SINK_OPERATOR",
            "EXCHANGE_OPERATOR",
            "FILE_SCAN_OPERATOR",
        ]

    def test_exchange_edge(self, complex_text: str) -> None:
        """The exchange lists the data stream sink with the matching dest id."""
        tree = parse_profile(complex_text).execution_tree

        exchange = tree.node_by_id("Fragment 1-Pipeline 0-id25")
        assert "Fragment 0-Pipeline 1-dest25" in exchange.children

    def test_dominant_scan_is_critical(self, complex_text: str) -> None:
        tree = parse_profile(complex_text).execution_tree

        hotspots = tree.hotspots()
        assert [n.operator_name for n in hotspots] == ["FILE_SCAN_OPERATOR"]
        assert hotspots[0].is_most_consuming

    @pytest.mark.parametrize("name", ["minimal_profile", "complex_profile", "join_profile"])
    def test_percentages_sum_to_100(self, name: str) -> None:
        tree = parse_profile(load_fixture(name)).execution_tree

        total = sum(n.time_percentage or 0.0 for n in tree.nodes)
        assert total == pytest.approx(100.0)

    @pytest.mark.parametrize("name", ["minimal_profile", "complex_profile", "join_profile"])
    def test_deterministic(self, name: str) -> None:
        """Re-parsing the same text yields an equal Profile."""
        text = load_fixture(name)

        assert parse_profile(text).model_dump() == parse_profile(text).model_dump()

    def test_operator_less_fragment(self) -> None:
        """Fragments without operators give an empty graph with a placeholder root."""
        text = (
            "Summary:\n"
            "   - Profile ID: empty\n"
            "MergedProfile:\n"
            "     Fragments:\n"
            "       Fragment 0:\n"
            "         Pipeline 0(instance_num=1):\n"
        )

        tree = parse_profile(text).execution_tree

        assert tree.nodes == []
        assert tree.root.id == "root"


# =============================================================================
# Error Cases
# =============================================================================


class TestParseErrors:
    """Test fatal parse failures."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
    def test_empty_input(self, text: str) -> None:
        with pytest.raises(InvalidFormatError) as exc_info:
            parse_profile(text)

        assert exc_info.value.kind == ParseErrorKind.INVALID_FORMAT

    def test_missing_merged_profile(self) -> None:
        with pytest.raises(MissingFieldError):
            parse_profile("Summary:\n   - Profile ID: x\n   - Task State: OK\n")

    def test_missing_summary(self, minimal_text: str) -> None:
        text = minimal_text.replace("Summary:", "Overview:")

        with pytest.raises(MissingFieldError):
            parse_profile(text)

    def test_no_fragments(self) -> None:
        with pytest.raises(InvalidFormatError) as exc_info:
            parse_profile("Summary:\n   - Profile ID: x\nMergedProfile:\n   nothing\n")

        assert "No fragments" in exc_info.value.message

    def test_all_errors_are_parse_errors(self) -> None:
        with pytest.raises(ParseError):
            parse_profile("")

    def test_error_serialization(self) -> None:
        with pytest.raises(MissingFieldError) as exc_info:
            parse_profile("Summary:\n   - Profile ID: x\n")

        data = exc_info.value.to_dict()
        assert data["error_type"] == "MissingFieldError"
        assert data["kind"] == "missing_field"
        assert "MergedProfile:" in data["field"]


class TestResourceLimits:
    """Test size and node-count limits."""

    def test_input_too_large(self, complex_text: str) -> None:
        config = ParserConfig(max_input_size_mb=0.0001)

        with pytest.raises(InvalidFormatError) as exc_info:
            parse_profile(complex_text, config)

        assert exc_info.value.source == "size_check"

    def test_too_many_nodes(self, complex_text: str) -> None:
        config = ParserConfig(max_nodes=2)

        with pytest.raises(InvalidFormatError) as exc_info:
            parse_profile(complex_text, config)

        assert exc_info.value.source == "node_count"

    def test_limits_not_reached(self, complex_text: str) -> None:
        profile = parse_profile(complex_text, ParserConfig(max_nodes=5))

        assert len(profile.execution_tree.nodes) == 5


class TestDefaultConfig:
    """Test that parsing ignores the process-wide configuration."""

    @pytest.fixture(autouse=True)
    def fresh_config(self) -> Iterator[None]:
        reset_config()
        yield
        reset_config()

    def test_env_thresholds_are_ignored(
        self, complex_text: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROFILESENSE_CRITICAL_TIME_PERCENTAGE", "10")

        tree = parse_profile(complex_text).execution_tree

        assert [n.operator_name for n in tree.hotspots()] == ["FILE_SCAN_OPERATOR"]

    def test_config_file_limits_are_ignored(
        self,
        complex_text: str,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        path = tmp_path / "profilesense.json"
        path.write_text(json.dumps({"max_nodes": 1}))
        monkeypatch.setenv(CONFIG_FILE_ENV, str(path))

        profile = parse_profile(complex_text)

        assert len(profile.execution_tree.nodes) == 5

    def test_global_config_applies_when_passed(
        self, complex_text: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROFILESENSE_MAX_NODES", "1")

        with pytest.raises(InvalidFormatError) as exc_info:
            parse_profile(complex_text, get_config().parser_config())

        assert exc_info.value.source == "node_count"


# =============================================================================
# File Input
# =============================================================================


class TestParseProfileFile:
    """Test reading profiles from disk."""

    def test_reads_file(self) -> None:
        profile = parse_profile_file(FIXTURES_DIR / "complex_profile.txt")

        assert profile.summary.query_id == "37f4f7ab99a741ed-8fd24882055ce279"

    def test_accepts_str_path(self) -> None:
        profile = parse_profile_file(str(FIXTURES_DIR / "minimal_profile.txt"))

        assert profile.summary.query_id == "test-123"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ProfileIOError) as exc_info:
            parse_profile_file(tmp_path / "absent.txt")

        assert exc_info.value.kind == ParseErrorKind.IO
        assert exc_info.value.source == "file_read"

    def test_not_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "profile.txt"
        path.write_bytes(b"Summary:\n\xff\xfe\xfd\n")

        with pytest.raises(ProfileIOError):
            parse_profile_file(path)
