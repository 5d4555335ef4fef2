"""
Tests for the profile counter decoders.

Test philosophy:
- Every display encoding Doris prints has a known decoded value
- Truncation, never rounding, when converting to integer units
- Unrecognized text decodes to None instead of raising
"""

from __future__ import annotations

import pytest

from profilesense.exceptions import ParseValueError
from profilesense.parser.values import (
    AggregatedValue,
    decode_aggregate,
    decode_aggregate_ms,
    decode_bytes,
    decode_count,
    decode_duration,
    decode_duration_ms,
    first_value,
    is_aggregate,
    require,
    split_aggregate,
)


# =============================================================================
# Durations
# =============================================================================


class TestDecodeDuration:
    """Test duration decoding to nanoseconds."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1sec240ms", 1_240_000_000),
            ("18.605us", 18_605),
            ("95.241us", 95_241),
            ("835.207ms", 835_207_000),
            ("683.359ms", 683_359_000),
            ("0ns", 0),
            ("100ns", 100),
            ("1.5s", 1_500_000_000),
            ("2min", 120_000_000_000),
            ("1hour2min3sec4ms", 3_723_004_000_000),
        ],
    )
    def test_known_encodings(self, text: str, expected: int) -> None:
        """Each printed form decodes to the exact nanosecond value."""
        assert decode_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "N/A", "0", "  N/A  "])
    def test_empty_values_are_zero(self, text: str) -> None:
        """Empty, N/A and a literal zero decode to 0."""
        assert decode_duration(text) == 0

    def test_bare_number_is_nanoseconds(self) -> None:
        """A number without a unit is taken as nanoseconds."""
        assert decode_duration("42") == 42

    def test_unparseable_is_none(self) -> None:
        """Text that is not a duration decodes to None."""
        assert decode_duration("abc") is None
        assert decode_duration("fastms") is None

    def test_milliseconds(self) -> None:
        """decode_duration_ms divides by 1e6."""
        assert decode_duration_ms("1sec240ms") == 1240.0
        assert decode_duration_ms("12sec5ms") == 12005.0
        assert decode_duration_ms("abc") is None


# =============================================================================
# Byte sizes and counts
# =============================================================================


class TestDecodeBytes:
    """Test 1024-based byte size decoding."""

    def test_kilobytes(self) -> None:
        assert decode_bytes("4.00 KB") == 4096

    def test_gigabytes_truncate(self) -> None:
        """1.40 GB is 1503238553.6 bytes; the fraction is dropped."""
        assert decode_bytes("1.40 GB") == 1_503_238_553

    def test_plain_bytes(self) -> None:
        assert decode_bytes("128.00 B") == 128

    @pytest.mark.parametrize("text", ["", "N/A", "0.00"])
    def test_empty_values_are_zero(self, text: str) -> None:
        assert decode_bytes(text) == 0

    def test_unparseable_is_none(self) -> None:
        assert decode_bytes("lots") is None


class TestDecodeCount:
    """Test row count decoding."""

    def test_parenthetical_wins(self) -> None:
        """The exact integer beats the abbreviated magnitude."""
        assert decode_count("183.75K (183750)") == 183750
        assert decode_count("720.000376M (720000376)") == 720000376

    def test_plain_integer(self) -> None:
        assert decode_count("1") == 1

    def test_abbreviated_magnitude(self) -> None:
        """Without a parenthetical the suffix multiplier applies."""
        assert decode_count("2.5K") == 2500
        assert decode_count("3M") == 3_000_000

    def test_empty_and_unparseable(self) -> None:
        assert decode_count("N/A") == 0
        assert decode_count("abc") is None


# =============================================================================
# Aggregates
# =============================================================================


class TestDecodeAggregate:
    """Test multi-instance aggregate counters."""

    def test_duration_aggregate(self) -> None:
        """Labels present are decoded; sum stays unset when absent."""
        value = decode_aggregate("avg 95.241us, max 95.241us, min 95.241us")

        assert value.avg == 95_241
        assert value.max == 95_241
        assert value.min == 95_241
        assert value.sum is None
        assert value.raw == "avg 95.241us, max 95.241us, min 95.241us"

    def test_count_aggregate(self) -> None:
        """Count values fall through to the count decoder."""
        value = decode_aggregate(
            "sum 183.75K (183750), avg 3.828K (3828), max 4.278K (4278), min 3.452K (3452)"
        )

        assert value.sum == 183750
        assert value.avg == 3828
        assert value.max == 4278
        assert value.min == 3452
        assert value.total == 183750

    def test_total_falls_back_to_avg(self) -> None:
        assert AggregatedValue(raw="avg 3", avg=3).total == 3

    def test_split(self) -> None:
        assert split_aggregate("avg 1ms, max 2ms") == {"avg": "1ms", "max": "2ms"}
        assert split_aggregate("12ms") == {}

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("avg 1ms, max 2ms", True),
            ("  sum 3, avg 1", True),
            ("min 5ms", True),
            ("1min 5sec", False),
            ("12ms", False),
            ("", False),
        ],
    )
    def test_is_aggregate(self, text: str, expected: bool) -> None:
        assert is_aggregate(text) is expected

    def test_aggregate_ms(self) -> None:
        assert decode_aggregate_ms("avg 2ms, max 3ms") == 2.0
        assert decode_aggregate_ms("max 3ms") is None


class TestFirstValue:
    """Test representative display values."""

    def test_takes_average(self) -> None:
        assert first_value("avg 95.241us, max 95.241us, min 95.241us") == "95.241us"

    def test_without_labels_returns_trimmed_text(self) -> None:
        assert first_value("  12ms ") == "12ms"


class TestRequire:
    """Test mandatory decoding."""

    def test_passes_value_through(self) -> None:
        assert require(decode_count("7"), "7") == 7

    def test_raises_on_failed_decode(self) -> None:
        with pytest.raises(ParseValueError) as exc_info:
            require(decode_bytes("lots"), "lots", expected="byte size")

        assert exc_info.value.value == "lots"
        assert "byte size" in exc_info.value.message
