"""
Decoders for the scalar encodings used in Doris profile counters.

Profile dumps print every counter as display text:
- Durations: "1sec240ms", "835.207ms", "18.605us", "0ns", "N/A"
- Byte sizes: "128.00 B", "4.00 KB", "1.40 GB"
- Row counts: "1", "183.75K (183750)", "720.000376M (720000376)"
- Multi-instance aggregates: "sum 1, avg 1, max 1, min 1"

All functions here are pure. Decoders return None when the text does not
match their encoding; use require() where a decode is mandatory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import TypeVar

from profilesense.exceptions import ParseValueError

T = TypeVar("T")

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

# "1sec240ms", "2min3sec", "1hour2min3sec4ms"
_COMPOSITE_DURATION = re.compile(
    r"(?:(\d+)\s*hour)?\s*(?:(\d+)\s*min)?\s*(?:(\d+)\s*sec)?\s*(?:(\d+)\s*ms)?"
)

_BYTES = re.compile(r"(\d+(?:\.\d+)?)\s*(B|KB|MB|GB|TB)")

_COUNT = re.compile(r"(\d+(?:\.\d+)?)\s*([KMB])?\s*(?:\((\d+)\))?")

_AGGREGATE_PART = re.compile(r"(sum|avg|max|min)\s+([^,]+)")

# "avg 1ms, ..." but not "1min 5sec"
_AGGREGATE_START = re.compile(r"(sum|avg|max|min)\s")

_NS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
}

_BYTES_PER_UNIT = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 ** 2,
    "GB": 1024 ** 3,
    "TB": 1024 ** 4,
}

_COUNT_MULTIPLIER = {
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}

_EMPTY_VALUES = {"", "N/A"}


@dataclass(frozen=True)
class AggregatedValue:
    """
    Decoded "sum X, avg X, max X, min X" counter.

    Labels absent from the text leave the field as None. Durations are in
    nanoseconds, counts are plain integers. `raw` keeps the text verbatim.
    """

    raw: str
    sum: int | None = None
    avg: int | None = None
    max: int | None = None
    min: int | None = None

    @property
    def total(self) -> int | None:
        """The sum when reported, else the average."""
        return self.sum if self.sum is not None else self.avg


def _to_decimal(text: str) -> Decimal | None:
    # Decimal keeps "18.605" exact, so truncation never loses a unit
    if _NUMBER.fullmatch(text):
        return Decimal(text)
    return None


def decode_duration(text: str) -> int | None:
    """
    Decode a duration to integer nanoseconds.

    Fractional results are truncated toward zero. A bare number is taken
    as nanoseconds.

    >>> decode_duration("1sec240ms")
    1240000000
    >>> decode_duration("18.605us")
    18605
    """
    trimmed = text.strip()

    if trimmed in _EMPTY_VALUES or trimmed == "0":
        return 0

    match = _COMPOSITE_DURATION.fullmatch(trimmed)
    if match and any(match.group(i) for i in (1, 2, 3)):
        hours, minutes, secs, millis = (int(g) if g else 0 for g in match.groups())
        return (
            ((hours * 60 + minutes) * 60 + secs) * 1_000_000_000
            + millis * 1_000_000
        )

    # Longest suffix first so "ms" is not read as "s"
    for suffix in ("ns", "us", "ms", "s"):
        if trimmed.endswith(suffix):
            value = _to_decimal(trimmed[: -len(suffix)].strip())
            if value is None:
                return None
            return int(value * _NS_PER_UNIT[suffix])

    value = _to_decimal(trimmed)
    return int(value) if value is not None else None


def decode_duration_ms(text: str) -> float | None:
    """Decode a duration to milliseconds."""
    ns = decode_duration(text)
    return ns / 1_000_000 if ns is not None else None


def decode_bytes(text: str) -> int | None:
    """
    Decode a byte size with a 1024-based unit suffix, truncating.

    >>> decode_bytes("4.00 KB")
    4096
    """
    trimmed = text.strip()

    if trimmed in _EMPTY_VALUES or trimmed == "0.00":
        return 0

    match = _BYTES.search(trimmed)
    if match is None:
        return None

    return int(Decimal(match.group(1)) * _BYTES_PER_UNIT[match.group(2)])


def decode_count(text: str) -> int | None:
    """
    Decode a row count.

    An exact integer in parentheses wins over the abbreviated magnitude:
    "183.75K (183750)" decodes to 183750, not to 183.75 * 1000.
    """
    trimmed = text.strip()

    if trimmed in _EMPTY_VALUES:
        return 0

    start = trimmed.find("(")
    end = trimmed.find(")")
    if start != -1 and end > start:
        exact = trimmed[start + 1 : end].strip()
        if re.fullmatch(r"-?\d+", exact):
            return int(exact)

    match = _COUNT.search(trimmed)
    if match:
        multiplier = _COUNT_MULTIPLIER.get(match.group(2) or "", 1)
        return int(Decimal(match.group(1)) * multiplier)

    try:
        return int(trimmed)
    except ValueError:
        return None


def is_aggregate(text: str) -> bool:
    """True when a counter value starts with an aggregate label."""
    return _AGGREGATE_START.match(text.strip()) is not None


def split_aggregate(text: str) -> dict[str, str]:
    """Split "avg 1ms, max 2ms" into {"avg": "1ms", "max": "2ms"}."""
    return {
        label: value.strip()
        for label, value in _AGGREGATE_PART.findall(text)
    }


def decode_aggregate(text: str) -> AggregatedValue:
    """
    Decode a multi-instance aggregate counter.

    Each labelled value is decoded as a duration first and as a count
    second, keeping whichever succeeds.
    """
    decoded: dict[str, int | None] = {}
    for label, value in split_aggregate(text).items():
        parsed = decode_duration(value)
        if parsed is None:
            parsed = decode_count(value)
        decoded[label] = parsed

    return AggregatedValue(raw=text, **decoded)


def decode_aggregate_ms(text: str) -> float | None:
    """Average of a duration aggregate, in milliseconds."""
    avg = decode_aggregate(text).avg
    return avg / 1_000_000 if avg is not None else None


def first_value(text: str) -> str:
    """
    Representative display value of a counter.

    Returns the value following "avg " up to the next comma, otherwise the
    whole trimmed string.
    """
    trimmed = text.strip()

    pos = trimmed.find("avg ")
    if pos == -1:
        return trimmed

    rest = trimmed[pos + 4 :]
    return rest.split(",", 1)[0].strip()


def require(value: T | None, text: str, *, expected: str = "value") -> T:
    """Return a decoded value, raising ParseValueError if decoding failed."""
    if value is None:
        raise ParseValueError(text, expected=expected)
    return value
