"""
Package-level exception hierarchy for ProfileSense.

All exceptions inherit from ProfileSenseError, enabling:
- Catching all ProfileSense errors with a single except clause
- Rich context fields for debugging (kind, field, offending value)
- Structured serialization via to_dict() for JSON error responses

Hierarchy:
    ProfileSenseError
    ├── ParseError               – Failed to parse a profile dump
    │   ├── InvalidFormatError   – Structurally malformed input
    │   │   └── UnexpectedEofError – Input ended inside a delimited block
    │   ├── MissingFieldError    – A required section marker is absent
    │   ├── ParseValueError      – A mandatory scalar could not be decoded
    │   └── ProfileIOError       – The profile file could not be read
    └── ConfigurationError       – Invalid configuration values
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ProfileSenseError(Exception):
    """
    Base exception for all ProfileSense errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON error responses."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
        }


# ── Parse Errors ─────────────────────────────────────────────────────────


class ParseErrorKind(str, Enum):
    """Tag carried by every ParseError so callers can branch without isinstance."""

    INVALID_FORMAT = "invalid_format"
    MISSING_FIELD = "missing_field"
    PARSE_VALUE = "parse_value"
    UNEXPECTED_EOF = "unexpected_eof"
    IO = "io"


class ParseError(ProfileSenseError):
    """
    Raised when a profile dump cannot be parsed.

    Attributes:
        kind: Which class of failure occurred
        detail: Technical details for debugging (optional)
        source: Where the error occurred (e.g., "summary", "merged_profile")
    """

    kind: ParseErrorKind = ParseErrorKind.INVALID_FORMAT

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        source: str | None = None,
    ) -> None:
        self.detail = detail
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}\n\nDetails: {self.detail}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind.value
        result["detail"] = self.detail
        result["source"] = self.source
        return result


class InvalidFormatError(ParseError):
    """Input is structurally malformed (empty text, bad JSON, no fragments)."""

    kind = ParseErrorKind.INVALID_FORMAT


class MissingFieldError(ParseError):
    """
    An expected top-level section is absent.

    Attributes:
        field: The section marker that could not be found.
    """

    kind = ParseErrorKind.MISSING_FIELD

    def __init__(
        self,
        field: str,
        *,
        detail: str | None = None,
        source: str | None = None,
    ) -> None:
        self.field = field
        super().__init__(
            f"Missing required field: {field}",
            detail=detail,
            source=source,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["field"] = self.field
        return result


class ParseValueError(ParseError):
    """
    A scalar could not be decoded where decoding was mandatory.

    Attributes:
        value: The text that failed to decode.
    """

    kind = ParseErrorKind.PARSE_VALUE

    def __init__(
        self,
        value: str,
        *,
        expected: str = "value",
        source: str | None = None,
    ) -> None:
        self.value = value
        super().__init__(
            f"Failed to parse {expected}: {value!r}",
            source=source,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["value"] = self.value
        return result


class UnexpectedEofError(InvalidFormatError):
    """Input ended before a delimited block (e.g. a JSON array) was closed."""

    kind = ParseErrorKind.UNEXPECTED_EOF

    def __init__(self, message: str = "Unexpected end of input", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ProfileIOError(ParseError):
    """The profile file could not be read."""

    kind = ParseErrorKind.IO


# ── Configuration Errors ─────────────────────────────────────────────────


class ConfigurationError(ProfileSenseError):
    """
    Error in ProfileSense configuration.

    Attributes:
        config_key: The configuration key that caused the error (if known).
    """

    def __init__(self, message: str, config_key: str | None = None) -> None:
        self.config_key = config_key
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result
