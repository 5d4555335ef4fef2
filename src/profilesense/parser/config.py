"""
Parser configuration with resource limits and severity thresholds.

The limits stop pathological inputs (multi-hundred-MB dumps, graphs with
hundreds of thousands of operators) before they exhaust memory. The
defaults are generous for real profiles.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SeverityThresholds(BaseModel):
    """
    Time-percentage thresholds for hotspot severity.

    Comparisons are inclusive: a node at exactly 50.0% with the default
    thresholds is CRITICAL.
    """

    model_config = ConfigDict(frozen=True)

    critical: float = Field(default=50.0, gt=0, le=100)
    high: float = Field(default=30.0, gt=0, le=100)
    medium: float = Field(default=15.0, gt=0, le=100)
    low: float = Field(default=5.0, gt=0, le=100)

    @model_validator(mode="after")
    def _check_descending(self) -> SeverityThresholds:
        if not (self.critical > self.high > self.medium > self.low):
            raise ValueError(
                "Thresholds must be strictly descending: "
                f"critical={self.critical}, high={self.high}, "
                f"medium={self.medium}, low={self.low}"
            )
        return self


class ParserConfig(BaseModel):
    """
    Configuration for the profile parser.

    Attributes:
        max_input_size_mb: Maximum size of the profile text. Dumps above
            this are rejected before any segmentation.
        max_nodes: Maximum number of operators in the execution graph.
        thresholds: Severity thresholds applied while annotating the graph.

    Example:
        # Use defaults
        config = ParserConfig()

        # Stricter limits for a web API
        config = ParserConfig(max_input_size_mb=10, max_nodes=1000)
    """

    model_config = ConfigDict(frozen=True)

    max_input_size_mb: float = Field(
        default=100.0,
        gt=0,
        description="Maximum profile text size in megabytes",
    )

    max_nodes: int = Field(
        default=50_000,
        gt=0,
        description="Maximum number of execution graph nodes",
    )

    thresholds: SeverityThresholds = Field(default_factory=SeverityThresholds)


# Sensible defaults for different use cases
DEFAULT_CONFIG = ParserConfig()

# Stricter limits for web API / untrusted input
STRICT_CONFIG = ParserConfig(
    max_input_size_mb=10.0,
    max_nodes=5_000,
)
