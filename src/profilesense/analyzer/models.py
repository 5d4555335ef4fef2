"""
Data models for the analyzer module.

These models represent the output of hotspot analysis. They're designed to
be:
- Immutable (frozen=True): Hotspots don't change after creation
- Serializable: Easy JSON output via model_dump(mode="json")
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from profilesense.parser.models import HotspotSeverity, Profile


class Hotspot(BaseModel):
    """
    A node consuming a significant share of total execution time.

    Attributes:
        node_id: Id of the execution graph node
        node_path: "Fragment 1 > Pipeline 0 > OLAP_SCAN_OPERATOR (Plan Node 3)"
        operator_name: Operator name as printed in the profile
        severity: Severity derived from the time percentage
        description: One-line summary of the cost
        impact: What the cost means for this kind of operator
        time_percentage: Share of total operator time, if known
    """

    model_config = ConfigDict(frozen=True)

    node_id: str
    node_path: str
    operator_name: str
    severity: HotspotSeverity
    description: str
    impact: str
    time_percentage: float | None = None


class ProfileAnalysis(BaseModel):
    """
    Complete analysis of one parsed profile.

    Carries the profile itself so renderers can show the execution graph
    next to the hotspots.
    """

    model_config = ConfigDict(frozen=True)

    profile: Profile
    hotspots: list[Hotspot] = Field(default_factory=list)
    performance_score: int = Field(ge=0, le=100)
    score_category: str
    conclusion: str

    @property
    def has_critical(self) -> bool:
        return any(h.severity == HotspotSeverity.CRITICAL for h in self.hotspots)

    def hotspots_by_severity(self, severity: HotspotSeverity) -> list[Hotspot]:
        """Hotspots of exactly the given severity."""
        return [h for h in self.hotspots if h.severity == severity]
