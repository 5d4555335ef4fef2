"""
Performance score and conclusion text for an analyzed profile.

Score: start at 100, subtract a penalty per hotspot by severity and a
penalty for long total query time, clamp to 0..100. A profile with no
hotspots scores 95.
"""

from __future__ import annotations

from profilesense.analyzer.models import Hotspot
from profilesense.config import Config, get_config
from profilesense.parser.models import HotspotSeverity, ProfileSummary

NO_HOTSPOT_SCORE = 95

# (minimum score, category), highest first
SCORE_CATEGORIES: tuple[tuple[int, str], ...] = (
    (90, "Excellent"),
    (70, "Good"),
    (50, "Fair"),
    (30, "Poor"),
)


def performance_score(
    hotspots: list[Hotspot],
    summary: ProfileSummary,
    config: Config | None = None,
) -> int:
    """Overall performance score, 0 (worst) to 100 (best)."""
    if not hotspots:
        return NO_HOTSPOT_SCORE

    config = config or get_config()
    score = 100

    for hotspot in hotspots:
        score -= config.severity_penalty(hotspot.severity)

    if summary.total_time_ms is not None:
        for limit_ms, penalty in config.slow_query_tiers:
            if summary.total_time_ms > limit_ms:
                score -= penalty
                break

    return max(0, min(100, score))


def score_category(score: int) -> str:
    """Excellent, Good, Fair, Poor or Critical."""
    for minimum, category in SCORE_CATEGORIES:
        if score >= minimum:
            return category
    return "Critical"


def generate_conclusion(hotspots: list[Hotspot], summary: ProfileSummary) -> str:
    """One-sentence verdict on the query."""
    total_time = summary.total_time
    count = len(hotspots)

    if not hotspots:
        return (
            f"Query completed in {total_time} with no significant "
            "performance issues detected."
        )

    critical = sum(1 for h in hotspots if h.severity == HotspotSeverity.CRITICAL)
    high = sum(1 for h in hotspots if h.severity == HotspotSeverity.HIGH)

    if critical:
        return (
            f"Query completed in {total_time} with {critical} critical performance "
            f"bottleneck(s) and {count} total issue(s) detected. "
            "Immediate attention recommended."
        )
    if high:
        return (
            f"Query completed in {total_time} with {high} high-severity issue(s) "
            f"and {count} total issue(s) detected. Optimization recommended."
        )
    return (
        f"Query completed in {total_time} with {count} minor performance "
        "issue(s) detected."
    )
