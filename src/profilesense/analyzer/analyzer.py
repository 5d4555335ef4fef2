"""
Analysis entry point: parsed Profile in, ProfileAnalysis out.

Usage:
    from profilesense import parse_profile
    from profilesense.analyzer import analyze_profile

    analysis = analyze_profile(parse_profile(text))
    print(analysis.conclusion)
    for hotspot in analysis.hotspots:
        print(hotspot.severity.value, hotspot.node_path)
"""

from __future__ import annotations

import logging

from profilesense.analyzer.hotspots import detect_hotspots
from profilesense.analyzer.models import ProfileAnalysis
from profilesense.analyzer.scoring import (
    generate_conclusion,
    performance_score,
    score_category,
)
from profilesense.config import Config, get_config
from profilesense.parser.models import Profile

logger = logging.getLogger(__name__)


def analyze_profile(profile: Profile, config: Config | None = None) -> ProfileAnalysis:
    """
    Rank hotspots, score the query and summarize the result.

    Args:
        profile: Output of parse_profile()
        config: Thresholds and score penalties. If None, uses get_config().
    """
    config = config or get_config()

    hotspots = detect_hotspots(profile, config.thresholds())
    score = performance_score(hotspots, profile.summary, config)

    logger.debug(
        "Analyzed profile %s: %d hotspots, score %d",
        profile.summary.query_id,
        len(hotspots),
        score,
    )

    return ProfileAnalysis(
        profile=profile,
        hotspots=hotspots,
        performance_score=score,
        score_category=score_category(score),
        conclusion=generate_conclusion(hotspots, profile.summary),
    )
