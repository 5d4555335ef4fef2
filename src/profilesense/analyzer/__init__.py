"""Hotspot ranking and performance scoring for parsed profiles."""

from profilesense.analyzer.analyzer import analyze_profile
from profilesense.analyzer.hotspots import detect_hotspots, node_path
from profilesense.analyzer.models import Hotspot, ProfileAnalysis
from profilesense.analyzer.scoring import (
    generate_conclusion,
    performance_score,
    score_category,
)

__all__ = [
    "Hotspot",
    "ProfileAnalysis",
    "analyze_profile",
    "detect_hotspots",
    "generate_conclusion",
    "node_path",
    "performance_score",
    "score_category",
]
