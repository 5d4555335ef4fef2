"""
Configuration system for ProfileSense.

Implements 12-factor config principles:
- Environment variables as primary config source
- Optional JSON config file for local development
- Severity thresholds and score penalties in one frozen model

Usage:
    from profilesense.config import get_config

    config = get_config()

    # Parser limits and thresholds derived from the global config
    profile = parse_profile(text, config.parser_config())

    # Scoring
    penalty = config.severity_penalty(HotspotSeverity.HIGH)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from profilesense.exceptions import ConfigurationError
from profilesense.parser.config import ParserConfig, SeverityThresholds
from profilesense.parser.models import HotspotSeverity

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROFILESENSE_"
CONFIG_FILE_ENV = "PROFILESENSE_CONFIG_FILE"


class Config(BaseModel):
    """
    ProfileSense configuration.

    Loaded from environment variables or a JSON config file.
    """

    model_config = ConfigDict(frozen=True)

    profilesense_version: str = Field(
        default="0.1.0",
        description="ProfileSense version for cache invalidation",
    )

    # Hotspot severity thresholds (percent of total operator time)
    critical_time_percentage: float = Field(default=50.0, gt=0, le=100)
    high_time_percentage: float = Field(default=30.0, gt=0, le=100)
    medium_time_percentage: float = Field(default=15.0, gt=0, le=100)
    low_time_percentage: float = Field(default=5.0, gt=0, le=100)

    # Parser resource limits
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

    # Performance score penalties, per hotspot
    critical_penalty: int = Field(default=30, ge=0)
    high_penalty: int = Field(default=20, ge=0)
    medium_penalty: int = Field(default=10, ge=0)
    low_penalty: int = Field(default=5, ge=0)

    # Performance score penalties for long total query time
    slow_query_tiers: tuple[tuple[float, int], ...] = Field(
        default=((60_000.0, 15), (10_000.0, 10), (5_000.0, 5)),
        description="(total time ms, penalty) pairs; first exceeded tier applies",
    )

    @model_validator(mode="after")
    def _check_thresholds(self) -> Config:
        if not (
            self.critical_time_percentage
            > self.high_time_percentage
            > self.medium_time_percentage
            > self.low_time_percentage
        ):
            raise ConfigurationError(
                "Severity thresholds must be strictly descending "
                "(critical > high > medium > low)",
                config_key="critical_time_percentage",
            )
        return self

    def thresholds(self) -> SeverityThresholds:
        """Severity thresholds as used by the graph builder."""
        return SeverityThresholds(
            critical=self.critical_time_percentage,
            high=self.high_time_percentage,
            medium=self.medium_time_percentage,
            low=self.low_time_percentage,
        )

    def parser_config(self) -> ParserConfig:
        """ParserConfig carrying this config's limits and thresholds."""
        return ParserConfig(
            max_input_size_mb=self.max_input_size_mb,
            max_nodes=self.max_nodes,
            thresholds=self.thresholds(),
        )

    def severity_penalty(self, severity: HotspotSeverity) -> int:
        """Score penalty for one hotspot of the given severity."""
        penalties = {
            HotspotSeverity.CRITICAL: self.critical_penalty,
            HotspotSeverity.HIGH: self.high_penalty,
            HotspotSeverity.MEDIUM: self.medium_penalty,
            HotspotSeverity.LOW: self.low_penalty,
        }
        return penalties.get(severity, 0)

    def config_hash(self) -> str:
        """
        Generate a hash of the configuration for cache key inclusion.

        Ensures cache invalidation when config changes.
        """
        config_json = json.dumps(self.model_dump(), sort_keys=True, default=str)
        return hashlib.sha256(config_json.encode()).hexdigest()[:16]


def _parse_env_int(key: str, default: int) -> int:
    """Parse integer from environment variable, warning on bad values."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Could not parse %s=%s, using default %s", key, value, default)
        return default


def _parse_env_float(key: str, default: float) -> float:
    """Parse float from environment variable, warning on bad values."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Could not parse %s=%s, using default %s", key, value, default)
        return default


_FLOAT_SETTINGS: dict[str, str] = {
    "CRITICAL_TIME_PERCENTAGE": "critical_time_percentage",
    "HIGH_TIME_PERCENTAGE": "high_time_percentage",
    "MEDIUM_TIME_PERCENTAGE": "medium_time_percentage",
    "LOW_TIME_PERCENTAGE": "low_time_percentage",
    "MAX_INPUT_SIZE_MB": "max_input_size_mb",
}

_INT_SETTINGS: dict[str, str] = {
    "MAX_NODES": "max_nodes",
    "CRITICAL_PENALTY": "critical_penalty",
    "HIGH_PENALTY": "high_penalty",
    "MEDIUM_PENALTY": "medium_penalty",
    "LOW_PENALTY": "low_penalty",
}


def load_config_from_env() -> Config:
    """
    Load configuration from environment variables.

    Environment variable naming convention: PROFILESENSE_<SETTING>

    Examples:
    - PROFILESENSE_CRITICAL_TIME_PERCENTAGE=60
    - PROFILESENSE_MAX_NODES=10000
    - PROFILESENSE_HIGH_PENALTY=25

    Raises:
        ConfigurationError: If the resulting thresholds are not descending
    """
    defaults = Config.model_fields
    config_kwargs: dict[str, Any] = {}

    for suffix, field_name in _FLOAT_SETTINGS.items():
        config_kwargs[field_name] = _parse_env_float(
            ENV_PREFIX + suffix, defaults[field_name].default
        )

    for suffix, field_name in _INT_SETTINGS.items():
        config_kwargs[field_name] = _parse_env_int(
            ENV_PREFIX + suffix, defaults[field_name].default
        )

    try:
        return Config(**config_kwargs)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e


def load_config_from_file(path: Path) -> Config:
    """
    Load configuration from a JSON file.

    Falls back to environment variables when the file is missing or
    unreadable. Threshold ordering errors are not recovered from.
    """
    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return Config(**data)
    except (OSError, ValueError, TypeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        return load_config_from_env()


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get the global configuration instance.

    Loads from:
    1. PROFILESENSE_CONFIG_FILE environment variable (if set)
    2. Environment variables (default)

    Result is cached for the lifetime of the process.
    """
    config_file = os.environ.get(CONFIG_FILE_ENV)

    if config_file:
        return load_config_from_file(Path(config_file))

    return load_config_from_env()


def reset_config() -> None:
    """Reset the cached configuration (mainly for testing)."""
    get_config.cache_clear()
