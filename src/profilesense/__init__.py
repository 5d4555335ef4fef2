"""ProfileSense - Execution profile analyzer for Apache Doris."""

__version__ = "0.1.0"
__license__ = "MIT"

# Exception hierarchy (import first so other modules can use it)
from profilesense.exceptions import (
    ConfigurationError,
    InvalidFormatError,
    MissingFieldError,
    ParseError,
    ParseErrorKind,
    ParseValueError,
    ProfileIOError,
    ProfileSenseError,
    UnexpectedEofError,
)

# Parsing and graph reconstruction
from profilesense.parser import (
    ExecutionTree,
    ExecutionTreeNode,
    Fragment,
    HotspotSeverity,
    NodeType,
    ParserConfig,
    Pipeline,
    Profile,
    ProfileSummary,
    parse_profile,
    parse_profile_file,
)

# Analysis
from profilesense.analyzer import Hotspot, ProfileAnalysis, analyze_profile

# Configuration
from profilesense.config import Config, get_config, reset_config

# Output
from profilesense.output import OutputFormat, render

__all__ = [
    "__version__",
    # Exceptions
    "ProfileSenseError",
    "ParseError",
    "ParseErrorKind",
    "InvalidFormatError",
    "MissingFieldError",
    "ParseValueError",
    "UnexpectedEofError",
    "ProfileIOError",
    "ConfigurationError",
    # Parsing
    "parse_profile",
    "parse_profile_file",
    "ParserConfig",
    "Profile",
    "ProfileSummary",
    "Fragment",
    "Pipeline",
    "ExecutionTree",
    "ExecutionTreeNode",
    "NodeType",
    "HotspotSeverity",
    # Analysis
    "analyze_profile",
    "Hotspot",
    "ProfileAnalysis",
    # Configuration
    "Config",
    "get_config",
    "reset_config",
    # Output
    "OutputFormat",
    "render",
]
