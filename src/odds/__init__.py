# Odds pipeline module

from .config import ConfigurationError, OddsRelayConfig, load_config
from .format_helpers import add_cache_busting, format_goal_points, format_odds
from .models import (
    FormattedMatch,
    NormalizationResult,
    NormalizedMatch,
    RawMatch,
    RawMatchDecodeError,
)
from .normalizer import normalize
from .projector import project
from .time_helpers import InvalidTimeFormat, subtract_90_minutes

__all__ = [
    "ConfigurationError",
    "OddsRelayConfig",
    "load_config",
    "add_cache_busting",
    "format_goal_points",
    "format_odds",
    "FormattedMatch",
    "NormalizationResult",
    "NormalizedMatch",
    "RawMatch",
    "RawMatchDecodeError",
    "normalize",
    "project",
    "InvalidTimeFormat",
    "subtract_90_minutes",
]
