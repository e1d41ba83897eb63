"""
Settings service for runtime configuration.

Reads environment variables (optionally from a .env file) and turns them
into typed settings used by the league calculations.
"""

import os
import logging
from typing import Optional
from dotenv import load_dotenv
from backend.services.standings_service import ScoringConvention
from backend.utils.constants import DEFAULT_POINTS_PER_WIN, DEFAULT_POINTS_PER_DRAW

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def get_bool_env(key: str, default: bool = True) -> bool:
    """
    Parse a boolean environment variable from a string value.

    Args:
        key: Environment variable name
        default: Default value if the variable is not set

    Returns:
        bool: Parsed boolean value
    """
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


def get_int_env(key: str, default: int) -> int:
    """
    Parse an integer environment variable, falling back to default when unset or invalid.
    """
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        logger.warning(f"Invalid integer for {key}: {value!r}, using default {default}")
        return default


def get_scoring_convention(
    points_per_win: Optional[int] = None,
    points_per_draw: Optional[int] = None,
) -> ScoringConvention:
    """
    Resolve the standings scoring convention.

    Explicit arguments win over STANDINGS_POINTS_PER_WIN / STANDINGS_POINTS_PER_DRAW,
    which win over the three-points-per-win default.
    """
    if points_per_win is None:
        points_per_win = get_int_env("STANDINGS_POINTS_PER_WIN", DEFAULT_POINTS_PER_WIN)
    if points_per_draw is None:
        points_per_draw = get_int_env("STANDINGS_POINTS_PER_DRAW", DEFAULT_POINTS_PER_DRAW)
    if points_per_win < 0 or points_per_draw < 0:
        raise ValueError("Points per win and per draw must not be negative")
    return ScoringConvention(points_per_win=points_per_win, points_per_draw=points_per_draw)
