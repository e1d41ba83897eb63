"""
Datetime utility functions.
Provides replacements for deprecated datetime functions.
"""

from datetime import date, datetime
from typing import Optional, Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def format_match_date(value: Optional[Union[date, datetime, str]]) -> Optional[str]:
    """
    Format a match date as ISO "YYYY-MM-DD".

    Strings are returned unchanged so already-serialized values pass through.

    Examples:
        >>> format_match_date(date(2025, 3, 4))
        "2025-03-04"
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.date().isoformat()
    return value.isoformat()


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO format a timestamp column, tolerating missing values."""
    return value.isoformat() if value else None
