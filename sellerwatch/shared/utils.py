#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility Functions for SellerWatch
Shared helpers for time handling and number parsing.
"""

from datetime import date, datetime, time as dtime, timezone
from typing import Any, Optional

_DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
]


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timezone-aware UTC datetime from various formats

    Args:
        value: ISO-8601 string, date, datetime, or None

    Returns:
        Parsed UTC datetime or None

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, dtime.min, tzinfo=timezone.utc)

    if isinstance(value, str):
        text = value.strip()
        try:
            return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass

        for fmt in _DATETIME_FORMATS:
            try:
                return ensure_utc(datetime.strptime(text, fmt))
            except ValueError:
                continue

        raise ValueError(f"Invalid datetime format: {value}. Expected ISO format like '2025-02-01T00:00:00Z'")

    raise ValueError(f"Datetime must be string, date or datetime object, got {type(value)}")


def end_of_day(dt: datetime) -> datetime:
    """Last representable instant of the calendar day holding dt."""
    return dt.replace(hour=23, minute=59, second=59, microsecond=999999)


def format_query_date(dt: datetime) -> str:
    """Format a datetime as YYYY-MM-DD for upstream query parameters."""
    return ensure_utc(dt).strftime("%Y-%m-%d")


def safe_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Safely convert value to float

    Decimal strings such as "12.50" are parsed; "$1,234.00" style money
    strings have their currency symbol and separators stripped.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Float value or default
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
        if not value:
            return default

    try:
        return float(value)
    except (ValueError, TypeError):
        return default