#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Date windowing for the upstream listings API.

The upstream rejects date ranges longer than a fixed span (120 days), so an
arbitrary [from, to] interval is cut into consecutive windows that each fit.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

from ..shared.models import DateWindow

DEFAULT_MAX_SPAN_DAYS = 120
TICK = timedelta(microseconds=1)


def split_date_range(start: datetime, end: datetime, max_span_days: int = DEFAULT_MAX_SPAN_DAYS) -> List[DateWindow]:
    """
    Split [start, end] into contiguous, non-overlapping windows

    Each window ends at min(window_start + max_span_days - 1 tick, end); the
    next window starts one tick later. The caller validates start <= end;
    an inverted range yields no windows.

    Args:
        start: Inclusive range start
        end: Inclusive range end
        max_span_days: Longest span the upstream accepts

    Returns:
        Windows in chronological order, the last one ending exactly at end
    """
    if max_span_days <= 0:
        raise ValueError("max_span_days must be positive")

    span = timedelta(days=max_span_days)
    windows: List[DateWindow] = []
    current = start
    while current <= end:
        window_end = min(current + span - TICK, end)
        windows.append(DateWindow(start=current, end=window_end))
        current = window_end + TICK
    return windows
