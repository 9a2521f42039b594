#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cumulative value series

Turns listings or payouts into a running-total series over time: every event
adds its amount to the running sum and the series records the sum after
each event, giving "total value so far" rather than one bar per event.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List

import numpy as np

from ..shared.models import CumulativeSeries, ListingItem, Payout, ValueEvent
from ..shared.utils import ensure_utc

log = logging.getLogger(__name__)

ALL_STATUSES = "ALL"


def format_label(ts: datetime, granularity: str = "day") -> str:
    """Day labels snap to the start of day so points line up with the date grid."""
    if granularity == "day":
        return ts.strftime("%Y-%m-%d")
    return ts.isoformat()


def listing_events(items: Iterable[ListingItem], status_filter: str = ALL_STATUSES) -> List[ValueEvent]:
    """
    Normalize listings into value events (amount = unit price x quantity)

    Args:
        items: Parsed listing items
        status_filter: Listing status to keep (e.g. "Active"), or "ALL"
    """
    wanted = (status_filter or ALL_STATUSES).strip().lower()
    events = []
    for item in items:
        if wanted != ALL_STATUSES.lower() and item.listing_status.lower() != wanted:
            continue
        events.append(ValueEvent(
            timestamp=item.start_time,
            amount=item.unit_price * item.quantity,
            detail={
                'item_id': item.item_id,
                'title': item.title,
                'quantity': item.quantity,
                'price': item.unit_price,
            },
        ))
    return events


def payout_events(payouts: Iterable[Payout]) -> List[ValueEvent]:
    """Normalize payouts into value events (amount = parsed payout value)."""
    return [
        ValueEvent(
            timestamp=payout.payout_date,
            amount=payout.amount,
            detail={'payout_id': payout.payout_id, 'amount': payout.amount},
        )
        for payout in payouts
    ]


def build_cumulative_series(events: Iterable[ValueEvent], start: datetime, end: datetime,
                            label_granularity: str = "day") -> CumulativeSeries:
    """
    Build a running-total series from value events

    Events outside [start, end] are dropped even if the fetch window should
    already exclude them. Remaining events are sorted by timestamp (stable,
    so same-instant events keep their input order) and accumulated in one pass.

    Args:
        events: Incremental value events
        start: Inclusive range start
        end: Inclusive range end
        label_granularity: "day" or "timestamp"

    Returns:
        CumulativeSeries; empty when no event falls in range
    """
    start, end = ensure_utc(start), ensure_utc(end)
    in_range = [e for e in events if start <= e.timestamp <= end]
    if not in_range:
        return CumulativeSeries()

    ordered = sorted(in_range, key=lambda e: e.timestamp)
    running = np.cumsum(np.array([float(e.amount) for e in ordered], dtype=float))

    series = CumulativeSeries(
        labels=[format_label(e.timestamp, label_granularity) for e in ordered],
        values=[float(v) for v in running],
        details=[dict(e.detail) for e in ordered],
    )
    log.debug(f"Built cumulative series with {len(series)} points, total {series.total:.2f}")
    return series
