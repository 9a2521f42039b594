#!/usr/bin/env python3
"""
Unit tests for cumulative series building

Tests cover:
- Running totals are monotonic for non-negative amounts
- Events outside the range are dropped
- Decimal-string payout amounts
- Listing status filtering and empty inputs
"""
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sellerwatch.core.series import (
    build_cumulative_series,
    format_label,
    listing_events,
    payout_events,
)
from sellerwatch.shared.models import ListingItem, Payout, ValueEvent
from sellerwatch.shared.utils import safe_float


START = datetime(2025, 1, 1, tzinfo=timezone.utc)
END = datetime(2025, 1, 31, 23, 59, 59, tzinfo=timezone.utc)


def listing(item_id, day, price, qty=1, status="Active"):
    return ListingItem(item_id=item_id, title=f"Item {item_id}", quantity=qty, unit_price=price,
                       start_time=START + timedelta(days=day), listing_status=status)


class TestBuildCumulativeSeries:
    """Test build_cumulative_series function"""

    def test_monotonic_running_total(self):
        events = [ValueEvent(START + timedelta(days=d), amt) for d, amt in [(5, 10.0), (1, 2.5), (9, 0.0), (3, 7.5)]]
        series = build_cumulative_series(events, START, END)

        assert series.values == [2.5, 10.0, 20.0, 20.0]
        assert all(b >= a for a, b in zip(series.values, series.values[1:]))
        assert series.labels == sorted(series.labels)
        assert series.total == pytest.approx(20.0)

    def test_out_of_range_events_dropped(self):
        events = [
            ValueEvent(START - timedelta(seconds=1), 100.0),
            ValueEvent(START, 1.0),
            ValueEvent(END, 2.0),
            ValueEvent(END + timedelta(seconds=1), 100.0),
        ]
        series = build_cumulative_series(events, START, END)

        assert series.values == [1.0, 3.0]
        assert series.labels == ["2025-01-01", "2025-01-31"]

    def test_empty_input(self):
        series = build_cumulative_series([], START, END)
        assert series.is_empty
        assert len(series) == 0
        assert series.total == 0.0

    def test_naive_bounds_treated_as_utc(self):
        events = [ValueEvent(START + timedelta(hours=1), 4.0)]
        series = build_cumulative_series(events, START.replace(tzinfo=None), END.replace(tzinfo=None))
        assert series.values == [4.0]

    def test_timestamp_labels(self):
        ts = START + timedelta(hours=13, minutes=5)
        series = build_cumulative_series([ValueEvent(ts, 1.0)], START, END, label_granularity="timestamp")
        assert series.labels == [ts.isoformat()]

    def test_details_follow_events(self):
        items = [listing("B", 2, 5.0), listing("A", 1, 10.0, qty=2)]
        series = build_cumulative_series(listing_events(items), START, END)

        assert [d['item_id'] for d in series.details] == ["A", "B"]
        assert series.values == [20.0, 25.0]


class TestEvents:

    def test_listing_value_is_price_times_quantity(self):
        events = listing_events([listing("A", 0, 12.5, qty=4)])
        assert events[0].amount == 50.0
        assert events[0].detail == {'item_id': "A", 'title': "Item A", 'quantity': 4, 'price': 12.5}

    def test_status_filter(self):
        items = [listing("A", 0, 1.0, status="Active"), listing("B", 1, 2.0, status="Completed")]

        assert [e.detail['item_id'] for e in listing_events(items, "ALL")] == ["A", "B"]
        assert [e.detail['item_id'] for e in listing_events(items, "completed")] == ["B"]
        assert listing_events(items, "Ended") == []

    def test_decimal_string_payouts(self):
        payouts = [
            Payout(payout_id="p1", amount=safe_float("12.50"), payout_date=START + timedelta(days=1)),
            Payout(payout_id="p2", amount=safe_float("0.75"), payout_date=START + timedelta(days=2)),
        ]
        series = build_cumulative_series(payout_events(payouts), START, END)

        assert series.values == pytest.approx([12.5, 13.25])
        assert series.details[1] == {'payout_id': "p2", 'amount': 0.75}


class TestFormatLabel:

    def test_day_label(self):
        assert format_label(datetime(2025, 2, 3, 18, 0, tzinfo=timezone.utc)) == "2025-02-03"
