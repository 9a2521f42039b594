#!/usr/bin/env python3
"""
Unit tests for windowed collection

Tests cover:
- Chronological concatenation across windows, even when later windows
  finish first
- Aggregate totals summed over windows
- Empty windows and non-windowed sources
- First window error aborting the cycle
"""
import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sellerwatch.core.collector import WindowedCollector
from sellerwatch.core.pagination import PageDrainer, RecordSource
from sellerwatch.shared.models import ErrorKind, FetchResult, Page


START = datetime(2025, 1, 1, tzinfo=timezone.utc)
END = START + timedelta(days=250)


def make_collector(fetch, windowed=True, concurrent=False, page_size=10):
    source = RecordSource("listings", fetch, page_origin=1, windowed=windowed)
    return WindowedCollector(PageDrainer(source, page_size=page_size), max_span_days=120,
                             concurrent_windows=concurrent)


class TestWindowedCollector:
    """Test WindowedCollector.collect"""

    def test_records_in_window_order_when_later_window_finishes_first(self):
        async def fetch(entity, page_idx, page_size, window):
            # Earlier windows take longer
            delay = 0.03 if window.start == START else 0.0
            await asyncio.sleep(delay)
            return FetchResult.ok(Page(records=[window.start.isoformat()], has_more=False))

        collector = make_collector(fetch, concurrent=True)
        result = asyncio.run(collector.collect("seller", START, END))

        assert result.success
        starts = [datetime.fromisoformat(r) for r in result.data.records]
        assert starts == sorted(starts)
        assert len(starts) == 3
        assert result.data.windows == 3

    def test_sequential_windows_and_totals(self):
        seen = []

        def fetch(entity, page_idx, page_size, window):
            seen.append(window)
            return FetchResult.ok(Page(records=["x", "y"], has_more=False, total=7))

        collector = make_collector(fetch)
        result = asyncio.run(collector.collect("seller", START, END))

        assert result.success
        assert len(seen) == 3
        assert seen == sorted(seen, key=lambda w: w.start)
        assert result.data.total_count == 21
        assert len(result.data.records) == 6

    def test_empty_window_does_not_interrupt(self):
        def fetch(entity, page_idx, page_size, window):
            if window.start == START + timedelta(days=120):
                return FetchResult.ok(Page(records=[]))
            return FetchResult.ok(Page(records=[window.start], has_more=False))

        collector = make_collector(fetch)
        result = asyncio.run(collector.collect("seller", START, END))

        assert result.success
        assert len(result.data.records) == 2
        assert result.data.total_count == 2

    def test_non_windowed_source_drains_once(self):
        seen = []

        def fetch(entity, page_idx, page_size, window):
            seen.append((page_idx, window))
            return FetchResult.ok(Page(records=[1, 2], has_more=False))

        collector = make_collector(fetch, windowed=False)
        result = asyncio.run(collector.collect("seller", START, END))

        assert result.success
        assert seen == [(1, None)]
        assert result.data.windows == 1

    def test_first_error_aborts(self):
        seen = []

        def fetch(entity, page_idx, page_size, window):
            seen.append(window)
            if len(seen) == 2:
                return FetchResult.err(ErrorKind.TRANSPORT, "HTTP 503: unavailable")
            return FetchResult.ok(Page(records=[1], has_more=False))

        collector = make_collector(fetch)
        result = asyncio.run(collector.collect("seller", START, END))

        assert not result.success
        assert result.error_kind == ErrorKind.TRANSPORT
        assert len(seen) == 2
