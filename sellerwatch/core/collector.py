#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Windowed collection: splits a full date range into upstream-sized windows,
drains each one and merges the results into one EntityRecordSet.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from ..shared.models import DateWindow, EntityRecordSet, FetchResult, WindowBatch
from .pagination import PageDrainer
from .windowing import DEFAULT_MAX_SPAN_DAYS, split_date_range


class WindowedCollector:
    """
    Collects every record of one entity over an arbitrary date range

    Handles:
    - Window splitting (windowed sources only)
    - Sequential or concurrent window draining
    - Chronological concatenation regardless of completion order
    - Total-count reconciliation across windows
    """

    def __init__(self, drainer: PageDrainer, max_span_days: int = DEFAULT_MAX_SPAN_DAYS,
                 concurrent_windows: bool = False):
        self.drainer = drainer
        self.max_span_days = max_span_days
        self.concurrent_windows = concurrent_windows
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def source_name(self) -> str:
        return self.drainer.source.name

    async def collect(self, entity: str, start: datetime, end: datetime) -> FetchResult:
        """
        Collect all records for an entity between start and end

        Args:
            entity: Seller account identifier
            start: Inclusive range start
            end: Inclusive range end

        Returns:
            FetchResult wrapping the merged EntityRecordSet, or the first
            window error
        """
        windows: List[Optional[DateWindow]]
        if self.drainer.source.windowed:
            windows = list(split_date_range(start, end, self.max_span_days))
        else:
            windows = [None]

        self.logger.info(
            f"Collecting {self.source_name} for {entity}: {len(windows)} window(s)"
        )

        if self.concurrent_windows and len(windows) > 1:
            results = await asyncio.gather(*(self.drainer.drain(entity, w) for w in windows))
        else:
            results = []
            for window in windows:
                result = await self.drainer.drain(entity, window)
                results.append(result)
                if not result.success:
                    break

        batches: List[WindowBatch] = []
        for result in results:
            if not result.success:
                return result
            batches.append(result.data)

        record_set = EntityRecordSet(entity=entity, windows=len(batches))
        for batch in batches:
            record_set.records.extend(batch.records)
            record_set.total_count += batch.reported_total

        self.logger.info(
            f"Collected {len(record_set.records)} {self.source_name} for {entity} "
            f"(reported total {record_set.total_count})"
        )
        return FetchResult.ok(record_set)
