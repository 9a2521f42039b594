#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Page draining for one entity and one date window.

Pages are requested one after another until the upstream signals exhaustion.
An empty page always ends the drain. Otherwise the explicit has-more flag
wins whenever the upstream sends one, and without it a page shorter than the
requested size is taken as the last one. The count heuristic is an
approximation: when the final page happens to be exactly full, one extra
(empty) page is requested before stopping.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, List, Optional

from ..shared.models import DateWindow, ErrorKind, FetchResult, Page, WindowBatch

# fetch_page(entity, page_idx, page_size, window) -> APIResponse[Page]
PageFetcher = Callable[[str, int, int, Optional[DateWindow]], Any]


class RecordSource:
    """
    Binds a page fetcher to the way its endpoint paginates

    Args:
        name: Short name used in logs ("listings", "payouts")
        fetch_page: Sync or async callable returning an APIResponse[Page]
        page_origin: Index of the first page (0 or 1)
        windowed: Whether the endpoint accepts date windows
    """

    def __init__(self, name: str, fetch_page: PageFetcher, page_origin: int = 1, windowed: bool = True):
        self.name = name
        self.fetch_page = fetch_page
        self.page_origin = page_origin
        self.windowed = windowed

    async def get_page(self, entity: str, page_idx: int, page_size: int, window: Optional[DateWindow]) -> FetchResult:
        if inspect.iscoroutinefunction(self.fetch_page):
            return await self.fetch_page(entity, page_idx, page_size, window)
        # Blocking HTTP runs off the event loop
        return await asyncio.to_thread(self.fetch_page, entity, page_idx, page_size, window)


def page_has_more(page: Page, page_size: int) -> bool:
    # An empty page ends the drain whatever the upstream flag says
    if not page.records:
        return False
    if page.has_more is not None:
        return page.has_more
    return len(page.records) >= page_size


class PageDrainer:
    """Requests fixed-size pages for one window until the upstream is exhausted"""

    def __init__(self, source: RecordSource, page_size: int = 200, max_pages: int = 500):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.source = source
        self.page_size = page_size
        self.max_pages = max_pages
        self.logger = logging.getLogger(self.__class__.__name__)

    async def drain(self, entity: str, window: Optional[DateWindow] = None) -> FetchResult:
        """
        Drain every page of one window

        Args:
            entity: Seller account identifier
            window: Date window, or None for endpoints without date filters

        Returns:
            FetchResult wrapping a WindowBatch, or the first page error
        """
        records: List[Any] = []
        reported_total: Optional[int] = None
        page_idx = self.source.page_origin
        pages = 0

        while True:
            response = await self.source.get_page(entity, page_idx, self.page_size, window)
            pages += 1
            if not response.success:
                self.logger.error(
                    f"{self.source.name} page {page_idx} failed for {entity}: {response.error}"
                )
                return FetchResult.err(
                    response.error_kind or ErrorKind.TRANSPORT,
                    f"Failed to fetch {self.source.name} for {entity}: {response.error}",
                )

            page: Page = response.data
            records.extend(page.records)
            if page.total is not None:
                reported_total = page.total

            if not page_has_more(page, self.page_size):
                break
            if pages >= self.max_pages:
                message = (
                    f"{self.source.name} for {entity} still reported more data after "
                    f"{self.max_pages} pages; giving up"
                )
                self.logger.error(message)
                return FetchResult.err(ErrorKind.MALFORMED, message)
            page_idx += 1

        self.logger.debug(
            f"Drained {len(records)} {self.source.name} for {entity} in {pages} page(s)"
        )
        return FetchResult.ok(WindowBatch(
            window=window,
            records=records,
            reported_total=reported_total if reported_total is not None else len(records),
            pages=pages,
        ))
