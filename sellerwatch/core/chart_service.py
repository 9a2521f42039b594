#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Combined listing/payout chart pipeline.

Data acquisition and presentation derivation are kept apart: refresh() hits
the network through two EntityFanout instances, while build_chart() only
re-reads the raw records already held in their state slots. Switching theme
or listing-status filter therefore never re-fetches.

Usage:
    service = build_chart_service(config, MarketplaceClient(config.api))
    await service.discover_entities()
    await service.refresh(start, end)
    chart = service.build_chart("seller_1", theme="ebay")
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..shared.config import ChartConfig, ClientConfig
from ..shared.marketplace_client import MarketplaceClient
from ..shared.models import AlignedChartSeries, EntityState, FetchResult
from ..shared.utils import ensure_utc
from .alignment import align_series
from .collector import WindowedCollector
from .fanout import EntityFanout, validate_date_range
from .pagination import PageDrainer, RecordSource
from .series import ALL_STATUSES, build_cumulative_series, listing_events, payout_events


class ChartStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    PARTIAL = "partial"
    ERROR = "error"


@dataclass
class EntityChart:
    """Chart payload and render state for one entity"""
    entity: str
    status: ChartStatus
    theme: str
    chart: AlignedChartSeries = field(default_factory=AlignedChartSeries)
    listing_total: float = 0.0
    payout_total: float = 0.0
    listing_count: int = 0
    payout_count: int = 0
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entity': self.entity,
            'status': self.status.value,
            'theme': self.theme,
            'listing_total': self.listing_total,
            'payout_total': self.payout_total,
            'listing_count': self.listing_count,
            'payout_count': self.payout_count,
            'errors': dict(self.errors),
            'chart': self.chart.to_dict(),
        }


class ChartService:
    """Owns the listings and payouts fan-outs and derives per-entity charts"""

    def __init__(self, listings: EntityFanout, payouts: EntityFanout, chart_config: ChartConfig):
        self.listings = listings
        self.payouts = payouts
        self.chart_config = chart_config
        self.date_range: Optional[Tuple[datetime, datetime]] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def entities(self):
        return list(self.listings.entities)

    def set_entities(self, entities: Iterable[str]) -> None:
        entities = list(entities)
        self.listings.set_entities(entities)
        self.payouts.set_entities(entities)

    async def discover_entities(self) -> FetchResult:
        """Load tracked entities from the users endpoint into both fan-outs."""
        result = await self.listings.discover_entities()
        if result.success:
            self.payouts.set_entities(result.data)
        return result

    async def refresh(self, start: datetime, end: datetime) -> None:
        """
        Fetch listings and payouts for every entity over [start, end]

        Raises:
            DateRangeError: If start is after end
        """
        start, end = ensure_utc(start), ensure_utc(end)
        validate_date_range(start, end)
        self.date_range = (start, end)
        self.logger.info(
            f"Refreshing {len(self.entities)} entities from {start.date()} to {end.date()}"
        )
        await asyncio.gather(
            self.listings.refresh_all(start, end),
            self.payouts.refresh_all(start, end),
        )

    def build_chart(self, entity: str, theme: Optional[str] = None,
                    status_filter: str = ALL_STATUSES) -> EntityChart:
        """
        Derive the aligned chart for one entity from already-fetched data

        Args:
            entity: Seller account identifier
            theme: Theme name (configured default when None)
            status_filter: Listing status to include, or "ALL"

        Returns:
            EntityChart with status loading/ready/empty/partial/error

        Raises:
            ConfigError: If the theme is unknown
        """
        palette = self.chart_config.palette(theme)
        listing_state = self.listings.state(entity)
        payout_state = self.payouts.state(entity)

        if self.date_range is None or listing_state.loading or payout_state.loading:
            return EntityChart(entity=entity, status=ChartStatus.LOADING, theme=palette.name)

        start, end = self.date_range
        granularity = self.chart_config.label_granularity
        listing_series = build_cumulative_series(
            listing_events(_records(listing_state), status_filter), start, end, granularity
        )
        payout_series = build_cumulative_series(
            payout_events(_records(payout_state)), start, end, granularity
        )

        errors = {}
        if listing_state.error:
            errors['listings'] = listing_state.error
        if payout_state.error:
            errors['payouts'] = payout_state.error

        if len(errors) == 2:
            status = ChartStatus.ERROR
        elif errors:
            status = ChartStatus.PARTIAL
        elif listing_series.is_empty and payout_series.is_empty:
            status = ChartStatus.EMPTY
        else:
            status = ChartStatus.READY

        return EntityChart(
            entity=entity,
            status=status,
            theme=palette.name,
            chart=align_series(listing_series, payout_series, palette),
            listing_total=listing_series.total,
            payout_total=payout_series.total,
            listing_count=len(listing_series),
            payout_count=len(payout_series),
            errors=errors,
        )

    def build_all(self, theme: Optional[str] = None, status_filter: str = ALL_STATUSES) -> Dict[str, EntityChart]:
        return {entity: self.build_chart(entity, theme, status_filter) for entity in self.entities}


def _records(state: EntityState):
    return state.data.records if state.data is not None else []


def build_chart_service(config: ClientConfig, client: MarketplaceClient) -> ChartService:
    """
    Wire the client, drainers, collectors and fan-outs from one config

    Args:
        config: Validated client configuration
        client: Marketplace API client

    Returns:
        ChartService tracking config.entities (possibly empty until
        discover_entities() is awaited)
    """
    fetch = config.fetch
    listing_source = RecordSource("listings", client.fetch_listings_page,
                                  page_origin=fetch.listings_page_origin, windowed=True)
    payout_source = RecordSource("payouts", client.fetch_payouts_page,
                                 page_origin=fetch.payouts_page_origin, windowed=False)

    def collector(source: RecordSource) -> WindowedCollector:
        drainer = PageDrainer(source, page_size=fetch.page_size, max_pages=fetch.max_pages)
        return WindowedCollector(drainer, max_span_days=fetch.max_span_days,
                                 concurrent_windows=fetch.concurrent_windows)

    listings = EntityFanout(collector(listing_source), config.entities, users_fetcher=client.fetch_users)
    payouts = EntityFanout(collector(payout_source), config.entities, users_fetcher=client.fetch_users)
    return ChartService(listings, payouts, config.chart)
