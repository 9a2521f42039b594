#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Series alignment

Merges the listing-value and payout-value series of one entity onto one
shared, date-sorted label axis. A label present in only one series yields a
point with y=None in the other dataset; values are never carried forward
across series.
"""
from __future__ import annotations

from typing import Dict, List

from ..shared.config import ThemePalette
from ..shared.models import AlignedChartSeries, ChartDataset, ChartPoint, CumulativeSeries
from ..shared.utils import parse_datetime

LISTING_DATASET_LABEL = "Total Listing Value"
PAYOUT_DATASET_LABEL = "Total Payout Value"


def _last_index_by_label(series: CumulativeSeries) -> Dict[str, int]:
    # Later events on the same label hold the end-of-label running total
    return {label: idx for idx, label in enumerate(series.labels)}


def _dataset(label: str, color: str, axis: List[str], series: CumulativeSeries) -> ChartDataset:
    index = _last_index_by_label(series)
    points = []
    for x in axis:
        idx = index.get(x)
        if idx is None:
            points.append(ChartPoint(x=x))
        else:
            points.append(ChartPoint(x=x, y=series.values[idx], detail=series.details[idx]))
    return ChartDataset(label=label, color=color, points=points)


def align_series(listing_series: CumulativeSeries, payout_series: CumulativeSeries,
                 palette: ThemePalette) -> AlignedChartSeries:
    """
    Align two cumulative series on a shared label axis

    Args:
        listing_series: Cumulative listing value series (dataset A)
        payout_series: Cumulative payout value series (dataset B)
        palette: Theme colors; chart1 for listings, chart2 for payouts

    Returns:
        AlignedChartSeries whose axis is the sorted union of both label sets
    """
    axis = sorted(
        set(listing_series.labels) | set(payout_series.labels),
        key=lambda label: (parse_datetime(label), label),
    )
    return AlignedChartSeries(
        labels=axis,
        datasets=[
            _dataset(LISTING_DATASET_LABEL, palette.chart1, axis, listing_series),
            _dataset(PAYOUT_DATASET_LABEL, palette.chart2, axis, payout_series),
        ],
    )
