#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Domain Models for SellerWatch
Defines the records, fetch results and chart structures shared by the
aggregation engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure classes surfaced per entity"""
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    MALFORMED = "malformed"


@dataclass
class FetchResult(Generic[T]):
    """
    Tagged result of a fetch step: either ok(data) or err(kind, message)

    Failures travel as values from the HTTP client up to the entity boundary
    so every caller has to look at `success` before touching `data`.
    """
    success: bool
    data: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "FetchResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def err(cls, kind: ErrorKind, message: str) -> "FetchResult[T]":
        return cls(success=False, error_kind=kind, error=message)


# The HTTP client speaks the same tagged shape
APIResponse = FetchResult


@dataclass(frozen=True)
class DateWindow:
    """Bounded date sub-range accepted by the upstream API"""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError("DateWindow start must not be after end")

    @property
    def span_days(self) -> float:
        return (self.end - self.start).total_seconds() / 86400.0


@dataclass
class ListingItem:
    """Marketplace listing as returned by the listings endpoint"""
    item_id: str
    title: str
    quantity: int
    unit_price: float
    start_time: datetime
    currency: str = "USD"
    listing_status: str = ""
    view_url: Optional[str] = None

    @property
    def value(self) -> float:
        return self.unit_price * self.quantity


@dataclass
class Payout:
    """Seller payout as returned by the payouts endpoint"""
    payout_id: str
    amount: float
    payout_date: datetime
    currency: str = "USD"
    status: str = ""
    transaction_count: int = 0


@dataclass
class Page:
    """
    One upstream response

    has_more is True/False when the upstream sent an explicit continuation
    signal and None when it did not.
    """
    records: List[Any] = field(default_factory=list)
    has_more: Optional[bool] = None
    total: Optional[int] = None


@dataclass
class WindowBatch:
    """Records drained from one window (or one unbounded pass)"""
    window: Optional[DateWindow]
    records: List[Any] = field(default_factory=list)
    reported_total: int = 0
    pages: int = 0


@dataclass
class EntityRecordSet:
    """All records recovered for one entity in one fetch cycle"""
    entity: str
    records: List[Any] = field(default_factory=list)
    total_count: int = 0
    windows: int = 0
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def empty(cls, entity: str) -> "EntityRecordSet":
        return cls(entity=entity)

    @property
    def is_empty(self) -> bool:
        return not self.records


@dataclass
class ValueEvent:
    """Incremental value contribution of one record at one instant"""
    timestamp: datetime
    amount: float
    detail: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CumulativeSeries:
    """
    Running-total series

    labels are sorted ascending, values[i] is the running sum after event i,
    details[i] describes the record that produced event i.
    """
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)
    details: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        if not (len(self.labels) == len(self.values) == len(self.details)):
            raise ValueError("labels, values and details must have the same length")

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def is_empty(self) -> bool:
        return not self.labels

    @property
    def total(self) -> float:
        return self.values[-1] if self.values else 0.0


@dataclass
class ChartPoint:
    x: str
    y: Optional[float] = None
    detail: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'x': self.x, 'y': self.y, 'detail': self.detail}


@dataclass
class ChartDataset:
    """One line of the combined chart; colors apply to the whole series"""
    label: str
    color: str
    points: List[ChartPoint] = field(default_factory=list)
    point_border_color: str = "#fff"
    point_radius: int = 6

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'data': [p.to_dict() for p in self.points],
            'borderColor': self.color,
            'backgroundColor': self.color,
            'pointBackgroundColor': self.color,
            'pointBorderColor': self.point_border_color,
            'pointHoverBackgroundColor': self.point_border_color,
            'pointHoverBorderColor': self.color,
            'pointRadius': self.point_radius,
            'pointHoverRadius': self.point_radius + 2,
            'fill': False,
            'tension': 0,
        }


@dataclass
class AlignedChartSeries:
    """Two datasets sharing one sorted label axis"""
    labels: List[str] = field(default_factory=list)
    datasets: List[ChartDataset] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'labels': list(self.labels), 'datasets': [d.to_dict() for d in self.datasets]}


@dataclass
class EntityState:
    """Observable per-entity fetch state"""
    loading: bool = False
    data: Optional[EntityRecordSet] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    generation: int = 0
    updated_at: Optional[datetime] = None
