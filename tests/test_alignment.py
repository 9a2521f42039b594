#!/usr/bin/env python3
"""
Unit tests for series alignment

Tests cover:
- The shared axis is the sorted union of both label sets
- Missing points are None (no forward fill)
- Theme colors per dataset
- Same-label events resolving to the last running total
"""
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sellerwatch.core.alignment import LISTING_DATASET_LABEL, PAYOUT_DATASET_LABEL, align_series
from sellerwatch.shared.config import ThemePalette
from sellerwatch.shared.models import CumulativeSeries


PALETTE = ThemePalette(name="default", chart1="#EC4899", chart2="#3B82F6")


def series(pairs):
    return CumulativeSeries(
        labels=[label for label, _ in pairs],
        values=[value for _, value in pairs],
        details=[{'n': i} for i in range(len(pairs))],
    )


class TestAlignSeries:
    """Test align_series function"""

    def test_three_point_scenario(self):
        listings = series([("2025-01-01", 100.0), ("2025-01-03", 150.0)])
        payouts = series([("2025-01-02", 80.0)])

        aligned = align_series(listings, payouts, PALETTE)

        assert aligned.labels == ["2025-01-01", "2025-01-02", "2025-01-03"]
        listing_ds, payout_ds = aligned.datasets
        assert [p.y for p in listing_ds.points] == [100.0, None, 150.0]
        assert [p.y for p in payout_ds.points] == [None, 80.0, None]
        assert listing_ds.points[1].detail is None

    def test_totality(self):
        listings = series([("2025-03-05", 1.0), ("2025-01-10", 2.0)])
        payouts = series([("2025-02-01", 3.0), ("2025-03-05", 4.0)])

        aligned = align_series(listings, payouts, PALETTE)

        assert set(aligned.labels) == {"2025-01-10", "2025-02-01", "2025-03-05"}
        assert aligned.labels == sorted(aligned.labels)
        for ds in aligned.datasets:
            assert [p.x for p in ds.points] == aligned.labels

    def test_dataset_labels_and_colors(self):
        aligned = align_series(series([("2025-01-01", 1.0)]), series([]), PALETTE)
        listing_ds, payout_ds = aligned.datasets

        assert listing_ds.label == LISTING_DATASET_LABEL
        assert payout_ds.label == PAYOUT_DATASET_LABEL
        assert listing_ds.color == "#EC4899"
        assert payout_ds.color == "#3B82F6"
        assert payout_ds.to_dict()['borderColor'] == "#3B82F6"
        assert payout_ds.to_dict()['pointBorderColor'] == "#fff"

    def test_duplicate_label_uses_last_value(self):
        listings = series([("2025-01-01", 5.0), ("2025-01-01", 12.0)])
        aligned = align_series(listings, series([]), PALETTE)

        assert aligned.labels == ["2025-01-01"]
        assert aligned.datasets[0].points[0].y == 12.0
        assert aligned.datasets[0].points[0].detail == {'n': 1}

    def test_both_empty(self):
        aligned = align_series(series([]), series([]), PALETTE)
        assert aligned.labels == []
        assert all(ds.points == [] for ds in aligned.datasets)
        assert aligned.to_dict()['labels'] == []
