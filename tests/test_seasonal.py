"""Tests for the seasonal window and seasonalized hotspots."""

from __future__ import annotations

from datetime import date

from wilder.analysis.hotspots import aggregate_hotspots
from wilder.analysis.seasonal import (
    current_month_index,
    season_score,
    season_window,
    seasonalize,
    window_sum,
)
from wilder.schemas import Occurrence, Species, empty_histogram


def histogram(**buckets: int) -> list[int]:
    """Histogram with named month buckets set, e.g. histogram(m2=5)."""
    h = empty_histogram()
    for name, value in buckets.items():
        h[int(name[1:])] = value
    return h


class TestSeasonWindow:
    """Test the 3-month window."""

    def test_mid_year(self) -> None:
        assert season_window(5) == (4, 5, 6)

    def test_wraps_january(self) -> None:
        assert season_window(0) == (11, 0, 1)

    def test_wraps_december(self) -> None:
        assert season_window(11) == (10, 11, 0)

    def test_window_sum(self) -> None:
        h = histogram(m10=1, m11=2, m0=4, m1=8)
        assert window_sum(h, 0) == 7

    def test_current_month_index(self) -> None:
        assert current_month_index(date(2025, 3, 14)) == 2


class TestSeasonalize:
    """Test re-weighting hotspot cells by season."""

    def test_count_becomes_window_sum(self) -> None:
        occs = [
            Occurrence(latitude=52.0, longitude=13.0, event_date=date(2024, 3, 1)),
            Occurrence(latitude=52.0, longitude=13.0, event_date=date(2024, 8, 1)),
            Occurrence(latitude=52.0, longitude=13.0, event_date=date(2024, 8, 2)),
        ]
        hs = seasonalize(aggregate_hotspots(occs), month_index=2)
        cell = hs.cells[0]
        assert cell.count == 1
        assert cell.season_count == 1
        assert cell.total_count == 3

    def test_resorts_by_season_count(self) -> None:
        occs = [
            Occurrence(latitude=10.0, longitude=10.0, event_date=date(2024, 8, 1)),
            Occurrence(latitude=10.0, longitude=10.0, event_date=date(2024, 8, 1)),
            Occurrence(latitude=52.0, longitude=13.0, event_date=date(2024, 3, 1)),
        ]
        base = aggregate_hotspots(occs)
        assert base.cells[0].latitude < 20
        hs = seasonalize(base, month_index=2)
        assert hs.cells[0].latitude > 50
        assert len(hs.cells) == 2

    def test_keeps_grid_size(self) -> None:
        hs = aggregate_hotspots([Occurrence(latitude=1.0, longitude=1.0)], grid_size_km=2.0)
        assert seasonalize(hs, 0).grid_size_km == 2.0


class TestSeasonScore:
    """Test histogram fallback for the species season score."""

    def test_prefers_local(self) -> None:
        sp = Species(
            id="a",
            display_name="A",
            scientific_name="A a",
            local_month_counts=histogram(m4=3),
            month_counts_3y=histogram(m4=10),
            month_counts_all=histogram(m4=20),
        )
        assert season_score(sp, 4) == 3

    def test_falls_back_to_three_year(self) -> None:
        sp = Species(
            id="a",
            display_name="A",
            scientific_name="A a",
            month_counts_3y=histogram(m4=10),
            month_counts_all=histogram(m4=20),
        )
        assert season_score(sp, 5) == 10

    def test_falls_back_to_all_time(self) -> None:
        sp = Species(
            id="a", display_name="A", scientific_name="A a", month_counts_all=histogram(m4=20)
        )
        assert season_score(sp, 3) == 20

    def test_empty_is_zero(self) -> None:
        sp = Species(id="a", display_name="A", scientific_name="A a")
        assert season_score(sp, 3) == 0
