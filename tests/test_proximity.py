"""Tests for debounced local-proximity statistics."""

from __future__ import annotations

import math
from datetime import date
from unittest.mock import patch

from wilder.analysis import proximity
from wilder.analysis.proximity import ProximityState, local_stats, recompute_local
from wilder.schemas import Location, Occurrence, Species


def make_species(*points: tuple[float, float], month: int = 3) -> Species:
    return Species(
        id="sp",
        display_name="Sp",
        scientific_name="Sp sp",
        occurrences=[
            Occurrence(latitude=lat, longitude=lon, event_date=date(2024, month, 1))
            for lat, lon in points
        ],
    )


class TestLocalStats:
    """Test counting occurrences within the radius."""

    def test_counts_within_radius(self) -> None:
        sp = make_species((52.0, 13.0), (52.001, 13.001), (52.5, 13.0))
        count, months = local_stats(sp, 52.0, 13.0, 10.0)
        assert count == 2
        assert months[2] == 2

    def test_boundary_is_inclusive(self) -> None:
        sp = make_species((52.0, 13.0))
        count, _ = local_stats(sp, 52.0, 13.0, 0.0)
        assert count == 1

    def test_undated_counted_not_bucketed(self) -> None:
        sp = Species(
            id="sp",
            display_name="Sp",
            scientific_name="Sp sp",
            occurrences=[Occurrence(latitude=52.0, longitude=13.0)],
        )
        count, months = local_stats(sp, 52.0, 13.0, 10.0)
        assert count == 1
        assert sum(months) == 0

    def test_invalid_coordinates_skipped(self) -> None:
        sp = Species(
            id="sp",
            display_name="Sp",
            scientific_name="Sp sp",
            occurrences=[Occurrence(latitude=math.nan, longitude=13.0)],
        )
        assert local_stats(sp, 52.0, 13.0, 10.0)[0] == 0


class TestRecomputeLocal:
    """Test the movement debounce."""

    def test_first_call_computes(self) -> None:
        sp = make_species((52.0, 13.0))
        state = ProximityState()
        assert recompute_local([sp], 52.0, 13.0, state) is True
        assert sp.local_count == 1
        assert state.last_location == Location(lat=52.0, lon=13.0)

    def test_same_location_is_skipped(self) -> None:
        sp = make_species((52.0, 13.0))
        state = ProximityState()
        recompute_local([sp], 52.0, 13.0, state)
        with patch.object(proximity, "local_stats") as mock_stats:
            assert recompute_local([sp], 52.0, 13.0, state) is False
            mock_stats.assert_not_called()

    def test_small_move_is_skipped(self) -> None:
        sp = make_species((52.0, 13.0))
        state = ProximityState()
        recompute_local([sp], 52.0, 13.0, state)
        # ~0.5 km north
        assert recompute_local([sp], 52.0045, 13.0, state) is False
        assert state.last_location == Location(lat=52.0, lon=13.0)

    def test_move_past_threshold_recomputes(self) -> None:
        sp = make_species((52.0, 13.0))
        state = ProximityState()
        recompute_local([sp], 52.0, 13.0, state, radius_km=1.0)
        assert sp.local_count == 1
        # ~2.2 km north, outside the 1 km radius
        assert recompute_local([sp], 52.02, 13.0, state, radius_km=1.0) is True
        assert sp.local_count == 0

    def test_exact_threshold_recomputes(self) -> None:
        sp = make_species((52.0, 13.0))
        state = ProximityState()
        recompute_local([sp], 0.0, 0.0, state)
        # one degree of latitude is ~111 km
        assert recompute_local([sp], 1.0, 0.0, state, movement_threshold_km=111.0) is True

    def test_force_bypasses_debounce(self) -> None:
        sp = make_species((52.0, 13.0))
        state = ProximityState()
        recompute_local([sp], 52.0, 13.0, state)
        assert recompute_local([sp], 52.0, 13.0, state, force=True) is True

    def test_invalid_location_is_skipped(self) -> None:
        sp = make_species((52.0, 13.0))
        state = ProximityState()
        assert recompute_local([sp], math.nan, 13.0, state) is False
        assert state.last_location is None

    def test_reset_forgets_location(self) -> None:
        state = ProximityState(last_location=Location(lat=1.0, lon=2.0))
        state.reset()
        assert state.last_location is None
