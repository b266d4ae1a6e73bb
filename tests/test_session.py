"""Tests for the selection session and its recompute pipeline."""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest

from wilder.config import Settings
from wilder.datasources.dataset import Dataset
from wilder.schemas import (
    DateRange,
    Location,
    Occurrence,
    Rarity,
    Region,
    SessionStatus,
    SortMode,
    Species,
    VizMode,
)
from wilder.session import Session, active_viz_mode, resolve_viz_flags

MARCH = date(2025, 3, 15)


def march(lat: float, lon: float) -> Occurrence:
    return Occurrence(latitude=lat, longitude=lon, event_date=date(2024, 3, 1))


def scenario() -> Dataset:
    """Species A twice around (52, 13), species B once far away."""
    a = Species(
        id="a",
        display_name="A",
        scientific_name="Alpha alpha",
        taxon_key=1,
        total=100,
        occurrences=[march(52.0, 13.0), march(52.001, 13.001)],
    )
    b = Species(
        id="b",
        display_name="B",
        scientific_name="Beta beta",
        taxon_key=2,
        total=5,
        occurrences=[march(10.0, 10.0)],
    )
    return Dataset(region=Region(name="Test", center=Location(lat=52.0, lon=13.0)), species=[a, b])


def make_session(**kwargs: object) -> Session:
    options: dict[str, object] = {"today": lambda: MARCH, "grid_size_km": 1.0, "radius_km": 10.0}
    options.update(kwargs)
    return Session(**options)  # type: ignore[arg-type]


class TestEndToEnd:
    """Load, locate, rank and aggregate the reference scenario."""

    def test_scenario(self) -> None:
        session = make_session(top_n=1, sort_mode=SortMode.TIMELESS)
        session.load(scenario())
        session.update_location(52.0, 13.0)

        a, b = session.species
        assert a.local_count == 2
        assert b.local_count == 0
        assert [sp.id for sp in session.selected] == ["a"]

        hotspots = session.hotspots()
        assert len(hotspots.cells) == 1
        assert hotspots.cells[0].count == 2

    def test_all_species_hotspots_stay_separate(self) -> None:
        session = make_session(top_n=5)
        session.load(scenario())
        counts = [c.count for c in session.hotspots().cells]
        assert counts == [2, 1]

    def test_rarity_classified_on_load(self) -> None:
        session = make_session()
        session.load(scenario())
        assert {sp.id: sp.rarity for sp in session.species} == {
            "a": Rarity.COMMON,
            "b": Rarity.RARE,
        }

    def test_shortlist_signals(self) -> None:
        session = make_session(top_n=2)
        session.load(scenario())
        first, second = session.shortlist()
        assert first.species.id == "a"
        assert first.nearest_km == pytest.approx(0.0)
        assert second.local_count == 0


class TestStateMachine:
    """Test the empty -> loaded <-> recomputing lifecycle."""

    def test_starts_empty(self) -> None:
        assert make_session().status == SessionStatus.EMPTY

    def test_loaded_after_load(self) -> None:
        session = make_session()
        session.load(scenario())
        assert session.status == SessionStatus.LOADED

    def test_recomputing_during_pipeline(self) -> None:
        session = make_session()
        session.load(scenario())
        seen: list[SessionStatus] = []

        def spy(*args: object, **kwargs: object) -> list[Species]:
            seen.append(session.status)
            return []

        with patch("wilder.session.select_species", side_effect=spy):
            session.update_location(40.0, 10.0)
        assert seen == [SessionStatus.RECOMPUTING]
        assert session.status == SessionStatus.LOADED

    def test_location_before_load_is_remembered(self) -> None:
        session = make_session()
        assert session.update_location(10.0, 10.0) is False
        session.load(scenario())
        b = session.species[1]
        assert b.local_count == 1

    def test_region_center_is_default_location(self) -> None:
        session = make_session()
        session.load(scenario())
        assert session.user_location == Location(lat=52.0, lon=13.0)
        assert session.species[0].local_count == 2


class TestUpdateLocation:
    """Test the debounced location pipeline."""

    def test_small_move_debounced(self) -> None:
        session = make_session()
        session.load(scenario())
        assert session.update_location(52.0, 13.0) is False

    def test_large_move_recomputes_and_reselects(self) -> None:
        session = make_session(top_n=1)
        session.load(scenario())
        assert [sp.id for sp in session.selected] == ["a"]
        assert session.update_location(10.0, 10.0) is True
        assert [sp.id for sp in session.selected] == ["b"]

    def test_invalid_location_keeps_stats(self) -> None:
        session = make_session()
        session.load(scenario())
        assert session.update_location(float("nan"), 13.0) is False
        assert session.species[0].local_count == 2


class TestSelectionFilters:
    """Test top-N and sort mode changes."""

    def test_set_top_n_clamps(self) -> None:
        session = make_session(top_n=5)
        session.load(scenario())
        session.set_top_n(0)
        assert session.top_n == 1
        assert len(session.selected) == 1

    def test_set_top_n_infinite_falls_back(self) -> None:
        session = make_session(top_n=1)
        session.load(scenario())
        session.set_top_n(float("inf"))
        assert session.top_n == 12
        assert len(session.selected) == 2

    def test_set_sort_mode(self) -> None:
        session = make_session(top_n=1)
        session.load(scenario())
        session.set_sort_mode("season")
        assert session.sort_mode == SortMode.SEASON
        assert len(session.selected) == 1

    def test_unknown_sort_mode_rejected(self) -> None:
        session = make_session()
        with pytest.raises(ValueError):
            session.set_sort_mode("alphabetical")

    def test_season_mode_seasonalizes_hotspots(self) -> None:
        session = make_session(sort_mode=SortMode.SEASON)
        session.load(scenario())
        cells = session.hotspots().cells
        assert all(c.season_count is not None for c in cells)
        assert session.hotspots(seasonal=False).cells[0].season_count is None

    def test_hotspots_date_range(self) -> None:
        session = make_session()
        session.load(scenario())
        window = DateRange(start=date(2025, 1, 1))
        assert session.hotspots(window).cells == ()

    def test_points_of_selection(self) -> None:
        session = make_session(top_n=1)
        session.load(scenario())
        assert len(session.points()) == 2


class TestVisualizationPolicy:
    """Test the named layer rules."""

    def test_never_render_nothing(self) -> None:
        assert resolve_viz_flags(False, False) == (True, False)

    def test_hotspots_win(self) -> None:
        assert active_viz_mode(True, True) == VizMode.HOTSPOTS

    def test_points_only(self) -> None:
        assert active_viz_mode(False, True) == VizMode.POINTS

    def test_set_visualization_both_off(self) -> None:
        session = make_session()
        assert session.set_visualization(show_hotspots=False, show_points=False) == VizMode.HOTSPOTS
        assert session.show_hotspots is True

    def test_set_visualization_partial_update(self) -> None:
        session = make_session()
        session.set_visualization(show_points=True)
        assert session.show_hotspots is True
        assert session.show_points is True
        assert session.set_visualization(show_hotspots=False) == VizMode.POINTS


class TestRefresh:
    """Test last-writer-wins occurrence refreshes."""

    def test_applies_current_token(self) -> None:
        session = make_session(top_n=2)
        session.load(scenario())
        token = session.begin_refresh()
        applied = session.apply_refresh(token, {2: [march(52.0, 13.0)] * 3})
        assert applied is True
        b = session.species[1]
        assert b.local_count == 3
        assert b.month_counts_all[2] == 3

    def test_discards_stale_token(self) -> None:
        session = make_session()
        session.load(scenario())
        stale = session.begin_refresh()
        session.begin_refresh()
        assert session.apply_refresh(stale, {1: []}) is False
        assert len(session.species[0].occurrences) == 2

    def test_load_invalidates_outstanding(self) -> None:
        session = make_session()
        token = session.begin_refresh()
        session.load(scenario())
        assert session.apply_refresh(token, {1: []}) is False

    def test_unmatched_species_untouched(self) -> None:
        session = make_session()
        session.load(scenario())
        token = session.begin_refresh()
        session.apply_refresh(token, {999: [march(0.0, 0.0)]})
        assert len(session.species[0].occurrences) == 2
        assert len(session.species[1].occurrences) == 1

    def test_empty_result_keeps_dataset_occurrences(self) -> None:
        dataset = scenario()
        a = dataset.species[0]
        a.replace_occurrences(a.occurrences, today=MARCH)
        session = make_session()
        session.load(dataset)
        token = session.begin_refresh()
        assert session.apply_refresh(token, {1: [], 2: [march(52.0, 13.0)]}) is True
        a, b = session.species
        assert len(a.occurrences) == 2
        assert a.local_count == 2
        assert a.month_counts_all[2] == 2
        assert len(b.occurrences) == 1
        assert b.local_count == 1

    def test_empty_session_ignores_refresh(self) -> None:
        session = make_session()
        token = session.begin_refresh()
        assert session.apply_refresh(token, {}) is False


class TestFromSettings:
    """Test construction from Settings."""

    def test_uses_settings(self) -> None:
        settings = Settings(top_n=3, sort_mode=SortMode.SEASON, lat=1.0, lon=2.0)
        session = Session.from_settings(settings)
        assert session.top_n == 3
        assert session.sort_mode == SortMode.SEASON
        assert session.user_location == Location(lat=1.0, lon=2.0)

    def test_overrides(self) -> None:
        session = Session.from_settings(Settings(), top_n=7)
        assert session.top_n == 7
