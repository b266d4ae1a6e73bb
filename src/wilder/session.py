"""Selection state and the recompute pipeline.

``Session`` owns the species collection, the current user position and the
display filters. It is the only place that mutates species stats or the
selection, and it always runs the steps in the same order::

    location update -> local proximity stats -> re-rank/select -> (render)

Renderers read ``selected``, ``shortlist()`` and ``hotspots()``; they never
write. State lifecycle: ``empty -> loaded``, then ``loaded <-> recomputing``
on every location, top-N, sort-mode or refresh change.

Remote occurrence refreshes are last-writer-wins: ``begin_refresh`` hands
out a token and ``apply_refresh`` drops any result whose token has been
superseded by a newer request or a dataset reload.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import TYPE_CHECKING, Any

from wilder.analysis.hotspots import aggregate_hotspots, merge_hotspots
from wilder.analysis.proximity import (
    DEFAULT_MOVEMENT_THRESHOLD_KM,
    DEFAULT_RADIUS_KM,
    ProximityState,
    recompute_local,
)
from wilder.analysis.rarity import classify_rarity
from wilder.analysis.ranking import (
    DEFAULT_TOP_N,
    RankedSpecies,
    clamp_top_n,
    rank_for_display,
    select_species,
)
from wilder.analysis.seasonal import current_month_index, seasonalize
from wilder.schemas import (
    HotspotSet,
    Location,
    Region,
    SessionStatus,
    SortMode,
    Species,
    VizMode,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from wilder.config import Settings
    from wilder.datasources.dataset import Dataset
    from wilder.schemas import DateRange, Occurrence

logger = logging.getLogger(__name__)


# =============================================================================
# Visualization policy
# =============================================================================


def resolve_viz_flags(show_hotspots: bool, show_points: bool) -> tuple[bool, bool]:
    """Rule "never render nothing": with both layers off, hotspots come back on."""
    if not show_hotspots and not show_points:
        return True, False
    return show_hotspots, show_points


def active_viz_mode(show_hotspots: bool, show_points: bool) -> VizMode:
    """Rule "hotspots win": when both layers are on, hotspots is the active mode."""
    show_hotspots, show_points = resolve_viz_flags(show_hotspots, show_points)
    return VizMode.HOTSPOTS if show_hotspots else VizMode.POINTS


# =============================================================================
# Session
# =============================================================================


class Session:
    """Process-wide selection state, rebuilt from species + position + filters."""

    def __init__(
        self,
        *,
        top_n: int = DEFAULT_TOP_N,
        sort_mode: SortMode = SortMode.TIMELESS,
        show_hotspots: bool = True,
        show_points: bool = False,
        radius_km: float = DEFAULT_RADIUS_KM,
        movement_threshold_km: float = DEFAULT_MOVEMENT_THRESHOLD_KM,
        grid_size_km: float = 1.0,
        user_location: Location | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.species: list[Species] = []
        self.selected: list[Species] = []
        self.region: Region | None = None
        self.status = SessionStatus.EMPTY

        self.top_n = clamp_top_n(top_n)
        self.sort_mode = SortMode(sort_mode)
        self.show_hotspots, self.show_points = resolve_viz_flags(show_hotspots, show_points)

        self.radius_km = radius_km
        self.movement_threshold_km = movement_threshold_km
        self.grid_size_km = grid_size_km

        self.user_location = user_location
        self.proximity = ProximityState()
        self._today = today
        self._refresh_token = 0

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> Session:
        """Session configured from ``Settings``; kwargs override."""
        options: dict[str, Any] = {
            "top_n": settings.top_n,
            "sort_mode": settings.sort_mode,
            "show_hotspots": settings.show_hotspots,
            "show_points": settings.show_points,
            "radius_km": settings.radius_km,
            "movement_threshold_km": settings.movement_threshold_km,
            "grid_size_km": settings.grid_size_km,
            "user_location": Location(lat=settings.lat, lon=settings.lon),
        }
        options.update(kwargs)
        return cls(**options)

    # -- read-only views ------------------------------------------------------

    @property
    def month_index(self) -> int:
        return current_month_index(self._today())

    @property
    def viz_mode(self) -> VizMode:
        return active_viz_mode(self.show_hotspots, self.show_points)

    def _user_coords(self) -> tuple[float | None, float | None]:
        if self.user_location is None or not self.user_location.is_valid:
            return None, None
        return self.user_location.lat, self.user_location.lon

    def shortlist(self) -> list[RankedSpecies]:
        """Selected species in card order, with the signals they were ranked by."""
        lat, lon = self._user_coords()
        return rank_for_display(
            self.selected, self.species, self.sort_mode, lat, lon, self.month_index
        )

    def hotspots(
        self,
        date_range: DateRange | None = None,
        *,
        seasonal: bool | None = None,
    ) -> HotspotSet:
        """
        Density cells for the selected species.

        Each species is aggregated on its own grid, then the sets are merged.
        In season mode (or with ``seasonal=True``) cell counts are re-weighted
        by the 3-month window around the current month.
        """
        merged = merge_hotspots(
            aggregate_hotspots(sp.occurrences, self.grid_size_km, date_range)
            for sp in self.selected
        )
        if seasonal is None:
            seasonal = self.sort_mode == SortMode.SEASON
        if seasonal:
            return seasonalize(merged, self.month_index)
        return merged

    def points(self) -> list[tuple[Species, Occurrence]]:
        """Individual occurrences of the selected species that can be plotted."""
        return [
            (sp, occ) for sp in self.selected for occ in sp.occurrences if occ.has_coordinates
        ]

    # -- pipeline -------------------------------------------------------------

    @contextmanager
    def _recomputing(self) -> Iterator[None]:
        self.status = SessionStatus.RECOMPUTING
        try:
            yield
        finally:
            self.status = SessionStatus.LOADED

    def _recompute_local(self, *, force: bool = False) -> bool:
        lat, lon = self._user_coords()
        if lat is None or lon is None:
            return False
        return recompute_local(
            self.species,
            lat,
            lon,
            self.proximity,
            radius_km=self.radius_km,
            movement_threshold_km=self.movement_threshold_km,
            force=force,
        )

    def _reselect(self) -> None:
        lat, lon = self._user_coords()
        self.selected = select_species(
            self.species, self.top_n, self.sort_mode, lat, lon, self.month_index
        )

    def load(self, dataset: Dataset) -> None:
        """Adopt a freshly normalized dataset, replacing all species.

        Rarity is classified once here; local stats are recomputed from
        scratch. Outstanding refreshes are invalidated.
        """
        self._refresh_token += 1
        with self._recomputing():
            self.species = dataset.species
            self.region = dataset.region
            if self.user_location is None:
                self.user_location = dataset.region.center

            classify_rarity(self.species)
            self.proximity.reset()
            self._recompute_local(force=True)
            self._reselect()
        logger.info("Loaded %d species, selected %d", len(self.species), len(self.selected))

    def update_location(self, lat: float, lon: float) -> bool:
        """
        Handle a user location update.

        Returns:
            True if local stats were recomputed, False if debounced (or no
            dataset is loaded yet).
        """
        self.user_location = Location(lat=lat, lon=lon)
        if self.status == SessionStatus.EMPTY:
            return False
        with self._recomputing():
            recomputed = self._recompute_local()
            self._reselect()
        return recomputed

    def set_top_n(self, top_n: Any) -> None:
        self.top_n = clamp_top_n(top_n)
        if self.status != SessionStatus.EMPTY:
            with self._recomputing():
                self._reselect()

    def set_sort_mode(self, sort_mode: SortMode | str) -> None:
        self.sort_mode = SortMode(sort_mode)
        if self.status != SessionStatus.EMPTY:
            with self._recomputing():
                self._reselect()

    def set_visualization(
        self,
        show_hotspots: bool | None = None,
        show_points: bool | None = None,
    ) -> VizMode:
        """Toggle map layers. Returns the resulting active mode."""
        hotspots = self.show_hotspots if show_hotspots is None else show_hotspots
        points = self.show_points if show_points is None else show_points
        self.show_hotspots, self.show_points = resolve_viz_flags(hotspots, points)
        return self.viz_mode

    # -- remote refresh boundary ----------------------------------------------

    def begin_refresh(self) -> int:
        """Token for a new remote fetch; supersedes any earlier one."""
        self._refresh_token += 1
        return self._refresh_token

    def apply_refresh(self, token: int, occurrences_by_taxon: dict[int, list[Occurrence]]) -> bool:
        """
        Replace occurrence lists with fetched ones, unless the fetch is stale.

        Species are matched by taxon key. Species without a key, whose key
        isn't in the result, or whose fetched list is empty keep their
        current occurrences.

        Returns:
            True if applied, False if the result was discarded.
        """
        if token != self._refresh_token:
            logger.info("Discarding stale refresh %d (current %d)", token, self._refresh_token)
            return False
        if self.status == SessionStatus.EMPTY:
            return False

        with self._recomputing():
            today = self._today()
            replaced = 0
            for sp in self.species:
                if sp.taxon_key is None:
                    continue
                fetched = occurrences_by_taxon.get(sp.taxon_key)
                # No hits in the search box says nothing about the dataset points
                if fetched:
                    sp.replace_occurrences(fetched, today=today)
                    replaced += 1
            self._recompute_local(force=True)
            self._reselect()
        logger.info("Applied refresh %d to %d species", token, replaced)
        return True
