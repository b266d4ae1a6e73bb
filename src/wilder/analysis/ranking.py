"""Shortlist ordering and top-N selection.

Both sort modes produce a total order, ending in the display name, so the
same inputs always give the same shortlist regardless of input order.

timeless: most local sightings, then nearest, then most sightings overall.
season:   highest seasonal score, then nearest, then local, then overall.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wilder.analysis.distance import nearest_distance_km
from wilder.analysis.seasonal import season_score
from wilder.schemas import SortMode

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wilder.schemas import Species

DEFAULT_TOP_N = 12


@dataclass
class RankedSpecies:
    """A species with the signals it was ranked by."""

    species: Species
    nearest_km: float
    local_count: int
    total: int
    season_score: float

    @property
    def has_nearby_point(self) -> bool:
        return math.isfinite(self.nearest_km)


def clamp_top_n(value: Any) -> int:
    """Coerce a requested shortlist size to an integer >= 1."""
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_TOP_N
    return max(1, n)


def _signals(
    sp: Species, user_lat: float | None, user_lon: float | None, month_index: int
) -> RankedSpecies:
    if user_lat is None or user_lon is None:
        nearest = math.inf
    else:
        nearest = nearest_distance_km(sp.occurrences, user_lat, user_lon)
        if math.isnan(nearest):
            nearest = math.inf
    return RankedSpecies(
        species=sp,
        nearest_km=nearest,
        local_count=sp.local_count or 0,
        total=sp.total or 0,
        season_score=season_score(sp, month_index),
    )


def sort_key(entry: RankedSpecies, sort_mode: SortMode) -> tuple[Any, ...]:
    """Composite ascending key for ``sorted``."""
    name = entry.species.display_name or ""
    if sort_mode == SortMode.TIMELESS:
        return (-entry.local_count, entry.nearest_km, -entry.total, name)
    if sort_mode == SortMode.SEASON:
        return (
            -entry.season_score,
            entry.nearest_km,
            -entry.local_count,
            -entry.total,
            name,
        )
    msg = f"Unknown sort mode: {sort_mode!r}"
    raise ValueError(msg)


def rank_species(
    species: Sequence[Species],
    sort_mode: SortMode,
    user_lat: float | None,
    user_lon: float | None,
    month_index: int,
) -> list[RankedSpecies]:
    """Every species, best first."""
    mode = SortMode(sort_mode)
    entries = [_signals(sp, user_lat, user_lon, month_index) for sp in species]
    entries.sort(key=lambda e: sort_key(e, mode))
    return entries


def select_species(
    species: Sequence[Species],
    top_n: Any,
    sort_mode: SortMode,
    user_lat: float | None,
    user_lon: float | None,
    month_index: int,
) -> list[Species]:
    """
    Top-N species to show.

    Args:
        species: Full species set.
        top_n: Requested size; clamped to at least 1.
        sort_mode: Ordering to apply.
        user_lat: User latitude, or None when unknown.
        user_lon: User longitude, or None when unknown.
        month_index: Current month (0-11) for the seasonal score.

    Returns:
        A strict prefix of the full ranking.
    """
    n = clamp_top_n(top_n)
    ranked = rank_species(species, sort_mode, user_lat, user_lon, month_index)
    return [e.species for e in ranked[:n]]


def rank_for_display(
    selected: Sequence[Species],
    all_species: Sequence[Species],
    sort_mode: SortMode,
    user_lat: float | None,
    user_lon: float | None,
    month_index: int,
) -> list[RankedSpecies]:
    """Order the shortlist cards.

    Ranks the current selection, or the full set if nothing is selected yet,
    with the same key as ``select_species``.
    """
    base = selected if selected else all_species
    return rank_species(base, sort_mode, user_lat, user_lon, month_index)
