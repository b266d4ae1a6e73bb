"""Grid aggregation of occurrences into hotspot cells.

Occurrences are snapped to the center of a roughly square grid cell whose
edge is ``grid_size_km``. One degree of latitude is taken as 111 km; the
longitude step widens with latitude (``/ cos(lat)`` at the snapped row)
so cells stay square as meridians converge. This is a fixed-resolution
approximation, not clustering.

Cells are keyed by their snapped center rounded to 6 decimals, so two
floating-point snaps of the same cell always land in the same bucket, both
here and when merging sets built elsewhere.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from wilder.reference.geography import KM_PER_DEGREE
from wilder.schemas import MONTHS, HotspotCell, HotspotSet

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wilder.schemas import DateRange, Occurrence

KEY_PRECISION = 6


def cell_key(lat: float, lon: float) -> str:
    """Fixed-precision identity of a snapped cell center."""
    # + 0.0 folds -0.0 into 0.0 so both sides of the equator/meridian agree
    lat_r = round(lat, KEY_PRECISION) + 0.0
    lon_r = round(lon, KEY_PRECISION) + 0.0
    return f"{lat_r:.{KEY_PRECISION}f},{lon_r:.{KEY_PRECISION}f}"


def _snap(value: float, step: float) -> float:
    """Round half-up to the nearest multiple of ``step``."""
    return math.floor(value / step + 0.5) * step


def snap_to_grid(lat: float, lon: float, grid_size_km: float) -> tuple[float, float]:
    """Center of the grid cell containing (lat, lon).

    The longitude step is taken at the snapped latitude, so every point in a
    grid row shares the same column boundaries.
    """
    lat_step = grid_size_km / KM_PER_DEGREE
    lat_cell = _snap(lat, lat_step)
    lon_step = grid_size_km / (KM_PER_DEGREE * abs(math.cos(math.radians(lat_cell))))
    return lat_cell, _snap(lon, lon_step)


class _CellAccumulator:
    """Mutable running totals for one cell while aggregating."""

    __slots__ = ("count", "lat", "lon", "month_counts")

    def __init__(self, lat: float, lon: float) -> None:
        self.lat = lat
        self.lon = lon
        self.count = 0.0
        self.month_counts = [0.0] * MONTHS

    def freeze(self) -> HotspotCell:
        return HotspotCell(
            latitude=self.lat,
            longitude=self.lon,
            count=self.count,
            month_counts=tuple(self.month_counts),
        )


def _sorted_cells(cells: Iterable[_CellAccumulator]) -> tuple[HotspotCell, ...]:
    # Densest first; sort is stable so ties keep insertion order
    frozen = [c.freeze() for c in cells]
    frozen.sort(key=lambda c: c.count, reverse=True)
    return tuple(frozen)


def aggregate_hotspots(
    occurrences: Iterable[Occurrence],
    grid_size_km: float = 1.0,
    date_range: DateRange | None = None,
) -> HotspotSet:
    """
    Bin occurrences into grid cells with totals and month histograms.

    Args:
        occurrences: Points to aggregate. Records without valid coordinates
            are skipped.
        grid_size_km: Cell edge length in kilometers (must be positive).
        date_range: Optional inclusive filter. Records with an unknown date
            are never excluded by it.

    Returns:
        HotspotSet with cells sorted by descending count.
    """
    if not grid_size_km > 0:
        msg = f"grid_size_km must be positive, got {grid_size_km}"
        raise ValueError(msg)

    cells: dict[str, _CellAccumulator] = {}
    for occ in occurrences:
        if not occ.has_coordinates:
            continue
        if date_range is not None and date_range.excludes(occ.event_date):
            continue

        lat_cell, lon_cell = snap_to_grid(occ.latitude, occ.longitude, grid_size_km)  # type: ignore[arg-type]
        key = cell_key(lat_cell, lon_cell)
        cell = cells.get(key)
        if cell is None:
            cell = cells[key] = _CellAccumulator(lat_cell, lon_cell)

        cell.count += occ.weight
        idx = occ.month_index
        if idx is not None:
            cell.month_counts[idx] += occ.weight

    return HotspotSet(grid_size_km=grid_size_km, cells=_sorted_cells(cells.values()))


def merge_hotspots(hotspot_sets: Iterable[HotspotSet]) -> HotspotSet:
    """
    Sum cells that share a snapped coordinate across several sets.

    Grid sizes are not reconciled; merging sets built with different grid
    sizes is allowed but the caller owns the consistency. The result has no
    grid size.
    """
    merged: dict[str, _CellAccumulator] = {}
    for hs in hotspot_sets:
        for c in hs.cells:
            key = cell_key(c.latitude, c.longitude)
            acc = merged.get(key)
            if acc is None:
                acc = merged[key] = _CellAccumulator(c.latitude, c.longitude)
            acc.count += c.count
            for i in range(MONTHS):
                acc.month_counts[i] += c.month_counts[i]

    return HotspotSet(grid_size_km=None, cells=_sorted_cells(merged.values()))
