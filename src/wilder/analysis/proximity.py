"""Occurrence statistics within a radius of the user.

Recomputation is debounced: GPS fixes jitter by tens of meters, so nothing
is rescanned until the user has moved at least ``movement_threshold_km``
from the last position that was actually computed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wilder.analysis.distance import distance_km
from wilder.schemas import Location, empty_histogram

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wilder.schemas import Species

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 10.0
DEFAULT_MOVEMENT_THRESHOLD_KM = 1.0


@dataclass
class ProximityState:
    """Position at which local stats were last computed (None = never)."""

    last_location: Location | None = None

    def reset(self) -> None:
        self.last_location = None


def local_stats(species: Species, lat: float, lon: float, radius_km: float) -> tuple[int, list[int]]:
    """Count and month histogram of a species' occurrences within the radius."""
    count = 0
    month_counts = empty_histogram()
    for occ in species.occurrences:
        if not occ.has_coordinates:
            continue
        d = distance_km(lat, lon, occ.latitude, occ.longitude)  # type: ignore[arg-type]
        if math.isnan(d) or d > radius_km:
            continue
        count += 1
        idx = occ.month_index
        if idx is not None:
            month_counts[idx] += 1
    return count, month_counts


def recompute_local(
    species: Iterable[Species],
    user_lat: float,
    user_lon: float,
    state: ProximityState,
    *,
    radius_km: float = DEFAULT_RADIUS_KM,
    movement_threshold_km: float = DEFAULT_MOVEMENT_THRESHOLD_KM,
    force: bool = False,
) -> bool:
    """
    Refresh every species' local count and local month histogram.

    Args:
        species: Species to update in place.
        user_lat: User latitude.
        user_lon: User longitude.
        state: Debounce state; ``last_location`` is updated when work is done.
        radius_km: Inclusion radius around the user.
        movement_threshold_km: Minimum displacement that triggers a rescan.
        force: Skip the debounce check (e.g. after occurrences changed).

    Returns:
        True if stats were recomputed, False if the call was skipped.
    """
    here = Location(lat=user_lat, lon=user_lon)
    if not here.is_valid:
        logger.debug("Ignoring invalid user location (%s, %s)", user_lat, user_lon)
        return False

    prev = state.last_location
    if not force and prev is not None:
        moved = distance_km(prev.lat, prev.lon, user_lat, user_lon)
        if moved < movement_threshold_km:
            logger.debug("Moved %.3f km (< %.3f km), skipping recompute", moved, movement_threshold_km)
            return False

    state.last_location = here

    n = 0
    for sp in species:
        sp.local_count, sp.local_month_counts = local_stats(sp, user_lat, user_lon, radius_km)
        n += 1
    logger.debug("Recomputed local stats for %d species at (%.5f, %.5f)", n, user_lat, user_lon)
    return True
