"""Great-circle distance helpers."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wilder.schemas import Occurrence

# Mean Earth radius
EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometers.

    NaN inputs propagate to a NaN result instead of raising; callers treat
    NaN as "unknown" and exclude it.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    # Rounding can push a a hair past 1 for antipodal points
    if a > 1.0:
        a = 1.0
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def nearest_distance_km(occurrences: Iterable[Occurrence], lat: float, lon: float) -> float:
    """Distance to the closest occurrence with valid coordinates.

    Returns ``math.inf`` when no occurrence has usable coordinates.
    """
    best = math.inf
    for occ in occurrences:
        if not occ.has_coordinates:
            continue
        d = distance_km(lat, lon, occ.latitude, occ.longitude)  # type: ignore[arg-type]
        if d < best:
            best = d
    return best
