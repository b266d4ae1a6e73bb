"""Geographic bounds and default regions."""

from __future__ import annotations

import math
from dataclasses import dataclass

# One degree of latitude, and of longitude at the equator
KM_PER_DEGREE = 111.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class BoundingBox:
    """Min/max lat-lon bounding box."""

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    @classmethod
    def around(cls, lat: float, lon: float, radius_km: float) -> BoundingBox:
        """Rough box of +/- ``radius_km`` around a point, clamped to valid ranges.

        Longitude degrees shrink with latitude; the box is only a prefilter
        for the exact radius check.
        """
        lat_deg = radius_km / KM_PER_DEGREE
        lon_deg = radius_km / (KM_PER_DEGREE * abs(math.cos(math.radians(lat))))
        return cls(
            min_lat=_clamp(lat - lat_deg, -90, 90),
            min_lon=_clamp(lon - lon_deg, -180, 180),
            max_lat=_clamp(lat + lat_deg, -90, 90),
            max_lon=_clamp(lon + lon_deg, -180, 180),
        )

    def contains(self, lat: float, lon: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon

    def as_dict(self) -> dict[str, float]:
        return {
            "min_lat": self.min_lat,
            "min_lon": self.min_lon,
            "max_lat": self.max_lat,
            "max_lon": self.max_lon,
        }


# Leipzig, the default map center when the dataset carries no region
DEFAULT_CENTER_LAT = 51.3397
DEFAULT_CENTER_LON = 12.3731
DEFAULT_REGION_NAME = "Germany (offline)"
