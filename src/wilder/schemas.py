"""
Domain models for wilder.

Pydantic models for occurrence data and the derived structures the core
produces. These define the canonical schema - datasources normalize raw
records to these once, so analysis code never has to re-check shapes.
"""

from __future__ import annotations

import math
from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wilder.reference.geography import (
    DEFAULT_CENTER_LAT,
    DEFAULT_CENTER_LON,
    DEFAULT_REGION_NAME,
)

MONTHS = 12


def empty_histogram() -> list[int]:
    """Twelve zero buckets, index 0 = January."""
    return [0] * MONTHS


def _check_histogram(values: list[Any]) -> list[Any]:
    if len(values) != MONTHS:
        msg = f"Month histogram must have {MONTHS} buckets, got {len(values)}"
        raise ValueError(msg)
    if any(v < 0 for v in values):
        msg = "Month histogram buckets must be non-negative"
        raise ValueError(msg)
    return values


# =============================================================================
# Enums
# =============================================================================


class Rarity(StrEnum):
    """Global rarity tier derived from total observation counts."""

    UNKNOWN = "Unknown"
    RARE = "Rare"
    MEDIUM = "Medium"
    COMMON = "Common"


class SortMode(StrEnum):
    """Shortlist ordering."""

    TIMELESS = "timeless"
    SEASON = "season"


class VizMode(StrEnum):
    """Active map visualization."""

    HOTSPOTS = "hotspots"
    POINTS = "points"


class SessionStatus(StrEnum):
    """Selection state lifecycle."""

    EMPTY = "empty"
    LOADED = "loaded"
    RECOMPUTING = "recomputing"


# =============================================================================
# Geographic
# =============================================================================


class Location(BaseModel):
    """A user or region position."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float

    @property
    def is_valid(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lon)


class Region(BaseModel):
    """Named dataset region with a default map center."""

    name: str = DEFAULT_REGION_NAME
    center: Location = Field(
        default_factory=lambda: Location(lat=DEFAULT_CENTER_LAT, lon=DEFAULT_CENTER_LON)
    )


class DateRange(BaseModel):
    """Inclusive date filter. Either bound may be open."""

    model_config = ConfigDict(frozen=True)

    start: date | None = None
    end: date | None = None

    def excludes(self, when: date | None) -> bool:
        """True only when ``when`` is known and falls outside the range."""
        if when is None:
            return False
        if self.start is not None and when < self.start:
            return True
        return self.end is not None and when > self.end


# =============================================================================
# Occurrences and species
# =============================================================================


class Occurrence(BaseModel):
    """A single sighting. Weight is a pre-aggregated observation count."""

    model_config = ConfigDict(frozen=True)

    latitude: float | None = None
    longitude: float | None = None
    event_date: date | None = None
    weight: float = Field(default=1.0, gt=0)

    # Passthrough for popups
    year: int | None = None
    month: int | None = None
    locality: str = ""
    recorded_by: str = ""
    gbif_id: str | None = None

    @property
    def has_coordinates(self) -> bool:
        """Both coordinates present and finite."""
        return (
            self.latitude is not None
            and self.longitude is not None
            and math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
        )

    @property
    def month_index(self) -> int | None:
        """Histogram bucket (0-11) or None when the date is unknown."""
        return self.event_date.month - 1 if self.event_date is not None else None


class CulinaryNotes(BaseModel):
    """Kitchen card text shown on the back of a specimen card."""

    prep: str = "Wash thoroughly. Remove tough stems if needed."
    simple: str = "Quick saute: olive oil, garlic, greens, salt. 3-5 minutes."
    pairing: str = "Goes well with garlic, lemon, nuts, and grains."


class Species(BaseModel):
    """A plant species with its occurrences and derived statistics.

    Created during dataset normalization. Local stats and rarity are written
    by the recompute/classify entry points only.
    """

    id: str
    display_name: str
    scientific_name: str
    taxon_key: int | None = None
    occurrences: list[Occurrence] = Field(default_factory=list)

    total: int | None = None
    year_counts: dict[str, int] = Field(default_factory=dict)
    month_counts_all: list[int] = Field(default_factory=empty_histogram)
    month_counts_3y: list[int] = Field(default_factory=empty_histogram)

    rarity: Rarity = Rarity.UNKNOWN
    local_count: int = 0
    local_month_counts: list[int] = Field(default_factory=empty_histogram)

    image: dict[str, Any] | None = None
    culinary: CulinaryNotes | None = None
    id_markers: str = ""
    lookalike_warning: str = ""

    @field_validator("month_counts_all", "month_counts_3y", "local_month_counts")
    @classmethod
    def _twelve_buckets(cls, v: list[int]) -> list[int]:
        return _check_histogram(v)

    @property
    def frequency(self) -> int:
        """Number of occurrence records held (capped points, not the true total)."""
        return len(self.occurrences)

    def replace_occurrences(
        self, occurrences: list[Occurrence], *, today: date | None = None
    ) -> None:
        """Swap the occurrence list wholesale and rebuild derived histograms.

        Local stats are left stale; the session forces a recompute afterwards.
        """
        self.occurrences = list(occurrences)
        self.month_counts_all, self.month_counts_3y = month_histograms(
            self.occurrences, today=today
        )


def month_histograms(
    occurrences: list[Occurrence], *, today: date | None = None
) -> tuple[list[int], list[int]]:
    """All-time and rolling 3-year month histograms (one count per record)."""
    now_year = (today or date.today()).year
    year_from = now_year - 2

    counts_all = empty_histogram()
    counts_3y = empty_histogram()
    for occ in occurrences:
        idx = occ.month_index
        if idx is None:
            continue
        counts_all[idx] += 1
        year = occ.event_date.year if occ.event_date else None
        if year is not None and year_from <= year <= now_year:
            counts_3y[idx] += 1
    return counts_all, counts_3y


# =============================================================================
# Hotspots
# =============================================================================


class HotspotCell(BaseModel):
    """One grid bucket. Identity is the snapped coordinate, not the object."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    count: float
    month_counts: tuple[float, ...]
    total_count: float | None = None
    season_count: float | None = None

    @field_validator("month_counts")
    @classmethod
    def _twelve_buckets(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        return tuple(_check_histogram(list(v)))


class HotspotSet(BaseModel):
    """Aggregation result, cells sorted by descending count."""

    model_config = ConfigDict(frozen=True)

    grid_size_km: float | None = None
    cells: tuple[HotspotCell, ...] = ()

    @property
    def total(self) -> float:
        return sum(c.count for c in self.cells)
