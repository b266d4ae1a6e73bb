"""Normalization of the offline species dataset.

Raw dataset shape (``occurrences_compact.json``)::

    {
      "region": {"name": "...", "center": {"lat": 51.3, "lon": 12.4}},
      "plants": {
        "Urtica dioica": {
          "de": "Brennnessel",
          "taxonKey": 5383920,
          "total": 48213,
          "year_counts": {"2023": 1200},
          "points": [[51.34, 12.37, 2023, 5], ...]
        }
      }
    }

Everything a record may lack gets a safe default here so that the core
never has to check shapes again. Only a missing root structure is an error.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError

from wilder.schemas import CulinaryNotes, Location, Occurrence, Region, Species, month_histograms

logger = logging.getLogger(__name__)

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")


class DatasetError(RuntimeError):
    """The dataset is missing or its root structure is absent."""


@dataclass
class Dataset:
    """A normalized dataset ready for a session."""

    region: Region
    species: list[Species] = field(default_factory=list)


# =============================================================================
# Field coercion
# =============================================================================


def _as_float(value: Any) -> float | None:
    """Finite float or None. Booleans and strings are not coordinates."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    f = float(value)
    return f if math.isfinite(f) else None


def _as_int(value: Any) -> int | None:
    f = _as_float(value)
    if f is None or not f.is_integer():
        return None
    return int(f)


def _first(entry: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = entry.get(key)
        if value not in (None, ""):
            return value
    return None


def _date_or_none(year: int | None, month: int | None, day: int | None = None) -> date | None:
    if year is None or month is None:
        return None
    try:
        return date(year, month, day or 1)
    except ValueError:
        return None


def parse_event_date(
    value: Any,
    year: Any = None,
    month: Any = None,
    day: Any = None,
) -> date | None:
    """
    Best-effort calendar date for an occurrence.

    Accepts ISO dates, ISO datetimes, ``YYYY-MM`` and GBIF ranges
    (``2021-05-01/2021-05-31``, the start wins). Falls back to separate
    year/month/day fields. Returns None when nothing parses.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip().split("/")[0]
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
        m = _YEAR_MONTH.match(text)
        if m:
            parsed = _date_or_none(int(m.group(1)), int(m.group(2)))
            if parsed is not None:
                return parsed
    return _date_or_none(_as_int(year), _as_int(month), _as_int(day))


# =============================================================================
# Normalization
# =============================================================================


def _point_to_occurrence(point: Any, locality: str) -> Occurrence | None:
    """``[lat, lon, year, month]`` tuple to an Occurrence.

    Non-numeric coordinates are kept as None so the record still counts
    towards nothing spatial; an entry that isn't a sequence is dropped.
    """
    if not isinstance(point, list | tuple):
        return None
    padded = [*point, None, None, None, None][:4]
    lat, lon = _as_float(padded[0]), _as_float(padded[1])
    year, month = _as_int(padded[2]), _as_int(padded[3])
    if month is not None and not 1 <= month <= 12:
        month = None
    return Occurrence(
        latitude=lat,
        longitude=lon,
        event_date=_date_or_none(year, month),
        year=year,
        month=month,
        locality=locality,
    )


def _year_counts(raw: Any) -> dict[str, int]:
    if not isinstance(raw, dict):
        return {}
    counts: dict[str, int] = {}
    for year, count in raw.items():
        n = _as_int(count)
        if n is not None and n >= 0:
            counts[str(year)] = n
    return counts


def _culinary(raw: Any) -> CulinaryNotes | None:
    if not isinstance(raw, dict):
        return None
    try:
        return CulinaryNotes(**{k: v for k, v in raw.items() if isinstance(v, str)})
    except ValidationError:
        return None


def normalize_species(
    species_id: str,
    entry: Any,
    *,
    images: dict[str, Any] | None = None,
    locality: str = "",
    today: date | None = None,
) -> Species:
    """
    Build a Species from one raw dataset entry.

    Args:
        species_id: Dataset key, the scientific name.
        entry: Raw entry dict. Anything else is treated as an empty entry.
        images: Optional image metadata keyed by species id (passthrough).
        locality: Region name attached to each occurrence for popups.
        today: Reference date for the rolling 3-year histogram.

    Returns:
        A Species with occurrences and precomputed month histograms.
    """
    if not isinstance(entry, dict):
        logger.warning("Dataset entry for %r is not an object, using empty entry", species_id)
        entry = {}

    occurrences: list[Occurrence] = []
    points = entry.get("points")
    for point in points if isinstance(points, list) else []:
        occ = _point_to_occurrence(point, locality)
        if occ is not None:
            occurrences.append(occ)

    counts_all, counts_3y = month_histograms(occurrences, today=today)

    display = _first(entry, "display_name", "de", "german_name")
    total = _as_int(_first(entry, "total", "total_count"))
    image = (images or {}).get(species_id)

    return Species(
        id=species_id,
        display_name=str(display) if display is not None else species_id,
        scientific_name=species_id,
        taxon_key=_as_int(_first(entry, "taxonKey", "taxon_key")),
        occurrences=occurrences,
        total=total,
        year_counts=_year_counts(_first(entry, "year_counts", "years")),
        month_counts_all=counts_all,
        month_counts_3y=counts_3y,
        image=image if isinstance(image, dict) else None,
        culinary=_culinary(entry.get("recipe")),
        id_markers=str(entry.get("idMarkers") or entry.get("id_markers") or ""),
        lookalike_warning=str(
            entry.get("lookalikeWarning") or entry.get("lookalike_warning") or ""
        ).strip(),
    )


def _region(raw: Any) -> Region:
    if not isinstance(raw, dict):
        return Region()
    center = raw.get("center")
    name = raw.get("name")
    region = Region(name=str(name)) if name else Region()
    if isinstance(center, dict):
        lat, lon = _as_float(center.get("lat")), _as_float(center.get("lon"))
        if lat is not None and lon is not None:
            region = Region(name=region.name, center=Location(lat=lat, lon=lon))
    return region


def normalize_dataset(
    raw: Any,
    *,
    images: dict[str, Any] | None = None,
    today: date | None = None,
) -> Dataset:
    """
    Normalize a raw dataset document.

    Raises:
        DatasetError: If the document isn't an object or has no ``plants``
            (or ``species``) mapping.
    """
    if not isinstance(raw, dict):
        msg = f"Dataset root must be an object, got {type(raw).__name__}"
        raise DatasetError(msg)

    entries = raw.get("plants")
    if entries is None:
        entries = raw.get("species")
    if not isinstance(entries, dict):
        msg = "Dataset has no 'plants' mapping"
        raise DatasetError(msg)

    region = _region(raw.get("region"))
    species = [
        normalize_species(
            str(species_id), entry, images=images, locality=region.name, today=today
        )
        for species_id, entry in entries.items()
    ]
    logger.info("Normalized %d species for region %r", len(species), region.name)
    return Dataset(region=region, species=species)
