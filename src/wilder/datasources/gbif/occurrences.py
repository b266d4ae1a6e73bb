"""Nearby occurrence search for a set of taxa."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from wilder.datasources.dataset.normalize import parse_event_date
from wilder.datasources.gbif import client
from wilder.reference.geography import BoundingBox
from wilder.schemas import Occurrence

# =============================================================================
# Data Model
# =============================================================================


@dataclass
class NearbyOccurrences:
    """Occurrences around a point, grouped by taxon key."""

    bounds: BoundingBox
    by_taxon_key: dict[int, list[Occurrence]] = field(default_factory=dict)
    total: int = 0
    gbif_count: int | None = None


# =============================================================================
# Request building / parsing
# =============================================================================


def build_occurrence_params(
    taxon_keys: list[int],
    bounds: BoundingBox,
    *,
    limit: int = client.MAX_LIMIT,
    offset: int = 0,
) -> list[tuple[str, str]]:
    """Query pairs for /occurrence/search. ``taxonKey`` repeats once per taxon."""
    params: list[tuple[str, str]] = [("taxonKey", str(k)) for k in taxon_keys]
    params += [
        ("decimalLatitude", f"{bounds.min_lat},{bounds.max_lat}"),
        ("decimalLongitude", f"{bounds.min_lon},{bounds.max_lon}"),
        ("hasCoordinate", "true"),
        ("hasGeospatialIssue", "false"),
        ("occurrenceStatus", "PRESENT"),
        ("limit", str(min(limit, client.MAX_LIMIT))),
        ("offset", str(offset)),
    ]
    return params


def _num(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def parse_gbif_occurrence(record: dict[str, Any]) -> Occurrence | None:
    """Parse one search result. Returns None if it can't be represented.

    GBIF has no reliable per-record count, so every record weighs 1.
    """
    try:
        return Occurrence(
            latitude=_num(record.get("decimalLatitude")),
            longitude=_num(record.get("decimalLongitude")),
            event_date=parse_event_date(
                record.get("eventDate"),
                record.get("year"),
                record.get("month"),
                record.get("day"),
            ),
            year=record.get("year") if isinstance(record.get("year"), int) else None,
            month=record.get("month") if isinstance(record.get("month"), int) else None,
            locality=str(record.get("verbatimLocality") or record.get("locality") or ""),
            recorded_by=str(record.get("recordedBy") or ""),
            gbif_id=str(record["gbifID"]) if record.get("gbifID") is not None else None,
        )
    except ValidationError:
        return None


# =============================================================================
# API Fetching
# =============================================================================


def fetch_occurrences_by_taxa(
    lat: float,
    lon: float,
    taxon_keys: list[int],
    *,
    radius_km: float = 10.0,
    limit: int = client.MAX_LIMIT,
    max_pages: int = 1,
) -> NearbyOccurrences:
    """
    Fetch occurrences around a point for several taxa in one query.

    Args:
        lat: Center latitude.
        lon: Center longitude.
        taxon_keys: GBIF taxon keys to include.
        radius_km: Half-size of the search box.
        limit: Page size (GBIF caps it at 300).
        max_pages: Maximum number of pages to follow.

    Returns:
        NearbyOccurrences. Every requested key has an entry, even if empty.

    Raises:
        requests.HTTPError: The search failed upstream.
    """
    bounds = BoundingBox.around(lat, lon, radius_km)
    keys = [k for k in taxon_keys if isinstance(k, int) and not isinstance(k, bool)]
    result = NearbyOccurrences(bounds=bounds, by_taxon_key={k: [] for k in keys})
    if not keys:
        return result

    offset = 0
    for _ in range(max_pages):
        data = client.search_occurrences(
            build_occurrence_params(keys, bounds, limit=limit, offset=offset)
        )
        records: list[dict[str, Any]] = data.get("results") or []
        if result.gbif_count is None and isinstance(data.get("count"), int):
            result.gbif_count = data["count"]

        for record in records:
            # Records of subspecies carry their own taxonKey; fall back to speciesKey.
            key = record.get("taxonKey")
            if key not in result.by_taxon_key and record.get("speciesKey") in result.by_taxon_key:
                key = record.get("speciesKey")
            if not isinstance(key, int):
                continue
            occ = parse_gbif_occurrence(record)
            if occ is None:
                continue
            result.by_taxon_key.setdefault(key, []).append(occ)
        result.total += len(records)

        if data.get("endOfRecords", True) or not records:
            break
        offset += len(records)

    return result
