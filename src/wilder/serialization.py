"""JSON serialization of core outputs for external renderers and the store."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from wilder.analysis.rarity import rarity_badge
from wilder.schemas import Occurrence

if TYPE_CHECKING:
    from wilder.analysis.ranking import RankedSpecies
    from wilder.schemas import HotspotSet


def hotspot_set_to_geojson(hotspot_set: HotspotSet) -> dict[str, Any]:
    """Serialize a HotspotSet as a GeoJSON FeatureCollection of cell centers.

    ``count`` drives marker size/intensity; ``total_count`` and
    ``season_count`` are only present on seasonalized sets.
    """
    features: list[dict[str, Any]] = []
    for cell in hotspot_set.cells:
        props: dict[str, Any] = {
            "count": cell.count,
            "month_counts": list(cell.month_counts),
        }
        if cell.total_count is not None:
            props["total_count"] = cell.total_count
        if cell.season_count is not None:
            props["season_count"] = cell.season_count
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [cell.longitude, cell.latitude]},
                "properties": props,
            }
        )
    return {
        "type": "FeatureCollection",
        "grid_size_km": hotspot_set.grid_size_km,
        "features": features,
    }


def ranked_species_to_dict(entry: RankedSpecies) -> dict[str, Any]:
    """Card payload for one shortlist entry.

    ``nearest_km`` is None when the species has no plottable occurrence.
    """
    sp = entry.species
    label, css_class = rarity_badge(sp.rarity)
    return {
        "id": sp.id,
        "display_name": sp.display_name,
        "scientific_name": sp.scientific_name,
        "taxon_key": sp.taxon_key,
        "rarity": str(sp.rarity),
        "badge": {"label": label, "class": css_class},
        "local_count": entry.local_count,
        "total": sp.total,
        "frequency": sp.frequency,
        "nearest_km": round(entry.nearest_km, 3) if math.isfinite(entry.nearest_km) else None,
        "season_score": entry.season_score,
        "image": sp.image,
        "culinary": sp.culinary.model_dump() if sp.culinary else None,
    }


def occurrences_to_dicts(occurrences: list[Occurrence]) -> list[dict[str, Any]]:
    """JSON-ready occurrence records (dates as ISO strings)."""
    return [occ.model_dump(mode="json") for occ in occurrences]


def occurrences_from_dicts(records: list[Any]) -> list[Occurrence]:
    """Inverse of ``occurrences_to_dicts``; invalid records are dropped."""
    out: list[Occurrence] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            out.append(Occurrence.model_validate(record))
        except ValidationError:
            continue
    return out
