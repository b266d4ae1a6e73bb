"""
Prefect flow for building derived outputs from the dataset and cached data.

Loads the offline dataset, overlays cached GBIF occurrences, runs the
proximity/rank pipeline for the user position and writes JSON outputs for
the map and card renderers.

Run locally:
    python -m wilder.flows.build
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from prefect import flow, task

from wilder.config import get_settings
from wilder.datasources.dataset import Dataset, DatasetError, load_dataset
from wilder.serialization import (
    hotspot_set_to_geojson,
    occurrences_from_dicts,
    ranked_species_to_dict,
)
from wilder.session import Session
from wilder.store import DataStore

# Store and output paths
store = DataStore(get_settings().data_dir)

# Paths matching what fetch.py writes
TAXON_KEYS_PATH = Path("historical/gbif/taxon_keys.json")
NEARBY_PATH = Path("live/gbif_nearby.json")
SHORTLIST_PATH = Path("derived/shortlist.json")
HOTSPOTS_PATH = Path("derived/hotspots.geojson")


# =============================================================================
# Data loading tasks
# =============================================================================


@task(name="load-dataset")
def load_species_dataset() -> Dataset | None:
    """Load and normalize the offline dataset. None if it can't be read."""
    try:
        return load_dataset(store)
    except DatasetError as e:
        print(f"Dataset unavailable: {e}")
        return None


@task(name="load-taxon-keys")
def load_taxon_keys() -> dict[str, int]:
    """Load resolved scientific name -> taxon key pairs from store."""
    data = store.read(TAXON_KEYS_PATH)
    if not isinstance(data, dict):
        return {}
    return {name: key for name, key in data.items() if isinstance(key, int)}


@task(name="load-nearby-occurrences")
def load_nearby_occurrences() -> dict[int, list[Any]] | None:
    """Load cached nearby GBIF occurrences keyed by taxon key."""
    data = store.read(NEARBY_PATH)
    if not isinstance(data, dict):
        return None
    by_key = data.get("by_taxon_key")
    if not isinstance(by_key, dict):
        return None

    result: dict[int, list[Any]] = {}
    for key, records in by_key.items():
        try:
            taxon_key = int(key)
        except (TypeError, ValueError):
            continue
        result[taxon_key] = occurrences_from_dicts(records if isinstance(records, list) else [])
    return result


# =============================================================================
# Output tasks
# =============================================================================


def shortlist_payload(session: Session) -> dict[str, Any]:
    """Ranked shortlist for the card renderer."""
    location = session.user_location
    return {
        "sort_mode": str(session.sort_mode),
        "top_n": session.top_n,
        "month_index": session.month_index,
        "location": location.model_dump() if location else None,
        "species": [ranked_species_to_dict(entry) for entry in session.shortlist()],
    }


def hotspots_payload(session: Session) -> dict[str, Any]:
    """Merged hotspot cells as GeoJSON for the map renderer."""
    geojson = hotspot_set_to_geojson(session.hotspots())
    geojson["viz_mode"] = str(session.viz_mode)
    return geojson


@task(name="write-shortlist")
def write_shortlist(payload: dict[str, Any]) -> Path:
    """Save the shortlist via store."""
    return store.write(SHORTLIST_PATH, payload, source="wilder")


@task(name="write-hotspots")
def write_hotspots(geojson: dict[str, Any]) -> Path:
    """Save the hotspot GeoJSON via store."""
    return store.write(HOTSPOTS_PATH, geojson, source="wilder")


# =============================================================================
# Flow
# =============================================================================


@flow(name="build-outputs", log_prints=True)
def build_all(lat: float | None = None, lon: float | None = None) -> dict[str, Any]:
    """
    Build shortlist and hotspot outputs for a user position.

    Position defaults to the configured location.
    """
    settings = get_settings()

    print("Loading dataset...")
    dataset = load_species_dataset()
    if dataset is None:
        return {"error": "no data"}

    taxon_keys = load_taxon_keys()
    for sp in dataset.species:
        if sp.taxon_key is None and sp.scientific_name in taxon_keys:
            sp.taxon_key = taxon_keys[sp.scientific_name]

    session = Session.from_settings(settings)
    session.load(dataset)
    print(f"Loaded {len(session.species)} species ({dataset.region.name})")

    nearby = load_nearby_occurrences()
    if nearby:
        token = session.begin_refresh()
        session.apply_refresh(token, nearby)
        print(f"Applied cached GBIF occurrences for {len(nearby)} taxa")

    session.update_location(
        settings.lat if lat is None else lat,
        settings.lon if lon is None else lon,
    )

    shortlist_path = write_shortlist(shortlist_payload(session))
    hotspots_path = write_hotspots(hotspots_payload(session))
    print(f"Wrote {len(session.selected)} species to {shortlist_path}")
    print(f"Wrote hotspots to {hotspots_path}")

    return {
        "species": len(session.species),
        "selected": [sp.id for sp in session.selected],
        "shortlist_path": str(shortlist_path),
        "hotspots_path": str(hotspots_path),
    }


if __name__ == "__main__":
    result = build_all()
    print(f"Build complete: {result}")
