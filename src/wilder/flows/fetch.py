"""
Prefect flow for fetching GBIF data around the user.

Species in the offline dataset that lack a GBIF taxon key are resolved by
scientific name first; then one occurrence search covers every known key.

Run locally:
    python -m wilder.flows.fetch

Run with Prefect dashboard:
    prefect server start &
    python -m wilder.flows.fetch
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from prefect import flow, task

from wilder.config import get_settings
from wilder.datasources import gbif
from wilder.datasources.dataset import DATASET_PATH
from wilder.reference.geography import DEFAULT_CENTER_LAT, DEFAULT_CENTER_LON
from wilder.serialization import occurrences_to_dicts
from wilder.store import DataStore

# Data store with tiered directories
store = DataStore(get_settings().data_dir)

# Relative paths within the store
TAXON_KEYS_PATH = Path("historical/gbif/taxon_keys.json")
NEARBY_PATH = Path("live/gbif_nearby.json")


def _dataset_taxa() -> tuple[dict[str, int], list[str]]:
    """Known taxon keys and names still needing resolution, from the raw dataset."""
    raw = store.read(DATASET_PATH)
    known: dict[str, int] = {}
    unresolved: list[str] = []
    if not isinstance(raw, dict):
        return known, unresolved
    plants = raw.get("plants") or raw.get("species")
    if not isinstance(plants, dict):
        return known, unresolved
    # Dataset keys are scientific names
    for name, entry in plants.items():
        key = entry.get("taxonKey", entry.get("taxon_key")) if isinstance(entry, dict) else None
        if isinstance(key, int) and not isinstance(key, bool):
            known[name] = key
        else:
            unresolved.append(name)
    return known, unresolved


@task(name="resolve-taxon-keys", retries=2, retry_delay_seconds=5)
def resolve_taxon_keys(names: list[str]) -> dict[str, int]:
    """Match scientific names against the GBIF backbone."""
    return gbif.resolve_taxon_keys(names)


@task(name="save-taxon-keys")
def save_taxon_keys(keys: dict[str, int]) -> Path:
    """Save resolved taxon keys via store."""
    return store.write(
        TAXON_KEYS_PATH,
        keys,
        source="api.gbif.org (species/match)",
        valid_until=datetime.now(UTC) + timedelta(days=30),
    )


@task(name="fetch-nearby-occurrences", retries=2, retry_delay_seconds=5)
def fetch_nearby_occurrences(
    lat: float,
    lon: float,
    taxon_keys: list[int],
    radius_km: float = 10.0,
    limit: int = gbif.MAX_LIMIT,
) -> dict[str, Any]:
    """Fetch occurrences around (lat, lon) and group them for caching."""
    nearby = gbif.fetch_occurrences_by_taxa(
        lat, lon, taxon_keys, radius_km=radius_km, limit=limit
    )
    return {
        "location": {"lat": lat, "lon": lon},
        "radius_km": radius_km,
        "bounds": nearby.bounds.as_dict(),
        "total": nearby.total,
        "gbif_count": nearby.gbif_count,
        # JSON object keys are strings
        "by_taxon_key": {
            str(key): occurrences_to_dicts(occs) for key, occs in nearby.by_taxon_key.items()
        },
    }


@task(name="save-nearby-occurrences")
def save_nearby_occurrences(nearby: dict[str, Any]) -> Path:
    """Save nearby occurrences via store."""
    return store.write(
        NEARBY_PATH,
        nearby,
        source="api.gbif.org (occurrence/search)",
        valid_until=datetime.now(UTC) + timedelta(hours=6),
        lat=nearby["location"]["lat"],
        lon=nearby["location"]["lon"],
    )


def _nearby_matches(lat: float, lon: float) -> bool:
    """Cached nearby data is only reusable for the same location."""
    cached = store.read(NEARBY_PATH)
    if not isinstance(cached, dict):
        return False
    location = cached.get("location") or {}
    return location.get("lat") == lat and location.get("lon") == lon


@flow(name="fetch-data", log_prints=True)
def fetch_all(
    lat: float = DEFAULT_CENTER_LAT,
    lon: float = DEFAULT_CENTER_LON,
    radius_km: float = 10.0,
    limit: int = gbif.MAX_LIMIT,
) -> dict[str, Any]:
    """
    Fetch all GBIF data for the dataset's species.

    Checks freshness before fetching and skips sources that are still valid.
    """
    results: dict[str, Any] = {}

    known, unresolved = _dataset_taxa()
    if not known and not unresolved:
        print(f"No dataset at {store.reference / DATASET_PATH.name}, nothing to fetch.")
        return {"error": "no data"}

    # --- Taxon keys ---
    if store.is_fresh(TAXON_KEYS_PATH):
        print("Taxon keys are fresh, skipping lookup.")
        resolved = store.read(TAXON_KEYS_PATH) or {}
    elif unresolved:
        print(f"Resolving {len(unresolved)} scientific names against GBIF...")
        resolved = resolve_taxon_keys(unresolved)
        keys_path = save_taxon_keys(resolved)
        print(f"Saved {len(resolved)} taxon keys to {keys_path}")
    else:
        resolved = {}

    taxon_keys = sorted(set(known.values()) | set(resolved.values()))
    results["taxon_keys"] = len(taxon_keys)

    # --- Nearby occurrences ---
    if store.is_fresh(NEARBY_PATH) and _nearby_matches(lat, lon):
        print("Nearby occurrences are fresh, skipping fetch.")
        nearby = store.read(NEARBY_PATH) or {}
    else:
        print(f"Fetching GBIF occurrences around ({lat}, {lon}) for {len(taxon_keys)} taxa...")
        nearby = fetch_nearby_occurrences(lat, lon, taxon_keys, radius_km, limit)
        nearby_path = save_nearby_occurrences(nearby)
        print(f"Saved {nearby.get('total', 0)} occurrences to {nearby_path}")

    results["nearby_occurrences"] = nearby.get("total", 0)
    return results


if __name__ == "__main__":
    result = fetch_all()
    print(f"Flow complete: {result}")
