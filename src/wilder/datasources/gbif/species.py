"""Scientific name to GBIF taxon key resolution."""

from __future__ import annotations

from wilder.datasources.gbif import client


def resolve_taxon_key(scientific_name: str | None) -> int | None:
    """
    Look up the GBIF backbone usage key for a scientific name.

    Uses strict matching and accepts only EXACT or FUZZY matches, so a
    higher-rank fallback (genus, family) never gets mistaken for the species.

    Returns:
        The usage key, or None when the name is empty or doesn't match.
    """
    if not scientific_name:
        return None

    data = client.match_species({"name": scientific_name, "strict": "true"})
    if data.get("matchType") not in client.ACCEPTED_MATCH_TYPES:
        return None

    key = data.get("usageKey")
    if isinstance(key, bool) or not isinstance(key, int):
        return None
    return key


def resolve_taxon_keys(names: list[str]) -> dict[str, int]:
    """Resolve several names, keeping only the ones that matched."""
    keys: dict[str, int] = {}
    for name in names:
        key = resolve_taxon_key(name)
        if key is not None:
            keys[name] = key
    return keys
