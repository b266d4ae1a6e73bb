"""GBIF occurrence data source.

Resolves scientific names to backbone taxon keys and fetches occurrences
around the user for the species in the dataset.

Public API:
  - client: API_BASE, MAX_LIMIT, low-level GET helpers
  - species: resolve_taxon_key, resolve_taxon_keys
  - occurrences: NearbyOccurrences, build_occurrence_params,
                 parse_gbif_occurrence, fetch_occurrences_by_taxa
"""

from wilder.datasources.gbif.client import API_BASE, MAX_LIMIT
from wilder.datasources.gbif.occurrences import (
    NearbyOccurrences,
    build_occurrence_params,
    fetch_occurrences_by_taxa,
    parse_gbif_occurrence,
)
from wilder.datasources.gbif.species import resolve_taxon_key, resolve_taxon_keys

__all__ = [
    "API_BASE",
    "MAX_LIMIT",
    "NearbyOccurrences",
    "build_occurrence_params",
    "fetch_occurrences_by_taxa",
    "parse_gbif_occurrence",
    "resolve_taxon_key",
    "resolve_taxon_keys",
]
