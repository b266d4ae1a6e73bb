"""Core geospatial aggregation and ranking logic.

Pure, synchronous functions over in-memory species collections. Nothing here
does I/O or talks to Prefect; the session (``wilder.session``) calls these in
a fixed order and owns all mutation.

Modules:
  - distance:  haversine distance, nearest occurrence
  - hotspots:  grid binning of occurrences, merging of hotspot sets
  - seasonal:  3-month window, seasonalized hotspots, species season score
  - proximity: debounced per-species stats within a radius of the user
  - rarity:    quartile-based rarity tiers
  - ranking:   composite sort keys and top-N selection

Adding an analysis module
-------------------------
1. Create ``analysis/{name}.py`` with pure functions taking ``schemas`` models.
2. No I/O, no HTTP, no Prefect decorators.
3. Call it from ``Session`` (``session.py``) at the right pipeline step.
4. Re-export here and add tests in ``tests/test_{name}.py``.
"""

from wilder.analysis.distance import EARTH_RADIUS_KM, distance_km, nearest_distance_km
from wilder.analysis.hotspots import aggregate_hotspots, cell_key, merge_hotspots, snap_to_grid
from wilder.analysis.proximity import ProximityState, recompute_local
from wilder.analysis.rarity import classify_rarity, quantile, rarity_badge
from wilder.analysis.ranking import (
    RankedSpecies,
    clamp_top_n,
    rank_for_display,
    rank_species,
    select_species,
)
from wilder.analysis.seasonal import (
    current_month_index,
    season_score,
    season_window,
    seasonalize,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "ProximityState",
    "RankedSpecies",
    "aggregate_hotspots",
    "cell_key",
    "clamp_top_n",
    "classify_rarity",
    "current_month_index",
    "distance_km",
    "merge_hotspots",
    "nearest_distance_km",
    "quantile",
    "rank_for_display",
    "rank_species",
    "rarity_badge",
    "recompute_local",
    "season_score",
    "season_window",
    "seasonalize",
    "select_species",
    "snap_to_grid",
]
