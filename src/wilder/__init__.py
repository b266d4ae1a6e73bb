"""Wilder - find wild edible plants near you.

Architecture::

    datasources/   Offline species dataset, GBIF taxon match and nearby search
    store.py       Tiered cache with TTL (reference → historical → live → derived)
    analysis/      Distance, hotspot grid, seasonal window, proximity, rarity, ranking
    session.py     Selection state and the fixed recompute pipeline
    serialization  Shortlist cards and hotspot GeoJSON for external renderers
    flows/         Prefect orchestration (fetch checks freshness, build writes outputs)
    services/      Shared utilities (HTTP client with retry)

Data flow: datasources → store (cache) → session (analysis) → derived/*.json

Extension points (see each package's docstring for step-by-step guides):
  - New data source:   datasources/__init__.py
  - New analysis:      analysis/__init__.py
"""

__version__ = "0.1.0"

from wilder.config import Settings
from wilder.schemas import HotspotSet, Occurrence, SortMode, Species
from wilder.session import Session

__all__ = [
    "HotspotSet",
    "Occurrence",
    "Session",
    "Settings",
    "SortMode",
    "Species",
    "__version__",
]
