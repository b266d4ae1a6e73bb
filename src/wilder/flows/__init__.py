"""
Prefect flows for the data pipeline.

Flows:
- fetch: Resolve GBIF taxon keys and download occurrences near the user
- build: Load the offline dataset, apply cached GBIF data, rank and
  aggregate into derived/shortlist.json and derived/hotspots.geojson

Usage (local):
    python -m wilder.flows.fetch
    python -m wilder.flows.build

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'fetch-data/default'
"""
