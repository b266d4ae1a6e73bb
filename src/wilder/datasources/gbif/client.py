"""
GBIF API client.

Low-level HTTP helper for the GBIF v1 REST API. Errors are not swallowed:
``raise_for_status`` surfaces upstream failures to the caller.

API docs: https://techdocs.gbif.org/en/openapi/
"""

from __future__ import annotations

from typing import Any

from wilder.services.http import session

API_BASE = "https://api.gbif.org/v1"

# Occurrence search page size ceiling
MAX_LIMIT = 300

# species/match confidence we accept
ACCEPTED_MATCH_TYPES = frozenset({"EXACT", "FUZZY"})


def get_json(endpoint: str, params: Any = None) -> dict[str, Any]:
    """GET ``{API_BASE}/{endpoint}`` and decode the JSON body.

    ``params`` may be a dict or a list of pairs (for repeated keys).
    """
    resp = session.get(f"{API_BASE}/{endpoint}", params=params or {})
    resp.raise_for_status()
    data: dict[str, Any] = resp.json()
    return data


def match_species(params: dict[str, Any]) -> dict[str, Any]:
    """GET /species/match - resolve a name against the GBIF backbone."""
    return get_json("species/match", params)


def search_occurrences(params: Any) -> dict[str, Any]:
    """GET /occurrence/search - paged occurrence records."""
    return get_json("occurrence/search", params)
