"""Tiered JSON data store with freshness-aware caching.

Data files are organized into tiers by how often they change:
  - reference/: Offline dataset and image metadata, placed by hand or a
    separate export job. Read as plain JSON or envelopes.
  - historical/: Slow-changing lookups (GBIF taxon keys), 30-day TTL.
  - live/: Location-dependent fetches (nearby GBIF occurrences), 6h TTL.
  - derived/: Computed outputs (shortlist, hotspot GeoJSON), always rebuilt.

Files written by the store are wrapped in a metadata envelope with
``valid_until`` so the fetch flow can skip sources that are still fresh.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - used at runtime, not just annotations
from typing import Any


class DataStore:
    """Read/write of cached JSON files with TTL."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir
        self.reference = base_dir / "reference"
        self.historical = base_dir / "historical"
        self.live = base_dir / "live"
        self.derived = base_dir / "derived"

    def exists(self, path: Path) -> bool:
        return self._resolve(path).exists()

    def read(self, path: Path) -> Any:
        """Read the payload of a JSON file.

        Enveloped files return their ``data`` field; plain JSON (hand-placed
        reference files) is returned as-is. None if the file doesn't exist.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        if isinstance(envelope, dict) and "meta" in envelope and "data" in envelope:
            return envelope["data"]
        return envelope

    def read_raw(self, path: Path) -> Any:
        """Read the whole JSON document (meta + data for enveloped files)."""
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open(encoding="utf-8") as f:
            return json.load(f)

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        Args:
            path: Relative path under base_dir (e.g. ``live/gbif_nearby.json``).
            data: Payload to store under the ``data`` key.
            source: Data source identifier (e.g. ``"api.gbif.org"``).
            valid_until: Expiry timestamp. None means derived/no-cache.
            **params: Extra metadata fields (location, radius, etc.).

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
        }
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        if params:
            meta.update(params)

        with full.open("w", encoding="utf-8") as f:
            json.dump({"meta": meta, "data": data}, f, indent=2)

        return full

    def meta(self, path: Path) -> dict[str, Any]:
        """Envelope metadata, or an empty dict for missing/plain files."""
        raw = self.read_raw(path)
        if isinstance(raw, dict) and isinstance(raw.get("meta"), dict):
            return raw["meta"]
        return {}

    def is_fresh(self, path: Path) -> bool:
        """Check if a file exists and hasn't expired.

        Returns False if the file is missing, has no ``valid_until``, or the
        expiry time has passed.
        """
        valid_until = self.meta(path).get("valid_until")
        if valid_until is None:
            return False

        expiry = datetime.fromisoformat(valid_until)
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return datetime.now(UTC) < expiry

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full
