"""Loading the offline dataset and optional image metadata from the store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from wilder.datasources.dataset.normalize import Dataset, DatasetError, normalize_dataset

if TYPE_CHECKING:
    from datetime import date

    from wilder.store import DataStore

logger = logging.getLogger(__name__)

DATASET_PATH = Path("reference/occurrences_compact.json")
IMAGES_PATH = Path("reference/plants_wikipedia_images.json")


def load_images(store: DataStore, path: Path = IMAGES_PATH) -> dict[str, Any] | None:
    """Image metadata keyed by species id, or None.

    The file is optional: missing or malformed files are ignored so the
    app still boots without pictures.
    """
    try:
        data = store.read(path)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable image metadata %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def load_dataset(
    store: DataStore,
    path: Path = DATASET_PATH,
    images_path: Path = IMAGES_PATH,
    *,
    today: date | None = None,
) -> Dataset:
    """
    Read and normalize the species dataset.

    Raises:
        DatasetError: The dataset file is missing, unreadable, or has no
            root structure. Fatal to startup.
    """
    try:
        raw = store.read(path)
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Failed to load {path}: {e}"
        raise DatasetError(msg) from e
    if raw is None:
        msg = f"Failed to load {path}: file not found"
        raise DatasetError(msg)

    return normalize_dataset(raw, images=load_images(store, images_path), today=today)
