"""Offline species dataset.

Public API:
  - normalize: Dataset, DatasetError, normalize_dataset, normalize_species,
               parse_event_date
  - loader:    load_dataset, load_images, DATASET_PATH, IMAGES_PATH
"""

from wilder.datasources.dataset.loader import (
    DATASET_PATH,
    IMAGES_PATH,
    load_dataset,
    load_images,
)
from wilder.datasources.dataset.normalize import (
    Dataset,
    DatasetError,
    normalize_dataset,
    normalize_species,
    parse_event_date,
)

__all__ = [
    "DATASET_PATH",
    "IMAGES_PATH",
    "Dataset",
    "DatasetError",
    "load_dataset",
    "load_images",
    "normalize_dataset",
    "normalize_species",
    "parse_event_date",
]
