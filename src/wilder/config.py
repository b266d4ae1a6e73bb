"""
Application settings.

Values come from environment variables prefixed ``WILDER_`` (or a ``.env``
file), falling back to the defaults below::

    WILDER_LAT=52.52 WILDER_LON=13.405 WILDER_TOP_N=20 wilder rank
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wilder.reference.geography import DEFAULT_CENTER_LAT, DEFAULT_CENTER_LON
from wilder.schemas import SortMode


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WILDER_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "wilder"
    app_env: str = "development"
    debug: bool = False

    # Default user position until a location update arrives
    lat: float = DEFAULT_CENTER_LAT
    lon: float = DEFAULT_CENTER_LON

    data_dir: Path = Path("data")

    # Selection
    top_n: int = 12
    sort_mode: SortMode = SortMode.TIMELESS
    show_hotspots: bool = True
    show_points: bool = False

    # Proximity and hotspots
    radius_km: float = Field(default=10.0, gt=0)
    movement_threshold_km: float = Field(default=1.0, ge=0)
    grid_size_km: float = Field(default=1.0, gt=0)

    # GBIF
    gbif_limit: int = Field(default=300, ge=1, le=300)

    @field_validator("top_n")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        # 0 or negative means "as few as possible", not an error
        return max(1, v)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
