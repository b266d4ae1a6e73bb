"""Three-month seasonal window around the current month.

A plant is "in season" when it has been observed in the previous, current
or next calendar month. Month indices are 0-11 and wrap around the year
(December's window is Nov, Dec, Jan).
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from wilder.schemas import MONTHS, HotspotCell, HotspotSet

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wilder.schemas import Species


def current_month_index(today: date | None = None) -> int:
    """0-based index of the current calendar month."""
    return (today or date.today()).month - 1


def season_window(month_index: int) -> tuple[int, int, int]:
    """(previous, current, next) month indices."""
    m = month_index % MONTHS
    return (m - 1) % MONTHS, m, (m + 1) % MONTHS


def window_sum(histogram: Sequence[float], month_index: int) -> float:
    """Sum of the three buckets in the window around ``month_index``."""
    return sum(histogram[i] for i in season_window(month_index))


def seasonalize(hotspot_set: HotspotSet, month_index: int) -> HotspotSet:
    """
    Re-weight cells by seasonal relevance.

    Each cell's ``count`` becomes its window sum (also kept as
    ``season_count``); the all-time count moves to ``total_count``. Cells with
    nothing in the window stay, they just sink to the bottom.
    """
    cells: list[HotspotCell] = []
    for c in hotspot_set.cells:
        season_count = window_sum(c.month_counts, month_index)
        cells.append(
            c.model_copy(
                update={
                    "count": season_count,
                    "season_count": season_count,
                    "total_count": c.count,
                }
            )
        )
    cells.sort(key=lambda c: c.count, reverse=True)
    return HotspotSet(grid_size_km=hotspot_set.grid_size_km, cells=tuple(cells))


def season_score(species: Species, month_index: int) -> float:
    """Seasonal relevance of a species.

    Uses the first histogram that has any data: local (near the user), then
    the rolling 3-year one, then all-time. Zero when all are empty.
    """
    for histogram in (
        species.local_month_counts,
        species.month_counts_3y,
        species.month_counts_all,
    ):
        if any(histogram):
            return window_sum(histogram, month_index)
    return 0.0
