"""Global rarity tiers from quartiles of total observation counts."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from wilder.schemas import Rarity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wilder.schemas import Species

# Rarity -> (label, css class) for card badges
_BADGES: dict[Rarity, tuple[str, str]] = {
    Rarity.COMMON: ("Common", "common"),
    Rarity.MEDIUM: ("Medium", "medium"),
    Rarity.RARE: ("Rare", "rare"),
}


def quantile(sorted_values: Sequence[float], q: float) -> float:
    """Linear-interpolated quantile of an ascending sequence.

    ``index = (n - 1) * q``, interpolating between the floor and ceiling
    order statistics. Returns 0.0 for an empty sequence.
    """
    if not sorted_values:
        return 0.0
    pos = (len(sorted_values) - 1) * q
    base = math.floor(pos)
    rest = pos - base
    a = sorted_values[base]
    b = sorted_values[min(base + 1, len(sorted_values) - 1)]
    return a + rest * (b - a)


def _usable_total(species: Species) -> float | None:
    total = species.total
    if total is None:
        return None
    value = float(total)
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def classify_rarity(species: Sequence[Species]) -> None:
    """Tag every species Rare / Medium / Common / Unknown.

    Below the 25th percentile is Rare, at or above the 75th is Common, the
    rest Medium. Species without a positive total are Unknown. Always a full
    recompute over the whole set.
    """
    totals = sorted(t for t in (_usable_total(sp) for sp in species) if t is not None)

    if not totals:
        for sp in species:
            sp.rarity = Rarity.UNKNOWN
        return

    p25 = quantile(totals, 0.25)
    p75 = quantile(totals, 0.75)

    for sp in species:
        t = _usable_total(sp)
        if t is None:
            sp.rarity = Rarity.UNKNOWN
        elif t < p25:
            sp.rarity = Rarity.RARE
        elif t >= p75:
            sp.rarity = Rarity.COMMON
        else:
            sp.rarity = Rarity.MEDIUM


def rarity_badge(rarity: Rarity) -> tuple[str, str]:
    """(label, css class) for a rarity tier. Unknown reuses the medium style."""
    return _BADGES.get(rarity, ("Unknown", "medium"))
