"""Tests for quantile-based rarity tiers."""

from __future__ import annotations

import pytest

from wilder.analysis.rarity import classify_rarity, quantile, rarity_badge
from wilder.schemas import Rarity, Species


def make_species(name: str, total: int | None) -> Species:
    return Species(id=name, display_name=name, scientific_name=name, total=total)


class TestQuantile:
    """Test linear-interpolated quantiles."""

    def test_interpolates_quartiles(self) -> None:
        values = list(range(1, 11))
        assert quantile(values, 0.25) == pytest.approx(3.25)
        assert quantile(values, 0.75) == pytest.approx(7.75)

    def test_extremes(self) -> None:
        values = [2.0, 4.0, 8.0]
        assert quantile(values, 0.0) == 2.0
        assert quantile(values, 1.0) == 8.0

    def test_single_value(self) -> None:
        assert quantile([5.0], 0.25) == 5.0

    def test_empty(self) -> None:
        assert quantile([], 0.5) == 0.0


class TestClassifyRarity:
    """Test tier assignment across the species set."""

    def test_quartile_boundaries(self) -> None:
        species = [make_species(f"s{i}", i) for i in range(1, 11)]
        classify_rarity(species)
        by_total = {sp.total: sp.rarity for sp in species}
        assert by_total[3] == Rarity.RARE
        assert by_total[5] == Rarity.MEDIUM
        assert by_total[8] == Rarity.COMMON
        assert by_total[1] == Rarity.RARE
        assert by_total[4] == Rarity.MEDIUM
        assert by_total[7] == Rarity.MEDIUM

    def test_missing_or_zero_total_is_unknown(self) -> None:
        species = [make_species("a", None), make_species("b", 0), make_species("c", 10)]
        classify_rarity(species)
        assert species[0].rarity == Rarity.UNKNOWN
        assert species[1].rarity == Rarity.UNKNOWN

    def test_unknowns_do_not_shift_quantiles(self) -> None:
        species = [make_species(f"s{i}", i) for i in range(1, 11)]
        species.append(make_species("none", None))
        classify_rarity(species)
        assert next(sp for sp in species if sp.total == 3).rarity == Rarity.RARE

    def test_no_totals_at_all(self) -> None:
        species = [make_species("a", None)]
        classify_rarity(species)
        assert species[0].rarity == Rarity.UNKNOWN

    def test_full_recompute(self) -> None:
        sp = make_species("a", 1)
        sp.rarity = Rarity.COMMON
        sp.total = None
        classify_rarity([sp])
        assert sp.rarity == Rarity.UNKNOWN


class TestRarityBadge:
    """Test card badge labels."""

    @pytest.mark.parametrize(
        ("rarity", "expected"),
        [
            (Rarity.COMMON, ("Common", "common")),
            (Rarity.MEDIUM, ("Medium", "medium")),
            (Rarity.RARE, ("Rare", "rare")),
            (Rarity.UNKNOWN, ("Unknown", "medium")),
        ],
    )
    def test_badges(self, rarity: Rarity, expected: tuple[str, str]) -> None:
        assert rarity_badge(rarity) == expected
