"""Quantile tiers (A-D) for blended estimates within each position."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Sequence, Tuple

from lineuplab.ensemble.blend import BlendedEstimate


# Cumulative rank-quantile upper bounds; anything past the last bound is "D".
TIER_CUTS: Tuple[Tuple[float, str], ...] = ((0.15, "A"), (0.50, "B"), (0.85, "C"))
LOWEST_TIER = "D"


def tier_for_quantile(quantile: float) -> str:
    for bound, letter in TIER_CUTS:
        if quantile < bound:
            return letter
    return LOWEST_TIER


def assign_tiers(estimates: Sequence[BlendedEstimate]) -> List[BlendedEstimate]:
    """Return the estimates, in input order, with ``tier`` populated."""

    by_position: Dict[str, List[int]] = defaultdict(list)
    for index, estimate in enumerate(estimates):
        by_position[estimate.position].append(index)

    tiers: Dict[int, str] = {}
    for indices in by_position.values():
        ranked = sorted(indices, key=lambda i: estimates[i].mean, reverse=True)
        n = len(ranked)
        for rank, index in enumerate(ranked):
            tiers[index] = tier_for_quantile(rank / n)

    return [replace(estimate, tier=tiers[index]) for index, estimate in enumerate(estimates)]
