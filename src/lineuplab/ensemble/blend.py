"""Weighted blend of the current week's projections with uncertainty."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from lineuplab.ensemble.residuals import PerSourcePerformance
from lineuplab.ensemble.weights import PerSourceWeight
from lineuplab.models import ProjectionRow


Z_95 = 1.96


@dataclass(frozen=True)
class BlendedEstimate:
    player_id: str
    position: str
    mean: float
    std: float
    ci_low: float
    ci_high: float
    tier: Optional[str] = None
    source_count: int = 0


def blend_week(
    current_projections: Iterable[ProjectionRow],
    weights: Iterable[PerSourceWeight],
    performance: Iterable[PerSourcePerformance],
) -> List[BlendedEstimate]:
    """One estimate per (player, position), in first-seen order."""

    weight_by_key: Dict[Tuple[str, str], float] = {(w.position, w.source_id): w.weight for w in weights}
    sigma_by_key: Dict[Tuple[str, str], float] = {(p.position, p.source_id): p.rmse for p in performance}

    groups: Dict[Tuple[str, str], List[ProjectionRow]] = {}
    for row in current_projections:
        groups.setdefault((row.player_id, row.position), []).append(row)

    estimates: List[BlendedEstimate] = []
    for (player_id, position), rows in groups.items():
        raw = [weight_by_key.get((position, row.source_id), 0.0) for row in rows]
        total = sum(raw)
        if total > 0:
            effective = [w / total for w in raw]
        else:
            effective = [1.0 / len(rows)] * len(rows)

        mean = sum(w * row.points for w, row in zip(effective, rows))
        var_between = sum(w * (row.points - mean) ** 2 for w, row in zip(effective, rows))
        var_within = sum(
            (w ** 2) * (sigma_by_key.get((position, row.source_id), 0.0) ** 2)
            for w, row in zip(effective, rows)
        )
        std = math.sqrt(max(0.0, var_between + var_within))
        estimates.append(
            BlendedEstimate(
                player_id=player_id,
                position=position,
                mean=mean,
                std=std,
                ci_low=mean - Z_95 * std,
                ci_high=mean + Z_95 * std,
                source_count=len(rows),
            )
        )
    return estimates
