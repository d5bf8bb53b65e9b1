"""Historical forecast errors per source and position."""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from itertools import combinations
from statistics import StatisticsError, correlation
from typing import Dict, Iterable, List, Sequence, Tuple

from lineuplab.models import ActualRow, ProjectionRow


@dataclass(frozen=True)
class Residual:
    """A historical projection joined with the realized outcome."""

    player_id: str
    position: str
    week: int
    season: int
    source_id: str
    points: float
    actual_points: float
    updated_at: datetime

    @property
    def error(self) -> float:
        return self.points - self.actual_points


@dataclass(frozen=True)
class PerSourcePerformance:
    source_id: str
    position: str
    rmse: float
    mae: float
    sample_count: int


def compute_residuals(
    historical_projections: Iterable[ProjectionRow],
    actuals: Iterable[ActualRow],
) -> List[Residual]:
    """Inner-join projections to actuals on (player, position, week)."""

    actual_by_key: Dict[Tuple[str, str, int], float] = {
        (row.player_id, row.position, row.week): row.points for row in actuals
    }
    residuals: List[Residual] = []
    for row in historical_projections:
        actual = actual_by_key.get((row.player_id, row.position, row.week))
        if actual is None:
            continue
        residuals.append(
            Residual(
                player_id=row.player_id,
                position=row.position,
                week=row.week,
                season=row.season,
                source_id=row.source_id,
                points=row.points,
                actual_points=actual,
                updated_at=row.updated_at,
            )
        )
    return residuals


def aggregate_performance(residuals: Iterable[Residual]) -> List[PerSourcePerformance]:
    """RMSE and MAE per (source, position); pairs without samples are omitted."""

    errors: Dict[Tuple[str, str], List[float]] = defaultdict(list)
    for residual in residuals:
        errors[(residual.source_id, residual.position)].append(residual.error)

    performance: List[PerSourcePerformance] = []
    for (source_id, position), values in errors.items():
        n = len(values)
        performance.append(
            PerSourcePerformance(
                source_id=source_id,
                position=position,
                rmse=math.sqrt(sum(e * e for e in values) / n),
                mae=sum(abs(e) for e in values) / n,
                sample_count=n,
            )
        )
    return performance


def _pearson(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    if len(xs) < 2:
        return None
    try:
        return correlation(xs, ys)
    except StatisticsError:
        # a constant series is uncorrelated with anything
        return 0.0


def average_abs_correlation(residuals: Iterable[Residual]) -> Dict[Tuple[str, str], float]:
    """Mean absolute residual correlation of each source against its peers.

    Series are aligned per position on (player, week); a pair of sources only
    uses the keys where both have a residual.
    """

    by_position: Dict[str, Dict[Tuple[str, int], Dict[str, float]]] = defaultdict(lambda: defaultdict(dict))
    for residual in residuals:
        by_position[residual.position][(residual.player_id, residual.week)][residual.source_id] = residual.error

    result: Dict[Tuple[str, str], float] = {}
    for position, aligned in by_position.items():
        sources = sorted({source for errors in aligned.values() for source in errors})
        pair_values: Dict[str, List[float]] = {source: [] for source in sources}
        for first, second in combinations(sources, 2):
            xs: List[float] = []
            ys: List[float] = []
            for errors in aligned.values():
                if first in errors and second in errors:
                    xs.append(errors[first])
                    ys.append(errors[second])
            value = _pearson(xs, ys)
            if value is None:
                continue
            pair_values[first].append(abs(value))
            pair_values[second].append(abs(value))
        for source in sources:
            values = pair_values[source]
            result[(source, position)] = sum(values) / len(values) if values else 0.0
    return result
