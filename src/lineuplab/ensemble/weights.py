"""Per-position blending weights learned from historical accuracy."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from lineuplab.config.roster import POSITIONS
from lineuplab.config.settings import DEFAULT_SOURCES, EnsembleConfig
from lineuplab.ensemble.residuals import (
    PerSourcePerformance,
    Residual,
    aggregate_performance,
    average_abs_correlation,
)


logger = logging.getLogger(__name__)

NEUTRAL_PRIOR = 1.0


@dataclass(frozen=True)
class PerSourceWeight:
    source_id: str
    position: str
    weight: float


def raw_weight(rmse: float, config: EnsembleConfig = EnsembleConfig()) -> float:
    """Inverse-error weight: lower RMSE earns more trust."""

    return 1.0 / math.pow(rmse + config.epsilon, config.alpha)


def shrunk_weight(rmse: float, sample_count: int, config: EnsembleConfig = EnsembleConfig()) -> float:
    """Blend the inverse-error weight toward the neutral prior by sample size."""

    denominator = sample_count + config.shrink_k
    shrink = sample_count / denominator if denominator > 0 else 1.0
    return shrink * raw_weight(rmse, config) + (1.0 - shrink) * NEUTRAL_PRIOR


def equal_weights(sources: Sequence[str], positions: Sequence[str]) -> List[PerSourceWeight]:
    if not sources:
        return []
    share = 1.0 / len(sources)
    return [
        PerSourceWeight(source_id=source, position=position, weight=share)
        for position in positions
        for source in sources
    ]


def compute_weights(
    residuals: Iterable[Residual],
    config: EnsembleConfig = EnsembleConfig(),
    sources: Sequence[str] = DEFAULT_SOURCES,
    positions: Sequence[str] = POSITIONS,
) -> List[PerSourceWeight]:
    """Normalized weights for every configured (source, position) pair."""

    residuals = list(residuals)
    sources = list(dict.fromkeys(sources))
    if not residuals:
        logger.info("No historical residuals; using equal weights across %s sources", len(sources))
        return equal_weights(sources, positions)

    performance: Dict[Tuple[str, str], PerSourcePerformance] = {
        (perf.source_id, perf.position): perf for perf in aggregate_performance(residuals)
    }
    correlations = average_abs_correlation(residuals)

    weights: List[PerSourceWeight] = []
    for position in positions:
        penalized: Dict[str, float] = {}
        for source in sources:
            perf = performance.get((source, position))
            if perf is None:
                base = NEUTRAL_PRIOR
            else:
                base = shrunk_weight(perf.rmse, perf.sample_count, config)
            avg_corr = correlations.get((source, position), 0.0)
            penalized[source] = base / (1.0 + config.corr_penalty * avg_corr)

        total = sum(penalized.values())
        if not math.isfinite(total) or total <= 0:
            logger.warning("Degenerate weights for %s; falling back to equal weighting", position)
            weights.extend(equal_weights(sources, [position]))
            continue
        for source in sources:
            weights.append(PerSourceWeight(source_id=source, position=position, weight=penalized[source] / total))
    return weights
