"""History -> weights -> blend -> tiers for a target week."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from lineuplab.config.roster import POSITIONS
from lineuplab.config.settings import DEFAULT_SOURCES, EnsembleConfig
from lineuplab.ensemble.blend import BlendedEstimate, blend_week
from lineuplab.ensemble.residuals import PerSourcePerformance, aggregate_performance, compute_residuals
from lineuplab.ensemble.tiers import assign_tiers
from lineuplab.ensemble.weights import PerSourceWeight, compute_weights
from lineuplab.errors import NoProjectionDataError
from lineuplab.models import ActualRow, ProjectionRow


logger = logging.getLogger(__name__)


@dataclass
class EnsembleResult:
    estimates: List[BlendedEstimate]
    weights: List[PerSourceWeight] = field(default_factory=list)
    performance: List[PerSourcePerformance] = field(default_factory=list)

    def by_player(self) -> Dict[str, BlendedEstimate]:
        """Collapse to one estimate per player, keeping the highest mean."""

        best: Dict[str, BlendedEstimate] = {}
        for estimate in self.estimates:
            current = best.get(estimate.player_id)
            if current is None or estimate.mean > current.mean:
                best[estimate.player_id] = estimate
        return best


def run_ensemble(
    current: Iterable[ProjectionRow],
    historical: Iterable[ProjectionRow] = (),
    actuals: Iterable[ActualRow] = (),
    *,
    config: EnsembleConfig = EnsembleConfig(),
    sources: Sequence[str] = DEFAULT_SOURCES,
    positions: Sequence[str] = POSITIONS,
) -> EnsembleResult:
    historical = list(historical)
    actuals = list(actuals)
    residuals = compute_residuals(historical, actuals) if historical and actuals else []
    performance = aggregate_performance(residuals)
    weights = compute_weights(residuals, config, sources, positions)
    estimates = assign_tiers(blend_week(current, weights, performance))
    logger.info(
        "Blended %s estimates from %s residuals across %s sources",
        len(estimates),
        len(residuals),
        len(sources),
    )
    return EnsembleResult(estimates=estimates, weights=weights, performance=performance)


def blend_for_players(
    current: Iterable[ProjectionRow],
    historical: Iterable[ProjectionRow] = (),
    actuals: Iterable[ActualRow] = (),
    *,
    week: int,
    player_ids: Optional[Iterable[str]] = None,
    config: EnsembleConfig = EnsembleConfig(),
    sources: Sequence[str] = DEFAULT_SOURCES,
    positions: Sequence[str] = POSITIONS,
) -> Dict[str, BlendedEstimate]:
    """Blended, tiered estimates keyed by player id.

    Tiers are computed across every player in the current feeds, then the
    result is narrowed to ``player_ids``. Raises NoProjectionDataError when no
    source delivered rows for the week or none of the requested players is
    covered.
    """

    current = list(current)
    if not current:
        raise NoProjectionDataError(week, f"Every projection source returned no rows for week {week}")

    result = run_ensemble(current, historical, actuals, config=config, sources=sources, positions=positions)
    blended = result.by_player()
    if player_ids is None:
        return blended

    wanted = list(player_ids)
    narrowed = {pid: blended[pid] for pid in wanted if pid in blended}
    if wanted and not narrowed:
        raise NoProjectionDataError(week, f"No projections cover any rostered player for week {week}")
    missing = len(wanted) - len(narrowed)
    if missing:
        logger.info("%s of %s rostered players have no projection for week %s", missing, len(wanted), week)
    return narrowed
