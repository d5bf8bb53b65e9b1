"""Exact slot assignment via PuLP, used to audit the greedy lineup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Collection, Dict, Optional, Sequence, Tuple

import pulp

from lineuplab.config.roster import SLOT_ORDER, SLOT_POSITIONS, RosterRules
from lineuplab.models import AdminOverrides, WeeklyLineup
from lineuplab.optimizer.assign import Candidate


logger = logging.getLogger(__name__)

_SOLVER_ENV = "LINEUPLAB_SOLVER"
_SOLVER_GAP_ENV = "LINEUPLAB_SOLVER_GAP"


@dataclass(frozen=True)
class AuditResult:
    greedy_total: float
    optimal_total: float
    status: str

    @property
    def gap(self) -> float:
        return round(self.optimal_total - self.greedy_total, 2)


def _configure_solver() -> pulp.LpSolver:
    solver_choice = os.getenv(_SOLVER_ENV, "cbc").lower()
    gap_kwargs: dict[str, float] = {}
    gap_raw = os.getenv(_SOLVER_GAP_ENV)
    if gap_raw:
        try:
            gap_value = float(gap_raw)
            if gap_value > 0:
                gap_kwargs["gapRel"] = gap_value
        except ValueError:
            logger.warning("Invalid solver gap value %s; ignoring", gap_raw)

    if solver_choice in {"highs", "hi_gs"}:
        candidate = pulp.HiGHS_CMD(msg=False, **gap_kwargs)
        if candidate.available():
            logger.debug("Using HiGHS solver backend")
            return candidate
        logger.warning("HiGHS solver unavailable (missing binary); falling back to CBC")

    return pulp.PULP_CBC_CMD(msg=False, **gap_kwargs)


def optimal_total(
    candidates: Sequence[Candidate],
    rules: RosterRules,
    *,
    forced_ids: Collection[str] = (),
    solver: Optional[pulp.LpSolver] = None,
) -> AuditResult:
    """Best achievable starter total for the same players, pins ignored.

    ``forced_ids`` must start; other unplaceable players are excluded exactly
    as in the greedy pass.
    """

    points = {c.player_id: c.points for c in candidates}
    problem = pulp.LpProblem("lineup_audit", pulp.LpMaximize)
    choices: Dict[Tuple[str, str], pulp.LpVariable] = {}
    for index, candidate in enumerate(candidates):
        if not candidate.placeable and candidate.player_id not in forced_ids:
            continue
        for slot in SLOT_ORDER:
            if rules.count(slot) and candidate.position in SLOT_POSITIONS[slot]:
                choices[(candidate.player_id, slot)] = pulp.LpVariable(f"x_{index}_{slot}", cat="Binary")

    if not choices:
        return AuditResult(greedy_total=0.0, optimal_total=0.0, status="Empty")

    problem += pulp.lpSum(var * points[player_id] for (player_id, _slot), var in choices.items())
    for slot in SLOT_ORDER:
        in_slot = [var for (_pid, s), var in choices.items() if s == slot]
        if in_slot:
            problem += pulp.lpSum(in_slot) <= rules.count(slot), f"count_{slot}"
    for index, candidate in enumerate(candidates):
        seats = [var for (pid, _slot), var in choices.items() if pid == candidate.player_id]
        if not seats:
            continue
        if candidate.player_id in forced_ids:
            problem += pulp.lpSum(seats) == 1, f"forced_{index}"
        else:
            problem += pulp.lpSum(seats) <= 1, f"once_{index}"

    problem.solve(solver or _configure_solver())
    status = pulp.LpStatus[problem.status]
    total = pulp.value(problem.objective)
    return AuditResult(greedy_total=0.0, optimal_total=round(float(total or 0.0), 2), status=status)


def optimality_gap(
    lineup: WeeklyLineup,
    candidates: Sequence[Candidate],
    rules: RosterRules,
    overrides: Optional[AdminOverrides] = None,
    solver: Optional[pulp.LpSolver] = None,
) -> AuditResult:
    """Compare the greedy total with the exact optimum; informational only."""

    forced_ids = set()
    if overrides is not None:
        forced_ids = {pid for pid in lineup.starters() if overrides.is_forced_start(pid)}
    exact = optimal_total(candidates, rules, forced_ids=forced_ids, solver=solver)
    result = AuditResult(greedy_total=lineup.total_score, optimal_total=exact.optimal_total, status=exact.status)
    if result.gap > 0:
        logger.info(
            "Greedy lineup for week %s is %.2f points below optimal (%.2f vs %.2f)",
            lineup.week,
            result.gap,
            result.greedy_total,
            result.optimal_total,
        )
    return result
