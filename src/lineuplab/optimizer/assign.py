"""Greedy slot assignment of a roster into a weekly starting lineup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from lineuplab.config.roster import (
    DEDICATED_SLOTS,
    FLEX_POSITIONS,
    SLOT_ORDER,
    SLOT_POSITIONS,
    RosterRules,
    eligible_slots,
)
from lineuplab.config.settings import InjuryPenalties
from lineuplab.ensemble.blend import Z_95, BlendedEstimate
from lineuplab.models import AdminOverrides, PlayerDetail, PlayerMeta, ScoreBreakdown, UserRoster, WeeklyLineup
from lineuplab.notify.change import lineup_hash


logger = logging.getLogger(__name__)

UNPLACEABLE_SCORE = -1_000_000_000.0

_INJURY_CONFIDENCE_SCALE = {"OUT": 0.1, "DOUBTFUL": 0.1, "QUESTIONABLE": 0.8}


@dataclass
class Candidate:
    player_id: str
    order: int
    position: Optional[str]
    points: float
    placeable: bool
    estimate: Optional[BlendedEstimate] = None
    injury: Optional[str] = None
    notes: List[str] = field(default_factory=list)
    breakdown: Optional[ScoreBreakdown] = None

    @property
    def adjusted_score(self) -> float:
        return self.points if self.placeable else UNPLACEABLE_SCORE


def confidence_for(estimate: Optional[BlendedEstimate], injury: Optional[str] = None) -> float:
    """Share of the upper interval bound covered by the mean, discounted for injuries."""

    if estimate is None or estimate.mean <= 0:
        return 0.0
    value = estimate.mean / (estimate.mean + Z_95 * max(0.0, estimate.std))
    value *= _INJURY_CONFIDENCE_SCALE.get(injury or "", 1.0)
    return round(max(0.0, min(1.0, value)), 2)


def score_candidates(
    roster: UserRoster,
    blended_by_player: Mapping[str, BlendedEstimate],
    overrides: AdminOverrides,
    *,
    player_meta: Optional[Mapping[str, PlayerMeta]] = None,
    injury_penalties: InjuryPenalties = InjuryPenalties(),
) -> List[Candidate]:
    """Adjusted score per rostered player, in roster order."""

    player_meta = player_meta or {}
    candidates: List[Candidate] = []
    for order, player_id in enumerate(dict.fromkeys(roster.players)):
        estimate = blended_by_player.get(player_id)
        meta = player_meta.get(player_id)
        position = (meta.position if meta else None) or (estimate.position if estimate else None)
        injury = meta.injury_status if meta else None
        notes: List[str] = []

        points = estimate.mean if estimate is not None else 0.0
        if estimate is None:
            notes.append("no projection")
        delta = overrides.delta_for(player_id)
        if delta:
            points += delta
            notes.append(f"admin adjustment {delta:+.1f}")
        injury_delta = injury_penalties.delta_for(injury)
        if injury_delta:
            points += injury_delta
            notes.append(f"{injury.lower()} {injury_delta:+.1f}")

        placeable = True
        if position is None:
            placeable = False
            notes.append("unknown position")
        if injury_penalties.is_unplaceable(injury):
            placeable = False
            notes.append("injury: out")
        if overrides.is_forced_sit(player_id):
            placeable = False
            notes.append("forced sit")

        candidates.append(
            Candidate(
                player_id=player_id,
                order=order,
                position=position,
                points=points,
                placeable=placeable,
                estimate=estimate,
                injury=injury,
                notes=notes,
                breakdown=ScoreBreakdown(
                    scoring=roster.scoring_profile,
                    base=round(estimate.mean, 2) if estimate is not None else 0.0,
                    delta=round(delta, 2),
                    injury=injury,
                    injury_delta=round(injury_delta, 2),
                    forced_start=overrides.is_forced_start(player_id),
                    forced_sit=overrides.is_forced_sit(player_id),
                ),
            )
        )
    return candidates


def assign_lineup(
    roster: UserRoster,
    rules: RosterRules,
    blended_by_player: Mapping[str, BlendedEstimate],
    overrides: AdminOverrides,
    *,
    player_meta: Optional[Mapping[str, PlayerMeta]] = None,
    injury_penalties: InjuryPenalties = InjuryPenalties(),
    week: Optional[int] = None,
) -> WeeklyLineup:
    """Fill forced starters, then dedicated slots, then FLEX; the rest is bench.

    Ties in adjusted score keep roster order. FLEX pins are honored ahead of
    score ordering for FLEX only and never place an ineligible, benched-by-admin
    or ruled-out player.
    """

    candidates = score_candidates(
        roster,
        blended_by_player,
        overrides,
        player_meta=player_meta,
        injury_penalties=injury_penalties,
    )
    slots: Dict[str, List[str]] = {slot: [] for slot in SLOT_ORDER}
    placed: Dict[str, str] = {}

    def open_seats(slot: str) -> int:
        return rules.count(slot) - len(slots[slot])

    def place(candidate: Candidate, slot: str) -> None:
        slots[slot].append(candidate.player_id)
        placed[candidate.player_id] = slot

    forced = [
        c for c in candidates
        if overrides.is_forced_start(c.player_id) and not overrides.is_forced_sit(c.player_id)
    ]
    for candidate in sorted(forced, key=lambda c: c.points, reverse=True):
        slot = next((s for s in eligible_slots(candidate.position) if open_seats(s) > 0), None)
        if slot is None:
            candidate.notes.append("forced start: no eligible open slot")
            logger.info("Forced start %s could not be placed (position %s)", candidate.player_id, candidate.position)
            continue
        place(candidate, slot)
        candidate.notes.append("forced start")

    for candidate in candidates:
        if overrides.is_forced_start(candidate.player_id) and overrides.is_forced_sit(candidate.player_id):
            candidate.notes.append("forced sit overrides forced start")

    pool = sorted(
        (c for c in candidates if c.placeable and c.player_id not in placed),
        key=lambda c: c.adjusted_score,
        reverse=True,
    )

    for slot in DEDICATED_SLOTS:
        for candidate in pool:
            if open_seats(slot) <= 0:
                break
            if candidate.player_id in placed or candidate.position not in SLOT_POSITIONS[slot]:
                continue
            place(candidate, slot)

    if open_seats("FLEX") > 0:
        by_id = {c.player_id: c for c in pool}
        for player_id in roster.pins:
            if open_seats("FLEX") <= 0:
                break
            candidate = by_id.get(player_id)
            if candidate is None or candidate.player_id in placed or candidate.position not in FLEX_POSITIONS:
                continue
            place(candidate, "FLEX")
            candidate.notes.append("pinned to FLEX")
        for candidate in pool:
            if open_seats("FLEX") <= 0:
                break
            if candidate.player_id in placed or candidate.position not in FLEX_POSITIONS:
                continue
            place(candidate, "FLEX")

    bench_candidates = sorted(
        (c for c in candidates if c.player_id not in placed),
        key=lambda c: c.adjusted_score,
        reverse=True,
    )

    details: Dict[str, PlayerDetail] = {}
    for candidate in candidates:
        details[candidate.player_id] = PlayerDetail(
            player_id=candidate.player_id,
            position=candidate.position,
            slot=placed.get(candidate.player_id),
            points=round(candidate.points, 2),
            confidence=confidence_for(candidate.estimate, candidate.injury),
            tier=(candidate.estimate.tier if candidate.estimate and candidate.estimate.tier else "D"),
            note="; ".join(candidate.notes) or None,
            breakdown=candidate.breakdown,
        )

    total = round(sum(details[pid].points for ids in slots.values() for pid in ids), 2)
    unfilled = {slot: open_seats(slot) for slot in SLOT_ORDER if open_seats(slot) > 0}
    if unfilled:
        logger.info("Roster %s leaves open slots: %s", roster.id, unfilled)

    return WeeklyLineup(
        week=overrides.week if week is None else week,
        slots=slots,
        bench=[c.player_id for c in bench_candidates],
        details=details,
        total_score=total,
        content_hash=lineup_hash(slots),
    )
