"""Plain-text lineup summary handed to the notifier."""

from __future__ import annotations

from typing import List, Mapping, Optional

from lineuplab.config.roster import SLOT_ORDER
from lineuplab.models import PlayerDetail, PlayerMeta, WeeklyLineup


def _label(player_id: str, names: Mapping[str, PlayerMeta]) -> str:
    meta = names.get(player_id)
    if meta is None:
        return player_id
    parts = [meta.name or player_id]
    if meta.position:
        parts.append(meta.position)
    if meta.team:
        parts.append(f"({meta.team})")
    return " ".join(parts)


def _stats(detail: Optional[PlayerDetail]) -> str:
    if detail is None:
        return ""
    return f" - {detail.points:.1f} pts, {round(detail.confidence * 100)}%, tier {detail.tier}"


def render_lineup_text(
    team_name: str,
    lineup: WeeklyLineup,
    names: Optional[Mapping[str, PlayerMeta]] = None,
) -> str:
    names = names or {}
    lines: List[str] = [
        f"Lineup Lab: Week {lineup.week}",
        f"Hi {team_name}, here is your recommended lineup.",
        "",
    ]
    for slot in SLOT_ORDER:
        lines.append(slot)
        ids = lineup.slots.get(slot, [])
        if ids:
            lines.extend(f"  - {_label(pid, names)}{_stats(lineup.details.get(pid))}" for pid in ids)
        else:
            lines.append("  (empty)")
        lines.append("")
    if lineup.bench:
        lines.append("Bench")
        for pid in lineup.bench:
            detail = lineup.details.get(pid)
            note = f" [{detail.note}]" if detail is not None and detail.note else ""
            lines.append(f"  - {_label(pid, names)}{note}")
    lines.append(f"Projected total: {lineup.total_score:.2f}")
    return "\n".join(lines)
