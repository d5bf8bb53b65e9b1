"""Persist and load engine tuning profiles for the CLI."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List

from lineuplab.config.settings import DEFAULT_SOURCES, EnsembleConfig, InjuryPenalties


@dataclass
class EngineProfile:
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)
    injuries: InjuryPenalties = field(default_factory=InjuryPenalties)
    sources: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCES))

    @classmethod
    def load(cls, path: Path) -> "EngineProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        defaults = cls()
        ensemble: Dict[str, float] = {**asdict(defaults.ensemble), **data.get("ensemble", {})}
        injuries: Dict[str, float] = {**asdict(defaults.injuries), **data.get("injuries", {})}
        return cls(
            ensemble=EnsembleConfig(**ensemble),
            injuries=InjuryPenalties(**injuries),
            sources=[str(s).upper() for s in data.get("sources", defaults.sources)],
        )

    def save(self, path: Path) -> None:
        payload = {
            "ensemble": asdict(self.ensemble),
            "injuries": asdict(self.injuries),
            "sources": self.sources,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
