"""Projection ensemble: accuracy-weighted blending of independent sources."""

from .blend import BlendedEstimate, blend_week
from .pipeline import EnsembleResult, blend_for_players, run_ensemble
from .residuals import (
    PerSourcePerformance,
    Residual,
    aggregate_performance,
    average_abs_correlation,
    compute_residuals,
)
from .tiers import assign_tiers
from .weights import PerSourceWeight, compute_weights, raw_weight, shrunk_weight

__all__ = [
    "BlendedEstimate",
    "EnsembleResult",
    "PerSourcePerformance",
    "PerSourceWeight",
    "Residual",
    "aggregate_performance",
    "assign_tiers",
    "average_abs_correlation",
    "blend_for_players",
    "blend_week",
    "compute_residuals",
    "compute_weights",
    "raw_weight",
    "run_ensemble",
    "shrunk_weight",
]
