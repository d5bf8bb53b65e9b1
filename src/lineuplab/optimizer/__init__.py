"""Lineup assignment and its optimality audit."""

from .assign import Candidate, assign_lineup, confidence_for, score_candidates
from .exact import AuditResult, optimal_total, optimality_gap

__all__ = [
    "AuditResult",
    "Candidate",
    "assign_lineup",
    "confidence_for",
    "optimal_total",
    "optimality_gap",
    "score_candidates",
]
