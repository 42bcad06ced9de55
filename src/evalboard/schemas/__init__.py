"""Pydantic schema definitions for evaluation records."""

from __future__ import annotations

from .records import (
    Candidate,
    EvaluationCategory,
    EvaluationItem,
    EvaluationSession,
    EvaluationSnapshot,
    Evaluator,
    PresetScoreOption,
    Score,
    SystemConfig,
)

__all__ = [
    "Candidate",
    "Evaluator",
    "EvaluationCategory",
    "EvaluationItem",
    "EvaluationSession",
    "EvaluationSnapshot",
    "PresetScoreOption",
    "Score",
    "SystemConfig",
]
