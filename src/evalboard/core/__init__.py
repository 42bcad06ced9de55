"""Core evaluation aggregation components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .aggregation import (
    SELECTION_THRESHOLD,
    AggregationEngine,
    CandidateResult,
    EvaluatorProgress,
    SystemStatistics,
    completion_status,
    compute_candidate_results,
    compute_evaluator_progress,
    compute_system_statistics,
    evaluator_progress_list,
    filter_results,
    grade_label,
    sort_results,
)
from .scoring import (
    IncompleteSubmissionError,
    ScoreRejectedError,
    accept_score,
    clamp_score,
    preset_options_for,
    session_total,
    submit_session,
    upsert_score,
)
from .selection import (
    DEFAULT_MAIN_CATEGORY,
    DEFAULT_SUB_CATEGORY,
    SelectionEntry,
    SelectionState,
    apply_final_selection,
    get_final_selected_candidates,
    group_by_category_pair,
    suggest_final_selections,
)

__all__ = [
    "SELECTION_THRESHOLD",
    "DEFAULT_MAIN_CATEGORY",
    "DEFAULT_SUB_CATEGORY",
    "AggregationEngine",
    "CandidateResult",
    "EvaluatorProgress",
    "SystemStatistics",
    "SelectionEntry",
    "SelectionState",
    "IncompleteSubmissionError",
    "ScoreRejectedError",
    "accept_score",
    "apply_final_selection",
    "clamp_score",
    "completion_status",
    "compute_candidate_results",
    "compute_evaluator_progress",
    "compute_system_statistics",
    "evaluator_progress_list",
    "filter_results",
    "grade_label",
    "sort_results",
    "get_final_selected_candidates",
    "group_by_category_pair",
    "preset_options_for",
    "session_total",
    "submit_session",
    "suggest_final_selections",
    "upsert_score",
]
