"""Aggregation of evaluation sessions into ranked candidate results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Literal, Sequence

from ..schemas import (
    Candidate,
    EvaluationCategory,
    EvaluationItem,
    EvaluationSession,
    Evaluator,
)
from .selection import (
    DEFAULT_MAIN_CATEGORY,
    DEFAULT_SUB_CATEGORY,
    SelectionState,
    suggest_final_selections,
)

SELECTION_THRESHOLD = 70.0

CompletionStatus = Literal["completed", "in_progress", "not_started"]
SortField = Literal["name", "average_score", "completion_status"]


@dataclass(slots=True)
class CandidateResult:
    """Per-candidate aggregate view."""

    candidate_id: int
    name: str
    department: str
    position: str
    category: str | None
    main_category: str | None
    sub_category: str | None
    average_score: float
    selected: bool
    session_count: int
    rank: int = 0


@dataclass(slots=True)
class EvaluatorProgress:
    """Completion state of one evaluator."""

    evaluator_id: int
    name: str
    department: str
    completed_count: int
    total_count: int
    progress_percent: float
    incomplete_candidate_ids: list[int] = field(default_factory=list)


@dataclass(slots=True)
class SystemStatistics:
    """Headline counters for the admin dashboard."""

    total_evaluators: int
    active_evaluators: int
    total_candidates: int
    total_evaluation_items: int
    total_categories: int
    completion_rate: int


def _quantize(value: float, exponent: str) -> float:
    return float(Decimal(str(value)).quantize(Decimal(exponent), rounding=ROUND_HALF_UP))


def round_one_decimal(value: float) -> float:
    """Round half away from zero to one decimal place."""
    return _quantize(value, "0.1")


def _number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (OverflowError, TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def latest_completed_sessions(
    sessions: Iterable[EvaluationSession],
) -> list[EvaluationSession]:
    """Completed sessions, keeping only the newest version per evaluator/candidate pair.

    Sessions without an evaluator id are kept as-is. For equal versions the
    later row wins.
    """
    latest: dict[tuple[int, int], EvaluationSession] = {}
    ordered: list[EvaluationSession | tuple[int, int]] = []
    for session in sessions:
        if not session.is_completed:
            continue
        if session.evaluator_id is None:
            ordered.append(session)
            continue
        key = (session.evaluator_id, session.candidate_id)
        current = latest.get(key)
        if current is None:
            ordered.append(key)
            latest[key] = session
        elif session.version >= current.version:
            latest[key] = session
    return [latest[item] if isinstance(item, tuple) else item for item in ordered]


def compute_candidate_results(
    candidates: Sequence[Candidate],
    sessions: Iterable[EvaluationSession],
    *,
    threshold: float = SELECTION_THRESHOLD,
) -> list[CandidateResult]:
    """Average completed session totals per candidate and rank descending.

    Every input candidate yields exactly one result. Candidates without a
    completed session score 0 and are never selected. Ties keep input order.
    """
    totals: dict[int, list[float]] = {}
    for session in latest_completed_sessions(sessions):
        totals.setdefault(session.candidate_id, []).append(_number(session.total_score))

    results: list[CandidateResult] = []
    for candidate in candidates:
        scores = totals.get(candidate.id, [])
        if scores:
            average = round_one_decimal(sum(scores) / len(scores))
            selected = average >= threshold
        else:
            average = 0.0
            selected = False
        results.append(
            CandidateResult(
                candidate_id=candidate.id,
                name=candidate.name,
                department=candidate.department,
                position=candidate.position,
                category=candidate.category,
                main_category=candidate.main_category,
                sub_category=candidate.sub_category,
                average_score=average,
                selected=selected,
                session_count=len(scores),
            )
        )

    ranked = sorted(results, key=lambda result: result.average_score, reverse=True)
    for index, result in enumerate(ranked, start=1):
        result.rank = index
    return ranked


def compute_evaluator_progress(
    evaluator: Evaluator,
    assigned_candidate_ids: Sequence[int],
    sessions: Iterable[EvaluationSession],
) -> EvaluatorProgress:
    """Count completed candidates for an evaluator against their assignment.

    Sessions for candidates outside the assignment are ignored, so progress
    never exceeds 100%.
    """
    assigned = set(assigned_candidate_ids)
    completed_ids: list[int] = []
    for session in sessions:
        if session.evaluator_id != evaluator.id or not session.is_completed:
            continue
        if session.candidate_id in assigned and session.candidate_id not in completed_ids:
            completed_ids.append(session.candidate_id)

    completed_count = len(completed_ids)
    total_count = len(assigned_candidate_ids)
    progress = completed_count / total_count * 100 if total_count else 0.0

    return EvaluatorProgress(
        evaluator_id=evaluator.id,
        name=evaluator.name,
        department=evaluator.department,
        completed_count=completed_count,
        total_count=total_count,
        progress_percent=progress,
        incomplete_candidate_ids=[
            candidate_id
            for candidate_id in assigned_candidate_ids
            if candidate_id not in completed_ids
        ],
    )


def evaluator_progress_list(
    evaluators: Iterable[Evaluator],
    candidates: Iterable[Candidate],
    sessions: Iterable[EvaluationSession],
) -> list[EvaluatorProgress]:
    """Progress of every active evaluator over every active candidate."""
    assigned = [candidate.id for candidate in candidates if candidate.is_active]
    session_list = list(sessions)
    return [
        compute_evaluator_progress(evaluator, assigned, session_list)
        for evaluator in evaluators
        if evaluator.is_active
    ]


def compute_system_statistics(
    *,
    candidates: Iterable[Candidate],
    evaluators: Iterable[Evaluator],
    items: Iterable[EvaluationItem],
    categories: Iterable[EvaluationCategory],
    sessions: Iterable[EvaluationSession],
) -> SystemStatistics:
    evaluator_list = list(evaluators)
    active_evaluator_ids = {e.id for e in evaluator_list if e.is_active}
    active_candidate_ids = {c.id for c in candidates if c.is_active}

    completed_pairs = {
        (s.evaluator_id, s.candidate_id)
        for s in sessions
        if s.is_completed
        and s.evaluator_id in active_evaluator_ids
        and s.candidate_id in active_candidate_ids
    }
    possible = len(active_evaluator_ids) * len(active_candidate_ids)
    completion_rate = (
        int(_quantize(len(completed_pairs) / possible * 100, "1")) if possible else 0
    )

    return SystemStatistics(
        total_evaluators=len(evaluator_list),
        active_evaluators=len(active_evaluator_ids),
        total_candidates=len(active_candidate_ids),
        total_evaluation_items=sum(1 for item in items if item.is_active),
        total_categories=sum(1 for category in categories if category.is_active),
        completion_rate=completion_rate,
    )


def completion_status(result: CandidateResult, evaluator_count: int) -> CompletionStatus:
    if result.session_count == 0:
        return "not_started"
    if result.session_count >= evaluator_count:
        return "completed"
    return "in_progress"


GRADE_BANDS: tuple[tuple[float, str], ...] = (
    (90.0, "최우수"),
    (80.0, "우수"),
    (70.0, "양호"),
)


def grade_label(average_score: float) -> str:
    """Grade band label for an average score."""
    score = _number(average_score)
    for floor, label in GRADE_BANDS:
        if score >= floor:
            return label
    return "보통"


def sort_results(
    results: Iterable[CandidateResult],
    field: SortField = "average_score",
    direction: Literal["asc", "desc"] = "desc",
    *,
    evaluator_count: int = 0,
) -> list[CandidateResult]:
    """Order results by name, score or completion; ties keep their input order."""
    if field == "name":
        key: Any = lambda result: result.name
    elif field == "average_score":
        key = lambda result: result.average_score
    elif field == "completion_status":
        key = lambda result: completion_status(result, evaluator_count) == "completed"
    else:
        raise ValueError(f"Unsupported sort field: {field!r}")
    return sorted(results, key=key, reverse=direction == "desc")


def filter_results(
    results: Iterable[CandidateResult],
    *,
    search: str = "",
    status: CompletionStatus | Literal["all"] = "all",
    evaluator_count: int = 0,
) -> list[CandidateResult]:
    """Filter results by free-text search and completion status, keeping order."""
    needle = search.strip().lower()
    filtered: list[CandidateResult] = []
    for result in results:
        if needle:
            haystack = [result.name, result.department, result.category or ""]
            if not any(needle in value.lower() for value in haystack):
                continue
        if status != "all" and completion_status(result, evaluator_count) != status:
            continue
        filtered.append(result)
    return filtered


class AggregationEngine:
    """Applies configured threshold and category defaults to the aggregation functions."""

    def __init__(
        self,
        *,
        threshold: float | None = None,
        default_main_category: str | None = None,
        default_sub_category: str | None = None,
    ) -> None:
        self._threshold = SELECTION_THRESHOLD if threshold is None else threshold
        self._default_main = default_main_category or DEFAULT_MAIN_CATEGORY
        self._default_sub = default_sub_category or DEFAULT_SUB_CATEGORY

    @property
    def threshold(self) -> float:
        return self._threshold

    def candidate_results(
        self,
        candidates: Iterable[Candidate],
        sessions: Iterable[EvaluationSession],
    ) -> list[CandidateResult]:
        active = [candidate for candidate in candidates if candidate.is_active]
        return compute_candidate_results(active, sessions, threshold=self._threshold)

    def evaluator_progress(
        self,
        evaluators: Iterable[Evaluator],
        candidates: Iterable[Candidate],
        sessions: Iterable[EvaluationSession],
    ) -> list[EvaluatorProgress]:
        return evaluator_progress_list(evaluators, candidates, sessions)

    def suggest_selections(self, results: Iterable[CandidateResult]) -> SelectionState:
        return suggest_final_selections(
            results,
            default_main_category=self._default_main,
            default_sub_category=self._default_sub,
        )
