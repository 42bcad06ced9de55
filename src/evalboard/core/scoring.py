"""Score acceptance, session totals and submission."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

import pendulum

from ..schemas import EvaluationItem, EvaluationSession, PresetScoreOption, Score


class ScoreRejectedError(ValueError):
    """Raised when a score falls outside the item's range in strict mode."""

    def __init__(self, score: Score, max_score: float):
        super().__init__(
            f"Score {score.value} for item {score.item_id} outside 0..{max_score}"
        )
        self.score = score
        self.max_score = max_score


class IncompleteSubmissionError(ValueError):
    """Raised when a session is submitted before every active item is scored."""

    def __init__(self, evaluator_id: int, candidate_id: int, missing_item_ids: list[int]):
        super().__init__(
            f"Evaluator {evaluator_id} has unscored items for candidate {candidate_id}: {missing_item_ids}"
        )
        self.evaluator_id = evaluator_id
        self.candidate_id = candidate_id
        self.missing_item_ids = missing_item_ids


def clamp_score(value: Any, max_score: float) -> float:
    try:
        number = float(value)
    except (OverflowError, TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return min(number, float(max_score))


def accept_score(score: Score, item: EvaluationItem, *, strict: bool = False) -> Score:
    """Bring a score into ``0..item.max_score`` or reject it when ``strict``."""
    if score.item_id != item.id:
        raise ValueError(f"Score item {score.item_id} does not match item {item.id}")
    clamped = clamp_score(score.value, item.max_score)
    if clamped == score.value:
        return score
    if strict:
        raise ScoreRejectedError(score, item.max_score)
    return score.model_copy(update={"value": clamped})


def upsert_score(scores: Iterable[Score], score: Score) -> list[Score]:
    """Replace the score for the same evaluator/candidate/item, or append it."""
    updated: list[Score] = []
    replaced = False
    for existing in scores:
        if existing.key == score.key:
            if not replaced:
                updated.append(score)
                replaced = True
            continue
        updated.append(existing)
    if not replaced:
        updated.append(score)
    return updated


def session_total(
    items: Iterable[EvaluationItem],
    scores: Iterable[Score],
    evaluator_id: int,
    candidate_id: int,
) -> float:
    """Weighted sum of an evaluator's scores for a candidate over active items."""
    weights = {item.id: item.weight for item in items if item.is_active}
    total = Decimal("0")
    for score in scores:
        if score.evaluator_id != evaluator_id or score.candidate_id != candidate_id:
            continue
        weight = weights.get(score.item_id)
        if weight is None:
            continue
        total += Decimal(str(score.value)) * Decimal(str(weight))
    return float(total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def missing_items(
    items: Iterable[EvaluationItem],
    scores: Iterable[Score],
    evaluator_id: int,
    candidate_id: int,
) -> list[int]:
    scored = {
        score.item_id
        for score in scores
        if score.evaluator_id == evaluator_id and score.candidate_id == candidate_id
    }
    return [item.id for item in items if item.is_active and item.id not in scored]


def submit_session(
    sessions: Sequence[EvaluationSession],
    items: Sequence[EvaluationItem],
    scores: Sequence[Score],
    evaluator_id: int,
    candidate_id: int,
    *,
    submitted_at: pendulum.DateTime | None = None,
) -> tuple[list[EvaluationSession], EvaluationSession]:
    """Complete an evaluator's session for a candidate.

    A draft session is replaced in place. Once a session is completed it is
    never rewritten; resubmitting appends a new session with the next version.
    """
    missing = missing_items(items, scores, evaluator_id, candidate_id)
    if missing:
        raise IncompleteSubmissionError(evaluator_id, candidate_id, missing)

    pair = [
        index
        for index, session in enumerate(sessions)
        if session.evaluator_id == evaluator_id and session.candidate_id == candidate_id
    ]
    latest_completed = max(
        (sessions[index].version for index in pair if sessions[index].is_completed),
        default=0,
    )
    draft_index = next(
        (index for index in reversed(pair) if not sessions[index].is_completed),
        None,
    )
    version = latest_completed + 1
    if draft_index is not None:
        version = max(sessions[draft_index].version, version)

    submitted = EvaluationSession(
        evaluator_id=evaluator_id,
        candidate_id=candidate_id,
        total_score=session_total(items, scores, evaluator_id, candidate_id),
        is_completed=True,
        version=version,
        submitted_at=submitted_at or pendulum.now("UTC"),
    )

    updated = list(sessions)
    if draft_index is not None:
        updated[draft_index] = submitted
    else:
        updated.append(submitted)
    return updated, submitted


def preset_options_for(
    item_id: int,
    presets: Iterable[PresetScoreOption],
) -> list[PresetScoreOption]:
    return sorted(
        (preset for preset in presets if preset.item_id == item_id and preset.is_active),
        key=lambda preset: preset.sort_order,
    )
