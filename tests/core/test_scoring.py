from __future__ import annotations

import pendulum
import pytest

from evalboard.core import (
    IncompleteSubmissionError,
    ScoreRejectedError,
    accept_score,
    clamp_score,
    preset_options_for,
    session_total,
    submit_session,
    upsert_score,
)
from evalboard.core.aggregation import latest_completed_sessions
from evalboard.schemas import EvaluationItem, EvaluationSession, PresetScoreOption, Score

ITEMS = [
    EvaluationItem(id=1, category_id=1, name="사업 이해도", max_score=20, weight=1.0),
    EvaluationItem(id=2, category_id=1, name="수행 역량", max_score=30, weight=1.5),
    EvaluationItem(id=3, category_id=2, name="폐지 항목", max_score=10, is_active=False),
]

FIXED_NOW = pendulum.datetime(2025, 3, 1, 9, 0, tz="Asia/Seoul")


def score(item_id: int, value: float, *, evaluator_id: int = 1, candidate_id: int = 1) -> Score:
    return Score(evaluator_id=evaluator_id, candidate_id=candidate_id, item_id=item_id, value=value)


@pytest.mark.parametrize(
    "value, expected",
    [(15, 15.0), (-3, 0.0), (25, 20.0), (None, 0.0), ("abc", 0.0), (float("nan"), 0.0), (float("inf"), 0.0)],
)
def test_clamp_score(value, expected):
    assert clamp_score(value, 20) == expected


def test_accept_score_clamps_by_default():
    accepted = accept_score(score(1, 25), ITEMS[0])

    assert accepted.value == 20.0


def test_accept_score_strict_rejects_out_of_range():
    with pytest.raises(ScoreRejectedError) as exc:
        accept_score(score(1, 25), ITEMS[0], strict=True)

    assert exc.value.max_score == 20


def test_accept_score_rejects_mismatched_item():
    with pytest.raises(ValueError):
        accept_score(score(2, 5), ITEMS[0])


def test_upsert_score_last_write_wins():
    scores = [score(1, 10), score(2, 20)]

    updated = upsert_score(scores, score(1, 18))

    assert [(s.item_id, s.value) for s in updated] == [(1, 18.0), (2, 20.0)]
    assert scores[0].value == 10.0


def test_upsert_score_appends_new_triple():
    updated = upsert_score([score(1, 10)], score(1, 12, evaluator_id=2))

    assert len(updated) == 2


def test_session_total_is_weighted_over_active_items():
    scores = [score(1, 18), score(2, 25), score(3, 10), score(1, 5, evaluator_id=2)]

    assert session_total(ITEMS, scores, 1, 1) == pytest.approx(18 + 25 * 1.5)


def test_submit_requires_every_active_item():
    with pytest.raises(IncompleteSubmissionError) as exc:
        submit_session([], ITEMS, [score(1, 18)], 1, 1, submitted_at=FIXED_NOW)

    assert exc.value.missing_item_ids == [2]


def test_submit_replaces_draft():
    sessions = [EvaluationSession(evaluator_id=1, candidate_id=1, total_score=10)]

    updated, submitted = submit_session(
        sessions, ITEMS, [score(1, 18), score(2, 20)], 1, 1, submitted_at=FIXED_NOW
    )

    assert len(updated) == 1
    assert submitted.is_completed is True
    assert submitted.version == 1
    assert submitted.total_score == pytest.approx(48.0)


def test_resubmission_appends_new_version():
    first = [EvaluationSession(evaluator_id=1, candidate_id=1, total_score=40, is_completed=True)]

    updated, submitted = submit_session(
        first, ITEMS, [score(1, 20), score(2, 30)], 1, 1, submitted_at=FIXED_NOW
    )

    assert len(updated) == 2
    assert updated[0].total_score == 40
    assert submitted.version == 2
    assert submitted.total_score == pytest.approx(65.0)


def test_preset_options_for_item():
    presets = [
        PresetScoreOption(id=1, item_id=1, label="보통", score=14, sort_order=2),
        PresetScoreOption(id=2, item_id=1, label="우수", score=20, sort_order=1),
        PresetScoreOption(id=3, item_id=1, label="미흡", score=6, is_active=False),
        PresetScoreOption(id=4, item_id=2, label="우수", score=30),
    ]

    options = preset_options_for(1, presets)

    assert [o.label for o in options] == ["우수", "보통"]


def test_submitting_stale_draft_outranks_completed_version():
    sessions = [
        EvaluationSession(evaluator_id=1, candidate_id=1, total_score=10),
        EvaluationSession(evaluator_id=1, candidate_id=1, total_score=40, is_completed=True),
    ]

    updated, submitted = submit_session(
        sessions, ITEMS, [score(1, 20), score(2, 30)], 1, 1, submitted_at=FIXED_NOW
    )

    assert submitted.version == 2
    assert updated[0] is submitted
    counted = latest_completed_sessions(updated)
    assert [(s.version, s.total_score) for s in counted] == [(2, pytest.approx(65.0))]
