from __future__ import annotations

import pytest

from evalboard.adapters import (
    CandidateRowAdapter,
    EvaluationItemRowAdapter,
    EvaluatorRowAdapter,
    RowAdapter,
)


def test_adapters_satisfy_protocol():
    assert isinstance(CandidateRowAdapter(), RowAdapter)
    assert isinstance(EvaluatorRowAdapter(), RowAdapter)
    assert isinstance(EvaluationItemRowAdapter(), RowAdapter)


def test_candidate_korean_headers_map_to_canonical_fields():
    adapter = CandidateRowAdapter()
    row = {
        "성명": "홍길동",
        "소속": "복지관",
        "직급": "관장",
        "구분": "신규",
        "세부구분": "정기동행",
        "비고": " 추천 ",
    }

    record = adapter.parse_row(row, 3)

    assert record == {
        "name": "홍길동",
        "department": "복지관",
        "position": "관장",
        "main_category": "신규",
        "sub_category": "정기동행",
        "description": "추천",
        "sort_order": 3,
        "is_active": True,
    }


def test_first_non_empty_alias_wins():
    adapter = CandidateRowAdapter()
    row = {"name": "", "이름": "김영수", "department": "A", "position": "B", "순서": 7}

    record = adapter.parse_row(row, 1)

    assert record["name"] == "김영수"
    assert record["sort_order"] == 7


def test_missing_required_column_is_reported():
    adapter = CandidateRowAdapter()

    with pytest.raises(ValueError) as exc:
        adapter.parse_row({"이름": "김영수", "부서": "A"}, 1)

    assert "position" in str(exc.value)


def test_extra_aliases_extend_mapping():
    adapter = CandidateRowAdapter(extra_aliases={"department": ["기관명"]})

    record = adapter.parse_row({"이름": "A", "기관명": "센터", "직책": "대표"}, 1)

    assert record["department"] == "센터"
    assert "기관명" in adapter.aliases["department"]


def test_can_handle_checks_headers():
    adapter = EvaluatorRowAdapter()

    assert adapter.can_handle(["이름", "부서", "이메일"])
    assert not adapter.can_handle(["foo", "bar"])


def test_evaluator_role_labels():
    adapter = EvaluatorRowAdapter()

    chair = adapter.parse_row({"이름": "A", "부서": "B", "역할": "위원장"}, 1)
    member = adapter.parse_row({"name": "C", "department": "D"}, 2)

    assert chair["role"] == "chair"
    assert "role" not in member

    with pytest.raises(ValueError):
        adapter.parse_row({"이름": "A", "부서": "B", "역할": "관찰자"}, 3)


def test_item_category_resolved_by_name_or_id():
    adapter = EvaluationItemRowAdapter(category_ids={"사업계획": 4})

    by_name = adapter.parse_row({"구분": "사업계획", "세부 항목": "목표 적절성", "배점": 20}, 1)
    by_id = adapter.parse_row({"category": 2.0, "name": "예산", "max_score": "10", "가중치": 0.5}, 2)

    assert by_name["category_id"] == 4
    assert by_name["weight"] == 1.0
    assert by_id["category_id"] == 2
    assert by_id["weight"] == 0.5

    with pytest.raises(ValueError):
        adapter.parse_row({"구분": "없는영역", "세부 항목": "X", "배점": 5}, 3)
