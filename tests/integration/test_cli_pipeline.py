from __future__ import annotations

import json
from pathlib import Path

import openpyxl
import pytest
from typer.testing import CliRunner

from evalboard.cli import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


def build_snapshot() -> dict:
    return {
        "system_config": {"evaluation_title": "2025 동행기관 선정심사", "is_evaluation_active": True},
        "candidates": [
            {"id": 1, "name": "한빛복지관", "department": "서울", "position": "관장", "main_category": "신규", "sub_category": "정기동행"},
            {"id": 2, "name": "새봄센터", "department": "부산", "position": "센터장"},
            {"id": 3, "name": "늘푸른재단", "department": "대구", "position": "이사장"},
            {"id": 4, "name": "휴면기관", "department": "광주", "position": "대표", "is_active": False},
        ],
        "evaluators": [
            {"id": 1, "name": "김위원", "department": "외부", "role": "chair"},
            {"id": 2, "name": "이위원", "department": "내부"},
        ],
        "categories": [{"id": 1, "name": "사업계획"}],
        "items": [{"id": 1, "category_id": 1, "name": "목표", "max_score": 100}],
        "sessions": [
            {"evaluator_id": 1, "candidate_id": 1, "total_score": 80, "is_completed": True},
            {"evaluator_id": 2, "candidate_id": 1, "total_score": 90, "is_completed": True},
            {"evaluator_id": 1, "candidate_id": 2, "total_score": 60, "is_completed": True},
            {"evaluator_id": 2, "candidate_id": 2, "total_score": 65, "is_completed": True},
            {"evaluator_id": 1, "candidate_id": 3, "total_score": 95, "is_completed": False},
        ],
    }


def test_cli_results_writes_ranked_output(tmp_path: Path, runner: CliRunner) -> None:
    snapshot_path = tmp_path / "snapshot.json"
    output_path = tmp_path / "results.json"
    xlsx_path = tmp_path / "results.xlsx"
    selections_path = tmp_path / "selections.json"
    write_json(snapshot_path, build_snapshot())

    result = runner.invoke(
        app,
        [
            "results",
            "--snapshot",
            str(snapshot_path),
            "--output",
            str(output_path),
            "--xlsx",
            str(xlsx_path),
            "--selections",
            str(selections_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    rendered = json.loads(output_path.read_text(encoding="utf-8"))

    assert rendered["metadata"]["evaluation_title"] == "2025 동행기관 선정심사"
    assert rendered["metadata"]["selection_threshold"] == 70
    assert [r["candidate_id"] for r in rendered["results"]] == [1, 2, 3]
    assert rendered["results"][0]["average_score"] == 85.0
    assert rendered["results"][0]["selected"] is True
    assert rendered["results"][1]["average_score"] == 62.5
    assert rendered["results"][2]["session_count"] == 0
    assert rendered["statistics"]["completion_rate"] == 67
    assert [p["completed_count"] for p in rendered["progress"]] == [2, 2]
    assert rendered["progress"][0]["incomplete_candidate_ids"] == [3]

    workbook = openpyxl.load_workbook(xlsx_path)
    rows = list(workbook.active.iter_rows(values_only=True))
    assert rows[1][1] == "한빛복지관"
    assert rows[1][-1] == "Y"
    assert rows[0][7] == "등급"
    assert rows[1][7] == "우수"

    seeded = json.loads(selections_path.read_text(encoding="utf-8"))
    assert set(seeded) == {"신규-정기동행", "신규-일시동행"}


def test_cli_results_uses_config_threshold(tmp_path: Path, runner: CliRunner) -> None:
    snapshot_path = tmp_path / "snapshot.json"
    output_path = tmp_path / "results.json"
    config_path = tmp_path / "evalboard.yaml"
    write_json(snapshot_path, build_snapshot())
    config_path.write_text("core:\n  selection_threshold: 60\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["results", "--snapshot", str(snapshot_path), "--output", str(output_path), "--config", str(config_path)],
    )

    assert result.exit_code == 0, result.stdout
    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    assert rendered["results"][1]["selected"] is True


def test_cli_progress_prints_each_active_evaluator(tmp_path: Path, runner: CliRunner) -> None:
    snapshot_path = tmp_path / "snapshot.json"
    write_json(snapshot_path, build_snapshot())

    result = runner.invoke(app, ["progress", "--snapshot", str(snapshot_path)])

    assert result.exit_code == 0, result.stdout
    assert "김위원\t외부\t2/3\t67%" in result.stdout
    assert "이위원\t내부\t2/3\t67%" in result.stdout


def test_cli_import_rows_maps_columns(tmp_path: Path, runner: CliRunner) -> None:
    upload = tmp_path / "candidates.csv"
    output = tmp_path / "candidates.jsonl"
    upload.write_text("성명,소속,직급\n김민지,복지관,관장\n이서준,센터,팀장\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["import-rows", "--kind", "candidate", "--input", str(upload), "--output", str(output), "--start-id", "5"],
    )

    assert result.exit_code == 0, result.stdout
    lines = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert [line["id"] for line in lines] == [5, 6]
    assert lines[0]["name"] == "김민지"
    assert lines[1]["department"] == "센터"


def test_cli_import_rows_partial_failure_exits_non_zero(tmp_path: Path, runner: CliRunner) -> None:
    upload = tmp_path / "candidates.csv"
    output = tmp_path / "candidates.jsonl"
    upload.write_text("이름,부서,직책\n김민지,복지관,관장\n이서준,,팀장\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["import-rows", "--kind", "candidate", "--input", str(upload), "--output", str(output)],
    )

    assert result.exit_code == 1
    assert len(output.read_text(encoding="utf-8").splitlines()) == 1


def test_cli_import_rows_rejects_unknown_kind(tmp_path: Path, runner: CliRunner) -> None:
    upload = tmp_path / "candidates.csv"
    upload.write_text("이름\nA\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["import-rows", "--kind", "session", "--input", str(upload), "--output", str(tmp_path / "o.jsonl")],
    )

    assert result.exit_code != 0


def test_cli_select_and_list(tmp_path: Path, runner: CliRunner) -> None:
    state_path = tmp_path / "selections.json"

    first = runner.invoke(app, ["select", "--state", str(state_path), "--candidate-id", "3", "--main", "신규", "--sub", "정기동행"])
    second = runner.invoke(app, ["select", "--state", str(state_path), "--candidate-id", "8"])
    third = runner.invoke(app, ["select", "--state", str(state_path), "--candidate-id", "8", "--not-selected"])

    assert first.exit_code == 0, first.stdout
    assert second.exit_code == 0, second.stdout
    assert third.exit_code == 0, third.stdout

    listed = runner.invoke(app, ["selected", "--state", str(state_path)])

    assert listed.exit_code == 0, listed.stdout
    assert "신규-정기동행\t3" in listed.stdout
    assert "\t8\t" not in listed.stdout
    state = json.loads(state_path.read_text(encoding="utf-8"))
    assert len(state["신규-일시동행"]) == 1


def test_cli_rejects_malformed_yaml_config(tmp_path: Path, runner: CliRunner) -> None:
    snapshot_path = tmp_path / "snapshot.json"
    config_path = tmp_path / "broken.yaml"
    write_json(snapshot_path, build_snapshot())
    config_path.write_text("core: [unclosed\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["results", "--snapshot", str(snapshot_path), "--output", str(tmp_path / "r.json"), "--config", str(config_path)],
    )

    assert result.exit_code == 2
    assert not (tmp_path / "r.json").exists()


def test_cli_select_uses_configured_default_categories(tmp_path: Path, runner: CliRunner) -> None:
    snapshot_path = tmp_path / "snapshot.json"
    state_path = tmp_path / "selections.json"
    config_path = tmp_path / "evalboard.yaml"
    write_json(snapshot_path, build_snapshot())
    config_path.write_text(
        "core:\n  default_main_category: 기존\n  default_sub_category: 정기동행\n", encoding="utf-8"
    )

    seeded = runner.invoke(
        app,
        [
            "results",
            "--snapshot",
            str(snapshot_path),
            "--output",
            str(tmp_path / "results.json"),
            "--selections",
            str(state_path),
            "--config",
            str(config_path),
        ],
    )
    assert seeded.exit_code == 0, seeded.stdout

    updated = runner.invoke(
        app,
        ["select", "--state", str(state_path), "--candidate-id", "3", "--config", str(config_path)],
    )
    assert updated.exit_code == 0, updated.stdout

    state = json.loads(state_path.read_text(encoding="utf-8"))
    assert set(state) == {"신규-정기동행", "기존-정기동행"}
    assert [entry["candidate_id"] for entry in state["기존-정기동행"]] == [2, 3]
    assert state["기존-정기동행"][1]["is_selected"] is True
    assert "2 candidates selected." in updated.stdout
