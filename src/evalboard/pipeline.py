"""Evaluation results pipeline assembly and execution."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Iterable, List

import openpyxl
import pendulum
import structlog
from pydantic import BaseModel, ValidationError

from .adapters import (
    CandidateRowAdapter,
    EvaluationItemRowAdapter,
    EvaluatorRowAdapter,
    RowAdapter,
)
from .core import AggregationEngine, CandidateResult, apply_final_selection, grade_label
from .core.aggregation import compute_system_statistics
from .core.selection import (
    DEFAULT_MAIN_CATEGORY,
    DEFAULT_SUB_CATEGORY,
    SelectionState,
    state_from_dict,
    state_to_dict,
)
from .schemas import (
    Candidate,
    EvaluationItem,
    EvaluationSnapshot,
    Evaluator,
    SystemConfig,
)
from . import __version__

RECORD_MODELS: dict[str, type[BaseModel]] = {
    "candidate": Candidate,
    "evaluator": Evaluator,
    "item": EvaluationItem,
}


class AdapterRegistry:
    """Registry mapping record kinds to row adapters."""

    def __init__(self, adapters: Iterable[RowAdapter]):
        self._adapters = {adapter.kind: adapter for adapter in adapters}

    def get(self, kind: str) -> RowAdapter:
        try:
            return self._adapters[kind]
        except KeyError as exc:
            raise KeyError(f"Unsupported record kind: {kind!r}") from exc

    def kinds(self) -> List[str]:
        return list(self._adapters.keys())


class SheetReadError(ValueError):
    """Raised when an uploaded sheet cannot be read."""


class SheetReader:
    """Read the first sheet of a CSV or XLSX file into header-keyed rows."""

    def read(self, path: Path) -> list[dict[str, Any]]:
        suffix = path.suffix.lower()
        if suffix == ".csv":
            rows = self._read_csv(path)
        elif suffix == ".xlsx":
            rows = self._read_xlsx(path)
        else:
            raise SheetReadError(f"Unsupported file type {suffix!r}; use .csv or .xlsx")
        rows = [row for row in rows if any(_has_value(value) for value in row.values())]
        if not rows:
            raise SheetReadError(f"{path.name} contains no data rows")
        return rows

    @staticmethod
    def _read_csv(path: Path) -> list[dict[str, Any]]:
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            return [dict(row) for row in csv.DictReader(handle)]

    @staticmethod
    def _read_xlsx(path: Path) -> list[dict[str, Any]]:
        try:
            workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
        except Exception as exc:  # noqa: BLE001
            raise SheetReadError(f"Invalid workbook {path.name}: {exc}") from exc
        try:
            sheet = workbook.worksheets[0]
            row_iter = sheet.iter_rows(values_only=True)
            header_row = next(row_iter, None)
            if header_row is None:
                return []
            headers = [str(cell).strip() if cell is not None else "" for cell in header_row]
            return [
                {header: values[index] if index < len(values) else None for index, header in enumerate(headers) if header}
                for values in row_iter
            ]
        finally:
            workbook.close()


def _has_value(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


class RecordLoadError(ValueError):
    """Raised when sheet ingestion encounters invalid rows."""

    def __init__(self, errors: list[str], partial: list[BaseModel]):
        super().__init__("Record loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Record loading failed: {self.errors}"


class RecordLoader:
    """Load typed records from spreadsheet rows through adapters."""

    def __init__(self, registry: AdapterRegistry, reader: SheetReader | None = None):
        self._registry = registry
        self._reader = reader or SheetReader()

    def load(self, path: Path, kind: str, *, start_id: int = 1) -> list[BaseModel]:
        adapter = self._registry.get(kind)
        model = RECORD_MODELS[kind]
        rows = self._reader.read(path)
        if not adapter.can_handle(list(rows[0].keys())):
            raise SheetReadError(f"{path.name} has no recognizable {kind} columns")

        records: list[BaseModel] = []
        errors: list[str] = []
        # header is row 1
        for position, row in enumerate(rows, start=1):
            try:
                data = adapter.parse_row(row, position)
                data["id"] = start_id + len(records)
                records.append(model.model_validate(data))
            except (ValueError, ValidationError) as exc:
                errors.append(f"row {position + 1}: {exc}")
        if errors:
            raise RecordLoadError(errors, records)
        return records


class SnapshotLoader:
    """Load a persistence-service export."""

    def load(self, path: Path) -> EvaluationSnapshot:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid snapshot JSON: {exc}") from exc
        return EvaluationSnapshot.model_validate(data)


class OutputWriter:
    """Persist pipeline outputs."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default),
            encoding="utf-8",
        )

    def write_lines(self, path: Path, records: Iterable[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            for record in records:
                handle.write(json.dumps(record, ensure_ascii=False, default=_json_default))
                handle.write("\n")


class ResultsWorkbookWriter:
    """Export ranked results to a single-sheet workbook."""

    HEADERS = ("순위", "이름", "부서", "직책", "구분", "세부구분", "평균점수", "등급", "평가수", "선정")

    def write(self, path: Path, results: Iterable[CandidateResult]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.title = "평가결과"
        sheet.append(list(self.HEADERS))
        for result in results:
            sheet.append(
                [
                    result.rank,
                    result.name,
                    result.department,
                    result.position,
                    result.main_category or "",
                    result.sub_category or "",
                    result.average_score,
                    grade_label(result.average_score),
                    result.session_count,
                    "Y" if result.selected else "N",
                ]
            )
        workbook.save(path)


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=_json_default))
            handle.write("\n")


class SelectionStore:
    """File-backed final selection state."""

    def __init__(
        self,
        path: Path,
        *,
        audit_logger: AuditLogger | None = None,
        default_main_category: str | None = None,
        default_sub_category: str | None = None,
    ):
        self._path = path
        self._audit = audit_logger
        self._default_main = default_main_category or DEFAULT_MAIN_CATEGORY
        self._default_sub = default_sub_category or DEFAULT_SUB_CATEGORY
        self._logger = structlog.get_logger(__name__)

    def load(self) -> dict[str, tuple]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as handle:
            try:
                raw = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid selection state JSON: {exc}") from exc
        return state_from_dict(raw)

    def save(self, state: SelectionState) -> None:
        OutputWriter().write(self._path, state_to_dict(state))

    def apply(
        self,
        candidate_id: int,
        main_category: str | None,
        sub_category: str | None,
        is_selected: bool,
    ) -> SelectionState:
        state = apply_final_selection(
            self.load(),
            candidate_id,
            main_category,
            sub_category,
            is_selected,
            default_main_category=self._default_main,
            default_sub_category=self._default_sub,
        )
        self.save(state)
        if self._audit:
            self._audit.append(
                {
                    "event": "selection.applied",
                    "candidate_id": candidate_id,
                    "main_category": main_category,
                    "sub_category": sub_category,
                    "is_selected": is_selected,
                    "timestamp": pendulum.now().to_iso8601_string(),
                }
            )
        self._logger.info(
            "selection.applied",
            candidate_id=candidate_id,
            main_category=main_category,
            sub_category=sub_category,
            is_selected=is_selected,
        )
        return state


class ResultsPipeline:
    """Snapshot-to-results orchestrator."""

    def __init__(
        self,
        *,
        engine: AggregationEngine,
        snapshot_loader: SnapshotLoader | None = None,
        writer: OutputWriter | None = None,
        workbook_writer: ResultsWorkbookWriter | None = None,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._engine = engine
        self._snapshots = snapshot_loader or SnapshotLoader()
        self._writer = writer or OutputWriter()
        self._workbook = workbook_writer or ResultsWorkbookWriter()
        self._now = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        snapshot_path: Path,
        output_path: Path,
        workbook_path: Path | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> dict[str, Any]:
        snapshot = self._snapshots.load(snapshot_path)
        now = self._now()

        results = self._engine.candidate_results(snapshot.candidates, snapshot.sessions)
        progress = self._engine.evaluator_progress(
            snapshot.evaluators, snapshot.candidates, snapshot.sessions
        )
        statistics = compute_system_statistics(
            candidates=snapshot.candidates,
            evaluators=snapshot.evaluators,
            items=snapshot.items,
            categories=snapshot.categories,
            sessions=snapshot.sessions,
        )
        selections = self._engine.suggest_selections(results)

        for result in results:
            self._logger.info(
                "results.candidate",
                candidate_id=result.candidate_id,
                rank=result.rank,
                average_score=result.average_score,
                session_count=result.session_count,
                selected=result.selected,
            )
            if audit_logger:
                audit_logger.append(
                    {
                        "event": "results.candidate",
                        "candidate_id": result.candidate_id,
                        "average_score": result.average_score,
                        "selected": result.selected,
                        "timestamp": now.to_iso8601_string(),
                    }
                )

        metadata = {
            "evaluation_title": snapshot.system_config.evaluation_title,
            "evaluation_open": evaluation_open(snapshot.system_config, now),
            "candidate_count": len(results),
            "evaluator_count": len(progress),
            "selection_threshold": self._engine.threshold,
            "timestamp": now.to_iso8601_string(),
            "app_version": __version__,
        }
        payload = {
            "metadata": metadata,
            "statistics": asdict(statistics),
            "results": [asdict(result) for result in results],
            "progress": [asdict(entry) for entry in progress],
            "selections": state_to_dict(selections),
        }

        self._writer.write(output_path, payload)
        if workbook_path:
            self._workbook.write(workbook_path, results)
        return payload


def evaluation_open(config: SystemConfig, now: pendulum.DateTime) -> bool:
    """Whether scoring is currently accepted under the system configuration."""
    if not config.is_evaluation_active:
        return False
    if config.evaluation_start_date and now < pendulum.instance(config.evaluation_start_date):
        return False
    if config.evaluation_end_date and now > pendulum.instance(config.evaluation_end_date):
        return False
    return True


def default_registry(
    *,
    category_ids: dict[str, int] | None = None,
) -> AdapterRegistry:
    """Return the default adapter registry."""
    return AdapterRegistry(
        adapters=[
            CandidateRowAdapter(),
            EvaluatorRowAdapter(),
            EvaluationItemRowAdapter(category_ids=category_ids),
        ]
    )


def _json_default(value):  # type: ignore[override]
    if isinstance(value, pendulum.DateTime):
        return value.to_iso8601_string()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
