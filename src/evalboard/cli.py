"""Typer CLI entrypoint for evaluation results."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import structlog
import typer
import yaml
from pydantic import ValidationError

from .config import ConfigManager
from .container import create_container
from .core import get_final_selected_candidates
from .logging import configure_logging
from .pipeline import AuditLogger, OutputWriter, RecordLoadError, SelectionStore, SnapshotLoader

app = typer.Typer(help="Evaluation aggregation and selection CLI.")

KINDS = ("candidate", "evaluator", "item")


def _load_settings(config: Optional[Path]) -> dict[str, Any]:
    if not config:
        return {}
    try:
        return ConfigManager.from_file(config).to_settings()
    except (ValidationError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Invalid config: {exc}", param_hint="config") from exc


@app.command()
def results(
    snapshot: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Snapshot JSON path."),
    output: Path = typer.Option(
        ...,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    xlsx: Optional[Path] = typer.Option(None, dir_okay=False, help="Optional results workbook path."),
    selections: Optional[Path] = typer.Option(
        None, dir_okay=False, help="Seed the selection state file when it does not exist yet."
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Aggregate completed sessions into ranked candidate results."""
    settings = _load_settings(config)
    configure_logging(log_level)

    container = create_container(settings=settings)
    pipeline = container.pipeline()
    audit_logger = AuditLogger(audit_log) if audit_log else None

    payload = pipeline.run(
        snapshot_path=snapshot,
        output_path=output,
        workbook_path=xlsx,
        audit_logger=audit_logger,
    )

    if selections and not selections.exists():
        OutputWriter().write(selections, payload["selections"])

    typer.echo(f"Processed {len(payload['results'])} candidates. Results saved to {output}.")


@app.command()
def progress(
    snapshot: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Snapshot JSON path."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
) -> None:
    """Print completion progress of every active evaluator."""
    configure_logging(log_level)
    data = SnapshotLoader().load(snapshot)
    engine = create_container().aggregation_engine()

    for entry in engine.evaluator_progress(data.evaluators, data.candidates, data.sessions):
        typer.echo(
            f"{entry.name}\t{entry.department}\t"
            f"{entry.completed_count}/{entry.total_count}\t{entry.progress_percent:.0f}%"
        )


@app.command("import-rows")
def import_rows(
    kind: str = typer.Option(..., help="Record kind: candidate, evaluator or item."),
    input_path: Path = typer.Option(
        ..., "--input", exists=True, readable=True, dir_okay=False, help="CSV or XLSX upload."
    ),
    output: Path = typer.Option(..., dir_okay=False, help="Output JSONL path."),
    start_id: int = typer.Option(1, min=1, help="Identifier assigned to the first imported row."),
    snapshot: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Snapshot used to resolve item categories."
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Map spreadsheet rows to canonical records."""
    if kind not in KINDS:
        raise typer.BadParameter(f"Expected one of {', '.join(KINDS)}", param_hint="kind")
    settings = _load_settings(config)
    configure_logging(log_level)
    logger = structlog.get_logger(__name__)

    category_ids = None
    if snapshot:
        data = SnapshotLoader().load(snapshot)
        category_ids = {category.name: category.id for category in data.categories}

    container = create_container(settings=settings, category_ids=category_ids)
    loader = container.record_loader()

    failed = False
    try:
        records = loader.load(input_path, kind, start_id=start_id)
    except RecordLoadError as exc:
        records = exc.partial
        failed = True
        logger.warning("rows.partial_load", kind=kind, errors=exc.errors)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="input") from exc

    OutputWriter().write_lines(output, (record.model_dump(mode="json") for record in records))
    typer.echo(f"Imported {len(records)} {kind} rows to {output}.")
    if failed:
        raise typer.Exit(code=1)


@app.command()
def select(
    state: Path = typer.Option(..., dir_okay=False, help="Selection state JSON path."),
    candidate_id: int = typer.Option(..., help="Candidate identifier."),
    main_category: Optional[str] = typer.Option(None, "--main", help="Main category label."),
    sub_category: Optional[str] = typer.Option(None, "--sub", help="Sub category label."),
    is_selected: bool = typer.Option(True, "--selected/--not-selected", help="Selection flag."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Set a candidate's final selection flag within its category pair."""
    core_settings = _load_settings(config).get("core", {})
    configure_logging(log_level)
    store = SelectionStore(
        state,
        audit_logger=AuditLogger(audit_log) if audit_log else None,
        default_main_category=core_settings.get("default_main_category"),
        default_sub_category=core_settings.get("default_sub_category"),
    )
    updated = store.apply(candidate_id, main_category, sub_category, is_selected)
    typer.echo(f"{len(get_final_selected_candidates(updated))} candidates selected.")


@app.command()
def selected(
    state: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Selection state JSON path."),
) -> None:
    """Print the finally selected candidates."""
    for entry in get_final_selected_candidates(SelectionStore(state).load()):
        typer.echo(
            f"{entry.main_category}-{entry.sub_category}\t{entry.candidate_id}\t"
            f"{entry.candidate_name}\t{entry.average_score}"
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
