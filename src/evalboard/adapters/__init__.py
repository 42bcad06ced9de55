"""Spreadsheet row adapters."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from .columns import (
    CANDIDATE_COLUMNS,
    EVALUATOR_COLUMNS,
    ITEM_COLUMNS,
    CandidateRowAdapter,
    ColumnMappingAdapter,
    EvaluationItemRowAdapter,
    EvaluatorRowAdapter,
)


@runtime_checkable
class RowAdapter(Protocol):
    """Row adapter contract.

    Implementations turn one spreadsheet row, keyed by whatever header names
    the upload used, into a canonical record dictionary for a single kind of
    record.
    """

    kind: str

    def can_handle(self, headers: list[str]) -> bool:
        """Return True when the header row contains columns this adapter knows."""

    def parse_row(self, row: Mapping[str, Any], index: int) -> dict[str, Any]:
        """Parse a row and return a canonical record dictionary."""


__all__ = [
    "RowAdapter",
    "ColumnMappingAdapter",
    "CandidateRowAdapter",
    "EvaluatorRowAdapter",
    "EvaluationItemRowAdapter",
    "CANDIDATE_COLUMNS",
    "EVALUATOR_COLUMNS",
    "ITEM_COLUMNS",
]
