"""Pydantic record types mirroring the persistence service tables."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _optional_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value) if isinstance(value, (int, float)) else float(str(value).strip())
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


class Candidate(BaseModel):
    """Person or organization being evaluated."""

    id: int
    name: str
    department: str = ""
    position: str = ""
    category: str | None = None
    main_category: str | None = None
    sub_category: str | None = None
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(extra="allow")


class Evaluator(BaseModel):
    """Person scoring candidates."""

    id: int
    name: str
    email: str | None = None
    department: str = ""
    role: Literal["chair", "member"] = "member"
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(extra="allow")


class EvaluationCategory(BaseModel):
    """Rubric section grouping evaluation items."""

    id: int
    name: str
    code: str = ""
    type: Literal["main", "sub", "grouping"] = "main"
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(extra="allow")


class EvaluationItem(BaseModel):
    """One scored rubric line."""

    id: int
    category_id: int
    name: str
    code: str = ""
    description: str | None = None
    max_score: float = Field(default=10.0, gt=0, allow_inf_nan=False)
    weight: float = Field(default=1.0, ge=0, allow_inf_nan=False)
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(extra="allow")


class Score(BaseModel):
    """Score given by one evaluator to one candidate on one item."""

    evaluator_id: int
    candidate_id: int
    item_id: int
    value: float = 0.0
    comments: str | None = None

    model_config = ConfigDict(extra="allow")

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> float:
        return _optional_number(value) or 0.0

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.evaluator_id, self.candidate_id, self.item_id)


class EvaluationSession(BaseModel):
    """An evaluator's pass over one candidate's item set."""

    evaluator_id: int | None = None
    candidate_id: int
    total_score: float | None = None
    is_completed: bool = False
    version: int = Field(default=1, ge=1)
    submitted_at: datetime | None = None

    model_config = ConfigDict(extra="allow")

    @field_validator("total_score", mode="before")
    @classmethod
    def _coerce_total(cls, value: Any) -> float | None:
        return _optional_number(value)


class PresetScoreOption(BaseModel):
    """Named grade with a fixed score for an evaluation item."""

    id: int
    item_id: int
    label: str
    score: float
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(extra="allow")


class SystemConfig(BaseModel):
    """Evaluation-wide settings."""

    evaluation_title: str = "종합평가시스템"
    is_evaluation_active: bool = False
    evaluation_start_date: datetime | None = None
    evaluation_end_date: datetime | None = None
    max_score: int = 100

    model_config = ConfigDict(extra="allow")


class EvaluationSnapshot(BaseModel):
    """One export of every persistence-service table."""

    system_config: SystemConfig = Field(default_factory=SystemConfig)
    candidates: list[Candidate] = Field(default_factory=list)
    evaluators: list[Evaluator] = Field(default_factory=list)
    categories: list[EvaluationCategory] = Field(default_factory=list)
    items: list[EvaluationItem] = Field(default_factory=list)
    scores: list[Score] = Field(default_factory=list)
    sessions: list[EvaluationSession] = Field(default_factory=list)
    presets: list[PresetScoreOption] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")
