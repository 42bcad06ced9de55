"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError


class CoreConfig(BaseModel):
    selection_threshold: float | None = Field(default=None, ge=0)
    default_main_category: str | None = None
    default_sub_category: str | None = None


class IngestionConfig(BaseModel):
    candidate: dict[str, list[str]] | None = None
    evaluator: dict[str, list[str]] | None = None
    item: dict[str, list[str]] | None = None


class AppConfig(BaseModel):
    core: CoreConfig = Field(default_factory=CoreConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        core_settings = self.core.model_dump(exclude_none=True)
        if core_settings:
            settings["core"] = core_settings
        ingestion_settings = self.ingestion.model_dump(exclude_none=True)
        if ingestion_settings:
            settings["ingestion"] = ingestion_settings
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
