"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..schemas.config import AppConfig, load_config


class ConfigManager:
    """YAML-backed configuration loader."""

    SUFFIXES = (".yaml", ".yml")

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def load(self, name: str) -> dict[str, Any]:
        """Load a YAML configuration by name without file extension."""
        for suffix in self.SUFFIXES:
            path = self._base_path / f"{name}{suffix}"
            if path.exists():
                break
        else:
            raise FileNotFoundError(f"No configuration named {name!r} in {self._base_path}")
        return _read_yaml(path)

    def load_app_config(self, name: str) -> AppConfig:
        return load_config(self.load(name))

    @classmethod
    def from_file(cls, path: str | Path) -> AppConfig:
        """Load and validate the configuration file at ``path`` as given."""
        return load_config(_read_yaml(Path(path)))


def _read_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


__all__ = ["ConfigManager"]
