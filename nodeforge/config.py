"""Configuration — Pydantic Settings + YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"


class RegistrySettings(BaseSettings):
    # node type -> identifying properties, added to the built-in table
    extra_node_types: dict[str, list[str]] = Field(default_factory=dict)


class TaxonomySettings(BaseSettings):
    max_depth: int = 8


class ValidationSettings(BaseSettings):
    log_bypassed_types: bool = True


class Settings(BaseSettings):
    """Root settings; YAML values override the defaults."""

    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    taxonomy: TaxonomySettings = Field(default_factory=TaxonomySettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    log_level: str = "INFO"

    @classmethod
    def load(cls, config_path: Path | str | None = None) -> Settings:
        """Load settings from YAML file, falling back to defaults."""
        data: dict[str, Any] = {}

        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        path = Path(config_path)
        if path.exists():
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
                if isinstance(raw, dict):
                    data = raw

        return cls(**data)
