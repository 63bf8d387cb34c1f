from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, field_validator

CONFIG_NAMES = ("template-resolver.yaml", "template-resolver.yml")


class ResolutionSettings(BaseModel):
    default_language: str = "C#"

    @field_validator("default_language")
    @classmethod
    def _strip_language(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("default_language must not be blank")
        return cleaned


class LoggingSettings(BaseModel):
    level: str = "INFO"
    warnings_log: Optional[Path] = None

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        name = value.strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"Unknown logging level: {value}")
        return name

    @field_validator("warnings_log", mode="before")
    @classmethod
    def _expand_warnings_log(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(value).expanduser().resolve()


class Settings(BaseModel):
    resolution: ResolutionSettings = ResolutionSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        if not explicit_path.exists():
            raise FileNotFoundError(f"Config file not found: {explicit_path}")
        return explicit_path
    cwd = Path.cwd()
    for name in CONFIG_NAMES:
        candidate = cwd / name
        if candidate.exists():
            return candidate
    return None


def load_settings(explicit_path: Optional[Path] = None) -> Settings:
    path = find_config(explicit_path)
    if path is None:
        return Settings()
    return Settings.load(path)
