"""
Captured resolution cases.

A case file is a YAML document describing the matched templates of one
resolution attempt, the language given by the user and, optionally, the
expected outcome. Case files make resolution decisions reproducible outside
of the command that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.resolution import ResolutionStatus
from .models import MatchKind, TemplateInfo, TemplateMatchInfo


class CaseFileError(ValueError):
    """Raised when a case file cannot be read or does not follow the case schema."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class TemplateRecord(BaseModel):
    identity: str
    name: Optional[str] = None
    short_names: List[str] = Field(default_factory=list)
    group_identity: str = ""
    precedence: int = 0
    language: str = ""
    author: Optional[str] = None
    template_type: Optional[str] = Field(default=None, alias="type")
    description: Optional[str] = None
    match_kind: MatchKind = MatchKind.EXACT
    invokable: bool = True
    matches_language: Optional[bool] = None
    matches_default_language: Optional[bool] = None

    model_config = {"populate_by_name": True}

    @field_validator("short_names", mode="before")
    @classmethod
    def _wrap_short_name(cls, value: object) -> object:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("group_identity", "language", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    def to_match_info(
        self, *, user_language: Optional[str], default_language: Optional[str]
    ) -> TemplateMatchInfo:
        info = TemplateInfo(
            identity=self.identity,
            name=self.name or self.identity,
            short_names=tuple(self.short_names),
            group_identity=self.group_identity,
            precedence=self.precedence,
            language=self.language,
            author=self.author,
            template_type=self.template_type,
            description=self.description,
        )
        match = TemplateMatchInfo.from_template(
            info,
            user_language=user_language,
            default_language=default_language,
            match_kind=self.match_kind,
            invokable=self.invokable,
        )
        overrides = {}
        if self.matches_language is not None:
            overrides["matches_language"] = self.matches_language
        if self.matches_default_language is not None:
            overrides["matches_default_language"] = self.matches_default_language
        return replace(match, **overrides) if overrides else match


class ExpectedOutcome(BaseModel):
    status: ResolutionStatus
    template: Optional[str] = None
    group: Optional[str] = None
    detailed_help: Optional[List[str]] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class CaseDocument(BaseModel):
    name: Optional[str] = None
    language: Optional[str] = None
    default_language: Optional[str] = None
    templates: List[TemplateRecord] = Field(default_factory=list)
    expected: Optional[ExpectedOutcome] = None


@dataclass(slots=True)
class ResolutionCase:
    path: Path
    name: str
    user_language: Optional[str]
    default_language: str
    templates: list[TemplateMatchInfo]
    expected: Optional[ExpectedOutcome] = None


def load_case(path: Path, *, default_language: str) -> ResolutionCase:
    """
    Load a case file.

    Args:
        path: YAML case file
        default_language: Default language used when the case does not set one

    Returns:
        The case with match dispositions derived for every template

    Raises:
        CaseFileError: If the file is unreadable, not YAML, or fails validation
    """
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except OSError as exc:
        raise CaseFileError(path, f"cannot read case file ({exc})") from exc
    except yaml.YAMLError as exc:
        raise CaseFileError(path, f"invalid YAML ({exc})") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise CaseFileError(path, "case file must contain a mapping")
    try:
        document = CaseDocument.model_validate(raw)
    except ValidationError as exc:
        raise CaseFileError(path, f"invalid case ({exc.error_count()} error(s)): {exc}") from exc

    effective_default = document.default_language or default_language
    user_language = document.language or None
    templates = [
        record.to_match_info(user_language=user_language, default_language=effective_default)
        for record in document.templates
    ]
    return ResolutionCase(
        path=path,
        name=document.name or path.stem,
        user_language=user_language,
        default_language=effective_default,
        templates=templates,
        expected=document.expected,
    )


def iter_case_paths(directory: Path) -> list[Path]:
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() in {".yaml", ".yml"}
    )
