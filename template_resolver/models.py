from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class MatchKind(Enum):
    """How the name selector from the command line matched a template."""

    EXACT = "exact"
    PARTIAL = "partial"
    MISMATCH = "mismatch"


@dataclass(frozen=True, slots=True)
class TemplateInfo:
    identity: str
    name: str
    short_names: Tuple[str, ...] = ()
    group_identity: str = ""
    precedence: int = 0
    language: str = ""
    author: Optional[str] = None
    template_type: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("Template identity must not be empty")
        # short_names is always a tuple
        if not isinstance(self.short_names, tuple):
            object.__setattr__(self, "short_names", tuple(self.short_names))
        if self.group_identity is None:
            object.__setattr__(self, "group_identity", "")
        if self.language is None:
            object.__setattr__(self, "language", "")


@dataclass(frozen=True, slots=True)
class TemplateMatchInfo:
    """
    A template together with its match disposition against the command input.

    Instances are produced by the matching stage and are never modified by
    resolution.
    """

    info: TemplateInfo
    match_kind: MatchKind = MatchKind.EXACT
    invokable: bool = True
    matches_default_language: bool = False
    matches_language: bool = False

    @classmethod
    def from_template(
        cls,
        info: TemplateInfo,
        *,
        user_language: Optional[str] = None,
        default_language: Optional[str] = None,
        match_kind: MatchKind = MatchKind.EXACT,
        invokable: bool = True,
    ) -> "TemplateMatchInfo":
        return cls(
            info=info,
            match_kind=match_kind,
            invokable=invokable,
            matches_default_language=_same_language(info.language, default_language),
            matches_language=_same_language(info.language, user_language),
        )

    @property
    def identity(self) -> str:
        return self.info.identity

    @property
    def group_identity(self) -> str:
        return self.info.group_identity

    @property
    def precedence(self) -> int:
        return self.info.precedence

    @property
    def language(self) -> str:
        return self.info.language


def _same_language(language: Optional[str], other: Optional[str]) -> bool:
    if not language or not other:
        return False
    return language.lower() == other.lower()
