"""
Domain models for template resolution.

These are pure data models with no dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence


class TemplateCandidate(Protocol):
    """Protocol for a matched template taking part in resolution."""

    @property
    def group_identity(self) -> str: ...

    @property
    def invokable(self) -> bool: ...

    @property
    def precedence(self) -> int: ...

    @property
    def language(self) -> str: ...

    @property
    def matches_default_language(self) -> bool: ...

    @property
    def matches_language(self) -> bool: ...


class ResolutionInvariantError(RuntimeError):
    """Raised when the resolver reaches a state that correct code cannot produce."""


class ResolutionStatus(Enum):
    """Outcome of resolving the template to invoke."""

    NOT_EVALUATED = "not_evaluated"
    """Never returned by the resolver; kept so the full state space is named."""

    NO_MATCH = "no_match"
    """No matched template groups were resolved."""

    SINGLE_MATCH = "single_match"
    """A single group and a single template in that group were resolved."""

    AMBIGUOUS_TEMPLATE_GROUP_CHOICE = "ambiguous_template_group_choice"
    """Multiple template groups matched and none could be preferred."""

    AMBIGUOUS_TEMPLATE_CHOICE = "ambiguous_template_choice"
    """
    A single group was resolved but several templates of the same language
    conflict. Usually one of the installed templates should be uninstalled.
    """

    AMBIGUOUS_LANGUAGE_CHOICE = "ambiguous_language_choice"
    """
    A single group was resolved but templates of different languages remain and
    no language was given by the user nor matched the default language.
    """

    INVALID_PARAMETER = "invalid_parameter"
    """A single group was resolved but the parameters are invalid for all its templates."""


class GroupResolutionStatus(Enum):
    """Outcome of resolving the unambiguous template group."""

    NOT_EVALUATED = "not_evaluated"
    NO_MATCH = "no_match"
    SINGLE_MATCH = "single_match"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True, slots=True)
class TemplateGroup:
    """
    Templates sharing one group identity.

    A template without a group identity forms a group on its own. Templates in
    one group are variants of the same logical template: they usually differ
    in language or type and are expected to carry different precedence values
    when they share a language.
    """

    group_identity: str
    templates: tuple[TemplateCandidate, ...]

    def __post_init__(self) -> None:
        if not self.templates:
            raise ResolutionInvariantError("A template group must contain at least one template")

    @property
    def invokable_templates(self) -> tuple[TemplateCandidate, ...]:
        return tuple(template for template in self.templates if template.invokable)

    @property
    def short_names(self) -> tuple[str, ...]:
        names: list[str] = []
        for template in self.templates:
            info = getattr(template, "info", None)
            for name in getattr(info, "short_names", ()):
                if name not in names:
                    names.append(name)
        return tuple(names)

    def highest_precedence_invokable_templates(
        self, use_default_language: bool = False
    ) -> tuple[TemplateCandidate, ...]:
        """
        Return the invokable templates sharing the highest precedence.

        When ``use_default_language`` is set and more than one template remains,
        the templates matching the default language are preferred, provided
        there is at least one.
        """
        invokable = self.invokable_templates
        if not invokable:
            return ()
        highest = max(template.precedence for template in invokable)
        top = tuple(template for template in invokable if template.precedence == highest)
        if use_default_language and len(top) > 1:
            preferred = tuple(template for template in top if template.matches_default_language)
            if preferred:
                return preferred
        return top

    def highest_precedence_invokable_template(
        self, use_default_language: bool = False
    ) -> Optional[TemplateCandidate]:
        top = self.highest_precedence_invokable_templates(use_default_language)
        if len(top) == 1:
            return top[0]
        return None


@dataclass(frozen=True, slots=True)
class GroupResolution:
    """Group-level verdict; ``group`` is set if and only if the status is SINGLE_MATCH."""

    status: GroupResolutionStatus
    group: Optional[TemplateGroup] = None

    def __post_init__(self) -> None:
        if self.status is GroupResolutionStatus.NOT_EVALUATED:
            raise ResolutionInvariantError("A group resolution cannot be NOT_EVALUATED")
        has_group = self.group is not None
        if has_group != (self.status is GroupResolutionStatus.SINGLE_MATCH):
            raise ResolutionInvariantError(
                f"Group resolution {self.status.name} is inconsistent with group={self.group!r}"
            )


@dataclass(frozen=True, slots=True)
class TemplateResolution:
    """Template-level verdict; ``template`` is set if and only if the status is SINGLE_MATCH."""

    status: ResolutionStatus
    template: Optional[TemplateCandidate] = None

    def __post_init__(self) -> None:
        if self.status is ResolutionStatus.NOT_EVALUATED:
            raise ResolutionInvariantError("A template resolution cannot be NOT_EVALUATED")
        has_template = self.template is not None
        if has_template != (self.status is ResolutionStatus.SINGLE_MATCH):
            raise ResolutionInvariantError(
                f"Template resolution {self.status.name} is inconsistent with template={self.template!r}"
            )


def distinct_languages(templates: Sequence[TemplateCandidate]) -> set[str]:
    """Distinct languages of ``templates`` compared case-insensitively; empty counts as a value."""
    return {(template.language or "").lower() for template in templates}
