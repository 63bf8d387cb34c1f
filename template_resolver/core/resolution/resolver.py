"""
Resolution of the template to invoke from matched templates.

Before a template is resolved, all matched templates are grouped by group
identity. Templates in one group:
- have different template identities
- usually share a short name (different short names are supported)
- may have different languages and types
- should have different precedence values when they share a language
- may define different parameters and different choices for choice parameters

Resolution then runs in two steps:
1. The unambiguous template group is selected. When several groups matched and
   the user did not specify a language, groups containing a template in the
   default language are preferred. Without an unambiguous group no template
   can be resolved either.
2. The template to invoke inside the group is selected:
   - only invokable templates (matching the template specific options) count
   - among several, the one with the highest precedence wins
   - among several with the same precedence, when the user did not specify a
     language, the default language template wins

Every failure is reported as a status value; exceptions are reserved for
internal invariant violations.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional, TypeVar

from .grouping import group_templates
from .models import (
    GroupResolution,
    GroupResolutionStatus,
    ResolutionInvariantError,
    ResolutionStatus,
    TemplateCandidate,
    TemplateGroup,
    TemplateResolution,
    distinct_languages,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TemplateResolutionResult:
    """
    Resolution of one command input against the matched templates.

    The instance is built once per resolution attempt. Groups and verdicts are
    evaluated lazily on first access, exactly once, and frozen afterwards.
    Evaluation is guarded by a lock so the instance can be read from several
    threads.
    """

    def __init__(
        self,
        user_language: Optional[str],
        matched_templates: Iterable[TemplateCandidate],
    ) -> None:
        """
        Initialize the resolution.

        Args:
            user_language: Language given explicitly on the command line, if any
            matched_templates: Templates produced by the matching stage
        """
        self._has_user_language = bool(user_language)
        self._matched_templates: tuple[TemplateCandidate, ...] = tuple(matched_templates)
        self._lock = threading.RLock()
        self._template_groups: Optional[tuple[TemplateGroup, ...]] = None
        self._group_resolution: Optional[GroupResolution] = None
        self._template_resolution: Optional[TemplateResolution] = None

    @property
    def has_user_language(self) -> bool:
        return self._has_user_language

    # Memoized evaluation

    def _once(self, attr: str, evaluate: Callable[[], T]) -> T:
        value = getattr(self, attr)
        if value is not None:
            return value
        with self._lock:
            value = getattr(self, attr)
            if value is None:
                value = evaluate()
                setattr(self, attr, value)
        return value

    @property
    def template_groups(self) -> tuple[TemplateGroup, ...]:
        """Groups of the matched templates (template specific options are not considered)."""
        return self._once("_template_groups", lambda: group_templates(self._matched_templates))

    @property
    def group_resolution(self) -> GroupResolution:
        return self._once("_group_resolution", self._evaluate_unambiguous_template_group)

    @property
    def resolution(self) -> TemplateResolution:
        return self._once("_template_resolution", self._evaluate_template_to_invoke)

    @property
    def group_resolution_status(self) -> GroupResolutionStatus:
        return self.group_resolution.status

    @property
    def unambiguous_template_group(self) -> Optional[TemplateGroup]:
        """The resolved group; set only when the group status is SINGLE_MATCH."""
        return self.group_resolution.group

    @property
    def resolution_status(self) -> ResolutionStatus:
        return self.resolution.status

    @property
    def template_to_invoke(self) -> Optional[TemplateCandidate]:
        """The template to invoke; set only when the status is SINGLE_MATCH."""
        return self.resolution.template

    @property
    def templates_for_detailed_help(self) -> tuple[TemplateCandidate, ...]:
        """
        Templates to show when detailed help is requested for the resolved group.

        Empty when no single group was resolved, when the group has no
        invokable templates, or when the language to show cannot be
        determined.
        """
        group = self.unambiguous_template_group
        if group is None:
            return ()
        invokable = group.invokable_templates
        if not invokable:
            return ()

        if self._has_user_language:
            return tuple(template for template in invokable if template.matches_language)
        if any(template.matches_default_language for template in invokable):
            return tuple(template for template in invokable if template.matches_default_language)

        languages_found: set[str] = set()
        for template in invokable:
            if template.language:
                languages_found.add(template.language)
            if len(languages_found) > 1:
                # not possible to identify the language to show templates for
                return ()
        return invokable

    # Evaluation

    def _evaluate_unambiguous_template_group(self) -> GroupResolution:
        groups = self.template_groups
        if not groups:
            resolution = GroupResolution(GroupResolutionStatus.NO_MATCH)
        elif len(groups) == 1:
            resolution = GroupResolution(GroupResolutionStatus.SINGLE_MATCH, groups[0])
        elif not self._has_user_language:
            # default language matches only count when the user did not specify a language
            preferred = [
                group
                for group in groups
                if any(template.matches_default_language for template in group.templates)
            ]
            if len(preferred) == 1:
                resolution = GroupResolution(GroupResolutionStatus.SINGLE_MATCH, preferred[0])
            else:
                resolution = GroupResolution(GroupResolutionStatus.AMBIGUOUS)
        else:
            resolution = GroupResolution(GroupResolutionStatus.AMBIGUOUS)

        logger.debug(
            "Resolved template group: %s (%d group(s), group=%s)",
            resolution.status.name,
            len(groups),
            resolution.group.group_identity if resolution.group else None,
        )
        return resolution

    def _evaluate_template_to_invoke(self) -> TemplateResolution:
        group_resolution = self.group_resolution
        match group_resolution.status:
            case GroupResolutionStatus.NO_MATCH:
                return self._settle(TemplateResolution(ResolutionStatus.NO_MATCH))
            case GroupResolutionStatus.AMBIGUOUS:
                return self._settle(
                    TemplateResolution(ResolutionStatus.AMBIGUOUS_TEMPLATE_GROUP_CHOICE)
                )
            case GroupResolutionStatus.SINGLE_MATCH:
                group = group_resolution.group
                if group is None:
                    raise ResolutionInvariantError(
                        "Unambiguous template group must be set when the group status is SINGLE_MATCH"
                    )
            case _:
                raise ResolutionInvariantError(
                    f"Unexpected group resolution status: {group_resolution.status!r}"
                )

        invokable = group.invokable_templates
        # no invokable templates: the parameter name or value is invalid for the whole group
        if not invokable:
            return self._settle(TemplateResolution(ResolutionStatus.INVALID_PARAMETER))
        if len(invokable) == 1:
            return self._settle(TemplateResolution(ResolutionStatus.SINGLE_MATCH, invokable[0]))

        use_default_language = not self._has_user_language
        template = group.highest_precedence_invokable_template(use_default_language)
        if template is not None:
            return self._settle(TemplateResolution(ResolutionStatus.SINGLE_MATCH, template))

        highest = group.highest_precedence_invokable_templates(use_default_language)
        if len(distinct_languages(highest)) > 1:
            return self._settle(TemplateResolution(ResolutionStatus.AMBIGUOUS_LANGUAGE_CHOICE))
        return self._settle(TemplateResolution(ResolutionStatus.AMBIGUOUS_TEMPLATE_CHOICE))

    @staticmethod
    def _settle(resolution: TemplateResolution) -> TemplateResolution:
        logger.debug(
            "Resolved template to invoke: %s (template=%s)",
            resolution.status.name,
            getattr(resolution.template, "identity", None),
        )
        return resolution
