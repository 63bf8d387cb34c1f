"""
User guidance for template resolution outcomes.

Each resolution status implies different advice: install a template, be more
specific about the template name, uninstall a conflicting template, pick a
language, or fix a parameter value. This module turns a resolution into plain
text lines and a process exit code; it does not print anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

from .core.resolution import ResolutionStatus, TemplateCandidate, TemplateResolutionResult


class ExitCode(IntEnum):
    SUCCESS = 0
    AMBIGUOUS = 101
    NOT_FOUND = 103
    INVALID_PARAMETER = 127


EXIT_CODES = {
    ResolutionStatus.SINGLE_MATCH: ExitCode.SUCCESS,
    ResolutionStatus.NO_MATCH: ExitCode.NOT_FOUND,
    ResolutionStatus.AMBIGUOUS_TEMPLATE_GROUP_CHOICE: ExitCode.AMBIGUOUS,
    ResolutionStatus.AMBIGUOUS_TEMPLATE_CHOICE: ExitCode.AMBIGUOUS,
    ResolutionStatus.AMBIGUOUS_LANGUAGE_CHOICE: ExitCode.AMBIGUOUS,
    ResolutionStatus.INVALID_PARAMETER: ExitCode.INVALID_PARAMETER,
}


@dataclass(frozen=True, slots=True)
class ResolutionGuidance:
    status: ResolutionStatus
    exit_code: ExitCode
    lines: tuple[str, ...]

    @property
    def ok(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS


def describe_template(template: TemplateCandidate) -> str:
    identity = getattr(template, "identity", None) or "<unknown>"
    language = template.language or "-"
    return f"{identity} (language={language}, precedence={template.precedence})"


def tied_languages(templates: Sequence[TemplateCandidate]) -> list[str]:
    """Distinct languages of ``templates`` in first-seen order, ignoring case."""
    seen: dict[str, str] = {}
    for template in templates:
        language = template.language or "-"
        seen.setdefault(language.lower(), language)
    return list(seen.values())


def guidance_for(
    result: TemplateResolutionResult, *, default_language: str
) -> ResolutionGuidance:
    status = result.resolution_status
    lines: list[str]
    match status:
        case ResolutionStatus.SINGLE_MATCH:
            lines = [f"Template to invoke: {describe_template(result.template_to_invoke)}"]
        case ResolutionStatus.NO_MATCH:
            lines = [
                "No installed template matches the input.",
                "Install a template package that provides it, or check the template name.",
            ]
        case ResolutionStatus.AMBIGUOUS_TEMPLATE_GROUP_CHOICE:
            lines = ["The input matches more than one template group:"]
            for group in result.template_groups:
                names = ", ".join(group.short_names) or "-"
                lines.append(f"  {group.group_identity or '<ungrouped>'} (short names: {names})")
            lines.append("Be more specific about the template name.")
        case ResolutionStatus.AMBIGUOUS_TEMPLATE_CHOICE:
            lines = ["Several installed templates of the same language conflict:"]
            group = result.unambiguous_template_group
            use_default = not result.has_user_language
            for template in group.highest_precedence_invokable_templates(use_default):
                lines.append(f"  {describe_template(template)}")
            lines.append("Uninstall one of the conflicting templates.")
        case ResolutionStatus.AMBIGUOUS_LANGUAGE_CHOICE:
            group = result.unambiguous_template_group
            tied = group.highest_precedence_invokable_templates(not result.has_user_language)
            languages = ", ".join(tied_languages(tied)) or "-"
            lines = [
                f"The template is available in several languages: {languages}.",
                f"Specify the language with --language (default language: {default_language}).",
            ]
        case ResolutionStatus.INVALID_PARAMETER:
            group = result.unambiguous_template_group
            lines = [
                f"The parameter values are not valid for any template in group "
                f"{group.group_identity or '<ungrouped>'}.",
                "Check the parameter names and choice values.",
            ]
        case _:
            raise ValueError(f"No guidance for status {status!r}")
    return ResolutionGuidance(status=status, exit_code=EXIT_CODES[status], lines=tuple(lines))
