from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..casefile import CaseFileError, ResolutionCase, iter_case_paths, load_case
from ..config import Settings
from ..core.resolution import TemplateResolutionResult
from ..guidance import ExitCode, describe_template, guidance_for
from .output import error, failed, ok as ok_line, skipped, status

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResolveReport:
    ok: bool
    exit_code: int
    lines: list[str]


def resolve_case(case: ResolutionCase) -> TemplateResolutionResult:
    return TemplateResolutionResult(case.user_language, case.templates)


def run(settings: Settings, case_path: Path, *, detailed_help: bool = False) -> ResolveReport:
    case = load_case(case_path, default_language=settings.resolution.default_language)
    result = resolve_case(case)
    guidance = guidance_for(result, default_language=case.default_language)

    lines = [
        status("Case", case.name, f"{len(case.templates)} template(s)"),
        status("Language", case.user_language or "-", f"default={case.default_language}"),
        status(
            "Template groups",
            result.group_resolution_status.name,
            f"{len(result.template_groups)} group(s)",
        ),
        status("Resolution", result.resolution_status.name),
    ]
    lines.extend(guidance.lines)

    if detailed_help:
        templates = result.templates_for_detailed_help
        if templates:
            lines.append(ok_line("Detailed help", f"{len(templates)} template(s)"))
            lines.extend(f"  {describe_template(template)}" for template in templates)
        else:
            lines.append(skipped("Detailed help", "no single group or language to show"))

    logger.info("Resolved case %s: %s", case.name, result.resolution_status.name)
    return ResolveReport(ok=guidance.ok, exit_code=int(guidance.exit_code), lines=lines)


def check_expectations(case: ResolutionCase, result: TemplateResolutionResult) -> list[str]:
    """Return the mismatches between a case's expected outcome and the actual result."""
    expected = case.expected
    if expected is None:
        return []
    problems: list[str] = []
    if result.resolution_status is not expected.status:
        problems.append(
            f"status {result.resolution_status.name} != expected {expected.status.name}"
        )
    if expected.template is not None:
        actual = getattr(result.template_to_invoke, "identity", None)
        if actual != expected.template:
            problems.append(f"template {actual} != expected {expected.template}")
    if expected.group is not None:
        group = result.unambiguous_template_group
        actual_group = group.group_identity if group else None
        if (actual_group or "").lower() != expected.group.lower():
            problems.append(f"group {actual_group} != expected {expected.group}")
    if expected.detailed_help is not None:
        actual_help = sorted(
            getattr(template, "identity", "") for template in result.templates_for_detailed_help
        )
        if actual_help != sorted(expected.detailed_help):
            problems.append(f"detailed help {actual_help} != expected {sorted(expected.detailed_help)}")
    return problems


def verify(settings: Settings, directory: Path) -> ResolveReport:
    if not directory.is_dir():
        return ResolveReport(
            ok=False,
            exit_code=2,
            lines=[error("Cases", f"not a directory: {directory}")],
        )

    lines: list[str] = []
    all_ok = True
    checked = 0
    for path in iter_case_paths(directory):
        try:
            case = load_case(path, default_language=settings.resolution.default_language)
        except CaseFileError as exc:
            all_ok = False
            lines.append(error(path.name, exc.reason))
            logger.warning("Skipping unreadable case %s: %s", path.name, exc.reason)
            continue
        if case.expected is None:
            lines.append(skipped(case.name, "no expected outcome"))
            continue
        checked += 1
        result = resolve_case(case)
        problems = check_expectations(case, result)
        if problems:
            all_ok = False
            lines.append(failed(case.name, "; ".join(problems)))
            logger.warning("Case %s does not match its expected outcome", case.name)
        else:
            lines.append(ok_line(case.name, result.resolution_status.name))

    if checked == 0:
        lines.append(skipped("Cases", f"no cases with an expected outcome in {directory}"))
    exit_code = ExitCode.SUCCESS if all_ok else 1
    return ResolveReport(ok=all_ok, exit_code=int(exit_code), lines=lines)
