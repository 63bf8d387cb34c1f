"""
Unit tests for template_resolver.core.resolution.resolver.

Covers group resolution, resolution of the template to invoke, and
memoization of both.
"""

import threading
import unittest
from typing import Optional

from template_resolver.core.resolution import (
    GroupResolution,
    GroupResolutionStatus,
    ResolutionInvariantError,
    ResolutionStatus,
    TemplateResolutionResult,
)
from template_resolver.models import TemplateInfo, TemplateMatchInfo


def _template(
    identity: str,
    group: str = "Group",
    *,
    language: str = "C#",
    precedence: int = 0,
    invokable: bool = True,
    default: bool = False,
    language_match: bool = False,
) -> TemplateMatchInfo:
    return TemplateMatchInfo(
        info=TemplateInfo(
            identity=identity,
            name=identity,
            group_identity=group,
            language=language,
            precedence=precedence,
        ),
        invokable=invokable,
        matches_default_language=default,
        matches_language=language_match,
    )


def _resolve(templates, user_language: Optional[str] = None) -> TemplateResolutionResult:
    return TemplateResolutionResult(user_language, templates)


class TestGroupResolution(unittest.TestCase):
    def test_empty_input_is_no_match(self):
        result = _resolve([])
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.NO_MATCH)
        self.assertIsNone(result.unambiguous_template_group)
        self.assertEqual(result.resolution_status, ResolutionStatus.NO_MATCH)
        self.assertIsNone(result.template_to_invoke)

    def test_single_group_is_selected(self):
        a = _template("a", "G", language="C#")
        b = _template("b", "g", language="F#")
        result = _resolve([a, b])
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.SINGLE_MATCH)
        self.assertEqual(result.unambiguous_template_group.templates, (a, b))

    def test_two_groups_without_default_language_are_ambiguous(self):
        result = _resolve([_template("a", "G1"), _template("b", "G2")])
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.AMBIGUOUS)
        self.assertIsNone(result.unambiguous_template_group)
        self.assertEqual(
            result.resolution_status, ResolutionStatus.AMBIGUOUS_TEMPLATE_GROUP_CHOICE
        )

    def test_default_language_selects_the_only_matching_group(self):
        preferred = _template("a", "G1", default=True)
        result = _resolve([preferred, _template("b", "G2", language="F#")])
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.SINGLE_MATCH)
        self.assertEqual(result.unambiguous_template_group.group_identity, "G1")
        self.assertIs(result.template_to_invoke, preferred)

    def test_default_language_in_several_groups_stays_ambiguous(self):
        result = _resolve(
            [
                _template("a", "G1", default=True),
                _template("b", "G2", default=True),
                _template("c", "G3"),
            ]
        )
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.AMBIGUOUS)

    def test_default_language_ignored_when_user_specified_language(self):
        result = _resolve(
            [
                _template("a", "G1", default=True, language_match=True),
                _template("b", "G2", language="F#"),
            ],
            user_language="C#",
        )
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.AMBIGUOUS)
        self.assertEqual(
            result.resolution_status, ResolutionStatus.AMBIGUOUS_TEMPLATE_GROUP_CHOICE
        )

    def test_ungrouped_templates_are_separate_groups(self):
        result = _resolve([_template("a", ""), _template("b", "")])
        self.assertEqual(len(result.template_groups), 2)
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.AMBIGUOUS)


class TestTemplateResolution(unittest.TestCase):
    def test_single_invokable_template(self):
        chosen = _template("a")
        result = _resolve([chosen, _template("b", invokable=False)])
        self.assertEqual(result.resolution_status, ResolutionStatus.SINGLE_MATCH)
        self.assertIs(result.template_to_invoke, chosen)

    def test_single_invokable_template_wins_regardless_of_precedence(self):
        chosen = _template("a", precedence=1)
        result = _resolve([chosen, _template("b", precedence=500, invokable=False)])
        self.assertIs(result.template_to_invoke, chosen)

    def test_no_invokable_templates_is_invalid_parameter(self):
        result = _resolve([_template("a", invokable=False), _template("b", invokable=False)])
        self.assertEqual(result.group_resolution_status, GroupResolutionStatus.SINGLE_MATCH)
        self.assertEqual(result.resolution_status, ResolutionStatus.INVALID_PARAMETER)
        self.assertIsNone(result.template_to_invoke)

    def test_highest_precedence_wins(self):
        high = _template("high", precedence=200)
        result = _resolve([_template("low", precedence=100), high])
        self.assertEqual(result.resolution_status, ResolutionStatus.SINGLE_MATCH)
        self.assertIs(result.template_to_invoke, high)

    def test_equal_precedence_same_language_is_ambiguous_template_choice(self):
        result = _resolve([_template("a", precedence=100), _template("b", precedence=100)])
        self.assertEqual(result.resolution_status, ResolutionStatus.AMBIGUOUS_TEMPLATE_CHOICE)
        self.assertIsNone(result.template_to_invoke)

    def test_language_comparison_ignores_case(self):
        result = _resolve(
            [_template("a", language="c#", precedence=1), _template("b", language="C#", precedence=1)]
        )
        self.assertEqual(result.resolution_status, ResolutionStatus.AMBIGUOUS_TEMPLATE_CHOICE)

    def test_equal_precedence_different_languages_is_ambiguous_language_choice(self):
        result = _resolve(
            [
                _template("a", language="F#", precedence=100),
                _template("b", language="VB", precedence=100),
            ]
        )
        self.assertEqual(result.resolution_status, ResolutionStatus.AMBIGUOUS_LANGUAGE_CHOICE)

    def test_default_language_breaks_precedence_tie(self):
        preferred = _template("a", language="C#", precedence=100, default=True)
        result = _resolve([_template("b", language="F#", precedence=100), preferred])
        self.assertEqual(result.resolution_status, ResolutionStatus.SINGLE_MATCH)
        self.assertIs(result.template_to_invoke, preferred)

    def test_default_language_does_not_override_precedence(self):
        high = _template("high", language="F#", precedence=200)
        result = _resolve([_template("low", language="C#", precedence=100, default=True), high])
        self.assertIs(result.template_to_invoke, high)

    def test_default_language_not_used_when_user_specified_language(self):
        result = _resolve(
            [
                _template("a", language="C#", precedence=100, default=True),
                _template("b", language="F#", precedence=100),
            ],
            user_language="VB",
        )
        self.assertEqual(result.resolution_status, ResolutionStatus.AMBIGUOUS_LANGUAGE_CHOICE)

    def test_conflicting_default_language_templates_are_ambiguous_template_choice(self):
        result = _resolve(
            [
                _template("a", language="C#", precedence=100, default=True),
                _template("b", language="C#", precedence=100, default=True),
                _template("c", language="F#", precedence=100),
            ]
        )
        self.assertEqual(result.resolution_status, ResolutionStatus.AMBIGUOUS_TEMPLATE_CHOICE)

    def test_empty_language_counts_as_a_distinct_language(self):
        result = _resolve(
            [_template("a", language="", precedence=1), _template("b", language="C#", precedence=1)]
        )
        self.assertEqual(result.resolution_status, ResolutionStatus.AMBIGUOUS_LANGUAGE_CHOICE)

    def test_input_is_not_modified(self):
        templates = [_template("a", precedence=1), _template("b", precedence=2)]
        snapshot = list(templates)
        _resolve(templates).resolution_status
        self.assertEqual(templates, snapshot)


class _CountingResolution(TemplateResolutionResult):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.group_evaluations = 0
        self.template_evaluations = 0

    def _evaluate_unambiguous_template_group(self):
        self.group_evaluations += 1
        return super()._evaluate_unambiguous_template_group()

    def _evaluate_template_to_invoke(self):
        self.template_evaluations += 1
        return super()._evaluate_template_to_invoke()


class _BrokenGroupResolution(TemplateResolutionResult):
    def _evaluate_unambiguous_template_group(self):
        return _UnknownGroupResolution()


class _UnknownGroupResolution:
    status = "mystery"
    group = None


class TestMemoization(unittest.TestCase):
    def test_repeated_reads_are_identical(self):
        result = _resolve(
            [_template("a", language="F#", precedence=1), _template("b", language="VB", precedence=1)]
        )
        first = (
            result.template_groups,
            result.group_resolution,
            result.resolution,
            result.templates_for_detailed_help,
        )
        second = (
            result.template_groups,
            result.group_resolution,
            result.resolution,
            result.templates_for_detailed_help,
        )
        self.assertEqual(first, second)
        self.assertIs(first[0], second[0])
        self.assertIs(first[2], second[2])

    def test_each_evaluation_runs_once(self):
        result = _CountingResolution(None, [_template("a", precedence=1), _template("b", precedence=2)])
        for _ in range(3):
            result.resolution_status
            result.template_to_invoke
            result.group_resolution_status
            result.unambiguous_template_group
        self.assertEqual(result.group_evaluations, 1)
        self.assertEqual(result.template_evaluations, 1)

    def test_group_resolution_runs_once_when_read_first(self):
        result = _CountingResolution(None, [_template("a")])
        result.unambiguous_template_group
        result.resolution_status
        self.assertEqual(result.group_evaluations, 1)

    def test_concurrent_reads_evaluate_once(self):
        templates = [_template(f"t{i}", precedence=i % 3) for i in range(50)]
        result = _CountingResolution(None, templates)
        barrier = threading.Barrier(8)
        seen = []

        def read() -> None:
            barrier.wait()
            seen.append(result.resolution)

        threads = [threading.Thread(target=read) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(result.template_evaluations, 1)
        self.assertEqual(result.group_evaluations, 1)
        self.assertTrue(all(item is seen[0] for item in seen))


class TestInvariants(unittest.TestCase):
    def test_unknown_group_status_fails_fast(self):
        result = _BrokenGroupResolution(None, [_template("a")])
        with self.assertRaises(ResolutionInvariantError):
            result.resolution_status

    def test_group_resolution_rejects_not_evaluated(self):
        with self.assertRaises(ResolutionInvariantError):
            GroupResolution(GroupResolutionStatus.NOT_EVALUATED)

    def test_verdicts_never_report_not_evaluated(self):
        for templates in ([], [_template("a")], [_template("a", "G1"), _template("b", "G2")]):
            result = _resolve(templates)
            self.assertIsNot(result.resolution_status, ResolutionStatus.NOT_EVALUATED)
            self.assertIsNot(result.group_resolution_status, GroupResolutionStatus.NOT_EVALUATED)


if __name__ == "__main__":
    unittest.main()
