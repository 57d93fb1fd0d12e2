"""
Structural and fairness checks over a candidate AssignmentSet.

Checks:
- no_overlapping_questions: a question appears in at most one bundle of the assessment
- no_empty_groups: every question group has at least one bundle
- one_bundle_assigned: every student has exactly one bundle per group
- no_repeat_bundles: no student is given a bundle from one of their submitted attempts

Violations are returned as ValidationResult values, never raised. All checks
are hard; a report passes only when every hard check passes. Data about the
assessment is captured once into a ValidationContext before checking, so
every check sees the same snapshot.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from loguru import logger

from .assignment_set import NO_GROUP, AssignmentSet
from .provider import AssessmentProvider
from .results import (
    Cell,
    EmptyGroupsInfo,
    OffendingStudentsInfo,
    OverlappingQuestionsInfo,
    Reason,
    Severity,
    ValidationReport,
    ValidationResult,
)

NO_OVERLAPPING_QUESTIONS = "no_overlapping_questions"
NO_EMPTY_GROUPS = "no_empty_groups"
ONE_BUNDLE_ASSIGNED = "one_bundle_assigned"
NO_REPEAT_BUNDLES = "no_repeat_bundles"


@dataclass(frozen=True)
class ValidationContext:
    """Snapshot of the assessment read once at validation start."""

    group_bundles: Mapping[int, Sequence[int]]
    group_titles: Mapping[int, str]
    question_bundles: Mapping[int, frozenset[int]]
    question_titles: Mapping[int, str]
    submitted_bundles: Mapping[int, frozenset[int]]

    @classmethod
    def capture(cls, provider: AssessmentProvider, assessment_id: int) -> ValidationContext:
        submitted: dict[int, set[int]] = {}
        for student, bundle in provider.submitted_assignments(assessment_id):
            submitted.setdefault(student, set()).add(bundle)
        return cls(
            group_bundles=provider.group_bundles(assessment_id),
            group_titles=provider.group_titles(assessment_id),
            question_bundles={
                question: frozenset(bundles)
                for question, bundles in provider.question_bundles(assessment_id).items()
            },
            question_titles=provider.question_titles(assessment_id),
            submitted_bundles={student: frozenset(b) for student, b in submitted.items()},
        )

    def attempted_by(self, student: int) -> frozenset[int]:
        return self.submitted_bundles.get(student, frozenset())


def _penalty(passed: bool, weight: int) -> float:
    return 0.0 if passed else float(max(weight, 1))


def validate_no_overlapping_questions(context: ValidationContext) -> ValidationResult:
    titles = sorted(
        context.question_titles.get(question, str(question))
        for question, bundles in context.question_bundles.items()
        if len(bundles) > 1
    )
    passed = not titles
    return ValidationResult(
        rule=NO_OVERLAPPING_QUESTIONS,
        severity=Severity.HARD,
        passed=passed,
        info=OverlappingQuestionsInfo(questions=tuple(titles)),
        score_penalty=_penalty(passed, len(titles)),
    )


def validate_no_empty_groups(context: ValidationContext) -> ValidationResult:
    titles = sorted(
        context.group_titles.get(group, str(group))
        for group, bundles in context.group_bundles.items()
        if not bundles
    )
    passed = not titles
    return ValidationResult(
        rule=NO_EMPTY_GROUPS,
        severity=Severity.HARD,
        passed=passed,
        info=EmptyGroupsInfo(groups=tuple(titles)),
        score_penalty=_penalty(passed, len(titles)),
    )


def _students_result(rule: str, cells: Mapping[Cell, Reason]) -> ValidationResult:
    students = tuple(sorted({student for student, _ in cells}))
    passed = not cells
    return ValidationResult(
        rule=rule,
        severity=Severity.HARD,
        passed=passed,
        info=OffendingStudentsInfo(students=students),
        offending_cells=cells,
        score_penalty=_penalty(passed, len(cells)),
    )


def validate_one_bundle_assigned(assignment_set: AssignmentSet) -> ValidationResult:
    cells: dict[Cell, Reason] = {}
    for student, assignment in assignment_set.assignments.items():
        for group in assignment_set.groups:
            if group not in assignment.bundles:
                cells[(student, group)] = Reason.MISSING_BUNDLE
        if assignment.extraneous:
            cells[(student, NO_GROUP)] = Reason.UNBUNDLED
    return _students_result(ONE_BUNDLE_ASSIGNED, cells)


def validate_no_repeat_bundles(
    assignment_set: AssignmentSet, context: ValidationContext
) -> ValidationResult:
    cells: dict[Cell, Reason] = {}
    for student, assignment in assignment_set.assignments.items():
        attempted = context.attempted_by(student)
        if not attempted:
            continue
        for group, bundle in assignment.bundles.items():
            if bundle in attempted:
                cells[(student, group)] = Reason.REPEAT_BUNDLE
        # Extraneous bundles still expose content, so they are checked too
        if any(bundle in attempted for bundle in assignment.extraneous):
            cells[(student, NO_GROUP)] = Reason.REPEAT_BUNDLE
    return _students_result(NO_REPEAT_BUNDLES, cells)


def validate(assignment_set: AssignmentSet, context: ValidationContext) -> ValidationReport:
    """Run every check and merge the results into one report."""
    report = ValidationReport.merge(
        validate_no_overlapping_questions(context),
        validate_no_empty_groups(context),
        validate_one_bundle_assigned(assignment_set),
        validate_no_repeat_bundles(assignment_set, context),
    )
    logger.debug(f"Validated {assignment_set!r}: {report!r}")
    return report


def pick_best(
    candidates: Iterable[tuple[AssignmentSet, ValidationReport]],
) -> tuple[AssignmentSet, ValidationReport]:
    """
    Choose the candidate to keep: passing reports first, then lowest penalty.

    Ties keep the earliest candidate.
    """
    best: tuple[AssignmentSet, ValidationReport] | None = None
    for candidate in candidates:
        if best is None or _rank(candidate[1]) < _rank(best[1]):
            best = candidate
    if best is None:
        raise ValueError("pick_best() requires at least one candidate")
    return best


def _rank(report: ValidationReport) -> tuple[bool, float]:
    return (not report.passed, report.score_penalty)
