"""
Assessment data provider.

The engine reads everything it needs about an assessment through the
AssessmentProvider protocol. SqlAssessmentProvider implements it against the
SQLAlchemy models; tests and other backends can supply their own.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from courseplan.db.models import (
    Assessment,
    CourseUser,
    Question,
    QuestionBundle,
    QuestionBundleAssignment,
    QuestionBundleQuestion,
    QuestionGroup,
    User,
)

from .errors import InconsistentAssignmentData


class AssessmentProvider(Protocol):
    def student_ids(self, assessment_id: int) -> list[int]: ...

    def group_bundles(self, assessment_id: int) -> dict[int, list[int]]: ...

    def group_titles(self, assessment_id: int) -> dict[int, str]: ...

    def question_bundles(self, assessment_id: int) -> dict[int, set[int]]: ...

    def question_titles(self, assessment_id: int) -> dict[int, str]: ...

    def non_submitted_assignments(self, assessment_id: int) -> list[tuple[int, int]]: ...

    def submitted_assignments(self, assessment_id: int) -> list[tuple[int, int]]: ...


class SqlAssessmentProvider:
    """AssessmentProvider backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def _course_id(self, assessment_id: int) -> int:
        course_id = self.session.scalar(
            select(Assessment.course_id).where(Assessment.id == assessment_id)
        )
        if course_id is None:
            raise InconsistentAssignmentData(f"Assessment {assessment_id} does not exist")
        return course_id

    def student_ids(self, assessment_id: int) -> list[int]:
        """User IDs of everyone enrolled in the assessment's course; staff who attempt it get bundles too."""
        course_id = self._course_id(assessment_id)
        return list(
            self.session.scalars(
                select(CourseUser.user_id)
                .where(CourseUser.course_id == course_id)
                .order_by(CourseUser.user_id)
            )
        )

    def group_bundles(self, assessment_id: int) -> dict[int, list[int]]:
        """Every question group of the assessment with its bundle IDs (empty groups included)."""
        groups: dict[int, list[int]] = {
            group_id: []
            for group_id in self.session.scalars(
                select(QuestionGroup.id)
                .where(QuestionGroup.assessment_id == assessment_id)
                .order_by(QuestionGroup.weight, QuestionGroup.id)
            )
        }
        rows = self.session.execute(
            select(QuestionBundle.group_id, QuestionBundle.id)
            .join(QuestionGroup, QuestionGroup.id == QuestionBundle.group_id)
            .where(QuestionGroup.assessment_id == assessment_id)
            .order_by(QuestionBundle.id)
        )
        for group_id, bundle_id in rows:
            groups[group_id].append(bundle_id)
        return groups

    def group_titles(self, assessment_id: int) -> dict[int, str]:
        rows = self.session.execute(
            select(QuestionGroup.id, QuestionGroup.title).where(
                QuestionGroup.assessment_id == assessment_id
            )
        )
        return {group_id: title for group_id, title in rows}

    def question_bundles(self, assessment_id: int) -> dict[int, set[int]]:
        """Question ID -> IDs of the assessment's bundles containing it."""
        rows = self.session.execute(
            select(QuestionBundleQuestion.question_id, QuestionBundleQuestion.bundle_id)
            .join(QuestionBundle, QuestionBundle.id == QuestionBundleQuestion.bundle_id)
            .join(QuestionGroup, QuestionGroup.id == QuestionBundle.group_id)
            .where(QuestionGroup.assessment_id == assessment_id)
        )
        membership: dict[int, set[int]] = {}
        for question_id, bundle_id in rows:
            membership.setdefault(question_id, set()).add(bundle_id)
        return membership

    def question_titles(self, assessment_id: int) -> dict[int, str]:
        rows = self.session.execute(
            select(Question.id, Question.title).where(Question.assessment_id == assessment_id)
        )
        return {question_id: title for question_id, title in rows}

    def _assignments(self, assessment_id: int, submitted: bool) -> list[tuple[int, int]]:
        condition = (
            QuestionBundleAssignment.submission_id.is_not(None)
            if submitted
            else QuestionBundleAssignment.submission_id.is_(None)
        )
        rows = self.session.execute(
            select(QuestionBundleAssignment.user_id, QuestionBundleAssignment.bundle_id)
            .where(QuestionBundleAssignment.assessment_id == assessment_id, condition)
            .order_by(QuestionBundleAssignment.id)
        )
        return [(user_id, bundle_id) for user_id, bundle_id in rows]

    def non_submitted_assignments(self, assessment_id: int) -> list[tuple[int, int]]:
        """(user_id, bundle_id) rows not yet attached to a submission."""
        return self._assignments(assessment_id, submitted=False)

    def submitted_assignments(self, assessment_id: int) -> list[tuple[int, int]]:
        """(user_id, bundle_id) rows of attempts that have been submitted."""
        return self._assignments(assessment_id, submitted=True)

    def user_names(self, user_ids: Iterable[int]) -> dict[int, str]:
        ids = list(user_ids)
        if not ids:
            return {}
        rows = self.session.execute(select(User.id, User.name).where(User.id.in_(ids)))
        return {user_id: name for user_id, name in rows}
