"""
Assessment models for question bundle assignment.

Implements:
- Assessment: an assessment within a course
- QuestionGroup: a slot of interchangeable bundles; each student sees one bundle per group
- QuestionBundle: a fixed set of questions belonging to exactly one group
- Question / QuestionBundleQuestion: bundle membership (a question in two bundles is invalid)
- Submission: a student's attempt at an assessment
- QuestionBundleAssignment: (user, assessment, bundle) rows

Assignment rows with submission_id NULL are the current, replaceable assignment
table. Once a submission is attached the row is historical and immutable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .course import Course


class Assessment(Base):
    __tablename__ = "assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    course: Mapped[Course] = relationship(back_populates="assessments")
    question_groups: Mapped[list[QuestionGroup]] = relationship(
        back_populates="assessment", cascade="all, delete-orphan"
    )
    questions: Mapped[list[Question]] = relationship(
        back_populates="assessment", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Assessment {self.id} {self.title!r}>"


class QuestionGroup(Base):
    __tablename__ = "question_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    weight: Mapped[int] = mapped_column(Integer, default=0)

    assessment: Mapped[Assessment] = relationship(back_populates="question_groups")
    bundles: Mapped[list[QuestionBundle]] = relationship(
        back_populates="group", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<QuestionGroup {self.id} {self.title!r}>"


class QuestionBundle(Base):
    __tablename__ = "question_bundles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    group_id: Mapped[int] = mapped_column(
        ForeignKey("question_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)

    group: Mapped[QuestionGroup] = relationship(back_populates="bundles")
    bundle_questions: Mapped[list[QuestionBundleQuestion]] = relationship(
        back_populates="bundle", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<QuestionBundle {self.id} group={self.group_id} {self.title!r}>"


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)

    assessment: Mapped[Assessment] = relationship(back_populates="questions")

    def __repr__(self) -> str:
        return f"<Question {self.id} {self.title!r}>"


class QuestionBundleQuestion(Base):
    __tablename__ = "question_bundle_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bundle_id: Mapped[int] = mapped_column(
        ForeignKey("question_bundles.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weight: Mapped[int] = mapped_column(Integer, default=0)

    bundle: Mapped[QuestionBundle] = relationship(back_populates="bundle_questions")
    question: Mapped[Question] = relationship()

    __table_args__ = (
        UniqueConstraint("bundle_id", "question_id", name="uq_bundle_questions_bundle_question"),
    )


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    workflow_state: Mapped[str] = mapped_column(Text, default="attempting")

    def __repr__(self) -> str:
        return f"<Submission {self.id} user={self.user_id} {self.workflow_state}>"


class QuestionBundleAssignment(Base):
    """One (user, assessment, bundle) row; submission_id NULL means not yet attempted."""

    __tablename__ = "question_bundle_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False
    )
    bundle_id: Mapped[int] = mapped_column(
        ForeignKey("question_bundles.id", ondelete="CASCADE"), nullable=False
    )
    submission_id: Mapped[int | None] = mapped_column(
        ForeignKey("submissions.id", ondelete="SET NULL")
    )

    __table_args__ = (
        Index("idx_bundle_assignments_assessment_submission", "assessment_id", "submission_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<QuestionBundleAssignment user={self.user_id} bundle={self.bundle_id} "
            f"submission={self.submission_id}>"
        )
