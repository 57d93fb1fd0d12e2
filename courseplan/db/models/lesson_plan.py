"""
Lesson plan and timeline models.

Implements:
- ReferenceTimeline: a course-wide schedule; exactly one per course is the default
- LessonPlanItem: a schedulable item (assessment, event, video, ...)
- ReferenceTime: an item's time window on a reference timeline
- PersonalTime: a per-course-user override of the reference time

PersonalTime states:
- derived: fixed=False, submitted_at=None (recomputed on every personalization run)
- fixed: frozen by the algorithm or the student, never recomputed
- submitted: submitted_at is set, permanently frozen
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .course import Course, CourseUser

ASSESSMENT_ITEM = "assessment"
PERSONAL_TIME_UNIQUE_CONSTRAINT = "uq_personal_times_user_item"


class ReferenceTimeline(Base):
    __tablename__ = "reference_timelines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str | None] = mapped_column(Text)
    default: Mapped[bool] = mapped_column(Boolean, default=False)

    course: Mapped[Course] = relationship(back_populates="reference_timelines")
    reference_times: Mapped[list[ReferenceTime]] = relationship(
        back_populates="reference_timeline", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ReferenceTimeline {self.id} course={self.course_id} default={self.default}>"


class LessonPlanItem(Base):
    __tablename__ = "lesson_plan_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    item_type: Mapped[str] = mapped_column(Text, default=ASSESSMENT_ITEM)

    course: Mapped[Course] = relationship(back_populates="lesson_plan_items")
    reference_times: Mapped[list[ReferenceTime]] = relationship(
        back_populates="lesson_plan_item", cascade="all, delete-orphan"
    )
    personal_times: Mapped[list[PersonalTime]] = relationship(
        back_populates="lesson_plan_item", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<LessonPlanItem {self.id} {self.item_type} {self.title!r}>"


class _TimeWindow:
    """Columns shared by reference and personal times."""

    start_at: Mapped[datetime | None] = mapped_column()
    end_at: Mapped[datetime | None] = mapped_column()
    bonus_end_at: Mapped[datetime | None] = mapped_column()


class ReferenceTime(_TimeWindow, Base):
    __tablename__ = "reference_times"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    reference_timeline_id: Mapped[int] = mapped_column(
        ForeignKey("reference_timelines.id", ondelete="CASCADE"), nullable=False
    )
    lesson_plan_item_id: Mapped[int] = mapped_column(
        ForeignKey("lesson_plan_items.id", ondelete="CASCADE"), nullable=False
    )

    reference_timeline: Mapped[ReferenceTimeline] = relationship(back_populates="reference_times")
    lesson_plan_item: Mapped[LessonPlanItem] = relationship(back_populates="reference_times")

    __table_args__ = (
        UniqueConstraint(
            "reference_timeline_id", "lesson_plan_item_id", name="uq_reference_times_timeline_item"
        ),
    )

    def __repr__(self) -> str:
        return f"<ReferenceTime item={self.lesson_plan_item_id} start={self.start_at}>"


class PersonalTime(_TimeWindow, Base):
    __tablename__ = "personal_times"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_user_id: Mapped[int] = mapped_column(
        ForeignKey("course_users.id", ondelete="CASCADE"), nullable=False
    )
    lesson_plan_item_id: Mapped[int] = mapped_column(
        ForeignKey("lesson_plan_items.id", ondelete="CASCADE"), nullable=False
    )
    fixed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column()

    course_user: Mapped[CourseUser] = relationship(back_populates="personal_times")
    lesson_plan_item: Mapped[LessonPlanItem] = relationship(back_populates="personal_times")

    __table_args__ = (
        UniqueConstraint(
            "course_user_id", "lesson_plan_item_id", name=PERSONAL_TIME_UNIQUE_CONSTRAINT
        ),
    )

    @property
    def is_frozen(self) -> bool:
        """Fixed or submitted personal times are never recomputed."""
        return self.fixed or self.submitted_at is not None

    def __repr__(self) -> str:
        return (
            f"<PersonalTime user={self.course_user_id} item={self.lesson_plan_item_id} "
            f"fixed={self.fixed} submitted_at={self.submitted_at}>"
        )
