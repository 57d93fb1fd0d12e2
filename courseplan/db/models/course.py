"""
Course membership models.

Implements:
- Course: container for assessments, lesson plan items and timelines
- User: platform account; question bundle assignments reference users
- CourseUser: a user's enrolment in a course, carrying timeline preferences
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .assessment import Assessment
    from .lesson_plan import LessonPlanItem, PersonalTime, ReferenceTimeline


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    course_users: Mapped[list[CourseUser]] = relationship(back_populates="course")
    assessments: Mapped[list[Assessment]] = relationship(back_populates="course")
    lesson_plan_items: Mapped[list[LessonPlanItem]] = relationship(back_populates="course")
    reference_timelines: Mapped[list[ReferenceTimeline]] = relationship(back_populates="course")

    def __repr__(self) -> str:
        return f"<Course {self.id} {self.title!r}>"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.name!r}>"


class CourseUser(Base):
    """
    Enrolment of a user in a course.

    Attributes:
        role: 'student', 'teaching_assistant', 'manager', ...
        timeline_algorithm: 'fixed' or 'adaptive'; None falls back to settings
        reference_timeline_id: Timeline followed by this user (None = course default)
    """

    __tablename__ = "course_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[str] = mapped_column(Text, default="student")
    timeline_algorithm: Mapped[str | None] = mapped_column(Text)
    reference_timeline_id: Mapped[int | None] = mapped_column(
        ForeignKey("reference_timelines.id", ondelete="SET NULL")
    )

    course: Mapped[Course] = relationship(back_populates="course_users")
    user: Mapped[User] = relationship()
    reference_timeline: Mapped[ReferenceTimeline | None] = relationship()
    personal_times: Mapped[list[PersonalTime]] = relationship(
        back_populates="course_user", cascade="all, delete-orphan"
    )

    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_course_users_course_user"),)

    def __repr__(self) -> str:
        return f"<CourseUser {self.id} course={self.course_id} user={self.user_id} {self.role}>"
