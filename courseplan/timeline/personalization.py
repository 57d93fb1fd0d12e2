"""
Personalized timeline algorithms.

A course user's effective schedule for an item is their PersonalTime when one
exists, otherwise the ReferenceTime on their reference timeline (their own,
or the course default). Algorithms derive personal times from the reference
timeline:

- fixed: the student follows the reference timeline. Every derived personal
  time (not fixed, not submitted) is deleted.
- adaptive: every assessment item without a frozen personal time gets one
  copied from its reference time; the next `commit_window` unsubmitted items
  (by start time, then title) are marked fixed so they stop moving.

Fixed and submitted personal times are never overwritten or deleted. Each
run is applied atomically for the course user.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import get_settings
from courseplan.db.integrity import violates_unique_constraint
from courseplan.db.models import CourseUser, LessonPlanItem, PersonalTime, ReferenceTime, ReferenceTimeline
from courseplan.db.models.lesson_plan import ASSESSMENT_ITEM, PERSONAL_TIME_UNIQUE_CONSTRAINT
from courseplan.db.transactions import atomic

TIME_FIELDS = ("start_at", "end_at", "bonus_end_at")


class TimelineAlgorithm(str, Enum):
    FIXED = "fixed"
    ADAPTIVE = "adaptive"


class MissingReferenceTimeline(LookupError):
    """Raised when a course has no default reference timeline to fall back on."""
    pass


@dataclass
class TimelineUpdate:
    """Summary of one personalization run."""

    course_user_id: int
    algorithm: TimelineAlgorithm
    created: int = 0
    updated: int = 0
    deleted: int = 0
    fixed_item_ids: list[int] = field(default_factory=list)


def reference_timeline_id_for(session: Session, course_user: CourseUser) -> int:
    if course_user.reference_timeline_id is not None:
        return course_user.reference_timeline_id
    timeline_id = session.scalar(
        select(ReferenceTimeline.id).where(
            ReferenceTimeline.course_id == course_user.course_id,
            ReferenceTimeline.default.is_(True),
        )
    )
    if timeline_id is None:
        raise MissingReferenceTimeline(f"Course {course_user.course_id} has no default reference timeline")
    return timeline_id


def time_for(
    session: Session, item: LessonPlanItem, course_user: CourseUser
) -> PersonalTime | ReferenceTime | None:
    """The time record in effect for `course_user` on `item`."""
    personal_time = session.scalar(
        select(PersonalTime).where(
            PersonalTime.course_user_id == course_user.id,
            PersonalTime.lesson_plan_item_id == item.id,
        )
    )
    if personal_time is not None:
        return personal_time
    return session.scalar(
        select(ReferenceTime).where(
            ReferenceTime.reference_timeline_id == reference_timeline_id_for(session, course_user),
            ReferenceTime.lesson_plan_item_id == item.id,
        )
    )


def _algorithm_fixed(session: Session, course_user: CourseUser, commit_window: int) -> TimelineUpdate:
    update = TimelineUpdate(course_user_id=course_user.id, algorithm=TimelineAlgorithm.FIXED)
    result = session.execute(
        delete(PersonalTime)
        .where(
            PersonalTime.course_user_id == course_user.id,
            PersonalTime.fixed.is_(False),
            PersonalTime.submitted_at.is_(None),
        )
        .execution_options(synchronize_session="fetch")
    )
    update.deleted = result.rowcount
    return update


def _start_key(item: LessonPlanItem, personal_time: PersonalTime) -> tuple[bool, datetime, str]:
    start_at = personal_time.start_at
    return (start_at is None, start_at or datetime.min, item.title)


def _personal_times_by_item(session: Session, course_user: CourseUser) -> dict[int, PersonalTime]:
    return {
        personal_time.lesson_plan_item_id: personal_time
        for personal_time in session.scalars(
            select(PersonalTime).where(PersonalTime.course_user_id == course_user.id)
        )
    }


def _create_personal_time(
    session: Session, course_user: CourseUser, item: LessonPlanItem
) -> tuple[PersonalTime, bool]:
    """
    Insert a personal time for `item`, or return the one a concurrent run created.

    Pending changes are flushed first so the SAVEPOINT only covers this insert.

    Returns:
        (personal_time, created)
    """
    session.flush()
    personal_time = PersonalTime(course_user_id=course_user.id, lesson_plan_item_id=item.id, fixed=False)
    try:
        with session.begin_nested():
            session.add(personal_time)
            session.flush()
    except IntegrityError as e:
        if not violates_unique_constraint(
            e, PERSONAL_TIME_UNIQUE_CONSTRAINT, "personal_times", ("course_user_id", "lesson_plan_item_id")
        ):
            raise
        logger.debug(f"Personal time for course user {course_user.id}, item {item.id} created concurrently")
        existing = session.scalars(
            select(PersonalTime).where(
                PersonalTime.course_user_id == course_user.id,
                PersonalTime.lesson_plan_item_id == item.id,
            )
        ).one()
        return existing, False
    return personal_time, True


def _algorithm_adaptive(session: Session, course_user: CourseUser, commit_window: int) -> TimelineUpdate:
    update = TimelineUpdate(course_user_id=course_user.id, algorithm=TimelineAlgorithm.ADAPTIVE)
    timeline_id = reference_timeline_id_for(session, course_user)

    rows = session.execute(
        select(LessonPlanItem, ReferenceTime)
        .join(ReferenceTime, ReferenceTime.lesson_plan_item_id == LessonPlanItem.id)
        .where(
            LessonPlanItem.course_id == course_user.course_id,
            LessonPlanItem.item_type == ASSESSMENT_ITEM,
            ReferenceTime.reference_timeline_id == timeline_id,
        )
        .order_by(LessonPlanItem.id)
    ).all()
    personal_times = _personal_times_by_item(session, course_user)

    for item, reference_time in rows:
        personal_time = personal_times.get(item.id)
        created = False
        if personal_time is None:
            personal_time, created = _create_personal_time(session, course_user, item)
            personal_times[item.id] = personal_time

        # Skip committed or submitted items
        if personal_time.is_frozen:
            continue

        if created:
            update.created += 1
        elif any(getattr(personal_time, f) != getattr(reference_time, f) for f in TIME_FIELDS):
            update.updated += 1

        for time_field in TIME_FIELDS:
            setattr(personal_time, time_field, getattr(reference_time, time_field))

    # Commit the next few unsubmitted items
    upcoming = sorted(
        (
            (item, personal_times[item.id])
            for item, _ in rows
            if personal_times[item.id].submitted_at is None
        ),
        key=lambda pair: _start_key(*pair),
    )
    for item, personal_time in upcoming[:commit_window]:
        if not personal_time.fixed:
            personal_time.fixed = True
            update.fixed_item_ids.append(item.id)

    session.flush()
    return update


ALGORITHMS: dict[TimelineAlgorithm, Callable[[Session, CourseUser, int], TimelineUpdate]] = {
    TimelineAlgorithm.FIXED: _algorithm_fixed,
    TimelineAlgorithm.ADAPTIVE: _algorithm_adaptive,
}


def update_personalized_timeline_for(
    session: Session,
    course_user: CourseUser,
    algorithm: TimelineAlgorithm | str | None = None,
    commit_window: int | None = None,
) -> TimelineUpdate:
    """
    Recompute the personal timeline of one course user.

    Args:
        session: Database session
        course_user: Course user whose personal times are updated
        algorithm: Algorithm to run (defaults to the user's, then the configured default)
        commit_window: Items the adaptive algorithm fixes (defaults to settings)

    Returns:
        TimelineUpdate describing what changed
    """
    settings = get_settings()
    algorithm = TimelineAlgorithm(
        algorithm or course_user.timeline_algorithm or settings.default_timeline_algorithm
    )
    if commit_window is None:
        commit_window = settings.timeline_commit_window

    with atomic(session):
        update = ALGORITHMS[algorithm](session, course_user, commit_window)

    logger.info(
        f"Personalized timeline for course user {course_user.id} ({algorithm.value}): "
        f"created={update.created} updated={update.updated} deleted={update.deleted} "
        f"fixed={len(update.fixed_item_ids)}"
    )
    return update
