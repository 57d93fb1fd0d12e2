"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Database fixtures use an in-memory SQLite engine built from the models.
"""
import sys
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from courseplan.db.database import enable_sqlite_savepoints  # noqa: E402
from courseplan.db.models import (  # noqa: E402
    Assessment,
    Base,
    Course,
    CourseUser,
    LessonPlanItem,
    PersonalTime,
    Question,
    QuestionBundle,
    QuestionBundleAssignment,
    QuestionBundleQuestion,
    QuestionGroup,
    ReferenceTime,
    ReferenceTimeline,
    Submission,
    User,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with every table created."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    factory = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    with factory() as session:
        yield session


class CourseBuilder:
    """Creates a course with a default reference timeline and lets tests add rows to it."""

    def __init__(self, session):
        self.session = session
        self.course = Course(title="CS1010")
        self.timeline = ReferenceTimeline(course=self.course, title="Default", default=True)
        session.add_all([self.course, self.timeline])
        session.flush()

    def _add(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    def student(self, name: str, **kwargs) -> CourseUser:
        user = self._add(User(name=name))
        return self._add(CourseUser(course_id=self.course.id, user_id=user.id, **kwargs))

    def assessment(self, title: str = "Midterm") -> Assessment:
        return self._add(Assessment(course_id=self.course.id, title=title))

    def group(self, assessment: Assessment, title: str) -> QuestionGroup:
        return self._add(QuestionGroup(assessment_id=assessment.id, title=title))

    def bundle(self, group: QuestionGroup, title: str) -> QuestionBundle:
        return self._add(QuestionBundle(group_id=group.id, title=title))

    def question(self, assessment: Assessment, title: str, *bundles: QuestionBundle) -> Question:
        question = self._add(Question(assessment_id=assessment.id, title=title))
        for bundle in bundles:
            self._add(QuestionBundleQuestion(bundle_id=bundle.id, question_id=question.id))
        return question

    def assignment(
        self, student: CourseUser, assessment: Assessment, bundle: QuestionBundle, submitted: bool = False
    ) -> QuestionBundleAssignment:
        submission_id = None
        if submitted:
            submission = self._add(
                Submission(assessment_id=assessment.id, user_id=student.user_id, workflow_state="submitted")
            )
            submission_id = submission.id
        return self._add(
            QuestionBundleAssignment(
                user_id=student.user_id,
                assessment_id=assessment.id,
                bundle_id=bundle.id,
                submission_id=submission_id,
            )
        )

    def item(
        self,
        title: str,
        start_at: datetime,
        end_at: datetime | None = None,
        item_type: str = "assessment",
    ) -> LessonPlanItem:
        item = self._add(LessonPlanItem(course_id=self.course.id, title=title, item_type=item_type))
        self._add(
            ReferenceTime(
                reference_timeline_id=self.timeline.id,
                lesson_plan_item_id=item.id,
                start_at=start_at,
                end_at=end_at,
            )
        )
        return item

    def personal_time(
        self,
        student: CourseUser,
        item: LessonPlanItem,
        start_at: datetime,
        fixed: bool = False,
        submitted_at: datetime | None = None,
    ) -> PersonalTime:
        return self._add(
            PersonalTime(
                course_user_id=student.id,
                lesson_plan_item_id=item.id,
                start_at=start_at,
                fixed=fixed,
                submitted_at=submitted_at,
            )
        )


@pytest.fixture
def builder(db_session):
    return CourseBuilder(db_session)
