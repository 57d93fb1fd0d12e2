"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output
against a throwaway SQLite database. They don't validate correctness deeply -
just that commands work end to end.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""
from datetime import datetime

import pytest
from loguru import logger
from sqlalchemy import func, select
from typer.testing import CliRunner

from config import get_settings
from courseplan import __version__
from courseplan.cli.main import app
from courseplan.db.database import dispose_engine, init_db, session_scope
from courseplan.db.models import (
    Assessment,
    Course,
    CourseUser,
    LessonPlanItem,
    PersonalTime,
    QuestionBundle,
    QuestionBundleAssignment,
    QuestionGroup,
    ReferenceTime,
    ReferenceTimeline,
    User,
)

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture(autouse=True)
def sqlite_database(tmp_path, monkeypatch):
    """Point the CLI at a fresh SQLite file."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'courseplan.db'}")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    get_settings.cache_clear()
    dispose_engine()
    yield
    dispose_engine()
    get_settings.cache_clear()
    logger.remove()


@pytest.fixture
def seeded():
    """One course with two students, a two-group assessment and three timeline items."""
    init_db()
    with session_scope() as session:
        course = Course(title="CS1010")
        timeline = ReferenceTimeline(course=course, title="Default", default=True)
        session.add_all([course, timeline])
        session.flush()

        course_users = []
        for name in ("Alice", "Bob"):
            user = User(name=name)
            session.add(user)
            session.flush()
            course_user = CourseUser(course_id=course.id, user_id=user.id)
            session.add(course_user)
            course_users.append(course_user)

        assessment = Assessment(course_id=course.id, title="Midterm")
        session.add(assessment)
        session.flush()
        for title, bundle_titles in (("Easy", ("E1", "E2")), ("Hard", ("H1",))):
            group = QuestionGroup(assessment_id=assessment.id, title=title)
            session.add(group)
            session.flush()
            session.add_all(QuestionBundle(group_id=group.id, title=t) for t in bundle_titles)

        for day in (1, 2, 3):
            item = LessonPlanItem(course_id=course.id, title=f"Quiz {day}")
            session.add(item)
            session.flush()
            session.add(
                ReferenceTime(
                    reference_timeline_id=timeline.id,
                    lesson_plan_item_id=item.id,
                    start_at=datetime(2024, 9, day),
                )
            )
        session.flush()
        return {
            "course_id": course.id,
            "assessment_id": assessment.id,
            "course_user_ids": [cu.id for cu in course_users],
        }


def count(model, *where):
    with session_scope() as session:
        return session.scalar(select(func.count()).select_from(model).where(*where))


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "assign" in result.output
        assert "timeline" in result.output

    def test_randomize_help(self):
        result = runner.invoke(app, ["assign", "randomize", "--help"])

        assert result.exit_code == 0
        assert "--seed" in result.output


class TestCLIInfo:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info_shows_settings(self):
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "sqlite" in result.output

    def test_db_init(self):
        result = runner.invoke(app, ["db", "init"])

        assert result.exit_code == 0
        assert "initialized" in result.output


class TestCLIAssign:
    def test_randomize_saves_assignments(self, seeded):
        assessment_id = seeded["assessment_id"]

        result = runner.invoke(app, ["assign", "randomize", str(assessment_id), "--seed", "smoke"])

        assert result.exit_code == 0, result.output
        assert "Saved 4 assignments" in result.output
        assert count(QuestionBundleAssignment, QuestionBundleAssignment.assessment_id == assessment_id) == 4

    def test_validate_after_randomize(self, seeded):
        assessment_id = str(seeded["assessment_id"])
        runner.invoke(app, ["assign", "randomize", assessment_id, "--seed", "smoke"])

        result = runner.invoke(app, ["assign", "validate", assessment_id])

        assert result.exit_code == 0, result.output
        assert "one_bundle_assigned" in result.output

    def test_validate_without_assignments_fails(self, seeded):
        result = runner.invoke(app, ["assign", "validate", str(seeded["assessment_id"])])

        assert result.exit_code == 1

    def test_dry_run_writes_nothing(self, seeded):
        assessment_id = seeded["assessment_id"]

        result = runner.invoke(app, ["assign", "randomize", str(assessment_id), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert count(QuestionBundleAssignment) == 0

    def test_unknown_assessment_exits_with_error(self, seeded):
        result = runner.invoke(app, ["assign", "randomize", "9999"])

        assert result.exit_code == 2


class TestCLITimeline:
    def test_personalize_adaptive(self, seeded):
        course_user_id = seeded["course_user_ids"][0]

        result = runner.invoke(
            app, ["timeline", "personalize", str(course_user_id), "--algorithm", "adaptive"]
        )

        assert result.exit_code == 0, result.output
        assert "created 3" in result.output
        assert count(PersonalTime, PersonalTime.fixed.is_(True)) == 3

    def test_personalize_course(self, seeded):
        result = runner.invoke(
            app, ["timeline", "personalize-course", str(seeded["course_id"]), "-a", "adaptive"]
        )

        assert result.exit_code == 0, result.output
        assert count(PersonalTime) == 6

    def test_personalize_unknown_course_user(self, seeded):
        result = runner.invoke(app, ["timeline", "personalize", "9999"])

        assert result.exit_code == 1
        assert "not found" in result.output
