"""Unit tests for recognising unique-constraint races."""

from sqlalchemy.exc import IntegrityError

from courseplan.db.integrity import violates_unique_constraint

COLUMNS = ("course_user_id", "lesson_plan_item_id")


class _Diag:
    def __init__(self, constraint_name):
        self.constraint_name = constraint_name


class _PostgresError(Exception):
    def __init__(self, message, constraint_name):
        super().__init__(message)
        self.diag = _Diag(constraint_name)


def _error(orig):
    return IntegrityError("INSERT INTO personal_times ...", {}, orig)


def test_postgres_constraint_name_matches():
    error = _error(_PostgresError("duplicate key value", "uq_personal_times_user_item"))

    assert violates_unique_constraint(error, "uq_personal_times_user_item", "personal_times", COLUMNS)


def test_postgres_other_constraint_does_not_match():
    error = _error(_PostgresError("duplicate key value", "personal_times_pkey"))

    assert not violates_unique_constraint(error, "uq_personal_times_user_item", "personal_times", COLUMNS)


def test_sqlite_message_lists_columns():
    error = _error(
        Exception(
            "UNIQUE constraint failed: personal_times.course_user_id, personal_times.lesson_plan_item_id"
        )
    )

    assert violates_unique_constraint(error, "uq_personal_times_user_item", "personal_times", COLUMNS)


def test_not_null_violation_does_not_match():
    error = _error(Exception("NOT NULL constraint failed: personal_times.course_user_id"))

    assert not violates_unique_constraint(error, "uq_personal_times_user_item", "personal_times", COLUMNS)
