"""
Recognising unique-constraint races.

Concurrent "create if missing" operations can both pass their existence
check and both insert. The loser's IntegrityError is expected only when it
comes from the constraint guarding that pair; anything else is a real error.
"""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.exc import IntegrityError


def violates_unique_constraint(
    error: IntegrityError, constraint: str, table: str, columns: Sequence[str]
) -> bool:
    """
    Whether `error` is a violation of the named unique constraint.

    PostgreSQL (psycopg2) reports the constraint name in its diagnostics.
    SQLite omits the name but lists the table's columns in the message.
    """
    name = getattr(getattr(error.orig, "diag", None), "constraint_name", None)
    if name is not None:
        return name == constraint
    message = str(error.orig)
    if constraint in message:
        return True
    return "UNIQUE" in message and all(f"{table}.{column}" in message for column in columns)
