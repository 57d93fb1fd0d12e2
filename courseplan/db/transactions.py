from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.orm import Session, SessionTransaction


@contextmanager
def atomic(session: Session) -> Generator[SessionTransaction, None, None]:
    """
    Run a block atomically on `session`.

    Opens a transaction that commits on exit, or a SAVEPOINT when the session
    is already inside a transaction owned by the caller. Either way an error
    rolls the block back completely before re-raising.
    """
    if session.in_transaction():
        with session.begin_nested() as transaction:
            yield transaction
    else:
        with session.begin() as transaction:
            yield transaction
