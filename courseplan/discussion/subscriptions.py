"""
Topic subscriptions that tolerate concurrent creation.

Two requests may both see "not subscribed" and both insert. The loser hits
the (topic_id, user_id) unique constraint; that outcome means the
subscription exists and is not an error. Any other integrity error is.
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from courseplan.db.integrity import violates_unique_constraint
from courseplan.db.models import TopicSubscription
from courseplan.db.models.discussion import SUBSCRIPTION_UNIQUE_CONSTRAINT


def is_subscribed(session: Session, topic_id: int, user_id: int) -> bool:
    return bool(
        session.scalar(
            select(
                exists().where(
                    TopicSubscription.topic_id == topic_id,
                    TopicSubscription.user_id == user_id,
                )
            )
        )
    )


def ensure_subscribed(session: Session, topic_id: int, user_id: int) -> bool:
    """
    Subscribe a user to a topic unless already subscribed.

    The insert runs in a SAVEPOINT because a unique violation leaves the
    enclosing transaction unusable until rolled back.

    Returns:
        True if a subscription was created, False if one already existed
    """
    try:
        with session.begin_nested():
            if is_subscribed(session, topic_id, user_id):
                return False
            session.add(TopicSubscription(topic_id=topic_id, user_id=user_id))
            session.flush()
    except IntegrityError as e:
        if not violates_unique_constraint(
            e, SUBSCRIPTION_UNIQUE_CONSTRAINT, "topic_subscriptions", ("topic_id", "user_id")
        ):
            raise
        logger.debug(f"User {user_id} subscribed to topic {topic_id} concurrently")
        return False
    return True
